from dataclasses import dataclass, field

from beacon_participation.constants import SLOTS_PER_EPOCH
from beacon_participation.types import SlotNumber
from beacon_participation.utils.epoch import EpochRange


@dataclass
class AttesterParticipation:
    included: bool = False
    # Slot of the block with the first inclusion, meaningful only if included
    inclusion_slot: SlotNumber = SlotNumber(0)


type CommitteeParticipation = list[AttesterParticipation]


@dataclass
class ParticipationStats:
    assigned: int = 0
    executed: int = 0
    # Sum of `1 + inclusion_slot - earliest_inclusion_slot` over executed duties
    inclusion_delay: int = 0

    @property
    def rate(self) -> float | None:
        if not self.assigned:
            return None
        return self.executed / self.assigned

    @property
    def effectiveness(self) -> float | None:
        """Reciprocal of the mean inclusion delay, 1 is the best possible value"""
        if not self.executed or not self.inclusion_delay:
            return None
        return 1 / (self.inclusion_delay / self.executed)

    def add_committee(self, participations: CommitteeParticipation, earliest_inclusion_slot: SlotNumber) -> None:
        self.assigned += len(participations)
        for participation in participations:
            if participation.included:
                self.executed += 1
                self.inclusion_delay += 1 + participation.inclusion_slot - earliest_inclusion_slot


def _empty_positions() -> list[ParticipationStats]:
    return [ParticipationStats() for _ in range(SLOTS_PER_EPOCH)]


@dataclass
class ParticipationSummary:
    total: ParticipationStats = field(default_factory=ParticipationStats)
    # Index is the slot position in the epoch
    by_epoch_position: list[ParticipationStats] = field(default_factory=_empty_positions)
    # Duty slots without any canonical block after them, not counted in stats
    skipped_slots: list[SlotNumber] = field(default_factory=list)


@dataclass(frozen=True)
class StageTimings:
    fetch_blocks: float
    reconstruct_chain: float
    aggregate_participation: float


@dataclass(frozen=True)
class ParticipationReport:
    epochs: EpochRange
    total: ParticipationStats
    by_epoch_position: list[ParticipationStats]
    # Share of slots in the window with a canonical block
    proposal_rate: float
    observed_blocks: int
    canonical_blocks: int
    timings: StageTimings
