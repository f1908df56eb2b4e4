import logging
from bisect import bisect_right
from typing import Callable, Iterable, Protocol, Sequence

from beacon_participation.constants import MAX_COMMITTEES_PER_SLOT
from beacon_participation.modules.participation.types import (
    AttesterParticipation,
    CommitteeParticipation,
    ParticipationSummary,
)
from beacon_participation.providers.consensus.types import Block, BlockAttestation, CommitteeSizes
from beacon_participation.types import CommitteeIndex, EpochNumber, SlotNumber
from beacon_participation.utils.bits import get_set_indices, hex_bitlist_to_list, hex_bitvector_to_list
from beacon_participation.utils.epoch import slot_position_in_epoch, slot_to_epoch

logger = logging.getLogger(__name__)


class InvalidAttestation(Exception):
    pass


class CommitteeSizeMismatch(InvalidAttestation):
    pass


class CommitteeSizesFetchError(Exception):
    pass


type AttestationCommittees = dict[tuple[SlotNumber, CommitteeIndex], CommitteeParticipation]
type CommitteeSizeGetter = Callable[[SlotNumber, CommitteeIndex], int]


class CommitteeSizeSource(Protocol):
    def get_committee_sizes(self, epoch: EpochNumber) -> CommitteeSizes: ...


class ParticipationAggregator:
    """
    Tracks for every committee seat of duty slots [from_slot;to_slot] if its vote
    was included in the canonical chain and in which block it happened first.

    Committee sizes are only requested from committee_sizes for epochs with
    attestations aggregating several committees.
    """

    from_slot: SlotNumber
    to_slot: SlotNumber
    committees: AttestationCommittees

    def __init__(
        self,
        from_slot: SlotNumber,
        to_slot: SlotNumber,
        committee_sizes: CommitteeSizeSource | None = None,
    ):
        if from_slot > to_slot:
            raise ValueError(f"{from_slot=} > {to_slot=}")
        self.from_slot = from_slot
        self.to_slot = to_slot
        self.committees = {}
        self._committee_sizes_source = committee_sizes
        self._committee_sizes: dict[EpochNumber, CommitteeSizes] = {}

    def reset(self) -> None:
        self.committees = {}

    def organize(self, chain: Sequence[Block]) -> None:
        get_committee_size = self.get_committee_size if self._committee_sizes_source is not None else None
        # Chain must be iterated in ascending order, so the first inclusion is the earliest one
        for block in chain:
            process_attestations(block, self.committees, self.from_slot, self.to_slot, get_committee_size)
        logger.info({"msg": f"Participation of {len(self.committees)} committees organized"})

    def get_committee_size(self, slot: SlotNumber, committee_index: CommitteeIndex) -> int:
        if self._committee_sizes_source is None:
            raise InvalidAttestation("Committee sizes source is not provided")

        epoch = slot_to_epoch(slot)
        if epoch not in self._committee_sizes:
            try:
                self._committee_sizes[epoch] = self._committee_sizes_source.get_committee_sizes(epoch)
            except Exception as e:
                logger.error({"msg": f"Error fetching committees for epoch {epoch}", "error": repr(e)})
                raise CommitteeSizesFetchError(f"Failed to fetch committees for epoch {epoch}") from e

        size = self._committee_sizes[epoch].get((slot, committee_index))
        if size is None:
            raise InvalidAttestation(f"Committee {committee_index} of slot {slot} does not exist")
        return size

    def calculate(self, chain: Sequence[Block]) -> ParticipationSummary:
        summary = ParticipationSummary()
        chain_slots = [block.slot for block in chain]
        earliest_inclusion_slots: dict[SlotNumber, SlotNumber | None] = {}

        for (slot, _), participations in sorted(self.committees.items()):
            if slot not in earliest_inclusion_slots:
                earliest_inclusion_slots[slot] = get_earliest_inclusion_slot(chain_slots, slot)
                if earliest_inclusion_slots[slot] is None:
                    summary.skipped_slots.append(slot)

            earliest_inclusion_slot = earliest_inclusion_slots[slot]
            if earliest_inclusion_slot is None:
                continue

            summary.total.add_committee(participations, earliest_inclusion_slot)
            summary.by_epoch_position[slot_position_in_epoch(slot)].add_committee(
                participations, earliest_inclusion_slot
            )

        if summary.skipped_slots:
            logger.info({
                "msg": f"{len(summary.skipped_slots)} duty slots have no block after them and are skipped",
                "skipped_slots": summary.skipped_slots,
            })
        return summary


def get_earliest_inclusion_slot(chain_slots: Sequence[SlotNumber], slot: SlotNumber) -> SlotNumber | None:
    """Slot of the first canonical block after the given slot, chain_slots must be sorted"""
    index = bisect_right(chain_slots, slot)
    if index == len(chain_slots):
        return None
    return chain_slots[index]


def process_attestations(
    block: Block,
    committees: AttestationCommittees,
    from_slot: SlotNumber,
    to_slot: SlotNumber,
) -> None:
    for attestation in block.attestations:
        slot = attestation.data.slot
        if slot < from_slot or slot > to_slot:
            continue
        if slot >= block.slot:
            raise InvalidAttestation(f"Attestation for slot {slot} is included in the block at slot {block.slot}")

        committee_index = get_committee_index(attestation)
        att_bits = hex_bitlist_to_list(attestation.aggregation_bits)

        committee = committees.get((slot, committee_index))
        if committee is None:
            committee = [AttesterParticipation() for _ in range(len(att_bits))]
            committees[(slot, committee_index)] = committee
        elif len(committee) != len(att_bits):
            raise CommitteeSizeMismatch(
                f"Committee {committee_index} of slot {slot} has {len(committee)} seats, "
                f"but attestation in block {block.root} has {len(att_bits)} bits"
            )

        for index_in_committee in get_set_indices(att_bits):
            participation = committee[index_in_committee]
            if not participation.included:
                participation.included = True
                participation.inclusion_slot = block.slot


def get_committee_index(attestation: BlockAttestation) -> CommitteeIndex:
    if attestation.committee_bits:
        # Aggregation bits of multi-committee attestation can't be split without committee sizes
        committee_indices = get_committee_indices(attestation)
        if len(committee_indices) != 1:
            raise InvalidAttestation(
                f"Attestation for slot {attestation.data.slot} aggregates {len(committee_indices)} committees, "
                "only single committee attestations are supported"
            )
        committee_index = committee_indices[0]
    else:
        committee_index = CommitteeIndex(attestation.data.index)

    if not 0 <= committee_index < MAX_COMMITTEES_PER_SLOT:
        raise InvalidAttestation(f"Committee index {committee_index} is out of range")
    return committee_index


def get_committee_indices(attestation: BlockAttestation) -> list[CommitteeIndex]:
    return [CommitteeIndex(i) for i in get_set_indices(hex_bitvector_to_list(attestation.committee_bits))]


def count_blocks_in_range(chain: Iterable[Block], from_slot: SlotNumber, to_slot: SlotNumber) -> int:
    return sum(1 for block in chain if from_slot <= block.slot <= to_slot)


def process_attestations(
    block: Block,
    committees: AttestationCommittees,
    from_slot: SlotNumber,
    to_slot: SlotNumber,
    get_committee_size: CommitteeSizeGetter | None = None,
) -> None:
    for attestation in block.attestations:
        slot = attestation.data.slot
        if slot < from_slot or slot > to_slot:
            continue
        if slot >= block.slot:
            raise InvalidAttestation(f"Attestation for slot {slot} is included in the block at slot {block.slot}")

        try:
            att_bits = hex_bitlist_to_list(attestation.aggregation_bits)
        except ValueError as error:
            raise InvalidAttestation(f"Attestation for slot {slot} in block {block.root} is malformed") from error

        for committee_index, committee_bits in split_by_committees(attestation, att_bits, get_committee_size):
            committee = committees.get((slot, committee_index))
            if committee is None:
                committee = [AttesterParticipation() for _ in range(len(committee_bits))]
                committees[(slot, committee_index)] = committee
            elif len(committee) != len(committee_bits):
                raise CommitteeSizeMismatch(
                    f"Committee {committee_index} of slot {slot} has {len(committee)} seats, "
                    f"but attestation in block {block.root} has {len(committee_bits)} bits"
                )

            for index_in_committee in get_set_indices(committee_bits):
                participation = committee[index_in_committee]
                if not participation.included:
                    participation.included = True
                    participation.inclusion_slot = block.slot


def split_by_committees(
    attestation: BlockAttestation,
    att_bits: list[bool],
    get_committee_size: CommitteeSizeGetter | None = None,
) -> list[tuple[CommitteeIndex, list[bool]]]:
    """
    Aggregation bits of the committees set in committee_bits follow each other
    in committee index order. Single committee attestation takes all of the bits.
    """
    committee_indices = get_committee_indices(attestation) if attestation.committee_bits else []
    if len(committee_indices) <= 1:
        return [(get_committee_index(attestation), att_bits)]

    slot = attestation.data.slot
    if get_committee_size is None:
        raise InvalidAttestation(
            f"Attestation for slot {slot} aggregates {len(committee_indices)} committees, "
            "but committee sizes are unknown"
        )

    split = []
    committee_offset = 0
    for committee_index in committee_indices:
        _check_committee_index_range(committee_index)
        committee_size = get_committee_size(slot, committee_index)
        split.append((committee_index, att_bits[committee_offset:committee_offset + committee_size]))
        committee_offset += committee_size

    if committee_offset != len(att_bits):
        raise CommitteeSizeMismatch(
            f"Attestation for slot {slot} has {len(att_bits)} bits, "
            f"but its committees have {committee_offset} seats in total"
        )
    return split


def get_committee_index(attestation: BlockAttestation) -> CommitteeIndex:
    if attestation.committee_bits:
        committee_indices = get_committee_indices(attestation)
        if len(committee_indices) != 1:
            raise InvalidAttestation(
                f"Attestation for slot {attestation.data.slot} has {len(committee_indices)} committees, expected one"
            )
        committee_index = committee_indices[0]
    else:
        committee_index = CommitteeIndex(attestation.data.index)

    _check_committee_index_range(committee_index)
    return committee_index


def _check_committee_index_range(committee_index: CommitteeIndex) -> None:
    if not 0 <= committee_index < MAX_COMMITTEES_PER_SLOT:
        raise InvalidAttestation(f"Committee index {committee_index} is out of range")


def get_committee_indices(attestation: BlockAttestation) -> list[CommitteeIndex]:
    try:
        committee_bits = hex_bitvector_to_list(attestation.committee_bits)
    except ValueError as error:
        raise InvalidAttestation(f"Attestation for slot {attestation.data.slot} has malformed committee bits") from error
    return [CommitteeIndex(i) for i in get_set_indices(committee_bits)]


def count_blocks_in_range(chain: Iterable[Block], from_slot: SlotNumber, to_slot: SlotNumber) -> int:
    return sum(1 for block in chain if from_slot <= block.slot <= to_slot)
