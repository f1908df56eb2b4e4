import logging

from beacon_participation.metrics.prometheus.duration_meter import duration_meter
from beacon_participation.metrics.prometheus.participation import (
    ATTESTATIONS_ASSIGNED,
    ATTESTATIONS_EXECUTED,
    CANONICAL_BLOCKS_COUNT,
    OBSERVED_BLOCKS_COUNT,
    PROPOSAL_RATE,
)
from beacon_participation.modules.participation.aggregator import ParticipationAggregator, count_blocks_in_range
from beacon_participation.modules.participation.chain import reconstruct_canonical_chain
from beacon_participation.modules.participation.fetcher import BlockFetcher, ProgressCallback
from beacon_participation.modules.participation.types import (
    ParticipationReport,
    ParticipationSummary,
    StageTimings,
)
from beacon_participation.providers.consensus.pool import SourcePool
from beacon_participation.providers.consensus.types import Block
from beacon_participation.utils.epoch import EpochRange
from beacon_participation.utils.timeit import timeit

logger = logging.getLogger(__name__)


def _record_timing(stage: str):
    def log_fn(args, duration: float) -> None:
        args.self.timings[stage] = duration
        logger.info({"msg": f"Stage {stage} finished in {duration:.2f} seconds"})
    return log_fn


class ParticipationAudit:
    """
    Attestation participation audit over an epochs window:
    fetch blocks -> reconstruct canonical chain -> aggregate participation.
    """

    pool: SourcePool
    fetcher: BlockFetcher
    timings: dict[str, float]

    def __init__(self, pool: SourcePool, on_slot_fetched: ProgressCallback | None = None):
        self.pool = pool
        self.fetcher = BlockFetcher(pool, on_slot_fetched)
        self.timings = {}

    @duration_meter()
    def execute(self, epochs: EpochRange) -> ParticipationReport:
        logger.info({"msg": f"Auditing attestations for epochs {epochs}", "epochs_count": epochs.epochs_count})
        self.timings = {}

        blocks = self._fetch_blocks(epochs)
        chain = self._reconstruct_chain(blocks, epochs)
        summary = self._aggregate_participation(chain, epochs)

        proposal_rate = count_blocks_in_range(chain, epochs.from_slot, epochs.to_slot) / epochs.slots_count

        OBSERVED_BLOCKS_COUNT.set(len(blocks))
        CANONICAL_BLOCKS_COUNT.set(len(chain))
        ATTESTATIONS_ASSIGNED.set(summary.total.assigned)
        ATTESTATIONS_EXECUTED.set(summary.total.executed)
        PROPOSAL_RATE.set(proposal_rate)

        return ParticipationReport(
            epochs=epochs,
            total=summary.total,
            by_epoch_position=summary.by_epoch_position,
            proposal_rate=proposal_rate,
            observed_blocks=len(blocks),
            canonical_blocks=len(chain),
            timings=StageTimings(**self.timings),
        )

    @timeit(_record_timing("fetch_blocks"))
    def _fetch_blocks(self, epochs: EpochRange) -> list[Block]:
        return self.fetcher.fetch(epochs.from_slot, epochs.to_slot)

    @timeit(_record_timing("reconstruct_chain"))
    def _reconstruct_chain(self, blocks: list[Block], epochs: EpochRange) -> list[Block]:
        return reconstruct_canonical_chain(blocks, epochs.from_slot)

    @timeit(_record_timing("aggregate_participation"))
    def _aggregate_participation(self, chain: list[Block], epochs: EpochRange) -> ParticipationSummary:
        aggregator = ParticipationAggregator(epochs.from_slot, epochs.to_slot, self.pool)
        aggregator.organize(chain)
        return aggregator.calculate(chain)
