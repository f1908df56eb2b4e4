from prometheus_client import Counter, Gauge

from beacon_participation.variables import PROMETHEUS_PREFIX


FETCHED_SLOTS_COUNT = Counter(
    "fetched_slots",
    "Slots requested from the Beacon nodes, including empty slots",
    namespace=PROMETHEUS_PREFIX,
)

OBSERVED_BLOCKS_COUNT = Gauge(
    "observed_blocks_count",
    "Blocks observed by all the Beacon nodes, forks included",
    namespace=PROMETHEUS_PREFIX,
)

CANONICAL_BLOCKS_COUNT = Gauge(
    "canonical_blocks_count",
    "Blocks in the reconstructed canonical chain",
    namespace=PROMETHEUS_PREFIX,
)

ATTESTATIONS_ASSIGNED = Gauge(
    "attestations_assigned",
    "Committee seats assigned in the audited window",
    namespace=PROMETHEUS_PREFIX,
)

ATTESTATIONS_EXECUTED = Gauge(
    "attestations_executed",
    "Committee seats with the vote included on chain",
    namespace=PROMETHEUS_PREFIX,
)

PROPOSAL_RATE = Gauge(
    "proposal_rate",
    "Share of slots in the audited window with a canonical block",
    namespace=PROMETHEUS_PREFIX,
)
