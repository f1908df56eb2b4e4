import logging
import random
from dataclasses import dataclass
from threading import BoundedSemaphore
from typing import Sequence

from beacon_participation.providers.consensus.client import ConsensusClient
from beacon_participation.providers.consensus.types import Block, CommitteeSizes
from beacon_participation.providers.consistency import ProviderConsistencyModule
from beacon_participation.providers.http_provider import NoHostsProvided
from beacon_participation.types import EpochNumber, SlotNumber
from beacon_participation.utils.epoch import epoch_first_slot

logger = logging.getLogger(__name__)


@dataclass
class BlockSource:
    client: ConsensusClient
    # Limits in-flight requests to the node
    semaphore: BoundedSemaphore


class SourcePool(ProviderConsistencyModule):
    """
    Set of interchangeable Beacon nodes. Every request goes to a randomly chosen node.

    Nodes are not required to agree on the chain head: blocks from abandoned forks
    are discarded later during the canonical chain reconstruction.
    """

    sources: list[BlockSource]
    concurrency: int

    def __init__(self, clients: Sequence[ConsensusClient], concurrency: int, rng: random.Random | None = None):
        if not clients:
            raise NoHostsProvided(f"No sources provided for {self.__class__.__name__}")
        if concurrency < 1:
            raise ValueError(f"Concurrency should be positive, got {concurrency=}")

        self.concurrency = concurrency
        self.sources = [BlockSource(client, BoundedSemaphore(concurrency)) for client in clients]
        self._rng = rng or random.Random()

    @classmethod
    def from_hosts(
        cls,
        hosts: list[str],
        concurrency: int,
        request_timeout: int,
        retry_total: int,
        retry_backoff_factor: int,
    ) -> 'SourcePool':
        # One client per host: fallbacks are replaced with random routing between sources
        clients = [
            ConsensusClient(
                [host],
                request_timeout,
                retry_total,
                retry_backoff_factor,
                pool_maxsize=concurrency,
            )
            for host in hosts
        ]
        return cls(clients, concurrency)

    @property
    def concurrency_limit(self) -> int:
        return self.concurrency * len(self.sources)

    def fetch_block(self, slot: SlotNumber) -> Block | None:
        """Block for the slot from a random source, None for an empty slot"""
        source = self._rng.choice(self.sources)
        with source.semaphore:
            return source.client.get_block(slot)

    def get_committee_sizes(self, epoch: EpochNumber) -> CommitteeSizes:
        """Number of seats of every committee of the epoch, keyed by (slot, committee index)"""
        source = self._rng.choice(self.sources)
        with source.semaphore:
            committees = source.client.get_attestation_committees(epoch_first_slot(epoch), epoch)
        logger.info({"msg": f"Fetched {len(committees)} committees of epoch {epoch}"})
        return {(committee.slot, committee.index): len(committee.validators) for committee in committees}

    def get_all_providers(self) -> list[ConsensusClient]:
        return [source.client for source in self.sources]

    def _get_chain_id_with_provider(self, provider_index: int) -> int:
        return self.sources[provider_index].client.get_config_spec().DEPOSIT_CHAIN_ID
