import threading
from typing import Callable, Iterable, Mapping

from beacon_participation.providers.consensus.types import Block, CommitteeSizes
from beacon_participation.types import EpochNumber, SlotNumber


class FakeSourcePool:
    """In-memory replacement of SourcePool serving prebuilt blocks and committee sizes"""

    def __init__(
        self,
        blocks: Iterable[Block] = (),
        concurrency_limit: int = 4,
        on_fetch: Callable[[SlotNumber], None] | None = None,
        committee_sizes: Mapping[int, CommitteeSizes] | None = None,
    ):
        self.blocks: dict[SlotNumber, Block] = {}
        for block in blocks:
            self.blocks[block.slot] = block
        self.sources = [object()]
        self.concurrency_limit = concurrency_limit
        self.on_fetch = on_fetch
        self.committee_sizes = dict(committee_sizes or {})
        self.requested_slots: list[SlotNumber] = []
        self.requested_epochs: list[EpochNumber] = []
        self._lock = threading.Lock()

    def fetch_block(self, slot: SlotNumber) -> Block | None:
        with self._lock:
            self.requested_slots.append(slot)
        if self.on_fetch is not None:
            self.on_fetch(slot)
        return self.blocks.get(slot)

    def get_committee_sizes(self, epoch: EpochNumber) -> CommitteeSizes:
        self.requested_epochs.append(epoch)
        return self.committee_sizes.get(epoch, {})
