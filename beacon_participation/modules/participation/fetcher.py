import logging
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Callable

from beacon_participation.constants import MAX_INCLUSION_DELAY
from beacon_participation.providers.consensus.pool import SourcePool
from beacon_participation.providers.consensus.types import Block
from beacon_participation.types import SlotNumber
from beacon_participation.utils.epoch import sequence

logger = logging.getLogger(__name__)


type ProgressCallback = Callable[[], None]


class BlockFetchError(Exception):
    pass


def _noop() -> None:
    pass


class BlockFetcher:
    """
    Fetches every slot of the window plus the inclusion delay margin, so votes cast
    at the end of the window can still be observed as included.
    """

    pool: SourcePool
    inclusion_delay: int

    def __init__(
        self,
        pool: SourcePool,
        on_slot_fetched: ProgressCallback | None = None,
        inclusion_delay: int = MAX_INCLUSION_DELAY,
    ):
        self.pool = pool
        self.on_slot_fetched = on_slot_fetched or _noop
        self.inclusion_delay = inclusion_delay

    def fetch(self, from_slot: SlotNumber, to_slot: SlotNumber) -> list[Block]:
        """
        Returns observed blocks sorted by slot. Several blocks can share the same slot
        if sources are on different forks.

        Any error except a missed slot aborts the whole fetch: the chain can't be
        reconstructed from a partial window.
        """
        last_slot = SlotNumber(to_slot + self.inclusion_delay)
        logger.info({
            "msg": f"Fetching blocks for slots [{from_slot};{last_slot}]",
            "sources": len(self.pool.sources),
            "concurrency_limit": self.pool.concurrency_limit,
        })

        blocks: list[Block] = []
        executor = ThreadPoolExecutor(max_workers=self.pool.concurrency_limit, thread_name_prefix="block-fetcher")
        try:
            futures: dict[Future[Block | None], SlotNumber] = {
                executor.submit(self._fetch_slot, slot): slot
                for slot in sequence(from_slot, last_slot)
            }
            for future in as_completed(futures):
                try:
                    block = future.result()
                except Exception as e:
                    slot = futures[future]
                    logger.error({"msg": f"Error fetching block for slot {slot}", "error": repr(e)})
                    raise BlockFetchError(f"Failed to fetch block for slot {slot}") from e
                if block is not None:
                    blocks.append(block)
        finally:
            # Not started requests are cancelled, in-flight ones are awaited
            executor.shutdown(wait=True, cancel_futures=True)

        blocks.sort(key=lambda block: block.slot)
        logger.info({"msg": f"Got {len(blocks)} blocks"})
        return blocks

    def _fetch_slot(self, slot: SlotNumber) -> Block | None:
        try:
            return self.pool.fetch_block(slot)
        finally:
            self.on_slot_fetched()
