import random
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import Mock

import pytest

from beacon_participation.modules.participation.fetcher import BlockFetcher, BlockFetchError
from beacon_participation.providers.consensus.client import ConsensusClient
from beacon_participation.providers.consensus.pool import SourcePool
from beacon_participation.types import SlotNumber
from tests.factory.consensus import build_block, build_chain
from tests.factory.pool import FakeSourcePool

pytestmark = pytest.mark.unit


def test_fetch_returns_blocks_sorted_by_slot():
    blocks = build_chain([0, 1, 3, 4, 7])
    pool = FakeSourcePool(reversed(blocks), concurrency_limit=3)

    fetched = BlockFetcher(pool, inclusion_delay=2).fetch(SlotNumber(0), SlotNumber(5))

    assert fetched == blocks
    assert sorted(pool.requested_slots) == list(range(0, 8))


def test_fetch_skips_empty_slots():
    pool = FakeSourcePool(build_chain([2]))

    fetched = BlockFetcher(pool, inclusion_delay=0).fetch(SlotNumber(0), SlotNumber(4))

    assert [block.slot for block in fetched] == [2]


def test_fetch_covers_inclusion_delay_margin():
    pool = FakeSourcePool()

    fetched = BlockFetcher(pool).fetch(SlotNumber(32), SlotNumber(63))

    assert fetched == []
    assert sorted(pool.requested_slots) == list(range(32, 96))


def test_progress_callback_is_called_for_every_slot():
    calls = []
    lock = threading.Lock()

    def on_slot_fetched():
        with lock:
            calls.append(1)

    pool = FakeSourcePool(build_chain(range(10)))
    BlockFetcher(pool, on_slot_fetched, inclusion_delay=5).fetch(SlotNumber(0), SlotNumber(9))

    assert len(calls) == 15


def test_fetch_fails_fast():
    def on_fetch(slot):
        if slot == 3:
            raise ConnectionError("node is down")

    pool = FakeSourcePool(build_chain(range(10)), on_fetch=on_fetch)

    with pytest.raises(BlockFetchError, match="slot 3") as error:
        BlockFetcher(pool, inclusion_delay=0).fetch(SlotNumber(0), SlotNumber(9))

    assert isinstance(error.value.__cause__, ConnectionError)


def test_fetch_cancels_pending_requests_on_error():
    def on_fetch(slot):
        if slot == 0:
            raise ConnectionError("node is down")
        time.sleep(0.01)

    pool = FakeSourcePool(concurrency_limit=1, on_fetch=on_fetch)

    with pytest.raises(BlockFetchError):
        BlockFetcher(pool, inclusion_delay=32).fetch(SlotNumber(0), SlotNumber(31))

    assert len(pool.requested_slots) < 64


class InFlightCounter:
    """Slow get_block which remembers the highest number of simultaneous calls"""

    def __init__(self, delay: float = 0.01):
        self.delay = delay
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def __call__(self, slot):
        with self._lock:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            time.sleep(self.delay)
            return build_block(slot)
        finally:
            with self._lock:
                self.in_flight -= 1


def counting_client() -> tuple[Mock, InFlightCounter]:
    counter = InFlightCounter()
    client = Mock(spec=ConsensusClient)
    client.get_block.side_effect = counter
    return client, counter


def test_fetch_respects_source_concurrency():
    client, counter = counting_client()
    pool = SourcePool([client], concurrency=3)

    fetched = BlockFetcher(pool, inclusion_delay=0).fetch(SlotNumber(0), SlotNumber(59))

    assert [block.slot for block in fetched] == list(range(60))
    assert client.get_block.call_count == 60
    assert 0 < counter.max_in_flight <= 3
    assert counter.in_flight == 0


def test_fetch_respects_concurrency_of_every_source():
    clients, counters = zip(*(counting_client() for _ in range(2)))
    pool = SourcePool(clients, concurrency=3, rng=random.Random(7))

    fetched = BlockFetcher(pool, inclusion_delay=0).fetch(SlotNumber(0), SlotNumber(79))

    assert len(fetched) == 80
    assert sum(client.get_block.call_count for client in clients) == 80
    for counter in counters:
        assert counter.max_in_flight <= 3


def test_pool_limits_in_flight_requests_of_wider_executor():
    client, counter = counting_client()
    pool = SourcePool([client], concurrency=2)

    with ThreadPoolExecutor(max_workers=8) as executor:
        blocks = list(executor.map(pool.fetch_block, [SlotNumber(slot) for slot in range(40)]))

    assert [block.slot for block in blocks] == list(range(40))
    assert 0 < counter.max_in_flight <= 2
