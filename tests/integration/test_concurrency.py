"""
Concurrency tests for settlement and bidding.

Tests cover:
1. A second settle while one is in flight is rejected
2. Many racing settles produce exactly one settlement
3. Concurrent bids are all recorded with distinct timestamps
"""

import threading

import pytest

from blindbid.core.auction import AuctionLifecycle, AuctionStatus, LocalEvaluator, place_bid
from blindbid.core.auction.evaluator import Evaluator
from blindbid.core.storage import InMemoryAuctionStore
from blindbid.crypto.sealing import seal_value
from blindbid.errors import AlreadySettled, ConcurrentSettlementConflict, SettlementRejected


class SlowEvaluator(Evaluator):
    """Blocks inside evaluate() until released."""

    def __init__(self, inner):
        self.inner = inner
        self.entered = threading.Event()
        self.release = threading.Event()
        self.calls = 0

    @property
    def public_point(self):
        return self.inner.public_point

    def evaluate(self, bids):
        self.calls += 1
        self.entered.set()
        self.release.wait(timeout=10)
        return self.inner.evaluate(bids)


@pytest.fixture
def store():
    s = InMemoryAuctionStore()
    yield s
    s.close()


def closed_auction(lifecycle, clock, bidders=("bob", "carol")):
    auction = lifecycle.create_auction("alice", "Painting", 1, clock.now + 60)
    for i, bidder in enumerate(bidders):
        clock.advance(1)
        place_bid(lifecycle, auction.auction_id, bidder, 100 + i)
    clock.now = auction.open_until
    return auction


def test_settle_in_flight_rejects_second_caller(store, clock):
    evaluator = SlowEvaluator(LocalEvaluator())
    lifecycle = AuctionLifecycle(store, evaluator, clock=clock)
    auction = closed_auction(lifecycle, clock)

    results = []
    first = threading.Thread(target=lambda: results.append(lifecycle.settle(auction.auction_id)))
    first.start()
    assert evaluator.entered.wait(timeout=10)

    with pytest.raises(ConcurrentSettlementConflict):
        lifecycle.settle(auction.auction_id)

    evaluator.release.set()
    first.join(timeout=10)

    assert len(results) == 1
    assert results[0].winner.identity == "carol"
    with pytest.raises(AlreadySettled):
        lifecycle.settle(auction.auction_id)
    assert evaluator.calls == 1


def test_racing_settles_settle_exactly_once(store, clock):
    lifecycle = AuctionLifecycle(store, LocalEvaluator(), clock=clock)
    auction = closed_auction(lifecycle, clock)

    workers = 8
    barrier = threading.Barrier(workers)
    successes = []
    rejections = []
    lock = threading.Lock()

    def attempt():
        barrier.wait()
        try:
            result = lifecycle.settle(auction.auction_id)
        except SettlementRejected as e:
            with lock:
                rejections.append(e)
        else:
            with lock:
                successes.append(result)

    threads = [threading.Thread(target=attempt) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert len(successes) == 1
    assert len(rejections) == workers - 1
    stored = lifecycle.get_auction(auction.auction_id)
    assert stored.status == AuctionStatus.SETTLED
    assert stored.winner == successes[0].winner


def test_concurrent_bids_all_recorded(store, clock):
    evaluator = LocalEvaluator()
    lifecycle = AuctionLifecycle(store, evaluator, clock=clock)
    auction = lifecycle.create_auction("alice", "Painting", 1, clock.now + 60)

    workers = 16
    sealed = [seal_value(1000 + i, evaluator.public_point) for i in range(workers)]
    barrier = threading.Barrier(workers)
    errors = []

    def submit(i):
        barrier.wait()
        try:
            lifecycle.submit_bid(auction.auction_id, f"bidder{i}", sealed[i])
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=submit, args=(i,)) for i in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert errors == []
    stored = lifecycle.get_auction(auction.auction_id)
    assert stored.bid_count == workers
    assert len({b.bid_id for b in stored.bids}) == workers
    times = [b.submitted_at for b in stored.bids]
    assert all(later > earlier for earlier, later in zip(times, times[1:]))

    clock.now = auction.open_until
    result = lifecycle.settle(auction.auction_id)
    assert result.winner.identity == f"bidder{workers - 1}"
