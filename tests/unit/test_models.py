"""
Tests for auction records.

Tests cover:
1. Construction invariants
2. Forward-only status transitions
3. Time-based close
4. Serialization (clear amounts never serialized)
"""

import pytest

from blindbid.core.auction.models import (
    Auction,
    AuctionStatus,
    Bid,
    Winner,
    can_transition,
    derive_auction_id,
    derive_bid_id,
)
from blindbid.crypto import generate_keypair
from blindbid.crypto.sealing import seal_value
from blindbid.errors import AlreadySettled, AuctionNotActive, InvalidInput


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def evaluator_key():
    return generate_keypair()


@pytest.fixture
def auction(evaluator_key):
    return Auction(
        auction_id=derive_auction_id("alice", "Painting"),
        creator="alice",
        item_name="Painting",
        minimum_bid=500_000_000,
        open_until=2000.0,
        created_at=1000.0,
        evaluator_public_point=evaluator_key.public_key,
    )


def make_bid(auction, bidder, amount, submitted_at, evaluator_key):
    return Bid(
        bid_id=derive_bid_id(auction.auction_id, bidder, auction.bid_count),
        auction_id=auction.auction_id,
        bidder=bidder,
        sealed_amount=seal_value(amount, evaluator_key.public_key),
        submitted_at=submitted_at,
    )


# =============================================================================
# Tests
# =============================================================================


class TestAuctionInvariants:
    """Records reject inconsistent state on construction."""

    def test_new_auction_is_active(self, auction):
        assert auction.status == AuctionStatus.ACTIVE
        assert auction.bids == ()
        assert auction.winner is None
        assert auction.settled_at is None

    @pytest.mark.parametrize("minimum_bid", [0, -1, True, 1.5])
    def test_minimum_bid_must_be_positive_int(self, evaluator_key, minimum_bid):
        with pytest.raises(InvalidInput):
            Auction(
                auction_id="a", creator="alice", item_name="x",
                minimum_bid=minimum_bid, open_until=2.0, created_at=1.0,
                evaluator_public_point=evaluator_key.public_key,
            )

    def test_winner_requires_settled_status(self, auction):
        from dataclasses import replace

        with pytest.raises(InvalidInput):
            replace(auction, winner=Winner("bob", 1, "bid"))

    def test_settled_requires_winner(self, auction):
        from dataclasses import replace

        with pytest.raises(InvalidInput):
            replace(auction, status=AuctionStatus.SETTLED, settled_at=3000.0)

    def test_bids_list_is_stored_as_tuple(self, auction, evaluator_key):
        from dataclasses import replace

        bid = make_bid(auction, "bob", 1, 1500.0, evaluator_key)
        updated = replace(auction, bids=[bid])
        assert isinstance(updated.bids, tuple)


class TestTransitions:
    """Status only moves forward."""

    def test_allowed_transitions(self):
        assert can_transition(AuctionStatus.ACTIVE, AuctionStatus.CLOSED)
        assert can_transition(AuctionStatus.CLOSED, AuctionStatus.SETTLED)
        assert can_transition(AuctionStatus.CLOSED, AuctionStatus.CANCELLED)

    def test_backward_transitions_forbidden(self):
        assert not can_transition(AuctionStatus.CLOSED, AuctionStatus.ACTIVE)
        assert not can_transition(AuctionStatus.SETTLED, AuctionStatus.CLOSED)
        assert not can_transition(AuctionStatus.ACTIVE, AuctionStatus.SETTLED)
        assert not can_transition(AuctionStatus.CANCELLED, AuctionStatus.ACTIVE)

    def test_settle_from_closed(self, auction):
        winner = Winner("bob", 600_000_000, "bid-1", "mpc_1")
        settled = auction.closed().settled(winner, settled_at=2500.0)

        assert settled.status == AuctionStatus.SETTLED
        assert settled.winner == winner
        assert settled.settled_at == 2500.0
        # The original record is untouched
        assert auction.status == AuctionStatus.ACTIVE

    def test_settle_from_active_rejected(self, auction):
        with pytest.raises(AuctionNotActive):
            auction.settled(Winner("bob", 1, "b"), settled_at=2500.0)

    def test_terminal_state_rejects_transitions(self, auction):
        settled = auction.closed().settled(Winner("bob", 1, "b"), settled_at=2500.0)
        with pytest.raises(AlreadySettled):
            settled.settled(Winner("carol", 2, "c"), settled_at=2600.0)
        with pytest.raises(AlreadySettled):
            settled.cancelled(2600.0)

    def test_with_bid_only_when_active(self, auction, evaluator_key):
        bid = make_bid(auction, "bob", 1, 1500.0, evaluator_key)
        with pytest.raises(AuctionNotActive):
            auction.closed().with_bid(bid)

    def test_with_bid_appends(self, auction, evaluator_key):
        first = make_bid(auction, "bob", 1, 1500.0, evaluator_key)
        one = auction.with_bid(first)
        second = make_bid(one, "carol", 2, 1501.0, evaluator_key)
        two = one.with_bid(second)

        assert two.bids == (first, second)
        assert two.bid_count == 2
        assert two.last_bid_at == 1501.0
        assert auction.bid_count == 0

    def test_terminal_flags(self):
        assert AuctionStatus.SETTLED.is_terminal
        assert AuctionStatus.CANCELLED.is_terminal
        assert not AuctionStatus.ACTIVE.is_terminal
        assert not AuctionStatus.CLOSED.is_terminal


class TestEffectiveStatus:
    """ACTIVE turns into CLOSED at open_until."""

    def test_before_end(self, auction):
        assert auction.effective_status(1999.9) == AuctionStatus.ACTIVE
        assert auction.is_accepting_bids(1999.9)

    def test_at_end(self, auction):
        assert auction.effective_status(2000.0) == AuctionStatus.CLOSED
        assert not auction.is_accepting_bids(2000.0)

    def test_terminal_status_unaffected_by_time(self, auction):
        cancelled = auction.cancelled(1500.0)
        assert cancelled.effective_status(1000.0) == AuctionStatus.CANCELLED


class TestIdentifiers:

    def test_auction_id_is_deterministic(self):
        assert derive_auction_id("alice", "Painting") == derive_auction_id("alice", "Painting")
        assert derive_auction_id("alice", "Painting") != derive_auction_id("bob", "Painting")
        assert len(derive_auction_id("alice", "Painting")) == 32

    def test_bid_id_depends_on_index(self):
        assert derive_bid_id("a", "bob", 0) != derive_bid_id("a", "bob", 1)


class TestSerialization:

    def test_round_trip_settled_auction(self, auction, evaluator_key):
        bid = make_bid(auction, "bob", 700_000_000, 1500.0, evaluator_key)
        settled = auction.with_bid(bid).closed().settled(
            Winner("bob", 700_000_000, bid.bid_id, "mpc_1"), settled_at=2100.0
        )
        restored = Auction.from_dict(settled.to_dict())
        assert restored == settled

    def test_status_serialized_by_name(self, auction):
        assert auction.to_dict()["status"] == "ACTIVE"

    def test_clear_amount_never_serialized(self, auction, evaluator_key):
        from dataclasses import replace

        bid = replace(make_bid(auction, "bob", 700_000_000, 1500.0, evaluator_key), clear_amount=700_000_000)
        data = bid.to_dict()

        assert "clear_amount" not in data
        assert "700000000" not in repr(bid)
        # clear_amount does not affect equality
        assert Bid.from_dict(data) == bid
