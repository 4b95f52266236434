"""
BlindBid Auction Module.

This module provides the sealed-bid auction system:
- Auction and bid records
- Evaluator interface and the local evaluator
- Lifecycle state machine with exactly-once settlement
- Client-side bid preparation
"""

from blindbid.core.auction.models import (
    Auction,
    AuctionStatus,
    Bid,
    Winner,
    can_transition,
    derive_auction_id,
    derive_bid_id,
)

from blindbid.core.auction.evaluator import (
    Evaluator,
    LocalEvaluator,
    EvaluationResult,
    select_winner,
    generate_computation_id,
)

from blindbid.core.auction.lifecycle import (
    AuctionLifecycle,
    SettlementOutcome,
    SettlementResult,
    TIMESTAMP_STEP,
)

from blindbid.core.auction.bidder import (
    PreparedBid,
    prepare_bid,
    place_bid,
)

__all__ = [
    # Records
    "Auction",
    "AuctionStatus",
    "Bid",
    "Winner",
    "can_transition",
    "derive_auction_id",
    "derive_bid_id",
    # Evaluation
    "Evaluator",
    "LocalEvaluator",
    "EvaluationResult",
    "select_winner",
    "generate_computation_id",
    # Lifecycle
    "AuctionLifecycle",
    "SettlementOutcome",
    "SettlementResult",
    "TIMESTAMP_STEP",
    # Bidding
    "PreparedBid",
    "prepare_bid",
    "place_bid",
]
