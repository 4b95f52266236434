"""
Auction records - Bids, auctions and their lifecycle states.

Records are frozen. Every change (a new bid, closing, settlement) produces a
new Auction, so a store write either commits the whole change or nothing.

Invariants checked on construction:
- minimum_bid > 0
- winner is set if and only if status == SETTLED
- settled_at is set if and only if the auction is terminal
"""

from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import Any, Dict, Optional, Tuple

from blindbid.crypto import sha256
from blindbid.crypto.sealing import SealedValue
from blindbid.errors import AuctionNotActive, AlreadySettled, InvalidInput


# =============================================================================
# Enums
# =============================================================================


class AuctionStatus(IntEnum):
    """State of a sealed-bid auction."""
    ACTIVE = 0      # Accepting bids until open_until
    CLOSED = 1      # Bidding over, awaiting settlement
    SETTLED = 2     # Winner disclosed
    CANCELLED = 3   # Terminal without a winner (no bids)

    @property
    def is_terminal(self) -> bool:
        return self in (AuctionStatus.SETTLED, AuctionStatus.CANCELLED)


# Forward-only transitions
_ALLOWED_TRANSITIONS = {
    AuctionStatus.ACTIVE: (AuctionStatus.CLOSED, AuctionStatus.CANCELLED),
    AuctionStatus.CLOSED: (AuctionStatus.SETTLED, AuctionStatus.CANCELLED),
    AuctionStatus.SETTLED: (),
    AuctionStatus.CANCELLED: (),
}


def can_transition(current: AuctionStatus, new: AuctionStatus) -> bool:
    return new in _ALLOWED_TRANSITIONS[current]


# =============================================================================
# Identifiers
# =============================================================================


def derive_auction_id(creator: str, item_name: str) -> str:
    """One auction per (creator, item name)."""
    return sha256(b"auction|" + creator.encode() + b"|" + item_name.encode()).hex()[:32]


def derive_bid_id(auction_id: str, bidder: str, index: int) -> str:
    return sha256(
        b"bid|" + auction_id.encode() + b"|" + bidder.encode() + b"|" + index.to_bytes(8, "little")
    ).hex()[:32]


# =============================================================================
# Data Structures
# =============================================================================


@dataclass(frozen=True)
class Winner:
    """The disclosed result of a settled auction."""
    identity: str
    amount: int
    bid_id: str
    computation_id: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identity": self.identity,
            "amount": self.amount,
            "bid_id": self.bid_id,
            "computation_id": self.computation_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Winner":
        return cls(
            identity=data["identity"],
            amount=int(data["amount"]),
            bid_id=data["bid_id"],
            computation_id=data.get("computation_id", ""),
        )


@dataclass(frozen=True)
class Bid:
    """
    A sealed bid attached to an auction.

    clear_amount is only ever set on the bidder's own copy. It is not
    compared, printed or serialized, so it cannot reach the store.
    """
    bid_id: str
    auction_id: str
    bidder: str
    sealed_amount: SealedValue
    submitted_at: float
    tx_reference: Optional[str] = None
    clear_amount: Optional[int] = field(default=None, compare=False, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bid_id": self.bid_id,
            "auction_id": self.auction_id,
            "bidder": self.bidder,
            "sealed_amount": self.sealed_amount.to_dict(),
            "submitted_at": self.submitted_at,
            "tx_reference": self.tx_reference,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Bid":
        return cls(
            bid_id=data["bid_id"],
            auction_id=data["auction_id"],
            bidder=data["bidder"],
            sealed_amount=SealedValue.from_dict(data["sealed_amount"]),
            submitted_at=float(data["submitted_at"]),
            tx_reference=data.get("tx_reference"),
        )


@dataclass(frozen=True)
class Auction:
    """
    A sealed-bid auction.

    Identity fields (creator, item, minimum_bid, open_until, evaluator key)
    never change. bids only grows, and status only moves forward.
    """
    auction_id: str
    creator: str
    item_name: str
    minimum_bid: int
    open_until: float
    created_at: float
    evaluator_public_point: bytes
    description: str = ""

    # State
    status: AuctionStatus = AuctionStatus.ACTIVE
    bids: Tuple[Bid, ...] = ()

    # Result
    winner: Optional[Winner] = None
    settled_at: Optional[float] = None

    def __post_init__(self):
        if isinstance(self.minimum_bid, bool) or not isinstance(self.minimum_bid, int) or self.minimum_bid <= 0:
            raise InvalidInput("Minimum bid must be greater than 0")
        if (self.winner is not None) != (self.status == AuctionStatus.SETTLED):
            raise InvalidInput("Winner must be set exactly when the auction is settled")
        if (self.settled_at is not None) != self.status.is_terminal:
            raise InvalidInput("settled_at must be set exactly when the auction is terminal")
        # Accept lists from callers but always hold a tuple
        if not isinstance(self.bids, tuple):
            object.__setattr__(self, "bids", tuple(self.bids))

    # =========================================================================
    # Queries
    # =========================================================================

    def effective_status(self, now: float) -> AuctionStatus:
        """Status with the time-based close applied."""
        if self.status == AuctionStatus.ACTIVE and now >= self.open_until:
            return AuctionStatus.CLOSED
        return self.status

    def is_accepting_bids(self, now: float) -> bool:
        return self.effective_status(now) == AuctionStatus.ACTIVE

    @property
    def bid_count(self) -> int:
        return len(self.bids)

    @property
    def last_bid_at(self) -> Optional[float]:
        return self.bids[-1].submitted_at if self.bids else None

    # =========================================================================
    # Transitions (each returns a new record)
    # =========================================================================

    def _advance(self, new_status: AuctionStatus, **changes) -> "Auction":
        if not can_transition(self.status, new_status):
            if self.status.is_terminal:
                raise AlreadySettled(
                    f"Auction {self.auction_id[:8]} is already {self.status.name.lower()}"
                )
            raise AuctionNotActive(
                f"Cannot move auction from {self.status.name} to {new_status.name}"
            )
        return replace(self, status=new_status, **changes)

    def with_bid(self, bid: Bid) -> "Auction":
        if self.status != AuctionStatus.ACTIVE:
            raise AuctionNotActive(f"Auction is {self.status.name.lower()}")
        return replace(self, bids=self.bids + (bid,))

    def closed(self) -> "Auction":
        return self._advance(AuctionStatus.CLOSED)

    def settled(self, winner: Winner, settled_at: float) -> "Auction":
        return self._advance(AuctionStatus.SETTLED, winner=winner, settled_at=settled_at)

    def cancelled(self, cancelled_at: float) -> "Auction":
        return self._advance(AuctionStatus.CANCELLED, settled_at=cancelled_at)

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> Dict[str, Any]:
        return {
            "auction_id": self.auction_id,
            "creator": self.creator,
            "item_name": self.item_name,
            "description": self.description,
            "minimum_bid": self.minimum_bid,
            "open_until": self.open_until,
            "created_at": self.created_at,
            "evaluator_public_point": self.evaluator_public_point.hex(),
            "status": self.status.name,
            "bids": [bid.to_dict() for bid in self.bids],
            "winner": self.winner.to_dict() if self.winner else None,
            "settled_at": self.settled_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Auction":
        return cls(
            auction_id=data["auction_id"],
            creator=data["creator"],
            item_name=data["item_name"],
            description=data.get("description", ""),
            minimum_bid=int(data["minimum_bid"]),
            open_until=float(data["open_until"]),
            created_at=float(data["created_at"]),
            evaluator_public_point=bytes.fromhex(data["evaluator_public_point"]),
            status=AuctionStatus[data["status"]],
            bids=tuple(Bid.from_dict(b) for b in data.get("bids", [])),
            winner=Winner.from_dict(data["winner"]) if data.get("winner") else None,
            settled_at=data.get("settled_at"),
        )


__all__ = [
    "AuctionStatus",
    "Auction",
    "Bid",
    "Winner",
    "can_transition",
    "derive_auction_id",
    "derive_bid_id",
]
