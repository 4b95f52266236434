"""
Error kinds for BlindBid.

Every failure a caller can observe is an AuctionError subclass carrying a
stable `kind` string and a human-readable message. None of them are fatal to
the process and none leave an auction in a partially updated state.
"""

from typing import Optional


class AuctionError(Exception):
    """Base class for all recoverable protocol errors."""

    kind: str = "AuctionError"
    default_message: str = "Auction operation failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(AuctionError):
    kind = "InvalidInput"
    default_message = "Invalid input"


class MissingIdentity(AuctionError):
    kind = "MissingIdentity"
    default_message = "Wallet not connected"


# The UI-facing name used by wallet integrations
WalletNotConnected = MissingIdentity


class BidTooLow(AuctionError):
    kind = "BidTooLow"
    default_message = "Bid is below the auction's minimum bid"


class AuctionNotActive(AuctionError):
    kind = "AuctionNotActive"
    default_message = "Auction is not active"


class AuctionStillOpen(AuctionError):
    kind = "AuctionStillOpen"
    default_message = "Auction has not ended yet"


class AuctionNotFound(AuctionError):
    kind = "AuctionNotFound"
    default_message = "Auction not found"


class Unauthorized(AuctionError):
    kind = "Unauthorized"
    default_message = "Not authorized to perform this action on the auction"


class EmptyBidSet(AuctionError):
    kind = "EmptyBidSet"
    default_message = "No bids submitted for this auction"


class SealingFailure(AuctionError):
    kind = "SealingFailure"
    default_message = "Could not seal or unseal value"


class SettlementRejected(AuctionError):
    """
    A settle call that did not perform the transition.

    Callers should treat every subclass the same way: the auction is (or is
    about to be) settled, so re-query it for the authoritative winner.
    """

    kind = "SettlementRejected"
    default_message = "Auction is already settled; re-query it for the winner"


class AlreadySettled(SettlementRejected):
    kind = "AlreadySettled"


class ConcurrentSettlementConflict(SettlementRejected):
    kind = "ConcurrentSettlementConflict"


__all__ = [
    "AuctionError",
    "InvalidInput",
    "MissingIdentity",
    "WalletNotConnected",
    "BidTooLow",
    "AuctionNotActive",
    "AuctionStillOpen",
    "AuctionNotFound",
    "Unauthorized",
    "EmptyBidSet",
    "SealingFailure",
    "SettlementRejected",
    "AlreadySettled",
    "ConcurrentSettlementConflict",
]
