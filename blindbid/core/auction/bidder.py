"""
Bidder side of the protocol.

The bidder is the only party that sees its own clear amount. It checks the
amount against the auction's minimum, seals it to the evaluator's public
key, and submits only the sealed value.
"""

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Optional

from blindbid.core.auction.models import Bid
from blindbid.crypto.sealing import SealedValue, seal_value
from blindbid.errors import BidTooLow, InvalidInput, MissingIdentity
from blindbid.utils.units import format_amount
from blindbid.utils.validation import validate_amount, validate_identity, validate_public_key

if TYPE_CHECKING:
    from blindbid.core.auction.lifecycle import AuctionLifecycle


@dataclass(frozen=True)
class PreparedBid:
    """A sealed bid plus the clear amount it hides (bidder-local)."""
    sealed: SealedValue
    amount: int


def prepare_bid(amount: int, minimum_bid: int, evaluator_public_point: bytes) -> PreparedBid:
    """
    Validate and seal a bid amount.

    Args:
        amount: Bid in base units
        minimum_bid: The auction's minimum bid in base units
        evaluator_public_point: Key the amount is sealed to

    Raises:
        InvalidInput: amount is not a positive integer
        BidTooLow: amount < minimum_bid
    """
    valid, err = validate_amount(amount, "Bid amount")
    if not valid:
        raise InvalidInput(err)

    if amount < minimum_bid:
        raise BidTooLow(f"Bid must be at least {format_amount(minimum_bid)}")

    valid, err = validate_public_key(evaluator_public_point, "evaluator_public_point")
    if not valid:
        raise InvalidInput(err)

    return PreparedBid(sealed=seal_value(amount, evaluator_public_point), amount=amount)


def place_bid(
    lifecycle: "AuctionLifecycle",
    auction_id: str,
    bidder: str,
    amount: int,
    tx_reference: Optional[str] = None,
) -> Bid:
    """
    Seal and submit a bid in one step.

    Returns:
        The recorded Bid with clear_amount filled in for the caller. The
        stored copy never carries it.
    """
    valid, _ = validate_identity(bidder)
    if not valid:
        raise MissingIdentity()

    auction = lifecycle.get_auction(auction_id)
    prepared = prepare_bid(amount, auction.minimum_bid, auction.evaluator_public_point)
    bid = lifecycle.submit_bid(auction_id, bidder, prepared.sealed, tx_reference=tx_reference)
    return replace(bid, clear_amount=prepared.amount)


__all__ = ["PreparedBid", "prepare_bid", "place_bid"]
