"""
Auction Lifecycle - Creation, bidding and exactly-once settlement.

State machine:
    ACTIVE --(now >= open_until)--> CLOSED --settle()--> SETTLED
    ACTIVE/CLOSED --(no bids: settle() or cancel)--> CANCELLED

The ACTIVE -> CLOSED step is a pure function of time. It is written back
lazily the first time a bid or settlement observes it, but the time check
alone already stops new bids.

Concurrency:
- Each auction id has its own lock. submit_bid, settle and cancel_auction
  hold it for their whole read-check-write sequence, so a bid is either in
  the list settle evaluates or it is rejected.
- settle additionally marks the auction as "settling". A second settle that
  arrives while the first is in flight is rejected with
  ConcurrentSettlementConflict instead of queueing behind it.
- Operations on different auctions never contend.
"""

import threading
import time
from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Set

from blindbid.core.auction.evaluator import Evaluator
from blindbid.core.auction.models import (
    Auction,
    AuctionStatus,
    Bid,
    Winner,
    derive_auction_id,
    derive_bid_id,
)
from blindbid.core.config import ProtocolConfig
from blindbid.crypto.sealing import SealedValue
from blindbid.errors import (
    AlreadySettled,
    AuctionNotActive,
    AuctionNotFound,
    AuctionStillOpen,
    ConcurrentSettlementConflict,
    InvalidInput,
    MissingIdentity,
    SealingFailure,
    Unauthorized,
)
from blindbid.utils.logger import get_logger
from blindbid.utils.validation import (
    MAX_TX_REFERENCE_LENGTH,
    validate_amount,
    validate_identity,
    validate_sealed_value,
    validate_string,
    validate_timestamp,
)

if TYPE_CHECKING:
    from blindbid.core.storage.auction_store import AuctionStore

logger = get_logger("lifecycle")


# Minimum spacing between bid timestamps within one auction (seconds)
TIMESTAMP_STEP = 1e-6

ProgressCallback = Callable[[str, int], None]


# =============================================================================
# Settlement Result
# =============================================================================


class SettlementOutcome(IntEnum):
    """How a successful settle() call ended."""
    WINNER_SELECTED = 0
    EMPTY_BID_SET = 1


@dataclass(frozen=True)
class SettlementResult:
    auction_id: str
    outcome: SettlementOutcome
    status: AuctionStatus
    winner: Optional[Winner]
    settled_at: float


# =============================================================================
# Lifecycle
# =============================================================================


class AuctionLifecycle:
    """
    Governs every state change of every auction.

    Args:
        store: Persistence for auction records
        evaluator: Winner determination; its public point is recorded on
            each new auction so bidders know whom to seal to
        config: Input limits
        clock: Returns the current unix time in seconds
    """

    def __init__(
        self,
        store: "AuctionStore",
        evaluator: Evaluator,
        config: Optional[ProtocolConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.evaluator = evaluator
        self.config = config or ProtocolConfig()
        self.clock = clock

        self._locks: Dict[str, threading.Lock] = {}
        self._settling: Set[str] = set()
        self._guard = threading.Lock()

    def _lock_for(self, auction_id: str, create: bool = False) -> threading.Lock:
        """
        Lock guarding one auction.

        Locks are only created for stored auctions (or, with create=True, for
        one being created), so unknown ids never grow the lock map.
        """
        with self._guard:
            lock = self._locks.get(auction_id)
            if lock is None:
                if not create and self.store.get(auction_id) is None:
                    raise AuctionNotFound(f"Auction {auction_id} not found")
                lock = self._locks[auction_id] = threading.Lock()
            return lock

    def _load(self, auction_id: str) -> Auction:
        auction = self.store.get(auction_id)
        if auction is None:
            raise AuctionNotFound(f"Auction {auction_id} not found")
        return auction

    # =========================================================================
    # Creation
    # =========================================================================

    def create_auction(
        self,
        creator: str,
        item_name: str,
        minimum_bid: int,
        open_until: float,
        description: str = "",
    ) -> Auction:
        """
        Open a new auction.

        Args:
            creator: Creator identity from the wallet collaborator
            item_name: Item being auctioned
            minimum_bid: Reserve price in base units, > 0
            open_until: Unix time at which bidding closes
            description: Optional item description

        Returns:
            The stored Auction
        """
        valid, err = validate_identity(creator)
        if not valid:
            raise MissingIdentity()

        for valid, err in (
            validate_string(item_name, "Item name", self.config.max_item_name_length),
            validate_string(description, "Description", self.config.max_description_length, allow_empty=True),
            validate_amount(minimum_bid, "Minimum bid"),
            validate_timestamp(open_until, "End time"),
        ):
            if not valid:
                raise InvalidInput(err)

        now = self.clock()
        if open_until <= now:
            raise InvalidInput("End time must be in the future")

        auction_id = derive_auction_id(creator, item_name)
        with self._lock_for(auction_id, create=True):
            if self.store.get(auction_id) is not None:
                raise InvalidInput(f"Auction for '{item_name}' already exists for this creator")

            auction = Auction(
                auction_id=auction_id,
                creator=creator,
                item_name=item_name,
                description=description,
                minimum_bid=minimum_bid,
                open_until=float(open_until),
                created_at=now,
                evaluator_public_point=self.evaluator.public_point,
            )
            self.store.put(auction)

        logger.info(f"Auction created: {auction_id[:8]} '{item_name}' by {creator}, "
                    f"min_bid={minimum_bid}, open for {open_until - now:.0f}s")
        return auction

    # =========================================================================
    # Bidding
    # =========================================================================

    def submit_bid(
        self,
        auction_id: str,
        bidder: str,
        sealed_amount: SealedValue,
        tx_reference: Optional[str] = None,
    ) -> Bid:
        """
        Append a sealed bid to an active auction.

        The clear amount is neither required nor inspected.

        Returns:
            The recorded Bid
        """
        valid, _ = validate_identity(bidder)
        if not valid:
            raise MissingIdentity()

        valid, err = validate_sealed_value(sealed_amount)
        if not valid:
            raise InvalidInput(f"Invalid encrypted bid: {err}")

        if tx_reference is not None:
            valid, err = validate_string(tx_reference, "Transaction reference", MAX_TX_REFERENCE_LENGTH)
            if not valid:
                raise InvalidInput(err)

        with self._lock_for(auction_id):
            auction = self._load(auction_id)
            now = self.clock()

            if not auction.is_accepting_bids(now):
                if auction.status == AuctionStatus.ACTIVE:
                    self.store.put(auction.closed())
                    logger.info(f"Auction {auction_id[:8]} closed at end time")
                logger.warning(f"Rejected bid from {bidder} on auction {auction_id[:8]}: not active")
                raise AuctionNotActive(
                    f"Auction is {auction.effective_status(now).name.lower()} and no longer accepts bids"
                )

            for existing in auction.bids:
                if (existing.sealed_amount.sender_public_point == sealed_amount.sender_public_point
                        and existing.sealed_amount.nonce == sealed_amount.nonce):
                    logger.warning(f"Nonce reuse detected on auction {auction_id[:8]} from {bidder}")
                    raise SealingFailure("Nonce reuse detected: seal every bid with a fresh nonce")

            submitted_at = now
            last = auction.last_bid_at
            if last is not None and submitted_at <= last:
                submitted_at = last + TIMESTAMP_STEP

            bid = Bid(
                bid_id=derive_bid_id(auction_id, bidder, auction.bid_count),
                auction_id=auction_id,
                bidder=bidder,
                sealed_amount=sealed_amount,
                submitted_at=submitted_at,
                tx_reference=tx_reference,
            )
            self.store.put(auction.with_bid(bid))

        logger.debug(f"Sealed bid {bid.bid_id[:8]} from {bidder} on auction {auction_id[:8]}")
        return bid

    # =========================================================================
    # Settlement
    # =========================================================================

    def settle(
        self,
        auction_id: str,
        requested_by: Optional[str] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> SettlementResult:
        """
        Settle a closed auction exactly once.

        Args:
            auction_id: Auction to settle
            requested_by: If given, must be the auction creator
            progress: Optional observer called as progress(stage, percent).
                If it raises before the commit, nothing is written. The final
                100% report follows the commit; a failure there is only logged.

        Returns:
            SettlementResult; an auction without bids is CANCELLED with the
            EMPTY_BID_SET outcome

        Raises:
            ConcurrentSettlementConflict: another settle is in flight
            AlreadySettled: the auction already reached a terminal state
        """
        with self._guard:
            if auction_id in self._settling:
                logger.warning(f"Concurrent settlement rejected for auction {auction_id[:8]}")
                raise ConcurrentSettlementConflict()
            self._settling.add(auction_id)

        try:
            with self._lock_for(auction_id):
                return self._settle_locked(auction_id, requested_by, progress)
        finally:
            with self._guard:
                self._settling.discard(auction_id)

    def _settle_locked(
        self,
        auction_id: str,
        requested_by: Optional[str],
        progress: Optional[ProgressCallback],
    ) -> SettlementResult:
        auction = self._load(auction_id)

        if auction.status.is_terminal:
            raise AlreadySettled()

        if requested_by is not None and requested_by != auction.creator:
            raise Unauthorized("Only the auction creator can settle this auction")

        now = self.clock()
        if auction.effective_status(now) == AuctionStatus.ACTIVE:
            raise AuctionStillOpen()

        if auction.evaluator_public_point != self.evaluator.public_point:
            raise SealingFailure("Bids were sealed to a different evaluator key")

        if auction.status == AuctionStatus.ACTIVE:
            auction = auction.closed()

        _report(progress, "collecting sealed bids", 20)

        if not auction.bids:
            cancelled = auction.cancelled(now)
            self.store.put(cancelled)
            _report_committed(progress, auction_id)
            logger.warning(f"Auction {auction_id[:8]} closed with no bids; cancelled")
            return SettlementResult(
                auction_id=auction_id,
                outcome=SettlementOutcome.EMPTY_BID_SET,
                status=cancelled.status,
                winner=None,
                settled_at=now,
            )

        _report(progress, "evaluating sealed bids", 50)
        result = self.evaluator.evaluate(auction.bids)

        _report(progress, "committing result", 90)
        winner = Winner(
            identity=result.winner_identity,
            amount=result.winning_amount,
            bid_id=result.bid_id,
            computation_id=result.computation_id,
        )
        settled = auction.settled(winner, settled_at=now)
        self.store.put(settled)
        _report_committed(progress, auction_id)

        logger.info(f"Auction {auction_id[:8]} settled: winner={winner.identity}, "
                    f"amount={winner.amount}, bids={settled.bid_count}")
        return SettlementResult(
            auction_id=auction_id,
            outcome=SettlementOutcome.WINNER_SELECTED,
            status=settled.status,
            winner=winner,
            settled_at=now,
        )

    # =========================================================================
    # Cancellation
    # =========================================================================

    def cancel_auction(self, auction_id: str, creator: str) -> Auction:
        """Withdraw an auction that has received no bids."""
        with self._lock_for(auction_id):
            auction = self._load(auction_id)

            if creator != auction.creator:
                raise Unauthorized("Only the auction creator can cancel this auction")
            if auction.status.is_terminal:
                raise AlreadySettled()
            if auction.bids:
                raise InvalidInput("Cannot cancel auction with existing bids")

            cancelled = auction.cancelled(self.clock())
            self.store.put(cancelled)

        logger.info(f"Auction {auction_id[:8]} cancelled by creator")
        return cancelled

    # =========================================================================
    # Queries
    # =========================================================================

    def get_auction(self, auction_id: str) -> Auction:
        return self._load(auction_id)

    def list_auctions(self) -> List[Auction]:
        return sorted(self.store.list(), key=lambda a: a.created_at)

    def status_of(self, auction_id: str) -> AuctionStatus:
        """Current status including the time-based close."""
        return self._load(auction_id).effective_status(self.clock())


def _report(progress: Optional[ProgressCallback], stage: str, percent: int) -> None:
    if progress is not None:
        progress(stage, percent)


def _report_committed(progress: Optional[ProgressCallback], auction_id: str) -> None:
    """Final report, sent after the commit. A failing observer cannot undo it."""
    try:
        _report(progress, "finalized", 100)
    except Exception:
        logger.exception(f"Progress observer failed after auction {auction_id[:8]} was committed")


__all__ = [
    "AuctionLifecycle",
    "SettlementOutcome",
    "SettlementResult",
    "TIMESTAMP_STEP",
]
