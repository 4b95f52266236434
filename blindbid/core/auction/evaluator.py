"""
Evaluator - Winner determination over sealed bids.

The Evaluator interface is the boundary where a confidential-compute network
plugs in. A genuine multi-party implementation would secret-share the bids
across nodes and compute the arg-max without any single node learning a
losing amount; callers only ever see EvaluationResult.

LocalEvaluator is the trusted stand-in used today: it holds the cluster
private key and opens every bid in process. That plaintext access is the
known trust gap of this deployment, not part of the contract.
"""

import secrets
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from blindbid.core.auction.models import Bid
from blindbid.crypto import KeyPair, generate_keypair, private_key_to_public_key
from blindbid.crypto.sealing import unseal_value
from blindbid.errors import EmptyBidSet
from blindbid.utils.logger import get_logger

logger = get_logger("evaluator")


# =============================================================================
# Result
# =============================================================================


@dataclass(frozen=True)
class EvaluationResult:
    """The only output an evaluator discloses."""
    winner_identity: str
    winning_amount: int
    bid_id: str
    computation_id: str


def generate_computation_id() -> str:
    """Unique identifier for one evaluation run, e.g. mpc_1700000000000_3f9a..."""
    return f"mpc_{int(time.time() * 1000)}_{secrets.token_hex(5)}"


# =============================================================================
# Winner Selection
# =============================================================================


def select_winner(candidates: Sequence[Tuple[Bid, int]]) -> Optional[Tuple[Bid, int]]:
    """
    Pick the winning (bid, amount) pair.

    Highest amount wins. On equal amounts the earliest submitted_at wins.
    Submission timestamps are strictly increasing within an auction, so the
    ordering is total.

    Args:
        candidates: (bid, clear amount) pairs

    Returns:
        The winning pair, or None if there are no candidates
    """
    if not candidates:
        return None

    winner = candidates[0]
    for candidate in candidates[1:]:
        bid, amount = candidate
        best_bid, best_amount = winner
        if amount > best_amount or (amount == best_amount and bid.submitted_at < best_bid.submitted_at):
            winner = candidate

    return winner


# =============================================================================
# Evaluators
# =============================================================================


class Evaluator(ABC):
    """Determines an auction winner from sealed bids."""

    @property
    @abstractmethod
    def public_point(self) -> bytes:
        """Public key bidders seal their amounts to."""

    @abstractmethod
    def evaluate(self, bids: Sequence[Bid]) -> EvaluationResult:
        """
        Return the winner of the given bids.

        Must not mutate `bids`. Raises EmptyBidSet if there are none.
        """


class LocalEvaluator(Evaluator):
    """
    Single-process evaluator holding the cluster key.

    Trust assumption: whoever runs this process can read every bid.
    """

    def __init__(self, keypair: Optional[KeyPair] = None):
        self._keypair = keypair or generate_keypair()

    @classmethod
    def from_private_key(cls, private_key: bytes) -> "LocalEvaluator":
        return cls(KeyPair(private_key=private_key, public_key=private_key_to_public_key(private_key)))

    @property
    def public_point(self) -> bytes:
        return self._keypair.public_key

    def export_private_key(self) -> bytes:
        """For the operator's key file only."""
        return self._keypair.private_key

    def evaluate(self, bids: Sequence[Bid]) -> EvaluationResult:
        if not bids:
            raise EmptyBidSet()

        computation_id = generate_computation_id()
        logger.debug(f"Evaluation {computation_id}: opening {len(bids)} sealed bids")

        candidates = [
            (bid, unseal_value(bid.sealed_amount, self._keypair.private_key))
            for bid in bids
        ]
        winning_bid, winning_amount = select_winner(candidates)

        logger.info(f"Evaluation {computation_id} complete: winner={winning_bid.bidder}")
        return EvaluationResult(
            winner_identity=winning_bid.bidder,
            winning_amount=winning_amount,
            bid_id=winning_bid.bid_id,
            computation_id=computation_id,
        )


__all__ = [
    "Evaluator",
    "LocalEvaluator",
    "EvaluationResult",
    "select_winner",
    "generate_computation_id",
]
