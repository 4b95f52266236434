"""
Auction stores.

The lifecycle talks to an AuctionStore: a durable key-value map from
auction id to the full Auction record with last-write-wins semantics. A
store is created at process start, injected into the lifecycle, and closed
explicitly.
"""

import json
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

from blindbid.core.auction.models import Auction
from blindbid.core.storage.sqlite_adapter import SQLiteAdapter
from blindbid.utils.logger import get_logger

logger = get_logger("storage")

AUCTION_BUCKET = "auctions"


class AuctionStore(ABC):
    """Persistence boundary for auction records."""

    @abstractmethod
    def get(self, auction_id: str) -> Optional[Auction]:
        """Load one auction, or None."""

    @abstractmethod
    def put(self, auction: Auction) -> None:
        """Save the full record, replacing any previous version."""

    @abstractmethod
    def list_ids(self) -> List[str]:
        """All stored auction ids."""

    def list(self) -> List[Auction]:
        auctions = []
        for auction_id in self.list_ids():
            auction = self.get(auction_id)
            if auction is not None:
                auctions.append(auction)
        return auctions

    def close(self) -> None:
        """Release resources. The store is unusable afterwards."""


class InMemoryAuctionStore(AuctionStore):
    """Process-local store; records are immutable so no copies are needed."""

    def __init__(self):
        self._auctions: Dict[str, Auction] = {}
        self._lock = threading.Lock()

    def get(self, auction_id: str) -> Optional[Auction]:
        with self._lock:
            return self._auctions.get(auction_id)

    def put(self, auction: Auction) -> None:
        with self._lock:
            self._auctions[auction.auction_id] = auction

    def list_ids(self) -> List[str]:
        with self._lock:
            return list(self._auctions.keys())

    def close(self) -> None:
        with self._lock:
            self._auctions.clear()


class SQLiteAuctionStore(AuctionStore):
    """
    Auctions as JSON documents in the SQLite key-value table.

    Clear bid amounts are never part of a record, so they never reach disk.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.adapter = SQLiteAdapter(self.db_path)
        logger.info(f"Auction store initialized at {self.db_path}")

    def get(self, auction_id: str) -> Optional[Auction]:
        raw = self.adapter.get(auction_id, bucket=AUCTION_BUCKET)
        if raw is None:
            return None
        return Auction.from_dict(json.loads(raw))

    def put(self, auction: Auction) -> None:
        payload = json.dumps(auction.to_dict(), sort_keys=True).encode("utf-8")
        self.adapter.put(auction.auction_id, payload, bucket=AUCTION_BUCKET)

    def list_ids(self) -> List[str]:
        return self.adapter.keys(bucket=AUCTION_BUCKET)

    def close(self) -> None:
        self.adapter.close()
