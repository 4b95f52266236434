"""
Persistent Storage Module.

Provides auction record persistence:
- AuctionStore interface (get / put / list, last write wins)
- In-memory store for tests and single-process use
- SQLite-backed store
"""

from blindbid.core.storage.sqlite_adapter import SQLiteAdapter
from blindbid.core.storage.auction_store import (
    AuctionStore,
    InMemoryAuctionStore,
    SQLiteAuctionStore,
)

__all__ = ["SQLiteAdapter", "AuctionStore", "InMemoryAuctionStore", "SQLiteAuctionStore"]
