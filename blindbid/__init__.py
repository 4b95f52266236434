"""
BlindBid - Sealed-bid auction protocol

A research prototype integrating:
- x-only ECDH key agreement on secp256k1
- Fixed-size sealing of bid amounts
- A forward-only auction lifecycle with exactly-once settlement
- A pluggable evaluator (local trusted stand-in for an MPC network)
"""

__version__ = "0.1.0"
