"""
BlindBid CLI - Command Line Interface for the sealed-bid auction protocol

Main entry point for all CLI commands.
"""

import json
import time
from pathlib import Path

import click

from blindbid.utils.logger import setup_logging, get_logger


# =============================================================================
# Runtime wiring
# =============================================================================


def load_evaluator(key_path: Path):
    """
    Load the evaluator key from disk, creating it on first use.

    The key file is the evaluator operator's secret; bidders only ever see
    the public point.
    """
    from blindbid.core.auction import LocalEvaluator
    from blindbid.crypto import hex_to_bytes, bytes_to_hex

    if key_path.exists():
        data = json.loads(key_path.read_text())
        return LocalEvaluator.from_private_key(hex_to_bytes(data["private_key"]))

    evaluator = LocalEvaluator()
    key_path.parent.mkdir(parents=True, exist_ok=True)
    key_path.write_text(json.dumps({
        "public_key": bytes_to_hex(evaluator.public_point),
        "private_key": bytes_to_hex(evaluator.export_private_key()),
    }, indent=2))
    get_logger("cli").info(f"Generated evaluator key at {key_path}")
    return evaluator


def open_lifecycle(ctx):
    """Build a lifecycle over the on-disk store. Caller closes the store."""
    from blindbid.core.auction import AuctionLifecycle
    from blindbid.core.storage import SQLiteAuctionStore

    config = ctx.obj["config"]
    store = SQLiteAuctionStore(config.db_path)
    evaluator = load_evaluator(config.evaluator_key_path)
    return AuctionLifecycle(store=store, evaluator=evaluator, config=config)


def echo_auction(auction, now: float):
    from blindbid.utils.units import format_amount

    status = auction.effective_status(now)
    click.echo(f"Auction {auction.auction_id}")
    click.echo(f"  Item: {auction.item_name}")
    if auction.description:
        click.echo(f"  Description: {auction.description}")
    click.echo(f"  Creator: {auction.creator}")
    click.echo(f"  Minimum bid: {format_amount(auction.minimum_bid)}")
    click.echo(f"  Ends: {time.strftime('%Y-%m-%d %H:%M:%S', time.localtime(auction.open_until))}")
    click.echo(f"  Status: {status.name}")
    click.echo(f"  Sealed bids: {auction.bid_count}")
    for bid in auction.bids:
        click.echo(f"    {bid.bid_id[:10]}... {bid.bidder} ciphertext={bid.sealed_amount.ciphertext.hex()[:16]}...")
    if auction.winner:
        click.echo(f"  Winner: {auction.winner.identity}")
        click.echo(f"  Winning bid: {format_amount(auction.winner.amount)}")
        click.echo(f"  Computation: {auction.winner.computation_id}")


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--data-dir", default=None, help="Data directory (default: BLINDBID_DATA_DIR or ~/.blindbid)")
@click.option("--env-file", default=None, help="Optional .env file")
@click.version_option(version="0.1.0")
@click.pass_context
def cli(ctx, debug, data_dir, env_file):
    """BlindBid - Sealed-bid auctions with confidential bids"""
    import os
    from blindbid.core.config import load_config

    if data_dir is None and "BLINDBID_DATA_DIR" not in os.environ:
        data_dir = "~/.blindbid"
    config = load_config(
        env_file=env_file,
        data_dir=Path(data_dir).expanduser() if data_dir else None,
        log_level="DEBUG" if debug else None,
    )
    setup_logging(level=config.logging_level, log_dir=str(config.log_dir), log_to_file=config.log_to_file)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    config.data_dir.mkdir(parents=True, exist_ok=True)


# =============================================================================
# Auction Commands
# =============================================================================


@cli.group()
def auction():
    """Auction commands"""
    pass


@auction.command("create")
@click.option("--creator", required=True, help="Creator identity (wallet address)")
@click.option("--item", "item_name", required=True, help="Item name")
@click.option("--description", default="", help="Item description")
@click.option("--min-bid", required=True, help="Minimum bid in tokens, e.g. 0.5")
@click.option("--duration", default=3600, type=int, help="Seconds until bidding closes")
@click.pass_context
def auction_create(ctx, creator, item_name, description, min_bid, duration):
    """Create a new sealed-bid auction"""
    from blindbid.errors import AuctionError
    from blindbid.utils.units import to_base_units

    lifecycle = open_lifecycle(ctx)
    try:
        created = lifecycle.create_auction(
            creator=creator,
            item_name=item_name,
            minimum_bid=to_base_units(min_bid),
            open_until=time.time() + duration,
            description=description,
        )
    except AuctionError as e:
        click.echo(f"❌ {e.message}")
        ctx.exit(1)
    finally:
        lifecycle.store.close()

    click.echo(f"✓ Auction created: {created.auction_id}")
    click.echo(f"  Bids are sealed to evaluator key {created.evaluator_public_point.hex()[:16]}...")


@auction.command("bid")
@click.argument("auction_id")
@click.option("--bidder", required=True, help="Bidder identity (wallet address)")
@click.option("--amount", required=True, help="Bid in tokens, e.g. 0.75")
@click.option("--tx-ref", default=None, help="Optional escrow transaction reference")
@click.pass_context
def auction_bid(ctx, auction_id, bidder, amount, tx_ref):
    """Seal and submit a bid"""
    from blindbid.core.auction import place_bid
    from blindbid.errors import AuctionError
    from blindbid.utils.units import to_base_units

    lifecycle = open_lifecycle(ctx)
    try:
        bid = place_bid(lifecycle, auction_id, bidder, to_base_units(amount), tx_reference=tx_ref)
    except AuctionError as e:
        click.echo(f"❌ {e.message}")
        ctx.exit(1)
    finally:
        lifecycle.store.close()

    click.echo(f"✓ Sealed bid submitted: {bid.bid_id}")
    click.echo(f"  Ciphertext: {bid.sealed_amount.ciphertext.hex()}")


@auction.command("settle")
@click.argument("auction_id")
@click.option("--as", "requested_by", default=None, help="Settle as this identity (must be the creator)")
@click.pass_context
def auction_settle(ctx, auction_id, requested_by):
    """Settle a closed auction and reveal the winner"""
    from blindbid.core.auction import SettlementOutcome
    from blindbid.errors import AuctionError, SettlementRejected
    from blindbid.utils.units import format_amount

    def show_progress(stage, percent):
        click.echo(f"  [{percent:3d}%] {stage}")

    lifecycle = open_lifecycle(ctx)
    try:
        result = lifecycle.settle(auction_id, requested_by=requested_by, progress=show_progress)
    except SettlementRejected as e:
        click.echo(f"ℹ️  {e.message}")
        echo_auction(lifecycle.get_auction(auction_id), time.time())
        return
    except AuctionError as e:
        click.echo(f"❌ {e.message}")
        ctx.exit(1)
    finally:
        lifecycle.store.close()

    if result.outcome == SettlementOutcome.EMPTY_BID_SET:
        click.echo("No bids submitted for this auction; auction cancelled")
        return

    click.echo(f"🏆 Winner: {result.winner.identity}")
    click.echo(f"   Winning bid: {format_amount(result.winner.amount)}")


@auction.command("show")
@click.argument("auction_id")
@click.pass_context
def auction_show(ctx, auction_id):
    """Show one auction"""
    from blindbid.errors import AuctionError

    lifecycle = open_lifecycle(ctx)
    try:
        echo_auction(lifecycle.get_auction(auction_id), time.time())
    except AuctionError as e:
        click.echo(f"❌ {e.message}")
        ctx.exit(1)
    finally:
        lifecycle.store.close()


@auction.command("list")
@click.pass_context
def auction_list(ctx):
    """List all auctions"""
    lifecycle = open_lifecycle(ctx)
    try:
        auctions = lifecycle.list_auctions()
    finally:
        lifecycle.store.close()

    if not auctions:
        click.echo("No auctions found.")
        return

    now = time.time()
    for a in auctions:
        click.echo(f"  {a.auction_id}  {a.effective_status(now).name:<9} {a.bid_count:>3} bids  {a.item_name}")


@auction.command("cancel")
@click.argument("auction_id")
@click.option("--creator", required=True, help="Creator identity")
@click.pass_context
def auction_cancel(ctx, auction_id, creator):
    """Cancel an auction that has no bids"""
    from blindbid.errors import AuctionError

    lifecycle = open_lifecycle(ctx)
    try:
        lifecycle.cancel_auction(auction_id, creator)
    except AuctionError as e:
        click.echo(f"❌ {e.message}")
        ctx.exit(1)
    finally:
        lifecycle.store.close()

    click.echo(f"✓ Auction cancelled: {auction_id}")


# =============================================================================
# Demo Command
# =============================================================================


@cli.command("demo")
def demo():
    """Run an in-memory walkthrough of a sealed-bid auction"""
    from blindbid.core.auction import AuctionLifecycle, LocalEvaluator, place_bid
    from blindbid.core.storage import InMemoryAuctionStore
    from blindbid.errors import BidTooLow
    from blindbid.utils.units import to_base_units, format_amount

    click.echo("=" * 60)
    click.echo("  BLINDBID - DEMO")
    click.echo("=" * 60)
    click.echo()

    # The demo fast-forwards a fake clock instead of sleeping
    clock = {"now": time.time()}
    store = InMemoryAuctionStore()
    lifecycle = AuctionLifecycle(store, LocalEvaluator(), clock=lambda: clock["now"])

    click.echo("📦 Creating auction (minimum 0.5, open for 1h)...")
    created = lifecycle.create_auction(
        creator="alice",
        item_name="Genesis artwork",
        minimum_bid=to_base_units("0.5"),
        open_until=clock["now"] + 3600,
    )
    click.echo(f"  ✓ Auction {created.auction_id[:16]}...")
    click.echo()

    click.echo("🔒 Submitting sealed bids...")
    try:
        place_bid(lifecycle, created.auction_id, "bob", to_base_units("0.3"))
    except BidTooLow as e:
        click.echo(f"  ✗ bob: {e.message}")
    for bidder, amount in (("bob", "0.8"), ("carol", "1.25"), ("dave", "1.25")):
        clock["now"] += 1
        bid = place_bid(lifecycle, created.auction_id, bidder, to_base_units(amount))
        click.echo(f"  ✓ {bidder}: ciphertext {bid.sealed_amount.ciphertext.hex()[:16]}...")
    click.echo()

    click.echo("⏱️  Bidding window elapses...")
    clock["now"] = created.open_until
    click.echo()

    click.echo("⚖️  Settling...")
    result = lifecycle.settle(
        created.auction_id,
        progress=lambda stage, pct: click.echo(f"  [{pct:3d}%] {stage}"),
    )
    click.echo(f"  🏆 Winner: {result.winner.identity} with {format_amount(result.winner.amount)}")
    click.echo("  Losing bids stay sealed.")
    store.close()
    click.echo()
    click.echo("✅ Demo complete!")


if __name__ == "__main__":
    cli()
