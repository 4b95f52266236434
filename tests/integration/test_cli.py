import pytest
from click.testing import CliRunner

from blindbid.cli.main import cli
from blindbid.core.auction import derive_auction_id
from blindbid.utils.logger import BlindBidLogger


@pytest.fixture
def runner():
    yield CliRunner()
    # Handlers created during invoke point at the runner's captured stdout
    BlindBidLogger.setup(force=True)


@pytest.fixture
def invoke(runner, tmp_path):
    def _invoke(*args):
        return runner.invoke(cli, ["--data-dir", str(tmp_path), *args])
    return _invoke


def test_demo_runs(invoke):
    result = invoke("demo")

    assert result.exit_code == 0, result.output
    assert "Bid must be at least 0.5000" in result.output
    assert "Winner: carol with 1.2500" in result.output
    assert "Demo complete" in result.output


def test_create_bid_show_list(invoke, tmp_path):
    result = invoke("auction", "create", "--creator", "alice", "--item", "Painting", "--min-bid", "0.5")
    assert result.exit_code == 0, result.output
    auction_id = derive_auction_id("alice", "Painting")
    assert f"Auction created: {auction_id}" in result.output
    assert (tmp_path / "evaluator.json").exists()

    result = invoke("auction", "bid", auction_id, "--bidder", "bob", "--amount", "0.75")
    assert result.exit_code == 0, result.output
    assert "Sealed bid submitted" in result.output

    result = invoke("auction", "show", auction_id)
    assert result.exit_code == 0, result.output
    assert "Minimum bid: 0.5000" in result.output
    assert "Sealed bids: 1" in result.output
    assert "0.7500" not in result.output

    result = invoke("auction", "list")
    assert result.exit_code == 0, result.output
    assert auction_id in result.output
    assert "Painting" in result.output


def test_bid_below_minimum(invoke):
    invoke("auction", "create", "--creator", "alice", "--item", "Painting", "--min-bid", "0.5")
    auction_id = derive_auction_id("alice", "Painting")

    result = invoke("auction", "bid", auction_id, "--bidder", "bob", "--amount", "0.3")

    assert result.exit_code == 1
    assert "Bid must be at least 0.5000" in result.output


def test_settle_while_open(invoke):
    invoke("auction", "create", "--creator", "alice", "--item", "Painting", "--min-bid", "0.5")
    auction_id = derive_auction_id("alice", "Painting")

    result = invoke("auction", "settle", auction_id)

    assert result.exit_code == 1
    assert "Auction has not ended yet" in result.output


def test_cancel_and_unknown_auction(invoke):
    invoke("auction", "create", "--creator", "alice", "--item", "Painting", "--min-bid", "1")
    auction_id = derive_auction_id("alice", "Painting")

    result = invoke("auction", "cancel", auction_id, "--creator", "bob")
    assert result.exit_code == 1
    assert "Only the auction creator" in result.output

    result = invoke("auction", "cancel", auction_id, "--creator", "alice")
    assert result.exit_code == 0, result.output
    assert "Auction cancelled" in result.output

    result = invoke("auction", "show", "deadbeef")
    assert result.exit_code == 1
    assert "not found" in result.output


def test_invalid_amount_text(invoke):
    result = invoke("auction", "create", "--creator", "alice", "--item", "Painting", "--min-bid", "lots")
    assert result.exit_code == 1
    assert "Amount is not a number" in result.output
