"""
ledgerbid CLI - Command Line Interface for the reverse-auction contract

Main entry point for all CLI commands.
"""

import json
import logging
from pathlib import Path

import click

from ledgerbid import __version__
from ledgerbid.core.config import load_config
from ledgerbid.core.errors import ContractError
from ledgerbid.utils.logger import setup_logging


DEMO_CONDITIONS = json.dumps({
    "storage": "3",
    "processor": "5",
    "transmission bandwidth": "700",
    "networking": "45",
})


def pretty(result: str) -> str:
    """Re-indent a JSON result for display."""
    return json.dumps(json.loads(result), indent=2)


def open_ledger(ctx):
    """Open the persistent ledger under the configured data directory."""
    from ledgerbid.core.ledger import Ledger
    from ledgerbid.core.storage import StorageManager

    config = ctx.obj["config"]
    config.ensure_dirs()
    storage = StorageManager(config.data_dir, config.db_name)
    ctx.call_on_close(storage.close)
    return Ledger(storage_manager=storage)


def fail(ctx, error: ContractError):
    click.echo(f"Error [{error.kind}]: {error.message}", err=True)
    ctx.exit(1)


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--data-dir", default=None, help="Data directory (default: $LEDGERBID_DATA_DIR or ./data)")
@click.option("--env-file", default=None, help="Load settings from a dotenv file")
@click.version_option(version=__version__)
@click.pass_context
def cli(ctx, debug, data_dir, env_file):
    """Reverse-auction contract on a key-value ledger"""
    config = load_config(env_file)
    if data_dir:
        config.data_dir = Path(data_dir).expanduser()
    if debug:
        config.log_level = logging.DEBUG

    setup_logging(config)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


# =============================================================================
# Transaction Commands
# =============================================================================


@cli.command("invoke")
@click.argument("function")
@click.argument("args", nargs=-1)
@click.pass_context
def invoke(ctx, function, args):
    """Submit a transaction: FUNCTION [ARGS...]"""
    ledger = open_ledger(ctx)
    try:
        result = ledger.invoke(function, *args)
    except ContractError as e:
        fail(ctx, e)

    click.echo(f"✓ {function} committed at height {ledger.block_height}")
    click.echo(pretty(result))


@cli.command("query")
@click.argument("function")
@click.argument("args", nargs=-1)
@click.pass_context
def query(ctx, function, args):
    """Evaluate a read-only function: FUNCTION [ARGS...]"""
    ledger = open_ledger(ctx)
    try:
        result = ledger.query(function, *args)
    except ContractError as e:
        fail(ctx, e)

    click.echo(pretty(result))


@cli.command("show")
@click.argument("key")
@click.pass_context
def show(ctx, key):
    """Show the Request or Auction stored under KEY"""
    ledger = open_ledger(ctx)
    try:
        result = ledger.query("GetState", key)
    except ContractError as e:
        fail(ctx, e)

    click.echo(pretty(result))


@cli.command("history")
@click.option("--limit", default=20, help="Max transactions to show")
@click.pass_context
def history(ctx, limit):
    """Show the transaction log"""
    ledger = open_ledger(ctx)
    records = ledger.history()[-limit:]

    if not records:
        click.echo("No transactions.")
        return

    for record in records:
        height = record.block_height if record.block_height is not None else "-"
        line = f"  [{height}] {record.tx_id[:12]}... {record.status.name:<20} {record.function}({', '.join(record.args)})"
        if record.error:
            line += f"  ! {record.error_kind}: {record.error}"
        click.echo(line)

    click.echo(f"Height: {ledger.block_height}")


# =============================================================================
# Demo Command
# =============================================================================


@cli.command("demo")
def demo():
    """Run the three-organisation reverse-auction scenario in memory"""
    from ledgerbid.core.ledger import Ledger

    ledger = Ledger()

    def step(label, fn, *args, query=False):
        click.echo(f"\n--> {'Evaluate' if query else 'Submit'} Transaction: {label}")
        try:
            result = ledger.query(fn, *args) if query else ledger.invoke(fn, *args)
        except ContractError as e:
            click.echo(f"*** Successfully caught the error: [{e.kind}] {e.message}")
            return None
        if not query:
            click.echo("*** Result: committed")
        click.echo(f"*** Result: {pretty(result)}")
        return result

    click.echo("=" * 60)
    click.echo("  REVERSE AUCTION - DEMO")
    click.echo("=" * 60)

    step("AddRequest from Org1MSP", "AddRequest", "004", "Org1MSP", "600", DEMO_CONDITIONS)
    step("GetState 004", "GetState", "004", query=True)
    step("StartBidding from Org1MSP", "StartBidding", "Auction004", "004")
    step("GetState Auction004", "GetState", "Auction004", query=True)
    step("Offer from Org2MSP", "Offer", "200", "500", "Auction004", "Org2MSP")
    step("GetState Auction004", "GetState", "Auction004", query=True)

    if step("Offer from Org3MSP (delay 800 over reserve 600)", "Offer", "300", "800", "Auction004", "Org3MSP"):
        click.echo("******** FAILED to return an error")

    step("Offer from Org3MSP", "Offer", "150", "300", "Auction004", "Org3MSP")
    step("GetState Auction004", "GetState", "Auction004", query=True)
    step("CloseBidding from Org1MSP", "CloseBidding", "Auction004")
    step("GetState Auction004", "GetState", "Auction004", query=True)
    request = step("GetState 004", "GetState", "004", query=True)

    click.echo()
    click.echo("📊 Final Statistics:")
    click.echo(f"  Ledger: {ledger.stats()}")
    if request:
        click.echo(f"  Winner: {json.loads(request)['winnerId']}")
    click.echo()
    click.echo("✅ Demo complete!")


if __name__ == "__main__":
    cli()
