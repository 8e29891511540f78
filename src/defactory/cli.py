import json, asyncio, time
import click
from eth_utils import to_checksum_address
from rich.console import Console
from rich.table import Table

from . import logging_config
from .adapters.progress_rich import RichProgressObserver
from .adapters.rpc_httpx import HttpxRPC
from .application.use_cases import discover_factories
from .config import DiscoveryConfig, load_config
from .domain.errors import DiscoveryError
from .domain.factories import FactoryRecord
from .domain.signatures import FactoryKind, signature_for
from .ports.progress import DiscoveryObserver, NullObserver

console = Console()
err_console = Console(stderr=True)
KIND_NAMES = [k.value for k in FactoryKind]

def _record_to_dict(f: FactoryRecord) -> dict:
    out = {"kind": f.kind.value, "address": to_checksum_address(f.address), "creation_block": f.creation_block}
    if hasattr(f, "fee"):
        out["fee"] = f.fee
    return out

async def _run_discovery(cfg: DiscoveryConfig, observer: DiscoveryObserver, sort: bool) -> list[FactoryRecord]:
    async with HttpxRPC(cfg.require_rpc_url(), timeout_s=cfg.timeout_s, max_conn=cfg.max_connections) as rpc:
        return await discover_factories(
            cfg.kinds, cfg.activity_threshold, rpc,
            step=cfg.step, concurrency=cfg.concurrency,
            observer=observer, sort_by_address=sort,
        )

@click.group()
def cli():
    """defactory: discover DEX factory contracts from their pool-creation logs."""

@cli.command("discover")
@click.option("--rpc", "rpc_url", default=None, help="RPC endpoint URL [env: DEFACTORY_RPC_URL]")
@click.option("--kind", "kinds", multiple=True, type=click.Choice(KIND_NAMES),
              help="Factory kind to look for; repeat to OR (default: all)")
@click.option("--threshold", type=int, default=None, help="Minimum pools created after discovery [default: 0]")
@click.option("--step", type=int, default=None, help="Blocks per eth_getLogs request [default: 100000]")
@click.option("--concurrency", type=int, default=None, help="Max parallel requests [default: 1]")
@click.option("--timeout", "timeout_s", type=int, default=None, help="Per-request timeout in seconds [default: 20]")
@click.option("--sort/--no-sort", default=True, show_default=True, help="Sort results by address")
@click.option("--json", "as_json", is_flag=True, help="Print results as a JSON array")
@click.option("--quiet", is_flag=True, help="No progress bar")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
def discover_cmd(rpc_url, kinds, threshold, step, concurrency, timeout_s, sort, as_json, quiet, verbose):
    """Scan the whole chain for factory creation events and list active factories."""
    if verbose: logging_config.setup_debug(err_console)
    elif quiet or as_json: logging_config.setup_minimal(err_console)
    else: logging_config.setup(console=err_console)

    try:
        cfg = load_config(
            rpc_url=rpc_url, kinds=tuple(kinds) or None, activity_threshold=threshold,
            step=step, concurrency=concurrency, timeout_s=timeout_s,
        )
    except DiscoveryError as e:
        raise click.UsageError(str(e))

    observer = NullObserver() if (quiet or as_json) else RichProgressObserver(err_console)
    t0 = time.time()
    try:
        factories = asyncio.run(_run_discovery(cfg, observer, sort))
    except DiscoveryError as e:
        raise click.ClickException(str(e))
    finally:
        if isinstance(observer, RichProgressObserver):
            observer.stop()

    if as_json:
        click.echo(json.dumps([_record_to_dict(f) for f in factories], indent=2))
        return

    table = Table(title=f"factories with >= {cfg.activity_threshold} pools")
    table.add_column("kind"); table.add_column("address"); table.add_column("first seen", justify="right")
    for f in factories:
        table.add_row(f.kind.value, to_checksum_address(f.address), f"{f.creation_block:,}")
    console.print(table)
    console.print(f"[bold]done[/]: {len(factories)} factories • {time.time() - t0:.2f}s")

@cli.command("signatures")
def signatures_cmd():
    """Print the discovery event signature of every known factory kind."""
    for kind in FactoryKind:
        click.echo(f"{kind.value}\t{signature_for(kind)}")

if __name__ == "__main__":
    cli()
