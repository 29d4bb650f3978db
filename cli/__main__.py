import asyncio
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

import typer

from cli import commands
from cli.utils import to_json
from ensight.schemas.graph import InteractionEvent
from ensight.services.errors import ResolutionError, StoreUnavailableError
from ensight.settings import load_settings

app = typer.Typer(add_completion=False)

state = {"config": None}


@app.callback()
def main(
    config: Optional[Path] = typer.Option(None, "--config", dir_okay=False, help="YAML settings file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    state["config"] = config


def _run(action: Callable[[commands.Services], Awaitable[Any]]) -> Any:
    async def runner():
        async with commands.open_services(load_settings(state["config"])) as services:
            return await action(services)

    try:
        return asyncio.run(runner())
    except ValueError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=2)
    except (StoreUnavailableError, ResolutionError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)


def _echo_or_missing(result, missing: str) -> None:
    if result is None:
        typer.echo(missing, err=True)
        raise typer.Exit(code=1)
    typer.echo(to_json(result))


@app.command("record")
def record(
    to: str = typer.Option(..., "--to", help="Contract or wallet that was called"),
    from_: Optional[str] = typer.Option(None, "--from", help="Originating wallet"),
    method: Optional[str] = typer.Option(None, help="RPC method, e.g. eth_sendTransaction"),
    kind: Optional[str] = typer.Option(None, help="tx, sign, connect or chain"),
    hostname: Optional[str] = typer.Option(None),
    chain_id: Optional[str] = typer.Option(None, "--chain-id"),
    value: Optional[str] = typer.Option(None),
    has_data: Optional[bool] = typer.Option(None, "--has-data/--no-data"),
) -> None:
    """Record a single wallet interaction."""
    event = InteractionEvent(
        from_address=from_,
        to_address=to,
        method=method,
        kind=kind,
        hostname=hostname,
        chain_id=chain_id,
        value=value,
        has_data=has_data,
    )
    edge = _run(lambda services: commands.record(services, event))
    typer.echo(to_json(edge))


@app.command("ingest")
def ingest(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    skip_errors: bool = typer.Option(False, "--skip-errors", help="Skip malformed rows"),
    details: bool = typer.Option(False, "--details", help="Show every row error"),
) -> None:
    """Record every interaction in an NDJSON or CSV file."""
    result = _run(lambda services: commands.ingest_file(
        services, file, skip_errors=skip_errors,
        progress_callback=lambda n: typer.echo(f"  {n} rows processed..."),
    ))
    for line in commands.print_ingest_report(result, details=details):
        typer.echo(line)


@app.command("show")
def show(address: str) -> None:
    """Node, edges and risk summary for an address."""
    typer.echo(to_json(_run(lambda services: commands.show_address(services, address))))


@app.command("neighbors")
def neighbors(address: str) -> None:
    """Neighbor nodes and edges of an address."""
    typer.echo(to_json(_run(lambda services: commands.show_neighbors(services, address))))


@app.command("risk")
def risk(address: str) -> None:
    """Blacklist status of an address."""
    typer.echo(to_json(_run(lambda services: commands.address_risk(services, address))))


@app.command("resolve")
def resolve(name: str) -> None:
    """Resolve an ENS name to an address."""
    result = _run(lambda services: commands.resolve_name(services, name))
    _echo_or_missing(result, f'ENS name "{name}" not found or not resolved')


@app.command("reverse")
def reverse(address: str) -> None:
    """Primary ENS name of an address."""
    result = _run(lambda services: commands.reverse_lookup(services, address))
    _echo_or_missing(result, f'No ENS name found for address "{address}"')


@app.command("text")
def text(name: str, key: str) -> None:
    """ENS text record, e.g. url, email, com.twitter."""
    result = _run(lambda services: commands.text_record(services, name, key))
    _echo_or_missing(result, f'Text record "{key}" not found for "{name}"')


@app.command("avatar")
def avatar(name: str) -> None:
    """Avatar record of an ENS name."""
    result = _run(lambda services: commands.avatar(services, name))
    _echo_or_missing(result, f'No avatar found for "{name}"')


@app.command("info")
def info(name: str) -> None:
    """Address, avatar and common text records of an ENS name."""
    result = _run(lambda services: commands.ens_profile(services, name))
    _echo_or_missing(result, f'ENS name "{name}" not found or not resolved')


@app.command("export-edges")
def export_edges(
    address: str,
    fmt: str = typer.Option("csv", help="csv or json"),
    output: Optional[Path] = typer.Option(None, dir_okay=False),
) -> None:
    path = _run(lambda services: commands.export_edges(services, address, fmt, output))
    typer.echo(f"Exported {path}")


if __name__ == "__main__":
    app()
