"""Maker subcommand: run, cancel."""

from __future__ import annotations

import signal
import threading

import typer

from dexmaker.errors import DexMakerError
from dexmaker.maker.service import MarketMakerService, build_ledger, build_price_factory

app = typer.Typer(help="Run market makers or cancel their orders")


@app.command("run")
def run(ctx: typer.Context) -> None:
    """Start one market maker per configured market (Ctrl+C to stop)."""
    settings = ctx.obj["settings"]
    ledger = build_ledger(settings)
    stop_event = threading.Event()
    factory = None

    def shutdown(signum, frame) -> None:
        stop_event.set()

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)
    try:
        factory = build_price_factory(settings, ledger)
        service = MarketMakerService(settings, ledger, factory)
        typer.echo(f"Starting {len(service.makers)} market(s) (Ctrl+C to stop)...")
        service.run_forever(stop_event)
    except DexMakerError as e:
        typer.echo(f"Error: {e}")
        raise typer.Exit(1)
    finally:
        if factory is not None:
            factory.close()
        ledger.close()
    typer.echo("Stopped.")


@app.command("cancel")
def cancel(ctx: typer.Context) -> None:
    """Cancel the account's resting orders on every configured market."""
    settings = ctx.obj["settings"]
    ledger = build_ledger(settings)
    try:
        service = MarketMakerService(settings, ledger)
        count = service.cancel_all()
        typer.echo(f"Cancelled {count} order(s).")
    except DexMakerError as e:
        typer.echo(f"Error: {e}")
        raise typer.Exit(1)
    finally:
        ledger.close()
