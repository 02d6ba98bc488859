"""Price subcommand: show."""

from __future__ import annotations

import typer

from dexmaker.errors import DexMakerError
from dexmaker.ledger import AssetCache
from dexmaker.maker.service import build_ledger, build_price_factory
from dexmaker.models import Market

app = typer.Typer(help="Reference prices")


@app.command("show")
def show(ctx: typer.Context) -> None:
    """Print the current reference rate for every configured market."""
    settings = ctx.obj["settings"]
    ledger = build_ledger(settings)
    factory = None
    try:
        factory = build_price_factory(settings, ledger)
        assets = AssetCache(ledger.database())
        for cfg in settings.markets:
            try:
                market = Market(base=assets.get_by_symbol(cfg.base), quote=assets.get_by_symbol(cfg.quote))
                rate = market.get_rate(factory.get_provider(market).get_price())
            except DexMakerError as e:
                typer.echo(f"  {cfg.display_name}  error: {e}")
                continue
            if rate == 0:
                typer.echo(f"  {market.display_name}  unavailable")
            else:
                typer.echo(f"  {market.display_name}  {rate:.8f}  (inverse {1 / rate:.8f})")
    except DexMakerError as e:
        typer.echo(f"Error: {e}")
        raise typer.Exit(1)
    finally:
        if factory is not None:
            factory.close()
        ledger.close()
