"""Root CLI app - entry point and command registration."""

from pathlib import Path

import typer

from dexmaker.config import get_settings
from dexmaker.config.settings import configure_logging

app = typer.Typer(
    name="dexmaker",
    help="DexMaker - automated market making on graphene decentralized exchanges.",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    config_dir: Path | None = typer.Option(
        None, "--config-dir", "-C", help="Config directory (default: ./config or package config)"
    ),
    profile: str | None = typer.Option(
        None, "--profile", "-p", help="Config profile (e.g. testnet) to overlay on default.toml"
    ),
) -> None:
    """Configure logging and store options in context."""
    settings = get_settings(profile, config_dir)
    configure_logging(settings)
    ctx.obj = {"settings": settings, "config_dir": config_dir, "profile": profile}


# Subcommands registered from other modules
from dexmaker.cli import maker, price  # noqa: E402

app.add_typer(maker.app, name="maker")
app.add_typer(price.app, name="price")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
