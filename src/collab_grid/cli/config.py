"""CLI: gridmsg config show|set|reset"""

import click
from rich.console import Console

console = Console()

KEYS = ("user_id", "document_id", "protocol_hash")


def _load_config() -> dict:
    from collab_grid.cli.main import _load_config
    return _load_config()


def _save_config(cfg: dict) -> None:
    from collab_grid.cli.main import _save_config
    _save_config(cfg)


def _settings() -> dict:
    from collab_grid.cli.main import _settings
    return _settings()


@click.group()
def config():
    """Saved defaults for user, document and protocol hash."""


@config.command("show")
def config_show():
    """Show effective settings."""
    saved = _load_config()
    for key, val in _settings().items():
        source = "saved" if key in saved else "default"
        console.print(f"{key} = {val} [dim]({source})[/dim]")


@config.command("set")
@click.argument("key", type=click.Choice(KEYS))
@click.argument("value")
def config_set(key, value):
    """Save a default."""
    _save_config({**_load_config(), key: value})
    console.print(f"[green]{key} set to {value}[/green]")


@config.command("reset")
def config_reset():
    """Clear saved defaults."""
    _save_config({})
    console.print("[green]Config reset.[/green]")
