"""
collab-grid CLI: `gridmsg` command.

Commands:
  gridmsg edit DOC TYPE POS CONTENT   Encode a document edit message
  gridmsg stats FILE                  Encode a stats message for a text file
  gridmsg export FILE                 Export a document as a grid message file
  gridmsg decode [FILE]               Decode an envelope and print it
  gridmsg text <cmd>                  Formatting, statistics and search tools
  gridmsg config <cmd>                Show or change saved defaults
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

try:
    import click
    from rich.console import Console
except ImportError:
    raise SystemExit("CLI requires extras: pip install collab-grid[cli]")

from collab_grid.builders import DEFAULT_PROTOCOL_HASH

console = Console()
CONFIG_FILE = Path.home() / ".collab-grid" / "config.json"

DEFAULTS = {
    "user_id": "anonymous-user",
    "document_id": "default-document",
    "protocol_hash": DEFAULT_PROTOCOL_HASH,
}


def _load_config() -> dict:
    try:
        return json.loads(CONFIG_FILE.read_text())
    except (FileNotFoundError, json.JSONDecodeError):
        return {}


def _save_config(cfg: dict) -> None:
    CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_FILE.write_text(json.dumps(cfg, indent=2))


def _settings(**overrides: Optional[Any]) -> dict:
    """Defaults, then the saved config, then any non-None command-line overrides."""
    cfg = {**DEFAULTS, **_load_config()}
    cfg.update({k: v for k, v in overrides.items() if v is not None})
    return cfg


def _emit_bytes(data: bytes, output: Optional[str]) -> None:
    if not data:
        console.print("[red]Encoding failed; nothing to send.[/red]")
        raise SystemExit(1)
    if output:
        Path(output).write_bytes(data)
        console.print(f"[dim]Wrote {len(data)} bytes to {output}[/dim]")
    else:
        click.echo(data.hex())


@click.group()
@click.version_option("0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Log codec activity to stderr")
def main(verbose: bool):
    """collab-grid CLI: build, encode and inspect grid messages."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG)


# Register subcommands from separate modules
from collab_grid.cli.messages import edit_cmd, stats_cmd, export_cmd, decode_cmd
from collab_grid.cli.text import text
from collab_grid.cli.config import config

main.add_command(edit_cmd)
main.add_command(stats_cmd)
main.add_command(export_cmd)
main.add_command(decode_cmd)
main.add_command(text)
main.add_command(config)


if __name__ == "__main__":
    main()
