"""CLI: gridmsg edit, gridmsg stats, gridmsg export, gridmsg decode"""

import re
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from collab_grid import builders
from collab_grid.envelope import decode
from collab_grid.errors import DecodeError
from collab_grid.handler import GridHandler, render
from collab_grid.models.message import EDIT_TYPES, read_record

console = Console()


def _settings(**overrides):
    from collab_grid.cli.main import _settings
    return _settings(**overrides)


def _emit_bytes(data: bytes, output: Optional[str]) -> None:
    from collab_grid.cli.main import _emit_bytes
    _emit_bytes(data, output)


def export_filename(title: Optional[str]) -> str:
    """``<title>_promisegrid.cbor`` with the title reduced to a safe lowercase slug."""
    name = "document"
    if title and title.strip():
        slug = re.sub(r"[^a-zA-Z0-9\s\-_]", "", title.strip())
        slug = re.sub(r"\s+", "_", slug).lower()
        if slug:
            name = slug
    return f"{name}_promisegrid.cbor"


@click.command("edit")
@click.argument("document_id")
@click.argument("edit_type")
@click.argument("position", type=int)
@click.argument("content")
@click.option("--user", "user_id", default=None, help="User id (defaults to saved config)")
@click.option("--protocol-hash", default=None)
@click.option("-o", "--output", default=None, help="Write the envelope to a file instead of printing hex")
def edit_cmd(document_id, edit_type, position, content, user_id, protocol_hash, output):
    """Encode a document edit message."""
    if edit_type not in EDIT_TYPES:
        console.print(f"[yellow]Unusual edit type {escape(edit_type)!r}; sending as-is.[/yellow]")
    cfg = _settings(user_id=user_id, protocol_hash=protocol_hash)
    data = builders.edit_message(
        document_id, edit_type, position, content, cfg["user_id"],
        protocol_hash=cfg["protocol_hash"],
    )
    _emit_bytes(data, output)


@click.command("stats")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--doc", "document_id", default=None)
@click.option("--user", "user_id", default=None)
@click.option("-o", "--output", default=None)
def stats_cmd(path, document_id, user_id, output):
    """Encode a stats message computed from a text file."""
    cfg = _settings(document_id=document_id, user_id=user_id)
    text = Path(path).read_text(encoding="utf-8")
    data = builders.stats_message_for_text(
        text, cfg["document_id"], cfg["user_id"], protocol_hash=cfg["protocol_hash"],
    )
    _emit_bytes(data, output)


@click.command("export")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--doc", "document_id", default=None)
@click.option("--user", "user_id", default=None)
@click.option("--title", default=None, help="Document title used for the output file name")
@click.option("-o", "--output", default=None)
def export_cmd(path, document_id, user_id, title, output):
    """Export a whole document as a grid message file."""
    cfg = _settings(document_id=document_id, user_id=user_id)
    handler = GridHandler(protocol_hash=cfg["protocol_hash"])
    content = Path(path).read_text(encoding="utf-8")

    data = handler.export_document(content, cfg["document_id"], cfg["user_id"])
    handler.log_message(data)
    _emit_bytes(data, output or export_filename(title))


@click.command("decode")
@click.argument("source", type=click.File("rb"), default="-")
@click.option("--hex", "hex_input", default=None, help="Decode this hex string instead of a file")
@click.option("--table", is_flag=True, help="Show the payload data as a table")
def decode_cmd(source, hex_input, table):
    """Decode a grid envelope and print it."""
    if hex_input is not None:
        try:
            data = bytes.fromhex(hex_input)
        except ValueError as e:
            console.print(f"[red]Invalid hex input: {e}[/red]")
            raise SystemExit(1)
    else:
        data = source.read()

    try:
        message = decode(data)
    except DecodeError as e:
        console.print(f"[red]CBOR parsing error ({e.form} form): {escape(str(e))}[/red]")
        if e.details:
            for form, reason in e.details.items():
                console.print(f"[dim]  {form}: {escape(str(reason))}[/dim]")
        raise SystemExit(1)

    if not table:
        click.echo(render(message))
        return

    fields = message.payload.data
    try:
        record = read_record(message)
    except DecodeError as e:
        console.print(f"[yellow]Not a valid {escape(message.payload.message_type)} payload: {escape(str(e))}[/yellow]")
        record = None
    if record is not None:
        fields = record.model_dump()

    out = Table(title=escape(f"{message.payload.message_type} ({message.protocol_hash})"))
    out.add_column("Field", style="bold")
    out.add_column("Value")
    for key, val in fields.items():
        out.add_row(escape(key), escape(repr(val)))
    console.print(out)
