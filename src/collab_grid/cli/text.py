"""CLI: gridmsg text format|toggle|heading|stats|search|compress|decompress"""

import json
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from collab_grid import text as textops
from collab_grid.compression import compress_document, decompress_document
from collab_grid.errors import CompressionError
from collab_grid.stats import calculate_document_stats, search_document

console = Console()

TOGGLES = {
    "bold": textops.toggle_bold,
    "italic": textops.toggle_italic,
    "underline": textops.toggle_underline,
    "strike": textops.toggle_strikethrough,
    "list": textops.toggle_list,
    "numbered": textops.toggle_numbered_list,
    "link": textops.convert_url_to_markdown,
}


def _input_text(value: Optional[str]) -> str:
    if value is None:
        return click.get_text_stream("stdin").read()
    return value


@click.group()
def text():
    """Text formatting, statistics and search."""


@text.command("format")
@click.argument("value", required=False)
def text_format(value):
    """Normalize whitespace, markdown and punctuation."""
    click.echo(textops.format_text(_input_text(value)))


@text.command("toggle")
@click.argument("style", type=click.Choice(sorted(TOGGLES)))
@click.argument("value", required=False)
def text_toggle(style, value):
    """Toggle a markdown style on the given text."""
    click.echo(TOGGLES[style](_input_text(value)))


@text.command("heading")
@click.argument("level", type=click.IntRange(1, 6))
@click.argument("value", required=False)
def text_heading(level, value):
    """Set the heading level of a line."""
    click.echo(textops.toggle_heading(_input_text(value), level))


@text.command("stats")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--json-output", "--json", is_flag=True)
def text_stats(path, json_output):
    """Word, character and line counts for a file."""
    stats = calculate_document_stats(Path(path).read_text(encoding="utf-8"))
    if json_output:
        click.echo(stats.model_dump_json())
        return
    console.print(
        f"{stats.words} words, {stats.chars_without_spaces} chars, "
        f"{stats.lines} lines, {stats.reading_time} min read"
    )


@text.command("search")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.argument("query")
@click.option("-c", "--case-sensitive", is_flag=True)
@click.option("--json-output", "--json", is_flag=True)
def text_search(path, query, case_sensitive, json_output):
    """Find every occurrence of QUERY in a file."""
    matches = search_document(Path(path).read_text(encoding="utf-8"), query, case_sensitive)
    if json_output:
        click.echo(json.dumps([m.model_dump() for m in matches]))
        return
    table = Table(title=f"Matches ({len(matches)})")
    table.add_column("Start", justify="right")
    table.add_column("End", justify="right")
    table.add_column("Text")
    for m in matches:
        table.add_row(str(m.start), str(m.end), m.text)
    console.print(table)


@text.command("compress")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("-o", "--output", required=True)
def text_compress(path, output):
    """Gzip a text file."""
    data = compress_document(Path(path).read_text(encoding="utf-8"))
    Path(output).write_bytes(data)
    console.print(f"[dim]Wrote {len(data)} bytes to {output}[/dim]")


@text.command("decompress")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
def text_decompress(path):
    """Print the text of a gzip file."""
    try:
        click.echo(decompress_document(Path(path).read_bytes()), nl=False)
    except CompressionError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)
