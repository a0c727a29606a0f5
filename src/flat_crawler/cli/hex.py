from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from flat_crawler import hexdump

console = Console()


def hex_dump(
    path: Annotated[Path, typer.Argument(help="File to dump.", exists=True, dir_okay=False)],
    offset: Annotated[str, typer.Option(help="Start offset in hex.")] = "0",
    length: Annotated[int, typer.Option(min=1, help="Number of bytes to show.")] = hexdump.DEFAULT_DUMP_LENGTH,
) -> None:
    """Print a hex dump of a file."""
    try:
        start = int(offset.lower().replace("0x", ""), 16)
        text = hexdump.dump(path.read_bytes(), start, length)
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    console.print(text, highlight=False, markup=False)
