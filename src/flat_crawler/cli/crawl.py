from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from flat_crawler.config import DEFAULT_HISTORY_FILE_NAME
from flat_crawler.core.errors import FlatCrawlerError
from flat_crawler.crawler.session import CrawlSession

console = Console()


def crawl(
    path: Annotated[Path, typer.Argument(help="FlatBuffer file to explore.", exists=True, dir_okay=False)],
    history: Annotated[
        Path, typer.Option(help="File used by the 'dump' and 'load' commands.")
    ] = Path(DEFAULT_HISTORY_FILE_NAME),
) -> None:
    """Interactively navigate the tables of a FlatBuffer file."""
    try:
        session = CrawlSession.from_file(path, console=console, history_path=history)
    except FlatCrawlerError as exc:
        console.print(f"[red]Unable to read root table:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    try:
        session.run()
    except KeyboardInterrupt:
        console.print()
