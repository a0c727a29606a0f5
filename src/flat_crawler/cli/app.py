import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from flat_crawler.cli.analyze import analyze
from flat_crawler.cli.crawl import crawl
from flat_crawler.cli.hex import hex_dump

app = typer.Typer(
    name="flat-crawler",
    help="Flat Crawler CLI: explore FlatBuffer files without a schema.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.command("crawl")(crawl)
app.command("analyze")(analyze)
app.command("hex")(hex_dump)


@app.callback()
def configure(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug output.")] = False,
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(show_path=False)],
        force=True,
    )


def main() -> None:
    app()
