from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from flat_crawler.batch import AnalysisStatus, run_analysis
from flat_crawler.config import DEFAULT_MAX_PEEK_SIZE, DEFAULT_RESULTS_FILE_NAME, FileAnalysisSettings

console = Console()


def analyze(
    input_path: Annotated[Path, typer.Argument(help="Directory to scan recursively.")],
    output: Annotated[Path, typer.Option("--output", "-o", help="Directory for the report and schema dumps.")] = Path(
        "FlatAnalysis"
    ),
    max_peek_size: Annotated[
        int, typer.Option(min=1, help="Files larger than this many bytes are skipped.")
    ] = DEFAULT_MAX_PEEK_SIZE,
    results_file: Annotated[str, typer.Option(help="Name of the grouped report file.")] = DEFAULT_RESULTS_FILE_NAME,
    detail: Annotated[bool, typer.Option("--detail/--no-detail", help="Write per-field summaries.")] = True,
    skip_existing: Annotated[
        bool, typer.Option("--skip-existing", help="Skip files whose schema dump already exists.")
    ] = False,
) -> None:
    """Fingerprint every file in a directory and group them by probable schema."""
    settings = FileAnalysisSettings(
        input_path=input_path,
        output_path=output,
        max_peek_size=max_peek_size,
        all_result_output_file_name=results_file,
        dump_individual_schema_analysis=detail,
        skip_analysis_if_schema_dump_exists=skip_existing,
    )
    try:
        report = run_analysis(settings)
    except FileNotFoundError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    table = Table(show_lines=False)
    table.add_column("status")
    table.add_column("files")
    for status in AnalysisStatus:
        table.add_row(status.value, str(report.count(status)))
    console.print(table)
    console.print(f"[green]Wrote[/green] {report.report_path}")
