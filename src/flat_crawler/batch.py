"""Batch fingerprinting of every file below a directory.

Files are read one at a time into a single reusable scratch buffer. A file
larger than the buffer is skipped, and a file that fails to decode is logged
and excluded. Neither stops the run.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from flat_crawler.config import FileAnalysisSettings
from flat_crawler.core.errors import FlatCrawlerError
from flat_crawler.core.fingerprint import analyze_buffer, group_results
from flat_crawler.core.root import is_size_valid
from flat_crawler.models import FileAnalysisResult

logger = logging.getLogger(__name__)


class AnalysisStatus(Enum):
    ANALYZED = "analyzed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class AnalysisOutcome:
    path: Path
    status: AnalysisStatus
    result: FileAnalysisResult | None = None
    reason: str | None = None


@dataclass
class BatchReport:
    outcomes: list[AnalysisOutcome] = field(default_factory=list)
    report_path: Path | None = None

    @property
    def results(self) -> list[FileAnalysisResult]:
        return [o.result for o in self.outcomes if o.result is not None]

    def count(self, status: AnalysisStatus) -> int:
        return sum(1 for o in self.outcomes if o.status is status)


class ScratchBuffer:
    """Fixed-capacity buffer reused for every file of a run."""

    def __init__(self, capacity: int) -> None:
        self._buffer = bytearray(capacity)
        self._view = memoryview(self._buffer)

    @property
    def capacity(self) -> int:
        return len(self._buffer)

    def load(self, path: Path) -> memoryview | None:
        """Read ``path`` into the buffer; return None when the file does not fit."""
        with path.open("rb") as stream:
            size = path.stat().st_size
            if size > self.capacity:
                return None
            read = stream.readinto(self._view[:size])
        if read != size:
            raise OSError(f"Read {read} of {size} byte(s) from {path}")
        return self._view[:size]


def iter_input_files(root: Path) -> Iterator[Path]:
    if not root.is_dir():
        raise FileNotFoundError(f"Input directory not found: {root}")
    for path in sorted(root.rglob("*")):
        if path.is_file():
            yield path


def try_analyze_file(settings: FileAnalysisSettings, path: Path, scratch: ScratchBuffer) -> AnalysisOutcome:
    try:
        data = scratch.load(path)
        if data is None:
            logger.debug("Skipping %s: larger than the %d byte peek window", path, scratch.capacity)
            return AnalysisOutcome(path, AnalysisStatus.SKIPPED, reason="larger than peek window")
        if not is_size_valid(data):
            logger.debug("Skipping %s: too small (%d bytes)", path, len(data))
            return AnalysisOutcome(path, AnalysisStatus.SKIPPED, reason="too small")

        result = analyze_buffer(
            data,
            path.name,
            str(path.resolve()),
            include_summary=settings.dump_individual_schema_analysis,
        )
    except (FlatCrawlerError, OSError) as exc:
        logger.warning("Error analyzing %s: %s", path, exc)
        return AnalysisOutcome(path, AnalysisStatus.FAILED, reason=str(exc))
    except Exception as exc:
        logger.exception("Unexpected error analyzing %s", path)
        return AnalysisOutcome(path, AnalysisStatus.FAILED, reason=f"{type(exc).__name__}: {exc}")

    if settings.dump_individual_schema_analysis:
        write_schema_dump(settings.get_output_path(path), result)
    logger.info("%s: %d field(s), hash %d", path.name, result.field_count, result.fingerprint_hash)
    return AnalysisOutcome(path, AnalysisStatus.ANALYZED, result=result)


def write_schema_dump(path: Path, result: FileAnalysisResult) -> None:
    path.write_text("".join(f"{line}\n" for line in result.field_summaries), encoding="utf-8")


def format_report(results: Sequence[FileAnalysisResult], include_detail: bool = True) -> list[str]:
    lines: list[str] = []
    for field_count, by_hash in group_results(results).items():
        lines.append(f"Field count: {field_count}")
        for fingerprint, members in by_hash.items():
            lines.append(f"\tHash: {fingerprint}")
            for result in members:
                lines.append(f"\t\t{result}")
                if include_detail:
                    lines.extend(f"\t\t\t{summary}" for summary in result.field_summaries)
        lines.append("")
    return lines


def export_results(results: Sequence[FileAnalysisResult], path: Path, include_detail: bool = True) -> None:
    with path.open("w", encoding="utf-8") as stream:
        for line in format_report(results, include_detail):
            stream.write(f"{line}\n")


def run_analysis(settings: FileAnalysisSettings) -> BatchReport:
    """Fingerprint every file under ``settings.input_path`` and write the grouped report."""
    output_dir = settings.output_path.resolve()
    files = [p for p in iter_input_files(settings.input_path) if output_dir not in p.resolve().parents]
    settings.output_path.mkdir(parents=True, exist_ok=True)

    scratch = ScratchBuffer(settings.max_peek_size)
    report = BatchReport()
    for path in files:
        if settings.skip_analysis_if_schema_dump_exists and settings.get_output_path(path).exists():
            report.outcomes.append(AnalysisOutcome(path, AnalysisStatus.SKIPPED, reason="schema dump exists"))
            continue
        report.outcomes.append(try_analyze_file(settings, path, scratch))

    report.report_path = settings.results_path
    export_results(report.results, report.report_path, settings.dump_individual_schema_analysis)
    logger.info(
        "Analyzed %d file(s), skipped %d, failed %d",
        report.count(AnalysisStatus.ANALYZED),
        report.count(AnalysisStatus.SKIPPED),
        report.count(AnalysisStatus.FAILED),
    )
    return report
