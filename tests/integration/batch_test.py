"""End-to-end batch analysis over files on disk."""

from pathlib import Path

import pytest

from flat_crawler.batch import (
    AnalysisOutcome,
    AnalysisStatus,
    ScratchBuffer,
    format_report,
    run_analysis,
    try_analyze_file,
)
from flat_crawler.config import FileAnalysisSettings
from flat_crawler.core.fingerprint import group_results


def _by_name(report_outcomes: list[AnalysisOutcome]) -> dict[str, AnalysisStatus]:
    return {o.path.name: o.status for o in report_outcomes}


def test_same_schema_groups_together(settings: FileAnalysisSettings) -> None:
    report = run_analysis(settings)

    by_name = {r.file_name: r for r in report.results}
    assert set(by_name) == {"a.bin", "b.bin", "c.bin", "sample.bin"}
    assert by_name["a.bin"].fingerprint_hash == by_name["b.bin"].fingerprint_hash
    assert by_name["c.bin"].fingerprint_hash != by_name["a.bin"].fingerprint_hash

    grouped = group_results(report.results)
    assert list(grouped) == [3, 11]
    assert len(grouped[3]) == 2
    assert [r.file_name for r in grouped[3][by_name["a.bin"].fingerprint_hash]] == ["a.bin", "b.bin"]


def test_report_file_layout(settings: FileAnalysisSettings) -> None:
    report = run_analysis(settings)

    assert report.report_path == settings.results_path
    lines = settings.results_path.read_text().splitlines()
    assert lines[0] == "Field count: 3"
    assert lines[1].startswith("\tHash: ")
    assert any(line.startswith("\t\ta.bin (") for line in lines)
    assert any(line.startswith("\t\t\t[1] ") and "'goblin'" in line for line in lines)
    assert "Field count: 11" in lines
    assert lines[-1] == ""


def test_oversized_file_is_skipped(settings: FileAnalysisSettings, corpus: Path) -> None:
    (corpus / "big.bin").write_bytes(bytes(4096))
    small_window = settings.model_copy(update={"max_peek_size": 128})

    report = run_analysis(small_window)

    statuses = _by_name(report.outcomes)
    assert statuses["big.bin"] is AnalysisStatus.SKIPPED
    assert statuses["sample.bin"] is AnalysisStatus.SKIPPED
    assert statuses["a.bin"] is AnalysisStatus.ANALYZED
    assert "big.bin" not in settings.results_path.read_text()


def test_broken_file_does_not_stop_the_run(settings: FileAnalysisSettings, corpus: Path) -> None:
    (corpus / "garbage.bin").write_bytes(b"\xff" * 64)
    (corpus / "tiny.bin").write_bytes(b"\x04\x00\x00\x00")

    report = run_analysis(settings)

    statuses = _by_name(report.outcomes)
    assert statuses["garbage.bin"] is AnalysisStatus.FAILED
    assert statuses["tiny.bin"] is AnalysisStatus.SKIPPED
    assert report.count(AnalysisStatus.ANALYZED) == 4
    text = settings.results_path.read_text()
    assert "garbage.bin" not in text
    assert "tiny.bin" not in text


def test_schema_dumps(settings: FileAnalysisSettings) -> None:
    run_analysis(settings)

    dump = settings.output_path / "a.bin.schema.txt"
    assert dump.read_text().splitlines()[1].startswith("[1] ")
    assert (settings.output_path / "nested__sample.bin.schema.txt").exists()


def test_no_detail_writes_no_dumps(settings: FileAnalysisSettings) -> None:
    quiet = settings.model_copy(update={"dump_individual_schema_analysis": False})

    report = run_analysis(quiet)

    assert sorted(p.name for p in quiet.output_path.iterdir()) == ["results.txt"]
    assert all(r.field_summaries == () for r in report.results)
    assert "\t\t\t" not in quiet.results_path.read_text()


def test_skip_existing_dumps(settings: FileAnalysisSettings) -> None:
    settings.output_path.mkdir(parents=True)
    settings.get_output_path(settings.input_path / "a.bin").write_text("old\n")
    resume = settings.model_copy(update={"skip_analysis_if_schema_dump_exists": True})

    report = run_analysis(resume)

    statuses = _by_name(report.outcomes)
    assert statuses["a.bin"] is AnalysisStatus.SKIPPED
    assert statuses["b.bin"] is AnalysisStatus.ANALYZED
    assert resume.get_output_path(resume.input_path / "a.bin").read_text() == "old\n"


def test_output_inside_input_is_not_scanned(corpus: Path) -> None:
    settings = FileAnalysisSettings(input_path=corpus, output_path=corpus / "FlatAnalysis")
    run_analysis(settings)

    report = run_analysis(settings)

    assert {o.path.name for o in report.outcomes} == {"a.bin", "b.bin", "c.bin", "sample.bin"}


def test_missing_input_directory(tmp_path: Path) -> None:
    settings = FileAnalysisSettings(input_path=tmp_path / "missing", output_path=tmp_path / "out")
    with pytest.raises(FileNotFoundError):
        run_analysis(settings)


def test_scratch_buffer_is_reused(settings: FileAnalysisSettings, corpus: Path) -> None:
    settings.output_path.mkdir(parents=True)
    scratch = ScratchBuffer(settings.max_peek_size)
    first = try_analyze_file(settings, corpus / "a.bin", scratch)
    second = try_analyze_file(settings, corpus / "b.bin", scratch)

    assert first.result is not None and second.result is not None
    assert first.result.fingerprint_hash == second.result.fingerprint_hash
    assert "'orc'" in first.result.field_summaries[1]


def test_format_report_without_detail(settings: FileAnalysisSettings) -> None:
    report = run_analysis(settings)
    lines = format_report(report.results, include_detail=False)
    assert not any(line.startswith("\t\t\t") for line in lines)
