"""Fixtures for batch analysis runs over a directory of files."""

from pathlib import Path

import pytest

from flat_crawler.config import FileAnalysisSettings
from tests.conftest import build_record, build_sample_layout


@pytest.fixture
def corpus(tmp_path: Path) -> Path:
    """Two records sharing a schema, one with a differing field, and a nested sample."""
    root = tmp_path / "corpus"
    (root / "nested").mkdir(parents=True)
    (root / "a.bin").write_bytes(build_record(100, "orc"))
    (root / "b.bin").write_bytes(build_record(250, "goblin"))
    (root / "c.bin").write_bytes(build_record(100, None, name_as_scalar=True))
    (root / "nested" / "sample.bin").write_bytes(build_sample_layout().data)
    return root


@pytest.fixture
def settings(corpus: Path, tmp_path: Path) -> FileAnalysisSettings:
    return FileAnalysisSettings(input_path=corpus, output_path=tmp_path / "analysis")
