from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_MAX_PEEK_SIZE = 1024 * 1024
DEFAULT_RESULTS_FILE_NAME = "results.txt"
DEFAULT_HISTORY_FILE_NAME = "lines.txt"
SCHEMA_DUMP_SUFFIX = ".schema.txt"


class FileAnalysisSettings(BaseModel):
    """Options for one batch analysis run."""

    model_config = ConfigDict(frozen=True)

    input_path: Path
    output_path: Path
    max_peek_size: int = Field(default=DEFAULT_MAX_PEEK_SIZE, gt=0)
    all_result_output_file_name: str = DEFAULT_RESULTS_FILE_NAME
    dump_individual_schema_analysis: bool = True
    skip_analysis_if_schema_dump_exists: bool = False

    @property
    def results_path(self) -> Path:
        return self.output_path / self.all_result_output_file_name

    def get_output_path(self, file: Path) -> Path:
        """Per-file schema dump location; nested inputs are flattened into one file name."""
        try:
            relative = file.relative_to(self.input_path)
        except ValueError:
            relative = Path(file.name)
        return self.output_path / ("__".join(relative.parts) + SCHEMA_DUMP_SUFFIX)
