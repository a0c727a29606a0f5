from pydantic import BaseModel, ConfigDict


class FileAnalysisResult(BaseModel):
    """Structural fingerprint of one analyzed file."""

    model_config = ConfigDict(frozen=True)

    field_count: int
    fingerprint_hash: int
    file_name: str
    full_path: str
    field_summaries: tuple[str, ...] = ()

    def __str__(self) -> str:
        return f"{self.file_name} ({self.full_path})"
