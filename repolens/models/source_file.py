"""Source file and repository snapshot models."""

from datetime import datetime

from pydantic import Field

from repolens.models.base import DomainModel, new_id, utcnow
from repolens.models.enums import FileType
from repolens.models.standard import Standard


class SourceFile(DomainModel):
    """A loaded file. Content is kept in memory for the duration of a run."""

    id: str = Field(default_factory=new_id)
    file_path: str
    file_name: str = ""
    file_type: FileType = FileType.UNKNOWN
    content: str = ""
    line_count: int = 0
    size_in_bytes: int = 0

    @classmethod
    def from_text(
        cls,
        file_path: str,
        content: str,
        file_type: FileType = FileType.UNKNOWN,
        size_in_bytes: int | None = None,
    ) -> "SourceFile":
        """Build a SourceFile, deriving name, line count and size from the text."""
        normalized = file_path.replace("\\", "/")
        return cls(
            file_path=normalized,
            file_name=normalized.rsplit("/", 1)[-1],
            file_type=file_type,
            content=content,
            line_count=len(content.split("\n")),
            size_in_bytes=(
                size_in_bytes if size_in_bytes is not None else len(content.encode("utf-8"))
            ),
        )

    @property
    def lines(self) -> list[str]:
        return self.content.split("\n")


class Repository(DomainModel):
    """An uploaded repository snapshot."""

    id: str = Field(default_factory=new_id)
    name: str = ""
    upload_path: str = ""
    uploaded_at: datetime = Field(default_factory=utcnow)
    size_in_bytes: int = 0
    files: list[SourceFile] = Field(default_factory=list)
    has_existing_standards: bool = False
    standards: list[Standard] = Field(default_factory=list)
