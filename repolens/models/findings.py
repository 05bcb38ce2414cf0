"""Finding models: violations, bugs, refactorings and duplications.

Findings are created once by a detector and never mutated afterwards.
All line ranges satisfy ``end >= start >= 1``.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import Field, model_validator

from repolens.models.base import DomainModel, new_id, normalize_line_range, utcnow
from repolens.models.enums import DuplicationType, Severity, ViolationType


class _LineRangeFinding(DomainModel):
    """Common fields of single-location findings."""

    id: str = Field(default_factory=new_id)
    file_path: str = ""
    line_number: int = 1
    end_line_number: int = 1
    description: str = ""
    code_snippet: str = ""
    suggested_fix: str = ""

    @model_validator(mode="before")
    @classmethod
    def _fix_line_range(cls, data: Any) -> Any:
        return normalize_line_range(data, "line_number", "end_line_number")

    @property
    def start_line(self) -> int:
        return self.line_number

    @property
    def end_line(self) -> int:
        return self.end_line_number


class Violation(_LineRangeFinding):
    """A coding standard violation."""

    kind: Literal["violation"] = "violation"
    rule_name: str = "Unknown Rule"
    type: ViolationType = ViolationType.BEST_PRACTICE
    severity: Severity = Severity.LOW


class Bug(_LineRangeFinding):
    """A detected bug or logical issue."""

    kind: Literal["bug"] = "bug"
    title: str = "Untitled Bug"
    root_cause: str = ""
    impact: str = ""
    severity: Severity = Severity.LOW
    reproduction_steps: list[str] = Field(default_factory=list)


class Refactoring(_LineRangeFinding):
    """A refactoring suggestion."""

    kind: Literal["refactoring"] = "refactoring"
    refactoring_type: str = ""
    title: str = ""
    current_code: str = ""
    suggested_code: str = ""
    reason: str = ""
    benefits: str = ""
    priority: Severity = Severity.LOW
    improvement_areas: list[str] = Field(default_factory=list)


class DuplicationLocation(DomainModel):
    """One place where duplicated code exists."""

    file_path: str
    start_line: int = 1
    end_line: int = 1
    method_name: str = ""
    class_name: str = ""

    @model_validator(mode="before")
    @classmethod
    def _fix_line_range(cls, data: Any) -> Any:
        return normalize_line_range(data, "start_line", "end_line")


class CodeDuplication(DomainModel):
    """A group of locations sharing duplicated code."""

    id: str = Field(default_factory=new_id)
    kind: Literal["duplication"] = "duplication"
    duplicated_code: str = ""
    locations: list[DuplicationLocation] = Field(default_factory=list)
    type: DuplicationType = DuplicationType.PARTIAL_MATCH
    line_count: int = 0
    similarity_percentage: float = 0.0
    description: str = ""
    suggestion: str = ""
    impact: Severity = Severity.LOW
    refactoring_options: list[str] = Field(default_factory=list)
    estimated_effort: str = ""
    detected_at: datetime = Field(default_factory=utcnow)

    @property
    def file_paths(self) -> list[str]:
        return [loc.file_path for loc in self.locations]

