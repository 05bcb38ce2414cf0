"""Lenient DTOs for model replies.

Model output is untrusted: keys may arrive as camelCase, PascalCase or
snake_case, numbers as strings, lists as newline-separated text. These
schemas coerce what they can and leave the rest as ``None``.
"""

import json
import re
from typing import Annotated, Any, ClassVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator

_INT_RE = re.compile(r"-?\d+")
_FLOAT_RE = re.compile(r"-?\d+(?:\.\d+)?")


def _to_str(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return "\n".join(str(v) for v in value if v is not None)
    if isinstance(value, dict):
        return json.dumps(value)
    return str(value)


def _to_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        match = _INT_RE.search(value)
        return int(match.group()) if match else None
    return None


def _to_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        match = _FLOAT_RE.search(value)
        return float(match.group()) if match else None
    return None


def _to_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [line.strip() for line in value.splitlines() if line.strip()]
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v is not None]
    return [str(value)]


LenientStr = Annotated[str | None, BeforeValidator(_to_str)]
LenientInt = Annotated[int | None, BeforeValidator(_to_int)]
LenientFloat = Annotated[float | None, BeforeValidator(_to_float)]
LenientStrList = Annotated[list[str], BeforeValidator(_to_str_list)]


def squash_key(key: str) -> str:
    """Collapse a key to lowercase alphanumerics: filePath, FilePath, file_path -> filepath."""
    return re.sub(r"[^a-z0-9]", "", str(key).lower())


class LLMResponseDTO(BaseModel):
    """Base DTO: case- and separator-insensitive keys, unknown keys ignored."""

    model_config = ConfigDict(extra="ignore")

    # Extra spellings models commonly use, keyed by squashed form
    key_synonyms: ClassVar[dict[str, str]] = {}

    @model_validator(mode="before")
    @classmethod
    def _normalize_keys(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        lookup = {squash_key(name): name for name in cls.model_fields}
        lookup.update(cls.key_synonyms)
        normalized: dict[str, Any] = {}
        for key, value in data.items():
            field_name = lookup.get(squash_key(key))
            if field_name and field_name not in normalized:
                normalized[field_name] = value
        return normalized

    def is_empty(self) -> bool:
        """True when the model supplied nothing usable."""
        return all(v in (None, "", [], {}) for v in self.model_dump().values())


_LOCATION_SYNONYMS = {
    "file": "file_path",
    "path": "file_path",
    "filename": "file_path",
    "line": "line_number",
    "startline": "line_number",
    "startlinenumber": "line_number",
    "endline": "end_line_number",
}


class ViolationDto(LLMResponseDTO):
    key_synonyms: ClassVar[dict[str, str]] = {
        **_LOCATION_SYNONYMS,
        "rule": "rule_name",
        "violationtype": "type",
        "snippet": "code_snippet",
        "code": "code_snippet",
        "fix": "suggested_fix",
    }

    file_path: LenientStr = None
    line_number: LenientInt = None
    end_line_number: LenientInt = None
    rule_name: LenientStr = None
    description: LenientStr = None
    type: LenientStr = None
    severity: LenientStr = None
    code_snippet: LenientStr = None
    suggested_fix: LenientStr = None


class BugDto(LLMResponseDTO):
    key_synonyms: ClassVar[dict[str, str]] = {
        **_LOCATION_SYNONYMS,
        "snippet": "code_snippet",
        "code": "code_snippet",
        "fix": "suggested_fix",
        "steps": "reproduction_steps",
        "stepstoreproduce": "reproduction_steps",
    }

    file_path: LenientStr = None
    line_number: LenientInt = None
    end_line_number: LenientInt = None
    title: LenientStr = None
    description: LenientStr = None
    root_cause: LenientStr = None
    impact: LenientStr = None
    severity: LenientStr = None
    code_snippet: LenientStr = None
    suggested_fix: LenientStr = None
    reproduction_steps: LenientStrList = Field(default_factory=list)


class RefactoringDto(LLMResponseDTO):
    key_synonyms: ClassVar[dict[str, str]] = {
        **_LOCATION_SYNONYMS,
        "type": "refactoring_type",
        "severity": "priority",
        "improvements": "improvement_areas",
    }

    file_path: LenientStr = None
    line_number: LenientInt = None
    end_line_number: LenientInt = None
    refactoring_type: LenientStr = None
    title: LenientStr = None
    description: LenientStr = None
    current_code: LenientStr = None
    suggested_code: LenientStr = None
    reason: LenientStr = None
    benefits: LenientStr = None
    priority: LenientStr = None
    improvement_areas: LenientStrList = Field(default_factory=list)


class DuplicationLocationDto(LLMResponseDTO):
    key_synonyms: ClassVar[dict[str, str]] = {
        "file": "file_path",
        "path": "file_path",
        "linenumber": "start_line",
        "startlinenumber": "start_line",
        "endlinenumber": "end_line",
        "method": "method_name",
        "class": "class_name",
    }

    file_path: LenientStr = None
    start_line: LenientInt = None
    end_line: LenientInt = None
    method_name: LenientStr = None
    class_name: LenientStr = None


class DuplicationDto(LLMResponseDTO):
    key_synonyms: ClassVar[dict[str, str]] = {
        "code": "duplicated_code",
        "duplicationtype": "type",
        "similarity": "similarity_percentage",
        "severity": "impact",
        "effort": "estimated_effort",
    }

    duplicated_code: LenientStr = None
    locations: list[DuplicationLocationDto] = Field(default_factory=list)
    type: LenientStr = None
    line_count: LenientInt = None
    similarity_percentage: LenientFloat = None
    description: LenientStr = None
    suggestion: LenientStr = None
    impact: LenientStr = None
    refactoring_options: LenientStrList = Field(default_factory=list)
    estimated_effort: LenientStr = None

    @model_validator(mode="before")
    @classmethod
    def _drop_bad_locations(cls, data: Any) -> Any:
        if isinstance(data, dict) and "locations" in data:
            locations = data["locations"]
            if not isinstance(locations, list):
                locations = []
            data = {**data, "locations": [loc for loc in locations if isinstance(loc, dict)]}
        return data


class StandardDto(LLMResponseDTO):
    key_synonyms: ClassVar[dict[str, str]] = {
        "title": "name",
        "rule": "name",
        "techstack": "tech_stack",
        "example": "examples",
    }

    name: LenientStr = None
    description: LenientStr = None
    category: LenientStr = None
    tech_stack: LenientStr = None
    priority: LenientStr = None
    examples: LenientStrList = Field(default_factory=list)
    tags: LenientStrList = Field(default_factory=list)


class ProjectSummaryDto(LLMResponseDTO):
    key_synonyms: ClassVar[dict[str, str]] = {
        "name": "project_name",
        "techstack": "technology_stack",
        "architecturepattern": "architecture",
        "language": "primary_language",
        "features": "key_features",
        "components": "main_components",
    }

    project_name: LenientStr = None
    description: LenientStr = None
    technology_stack: LenientStr = None
    architecture: LenientStr = None
    business_logic: LenientStr = None
    core_functionality: LenientStr = None
    key_features: LenientStrList = Field(default_factory=list)
    main_components: LenientStrList = Field(default_factory=list)
    primary_language: LenientStr = None
    dependencies: LenientStrList = Field(default_factory=list)
