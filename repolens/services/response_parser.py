"""Defensive parsing of model replies into typed findings.

Nothing in here raises on bad input. A reply that cannot be understood
yields an empty list and a log line.
"""

import json
import logging
import re
from typing import Any, TypeVar

from pydantic import ValidationError

from repolens.models import (
    Bug,
    CodeDuplication,
    DuplicationLocation,
    DuplicationType,
    ProjectSummary,
    Refactoring,
    Severity,
    Standard,
    Violation,
    ViolationType,
)
from repolens.schemas.llm import (
    BugDto,
    DuplicationDto,
    LLMResponseDTO,
    ProjectSummaryDto,
    RefactoringDto,
    StandardDto,
    ViolationDto,
    squash_key,
)

logger = logging.getLogger(__name__)

DtoT = TypeVar("DtoT", bound=LLMResponseDTO)

_OPEN_FENCE_RE = re.compile(r"^```[A-Za-z0-9_-]*[ \t]*\n?")
_ARRAY_RE = re.compile(r"\[[\s\S]*\]")
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")

_SEVERITIES = {squash_key(s.value): s for s in Severity}
_VIOLATION_TYPES = {squash_key(t.value): t for t in ViolationType}
_DUPLICATION_TYPES = {squash_key(t.value): t for t in DuplicationType}


def strip_code_fence(text: str) -> str:
    """Remove a leading ```json / ``` fence and a trailing ``` fence."""
    cleaned = text.strip()
    cleaned = _OPEN_FENCE_RE.sub("", cleaned, count=1)
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def parse_severity(value: str | None) -> Severity:
    return _SEVERITIES.get(squash_key(value or ""), Severity.LOW)


def parse_violation_type(value: str | None) -> ViolationType:
    return _VIOLATION_TYPES.get(squash_key(value or ""), ViolationType.BEST_PRACTICE)


def parse_duplication_type(value: str | None) -> DuplicationType:
    return _DUPLICATION_TYPES.get(squash_key(value or ""), DuplicationType.PARTIAL_MATCH)


class ResponseParser:
    """Turns raw model text into DTOs and domain findings."""

    def parse(self, raw_text: str | None, dto_cls: type[DtoT]) -> list[DtoT]:
        """Parse a reply into a list of ``dto_cls`` instances.

        Accepts a JSON array, an object wrapping the array under any key,
        or a single object. Items that fail validation are skipped.
        """
        if not raw_text or not raw_text.strip():
            return []

        try:
            payload = self._load_json(raw_text)
            if payload is None:
                logger.warning(f"Model reply is not JSON, skipping ({len(raw_text)} chars)")
                return []

            results: list[DtoT] = []
            for item in self._as_items(payload):
                if not isinstance(item, dict):
                    continue
                try:
                    dto = dto_cls.model_validate(item)
                except ValidationError as e:
                    logger.debug(f"Skipping invalid {dto_cls.__name__} item: {e}")
                    continue
                if not dto.is_empty():
                    results.append(dto)
            return results
        except Exception as e:
            logger.warning(f"Failed to parse model reply as {dto_cls.__name__}: {e}")
            return []

    def _load_json(self, raw_text: str) -> Any:
        cleaned = strip_code_fence(raw_text)
        try:
            return json.loads(cleaned)
        except (json.JSONDecodeError, ValueError):
            pass

        # Salvage JSON embedded in prose
        for pattern in (_ARRAY_RE, _OBJECT_RE):
            match = pattern.search(cleaned)
            if not match:
                continue
            try:
                return json.loads(match.group())
            except (json.JSONDecodeError, ValueError):
                continue
        return None

    def _as_items(self, payload: Any) -> list[Any]:
        if isinstance(payload, list):
            return payload
        if isinstance(payload, dict):
            for value in payload.values():
                if isinstance(value, list) and any(isinstance(v, dict) for v in value):
                    return value
            return [payload]
        return []

    # Typed conveniences

    def parse_violations(self, raw_text: str | None) -> list[Violation]:
        return [to_violation(dto) for dto in self.parse(raw_text, ViolationDto)]

    def parse_bugs(self, raw_text: str | None) -> list[Bug]:
        return [to_bug(dto) for dto in self.parse(raw_text, BugDto)]

    def parse_refactorings(self, raw_text: str | None) -> list[Refactoring]:
        return [to_refactoring(dto) for dto in self.parse(raw_text, RefactoringDto)]

    def parse_duplications(self, raw_text: str | None) -> list[CodeDuplication]:
        duplications = []
        for dto in self.parse(raw_text, DuplicationDto):
            duplication = to_duplication(dto)
            if duplication.locations:
                duplications.append(duplication)
        return duplications

    def parse_standards(self, raw_text: str | None, source_file: str = "") -> list[Standard]:
        return [
            to_standard(dto, source_file=source_file)
            for dto in self.parse(raw_text, StandardDto)
            if dto.name
        ]

    def parse_project_summary(self, raw_text: str | None) -> ProjectSummary | None:
        dtos = self.parse(raw_text, ProjectSummaryDto)
        if not dtos:
            return None
        return to_project_summary(dtos[0])


def to_violation(dto: ViolationDto) -> Violation:
    return Violation(
        file_path=_clean_path(dto.file_path),
        line_number=dto.line_number or 1,
        end_line_number=dto.end_line_number,
        rule_name=dto.rule_name or "Unknown Rule",
        description=dto.description or "",
        type=parse_violation_type(dto.type),
        severity=parse_severity(dto.severity),
        code_snippet=dto.code_snippet or "",
        suggested_fix=dto.suggested_fix or "",
    )


def to_bug(dto: BugDto) -> Bug:
    return Bug(
        file_path=_clean_path(dto.file_path),
        line_number=dto.line_number or 1,
        end_line_number=dto.end_line_number,
        title=dto.title or "Untitled Bug",
        description=dto.description or "",
        root_cause=dto.root_cause or "",
        impact=dto.impact or "",
        severity=parse_severity(dto.severity),
        code_snippet=dto.code_snippet or "",
        reproduction_steps=dto.reproduction_steps,
        suggested_fix=dto.suggested_fix or "",
    )


def to_refactoring(dto: RefactoringDto) -> Refactoring:
    return Refactoring(
        file_path=_clean_path(dto.file_path),
        line_number=dto.line_number or 1,
        end_line_number=dto.end_line_number,
        refactoring_type=dto.refactoring_type or "General",
        title=dto.title or "Refactoring Opportunity",
        description=dto.description or "",
        current_code=dto.current_code or "",
        suggested_code=dto.suggested_code or "",
        reason=dto.reason or "",
        benefits=dto.benefits or "",
        priority=parse_severity(dto.priority),
        improvement_areas=dto.improvement_areas,
    )


def to_duplication(dto: DuplicationDto) -> CodeDuplication:
    locations = [
        DuplicationLocation(
            file_path=_clean_path(loc.file_path),
            start_line=loc.start_line or 1,
            end_line=loc.end_line,
            method_name=loc.method_name or "",
            class_name=loc.class_name or "",
        )
        for loc in dto.locations
        if loc.file_path
    ]
    similarity = min(100.0, max(0.0, dto.similarity_percentage or 0.0))
    return CodeDuplication(
        duplicated_code=dto.duplicated_code or "",
        locations=locations,
        type=parse_duplication_type(dto.type),
        line_count=max(0, dto.line_count or 0),
        similarity_percentage=similarity,
        description=dto.description or "",
        suggestion=dto.suggestion or "",
        impact=parse_severity(dto.impact),
        refactoring_options=dto.refactoring_options,
        estimated_effort=dto.estimated_effort or "",
    )


def to_standard(dto: StandardDto, source_file: str = "") -> Standard:
    return Standard(
        name=dto.name or "Unnamed Standard",
        description=dto.description or "",
        category=dto.category or "General",
        tech_stack=dto.tech_stack or "General",
        priority=parse_severity(dto.priority).value if dto.priority else "Medium",
        is_from_existing_docs=bool(source_file),
        source_file=source_file,
        examples=dto.examples,
        tags=dto.tags,
    )


def to_project_summary(dto: ProjectSummaryDto) -> ProjectSummary:
    return ProjectSummary(
        project_name=dto.project_name or "",
        description=dto.description or "",
        technology_stack=dto.technology_stack or "",
        architecture=dto.architecture or "",
        business_logic=dto.business_logic or "",
        core_functionality=dto.core_functionality or "",
        key_features=dto.key_features,
        main_components=dto.main_components,
        primary_language=dto.primary_language or "",
        dependencies=dto.dependencies,
    )


def _clean_path(path: str | None) -> str:
    return (path or "").strip().replace("\\", "/")
