"""Folds detector output into an AnalysisReport."""

from datetime import timedelta
from enum import Enum
from typing import Iterable

from repolens.models import (
    AnalysisReport,
    Bug,
    CodeDuplication,
    ProjectSummary,
    Refactoring,
    Repository,
    Standard,
    Violation,
)


def histogram(labels: Iterable[Enum]) -> dict[str, int]:
    """Count values by their symbolic label, in first-seen order."""
    counts: dict[str, int] = {}
    for label in labels:
        counts[label.value] = counts.get(label.value, 0) + 1
    return counts


def format_execution_time(elapsed: timedelta | float) -> str:
    """``"42s"`` under a minute, ``"3m 5s"`` under an hour, else ``"1h 2m"``."""
    seconds = elapsed.total_seconds() if isinstance(elapsed, timedelta) else float(elapsed)
    seconds = max(0.0, seconds)
    if seconds < 60:
        return f"{round(seconds)}s"
    whole = int(seconds)
    hours, remainder = divmod(whole, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours == 0:
        return f"{minutes}m {secs}s"
    return f"{hours}h {minutes}m"


def build_summary(
    violations: int,
    bugs: int,
    refactorings: int,
    duplications: int,
    standards: int,
    has_existing_standards: bool,
) -> str:
    source = "existing documentation" if has_existing_standards else "analysis of the codebase"
    return (
        "Analysis completed successfully.\n"
        f"Found {standards} coding standards from {source}.\n"
        f"Detected {violations} coding standard violations.\n"
        f"Identified {bugs} potential bugs and issues.\n"
        f"Discovered {refactorings} refactoring opportunities.\n"
        f"Found {duplications} code duplication instances.\n"
        "Review the detailed findings below for specific file locations, severity levels, "
        "and recommended fixes."
    )


class FindingAggregator:
    """Pure fold from findings to report statistics. Same inputs, same maps."""

    def aggregate(
        self,
        repository: Repository,
        violations: list[Violation],
        bugs: list[Bug],
        refactorings: list[Refactoring],
        duplications: list[CodeDuplication],
        standards: list[Standard],
        project_summary: ProjectSummary | None = None,
        execution_time: str = "",
        total_files: int | None = None,
    ) -> AnalysisReport:
        duplicated_files = {path for d in duplications for path in d.file_paths}
        return AnalysisReport(
            repository_id=repository.id,
            repository_name=repository.name,
            total_files=len(repository.files) if total_files is None else total_files,
            files_with_violations=len({v.file_path for v in violations}),
            files_with_bugs=len({b.file_path for b in bugs}),
            files_needing_refactoring=len({r.file_path for r in refactorings}),
            files_with_duplications=len(duplicated_files),
            total_violations=len(violations),
            total_bugs=len(bugs),
            total_refactorings=len(refactorings),
            total_duplications=len(duplications),
            total_duplicated_lines=total_duplicated_lines(duplications),
            execution_time=execution_time,
            violations_by_severity=histogram(v.severity for v in violations),
            bugs_by_severity=histogram(b.severity for b in bugs),
            refactorings_by_priority=histogram(r.priority for r in refactorings),
            duplications_by_impact=histogram(d.impact for d in duplications),
            violations=list(violations),
            bugs=list(bugs),
            refactorings=list(refactorings),
            duplications=list(duplications),
            standards=list(standards),
            summary=build_summary(
                len(violations),
                len(bugs),
                len(refactorings),
                len(duplications),
                len(standards),
                repository.has_existing_standards,
            ),
            project_summary=project_summary,
        )


def total_duplicated_lines(duplications: list[CodeDuplication]) -> int:
    """Lines that could be removed: every copy beyond the first counts."""
    return sum(d.line_count * max(0, len(d.locations) - 1) for d in duplications)


def most_severe(report: AnalysisReport, limit: int = 10) -> list[Violation | Bug]:
    """Violations and bugs ordered Critical first; ties keep report order."""
    findings: list[Violation | Bug] = [*report.violations, *report.bugs]
    return sorted(findings, key=lambda f: f.severity.rank, reverse=True)[:limit]
