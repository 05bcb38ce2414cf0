"""Domain models."""

from repolens.models.enums import DuplicationType, FileType, Severity, ViolationType
from repolens.models.standard import Standard
from repolens.models.source_file import Repository, SourceFile
from repolens.models.findings import (
    Bug,
    CodeDuplication,
    DuplicationLocation,
    Refactoring,
    Violation,
)
from repolens.models.report import AnalysisReport, ProjectSummary

__all__ = [
    "AnalysisReport",
    "Bug",
    "CodeDuplication",
    "DuplicationLocation",
    "DuplicationType",
    "FileType",
    "ProjectSummary",
    "Refactoring",
    "Repository",
    "Severity",
    "SourceFile",
    "Standard",
    "Violation",
    "ViolationType",
]
