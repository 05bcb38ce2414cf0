"""Base analyzer interfaces for the heuristic detection strategy."""

from dataclasses import dataclass, field
from typing import Any

from repolens.models import Severity, SourceFile, Standard


@dataclass
class AnalyzerContext:
    """Shared context for analyzers."""

    files: list[SourceFile]
    standards: list[Standard] = field(default_factory=list)


@dataclass
class FindingMatch:
    """Finding match emitted by analyzers."""

    rule_id: str
    category: str
    title: str
    description: str
    severity: Severity
    remediation: str
    tags: list[str] = field(default_factory=list)
    file_path: str = ""
    start_line: int = 1
    end_line: int = 1
    snippet: str = ""
    details: dict[str, Any] = field(default_factory=dict)


class Analyzer:
    """Base class for analyzers."""

    name: str = "base"

    def analyze(self, context: AnalyzerContext) -> list[Any]:
        raise NotImplementedError
