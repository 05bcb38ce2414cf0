"""Analyzer registry."""

from repolens.analyzers.base import Analyzer, AnalyzerContext, FindingMatch
from repolens.analyzers.bug_analyzer import BugAnalyzer
from repolens.analyzers.duplication_analyzer import DuplicationAnalyzer
from repolens.analyzers.refactoring_analyzer import RefactoringAnalyzer
from repolens.analyzers.violation_analyzer import ViolationAnalyzer

__all__ = [
    "Analyzer",
    "AnalyzerContext",
    "FindingMatch",
    "BugAnalyzer",
    "DuplicationAnalyzer",
    "RefactoringAnalyzer",
    "ViolationAnalyzer",
]
