"""Detector set: one interface, four variants, two strategies."""

from repolens.detectors.base import DetectionContext, DetectionStrategy, Detector
from repolens.detectors.bug_detector import BugDetector
from repolens.detectors.duplication_detector import DuplicationDetector
from repolens.detectors.refactoring_detector import RefactoringDetector
from repolens.detectors.violation_detector import ViolationDetector

__all__ = [
    "BugDetector",
    "DetectionContext",
    "DetectionStrategy",
    "Detector",
    "DuplicationDetector",
    "RefactoringDetector",
    "ViolationDetector",
]
