"""repolens: repository analysis for standards, bugs, refactorings and duplication."""

__version__ = "0.1.0"
