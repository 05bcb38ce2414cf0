"""Coding standard violations with deterministic pattern checks."""

import re

from repolens.analyzers.base import Analyzer, AnalyzerContext, FindingMatch
from repolens.analyzers.patterns import PatternRule, match_patterns
from repolens.models import Severity, Standard, ViolationType

_PUBLIC_TYPE_RE = re.compile(
    r"^\s*(?:export\s+)?public\s+(?:(?:abstract|sealed|static|partial)\s+)*(?:class|interface)\s+(\w+)"
)
_DOC_MARKERS = ("///", "/**", "*", "*/", "'''")
_ATTRIBUTE_MARKERS = ("[", "@")

RULES = [
    PatternRule(
        rule_id="VIO-NAMING",
        category=ViolationType.NAMING_CONVENTION.value,
        title="Naming Convention",
        description="Identifier uses snake_case where the codebase declares camelCase/PascalCase members.",
        severity=Severity.MEDIUM,
        remediation="Rename the identifier to camelCase (locals) or PascalCase (members).",
        pattern=r"\b(?:var|let|const|public|private|protected)\s+(?:[\w<>\[\],?]+\s+)?[a-z][a-z0-9]*_[a-z0-9_]+\b",
        flags=0,
        tags=["naming"],
    ),
    PatternRule(
        rule_id="VIO-TRY-NO-CATCH",
        category=ViolationType.ERROR_HANDLING.value,
        title="Missing Error Handling",
        description="A try block has no catch clause, so exceptions propagate unhandled.",
        severity=Severity.HIGH,
        remediation="Add a catch block that logs and handles the expected exceptions.",
        pattern=r"\btry\s*\{",
        flags=0,
        unless=r"\bcatch\b",
        tags=["error-handling"],
    ),
    PatternRule(
        rule_id="VIO-ASYNC-NO-TRY",
        category=ViolationType.ERROR_HANDLING.value,
        title="Missing Error Handling",
        description="Asynchronous code awaits operations without any try/catch protection.",
        severity=Severity.MEDIUM,
        remediation="Wrap awaited calls in try/catch and surface failures to the caller.",
        pattern=r"\bawait\b",
        flags=0,
        requires=r"\basync\b",
        unless=r"\btry\b",
        max_matches=1,
        tags=["error-handling", "async"],
    ),
    PatternRule(
        rule_id="VIO-HARDCODED-SECRET",
        category=ViolationType.SECURITY.value,
        title="Hardcoded Credentials",
        description="A password literal is embedded in source code.",
        severity=Severity.CRITICAL,
        remediation="Load credentials from configuration or a secret store.",
        pattern=r"[\"'][^\"'\n]*password[^\"'\n]*[\"']",
        tags=["security", "secrets"],
    ),
    PatternRule(
        rule_id="VIO-HARDCODED-HOST",
        category=ViolationType.BEST_PRACTICE.value,
        title="Hardcoded Configuration",
        description="A localhost address is hardcoded instead of read from configuration.",
        severity=Severity.MEDIUM,
        remediation="Move environment-specific endpoints to configuration.",
        pattern=r"[\"'](?:https?://)?localhost(?::\d+)?[^\"'\n]*[\"']",
        tags=["configuration"],
    ),
    PatternRule(
        rule_id="VIO-CONCAT-IN-LOOP",
        category=ViolationType.PERFORMANCE.value,
        title="String Concatenation In Loop",
        description="Strings are concatenated repeatedly inside a loop, allocating a new string each iteration.",
        severity=Severity.MEDIUM,
        remediation="Collect the parts and join them once, or use a StringBuilder.",
        pattern=r"\b(?:for|foreach|while)\s*\(.*\n(?:.*\n){0,5}?.*\b\w+\s*\+=\s*[$@]?[\"']",
        flags=0,
        tags=["performance"],
    ),
]


class ViolationAnalyzer(Analyzer):
    name = "violations"

    def analyze(self, context: AnalyzerContext) -> list[FindingMatch]:
        findings: list[FindingMatch] = []
        for source in context.files:
            matches = match_patterns(source.file_path, source.content, RULES)
            matches.extend(self._undocumented_types(source.file_path, source.content))
            for match in matches:
                match.title = rule_name_for(match.category, match.title, context.standards)
            findings.extend(matches)
        findings.sort(key=lambda m: (m.file_path, m.start_line, m.rule_id))
        return findings

    def _undocumented_types(self, file_path: str, content: str) -> list[FindingMatch]:
        findings = []
        lines = content.split("\n")
        for idx, line in enumerate(lines):
            match = _PUBLIC_TYPE_RE.match(line)
            if not match:
                continue
            prev_idx = idx - 1
            while prev_idx >= 0 and lines[prev_idx].strip().startswith(_ATTRIBUTE_MARKERS):
                prev_idx -= 1
            previous = lines[prev_idx].strip() if prev_idx >= 0 else ""
            if previous.startswith(_DOC_MARKERS):
                continue
            findings.append(
                FindingMatch(
                    rule_id="VIO-MISSING-DOCS",
                    category=ViolationType.DOCUMENTATION.value,
                    title="Missing Documentation",
                    description=f"Public type '{match.group(1)}' has no documentation comment.",
                    severity=Severity.LOW,
                    remediation="Add a summary doc comment describing the type's responsibility.",
                    tags=["documentation"],
                    file_path=file_path,
                    start_line=idx + 1,
                    end_line=idx + 1,
                    snippet=line,
                )
            )
        return findings


def rule_name_for(category: str, default: str, standards: list[Standard]) -> str:
    """Name the rule after a matching standard when one exists."""
    keyword = _CATEGORY_KEYWORDS.get(category)
    if not keyword:
        return default
    for standard in standards:
        haystack = f"{standard.name} {standard.category}".lower()
        if keyword in haystack:
            return standard.name
    return default


_CATEGORY_KEYWORDS = {
    ViolationType.NAMING_CONVENTION.value: "naming",
    ViolationType.ERROR_HANDLING.value: "error",
    ViolationType.SECURITY.value: "security",
    ViolationType.DOCUMENTATION.value: "documentation",
    ViolationType.PERFORMANCE.value: "performance",
}
