"""Pattern-based analyzer helpers."""

from dataclasses import dataclass, field
import re
from typing import Any, Iterable, Optional

from repolens.analyzers.base import FindingMatch
from repolens.models import Severity

COMMENT_PREFIXES = ("//", "#", "/*", "*", "--", "'")


@dataclass
class PatternRule:
    rule_id: str
    category: str
    title: str
    description: str
    severity: Severity
    remediation: str
    pattern: str
    flags: int = re.IGNORECASE
    tags: list[str] = field(default_factory=list)
    details: dict[str, Any] = field(default_factory=dict)
    # File must contain `requires` and must not contain `unless`
    requires: Optional[str] = None
    unless: Optional[str] = None
    # Skip matches on lines containing this pattern
    line_unless: Optional[str] = None
    max_matches: Optional[int] = None

    def applies_to(self, content: str) -> bool:
        if self.requires and not re.search(self.requires, content, self.flags):
            return False
        if self.unless and re.search(self.unless, content, self.flags):
            return False
        return True


def _line_for_offset(content: str, offset: int) -> int:
    return content.count("\n", 0, offset) + 1


def _line_at(content: str, line_number: int) -> str:
    lines = content.split("\n")
    if 1 <= line_number <= len(lines):
        return lines[line_number - 1]
    return ""


def snippet_for_lines(content: str, start_line: int, end_line: int, max_lines: int = 6) -> str:
    lines = content.split("\n")
    start_idx = max(0, start_line - 1)
    end_idx = min(len(lines), end_line)
    snippet_lines = lines[start_idx:end_idx]
    if len(snippet_lines) > max_lines:
        snippet_lines = snippet_lines[:max_lines]
    return "\n".join(snippet_lines)


def is_comment(line: str) -> bool:
    return line.strip().startswith(COMMENT_PREFIXES)


_WHITESPACE_RE = re.compile(r"\s+")
_BRACES_ONLY_RE = re.compile(r"^[{}()\[\];,]*$")
_IMPORT_RE = re.compile(r"^(?:using|import|from|#include|require|package|namespace)\b")


def normalize_code_line(line: str) -> str:
    return _WHITESPACE_RE.sub(" ", line.strip())


def significant_lines(content: str) -> list[tuple[int, str]]:
    """(1-based line number, normalized text) for lines carrying code.

    Blank lines, comments, import statements and lines holding only
    braces or punctuation are dropped.
    """
    result = []
    for idx, line in enumerate(content.split("\n")):
        text = normalize_code_line(line)
        if not text or is_comment(text) or _BRACES_ONLY_RE.match(text) or _IMPORT_RE.match(text):
            continue
        result.append((idx + 1, text))
    return result


def match_patterns(
    file_path: str,
    content: str,
    rules: Iterable[PatternRule],
) -> list[FindingMatch]:
    matches: list[FindingMatch] = []
    for rule in rules:
        if not rule.applies_to(content):
            continue
        count = 0
        for match in re.finditer(rule.pattern, content, rule.flags):
            start_line = _line_for_offset(content, match.start())
            end_line = _line_for_offset(content, max(match.start(), match.end() - 1))
            line_text = _line_at(content, start_line)
            if is_comment(line_text):
                continue
            if rule.line_unless and re.search(rule.line_unless, line_text, rule.flags):
                continue
            matches.append(
                FindingMatch(
                    rule_id=rule.rule_id,
                    category=rule.category,
                    title=rule.title,
                    description=rule.description,
                    severity=rule.severity,
                    remediation=rule.remediation,
                    tags=rule.tags,
                    file_path=file_path,
                    start_line=start_line,
                    end_line=end_line,
                    details=dict(rule.details),
                )
            )
            count += 1
            if rule.max_matches is not None and count >= rule.max_matches:
                break
    return matches
