"""Derive a minimal but complete code excerpt around a reported line.

A bounded two-pointer scan instead of a parser, so it tolerates brace
languages and indentation languages alike.
"""

import re
from dataclasses import dataclass

SINGLE_LINE_PREFIXES = ("var ", "let ", "const ", "return ", "throw ", "break", "continue")

_ASSIGNMENT_RE = re.compile(r"^[A-Za-z_$][\w$.\[\]'\"]*\s*(?:[-+*/%|&^]|\?\?|<<|>>)?=(?!=)")
_DECLARATION_RE = re.compile(
    r"^(?:public|private|protected|internal|static|async|export|function|def|class|"
    r"interface|struct|enum|fn|func|sub)\b",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class Snippet:
    """Extracted code with its 1-based inclusive line range."""

    code: str
    start_line: int
    end_line: int


def is_declaration(line: str) -> bool:
    return bool(_DECLARATION_RE.match(line.strip()))


class SnippetExtractor:
    """Pure, deterministic snippet extraction."""

    def __init__(
        self,
        max_lookback: int = 50,
        max_lookahead: int = 50,
        context_lines: int = 2,
        max_single_line_length: int = 120,
    ) -> None:
        self.max_lookback = max_lookback
        self.max_lookahead = max_lookahead
        self.context_lines = context_lines
        self.max_single_line_length = max_single_line_length

    def extract(self, lines: list[str], line_number: int) -> Snippet:
        """Return the snippet around ``line_number`` (1-based, clamped into range)."""
        if not lines:
            return Snippet(code="", start_line=1, end_line=1)

        line_number = min(max(1, line_number), len(lines))
        idx = line_number - 1

        if self.is_single_line_change(lines[idx]):
            return Snippet(code=lines[idx], start_line=line_number, end_line=line_number)

        start = self._scan_backward(lines, idx)
        if start is not None:
            end = self._scan_forward(lines, start, idx)
            if end is not None:
                return self._slice(lines, start, end)

        return self._slice(
            lines,
            max(0, idx - self.context_lines),
            min(len(lines) - 1, idx + self.context_lines),
        )

    def is_single_line_change(self, line: str) -> bool:
        stripped = line.strip()
        if not stripped or len(stripped) > self.max_single_line_length:
            return False
        if "{" in stripped or "}" in stripped:
            return False
        return (
            stripped.startswith(SINGLE_LINE_PREFIXES)
            or stripped.endswith(";")
            or bool(_ASSIGNMENT_RE.match(stripped))
        )

    def _scan_backward(self, lines: list[str], idx: int) -> int | None:
        """Nearest enclosing declaration or unmatched ``{`` at or above ``idx``."""
        lower = max(0, idx - self.max_lookback)
        pending_closes = 0
        for i in range(idx, lower - 1, -1):
            text = lines[i]
            if pending_closes == 0 and is_declaration(text):
                return i
            if i == idx:
                continue
            pending_closes += text.count("}") - text.count("{")
            if pending_closes < 0:
                # Brace on its own line belongs to the declaration above it
                if text.strip() == "{" and i > lower and is_declaration(lines[i - 1]):
                    return i - 1
                return i
        return None

    def _scan_forward(self, lines: list[str], start: int, idx: int) -> int | None:
        """End of the block opened at ``start``; must reach past ``idx``."""
        last = len(lines) - 1
        upper = min(last, idx + self.max_lookahead)
        depth = 0
        opened = False
        for i in range(start, upper + 1):
            text = lines[i]
            if i > idx and depth <= 0 and is_declaration(text):
                return i - 1
            depth += text.count("{") - text.count("}")
            if "{" in text:
                opened = True
            if opened and depth <= 0:
                return i if i >= idx else None
        # Brace-free block running to end of file
        if upper == last and not opened:
            return last
        return None

    @staticmethod
    def _slice(lines: list[str], start: int, end: int) -> Snippet:
        return Snippet(
            code="\n".join(lines[start : end + 1]),
            start_line=start + 1,
            end_line=end + 1,
        )
