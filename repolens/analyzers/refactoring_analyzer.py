"""Refactoring opportunities: long methods, deep nesting, magic numbers,
repeated blocks and long parameter lists.

Nesting depth is approximate for brace languages: it only decreases on
``}`` and never resets on ``else``/``switch``.
"""

import re

from repolens.analyzers.base import Analyzer, AnalyzerContext, FindingMatch
from repolens.analyzers.patterns import is_comment, significant_lines, snippet_for_lines
from repolens.models import FileType, Severity, SourceFile

_MODIFIERS = r"public|private|protected|internal|static|async|override|virtual|abstract|sealed|export|final"
_BRACE_METHOD_RE = re.compile(
    rf"^\s*(?:(?:(?:{_MODIFIERS})\s+)+[\w<>\[\],?. ]*?\b(\w+)|(?:async\s+)?function\s+(\w+))\s*\("
)
_PY_DEF_RE = re.compile(r"^(\s*)(?:async\s+)?def\s+(\w+)\s*\(")
_IF_RE = re.compile(r"\bif\s*\(")
_PY_IF_RE = re.compile(r"^(\s*)(?:if|elif)\b")
_STRING_RE = re.compile(r"\"(?:\\.|[^\"\\])*\"|'(?:\\.|[^'\\])*'")
_MAGIC_NUMBER_RE = re.compile(r"(?<![\w.])\d{2,}(?:\.\d+)?(?![\w.])")
_CONSTANT_LINE_RE = re.compile(r"\b(?:const|final|readonly|enum|#define)\b|^\s*[A-Z][A-Z0-9_]*\s*[:=]")
_GENERIC_ARGS_RE = re.compile(r"<[^<>]*>")


class RefactoringAnalyzer(Analyzer):
    name = "refactorings"

    def __init__(
        self,
        max_method_lines: int = 50,
        max_nesting: int = 3,
        max_parameter_commas: int = 4,
        max_magic_numbers_per_file: int = 3,
        window_size: int = 3,
    ) -> None:
        self.max_method_lines = max_method_lines
        self.max_nesting = max_nesting
        self.max_parameter_commas = max_parameter_commas
        self.max_magic_numbers_per_file = max_magic_numbers_per_file
        self.window_size = window_size

    def analyze(self, context: AnalyzerContext) -> list[FindingMatch]:
        findings: list[FindingMatch] = []
        for source in context.files:
            findings.extend(self._long_methods(source))
            findings.extend(self._deep_nesting(source))
            findings.extend(self._magic_numbers(source))
            findings.extend(self._repeated_blocks(source))
            findings.extend(self._long_parameter_lists(source))
        findings.sort(key=lambda m: (m.file_path, m.start_line, m.rule_id))
        return findings

    # Long methods

    def _long_methods(self, source: SourceFile) -> list[FindingMatch]:
        if source.file_type == FileType.PYTHON:
            spans = _python_method_spans(source.lines)
        else:
            spans = _brace_method_spans(source.lines)

        findings = []
        for name, start, end in spans:
            length = end - start + 1
            if length <= self.max_method_lines:
                continue
            if length > 100:
                priority = Severity.CRITICAL
            elif length > 75:
                priority = Severity.HIGH
            else:
                priority = Severity.MEDIUM
            findings.append(
                self._match(
                    source,
                    rule_id="REF-EXTRACT-METHOD",
                    refactoring_type="Extract Method",
                    title=f"Extract smaller methods from '{name}'",
                    description=f"Method '{name}' spans {length} lines, above the {self.max_method_lines}-line limit.",
                    priority=priority,
                    start_line=start,
                    end_line=end,
                    snippet=snippet_for_lines(source.content, start, end),
                    suggested_code=f"// Split '{name}' into well-named helpers, one per responsibility",
                    reason="Long methods mix responsibilities and are hard to test.",
                    benefits="Smaller units are easier to read, test and reuse.",
                    improvement_areas=["Readability", "Testability", "Maintainability"],
                )
            )
        return findings

    # Deep nesting

    def _deep_nesting(self, source: SourceFile) -> list[FindingMatch]:
        findings = []
        if source.file_type == FileType.PYTHON:
            stack: list[int] = []
            for idx, line in enumerate(source.lines):
                if not line.strip() or is_comment(line):
                    continue
                indent = len(line) - len(line.lstrip())
                while stack and indent <= stack[-1]:
                    stack.pop()
                match = _PY_IF_RE.match(line)
                if match and not line.lstrip().startswith("elif"):
                    stack.append(indent)
                    if len(stack) == self.max_nesting + 1:
                        findings.append(self._nesting_match(source, idx + 1, len(stack)))
            return findings

        nesting = 0
        for idx, line in enumerate(source.lines):
            if is_comment(line):
                continue
            nesting = max(0, nesting - line.count("}"))
            if _IF_RE.search(line):
                nesting += 1
                if nesting == self.max_nesting + 1:
                    findings.append(self._nesting_match(source, idx + 1, nesting))
        return findings

    def _nesting_match(self, source: SourceFile, line_number: int, depth: int) -> FindingMatch:
        return self._match(
            source,
            rule_id="REF-SIMPLIFY-CONDITIONAL",
            refactoring_type="Simplify Conditional",
            title="Reduce conditional nesting",
            description=f"Conditionals are nested {depth} levels deep (limit {self.max_nesting}).",
            priority=Severity.MEDIUM,
            start_line=line_number,
            end_line=line_number,
            suggested_code="// Use guard clauses / early returns to flatten the branches",
            reason="Deeply nested conditionals hide the main path through the code.",
            benefits="Flatter control flow is easier to follow and to test.",
            improvement_areas=["Readability", "Complexity"],
        )

    # Magic numbers

    def _magic_numbers(self, source: SourceFile) -> list[FindingMatch]:
        findings = []
        for idx, line in enumerate(source.lines):
            if len(findings) >= self.max_magic_numbers_per_file:
                break
            if not line.strip() or is_comment(line) or _CONSTANT_LINE_RE.search(line):
                continue
            code = _STRING_RE.sub('""', line).split("//", 1)[0]
            match = _MAGIC_NUMBER_RE.search(code)
            if not match:
                continue
            number = match.group()
            findings.append(
                self._match(
                    source,
                    rule_id="REF-MAGIC-NUMBER",
                    refactoring_type="Replace Magic Number",
                    title=f"Replace magic number {number} with a named constant",
                    description=f"The literal {number} carries meaning that is not named.",
                    priority=Severity.LOW,
                    start_line=idx + 1,
                    end_line=idx + 1,
                    snippet=line.strip(),
                    suggested_code=f"const int MeaningfulName = {number};",
                    reason="Unnamed literals obscure intent and drift when duplicated.",
                    benefits="Named constants document intent and change in one place.",
                    improvement_areas=["Readability", "Maintainability"],
                )
            )
        return findings

    # Repeated blocks within one file

    def _repeated_blocks(self, source: SourceFile) -> list[FindingMatch]:
        significant = significant_lines(source.content)
        size = self.window_size
        first_seen: dict[str, int] = {}
        reported: set[str] = set()
        findings = []
        i = 0
        while i + size <= len(significant):
            window = significant[i : i + size]
            key = "\n".join(text for _, text in window)
            first = first_seen.get(key)
            if first is None:
                first_seen[key] = i
            elif i - first >= size and key not in reported:
                reported.add(key)
                start_line, end_line = window[0][0], window[-1][0]
                findings.append(
                    self._match(
                        source,
                        rule_id="REF-DUPLICATE-CODE",
                        refactoring_type="Remove Duplicate Code",
                        title="Extract repeated block into a shared method",
                        description=(
                            f"Lines {start_line}-{end_line} repeat the block starting at line "
                            f"{significant[first][0]}."
                        ),
                        priority=Severity.MEDIUM,
                        start_line=start_line,
                        end_line=end_line,
                        snippet=snippet_for_lines(source.content, start_line, end_line),
                        suggested_code="// Move the repeated statements into one helper and call it twice",
                        reason="Copies of the same logic must be fixed in every place.",
                        benefits="One implementation to maintain and test.",
                        improvement_areas=["Maintainability", "DRY"],
                    )
                )
                i += size
                continue
            i += 1
        return findings

    # Long parameter lists

    def _long_parameter_lists(self, source: SourceFile) -> list[FindingMatch]:
        findings = []
        signature_re = _PY_DEF_RE if source.file_type == FileType.PYTHON else _BRACE_METHOD_RE
        for idx, line in enumerate(source.lines):
            match = signature_re.match(line)
            if not match:
                continue
            params = line[line.find("(") + 1 :]
            params = params.split(")", 1)[0]
            while _GENERIC_ARGS_RE.search(params):
                params = _GENERIC_ARGS_RE.sub("", params)
            commas = params.count(",")
            if commas <= self.max_parameter_commas:
                continue
            name = next(g for g in match.groups()[::-1] if g and g.strip())
            findings.append(
                self._match(
                    source,
                    rule_id="REF-PARAMETER-OBJECT",
                    refactoring_type="Introduce Parameter Object",
                    title=f"Introduce a parameter object for '{name}'",
                    description=f"'{name}' takes {commas + 1} parameters.",
                    priority=Severity.MEDIUM,
                    start_line=idx + 1,
                    end_line=idx + 1,
                    snippet=line.strip(),
                    suggested_code=f"{name}(request)  // group related arguments into one type",
                    reason="Long parameter lists are easy to call in the wrong order.",
                    benefits="A named object documents the arguments and eases extension.",
                    improvement_areas=["Readability", "API Design"],
                )
            )
        return findings

    def _match(
        self,
        source: SourceFile,
        rule_id: str,
        refactoring_type: str,
        title: str,
        description: str,
        priority: Severity,
        start_line: int,
        end_line: int,
        suggested_code: str,
        reason: str,
        benefits: str,
        improvement_areas: list[str],
        snippet: str = "",
    ) -> FindingMatch:
        return FindingMatch(
            rule_id=rule_id,
            category=refactoring_type,
            title=title,
            description=description,
            severity=priority,
            remediation=reason,
            tags=[t.lower() for t in improvement_areas],
            file_path=source.file_path,
            start_line=start_line,
            end_line=end_line,
            snippet=snippet,
            details={
                "suggested_code": suggested_code,
                "reason": reason,
                "benefits": benefits,
                "improvement_areas": improvement_areas,
            },
        )


def _brace_method_spans(lines: list[str]) -> list[tuple[str, int, int]]:
    """(name, start, end) of top-level-in-class methods, 1-based inclusive."""
    spans = []
    depth = 0
    current: tuple[str, int, int] | None = None  # name, start index, base depth
    opened = False
    for idx, line in enumerate(lines):
        if current is None and not is_comment(line):
            match = _BRACE_METHOD_RE.match(line)
            if match and not line.rstrip().endswith(";"):
                current = (match.group(1) or match.group(2), idx, depth)
                opened = False
        depth += line.count("{") - line.count("}")
        if current is None:
            continue
        name, start, base = current
        # A body can open and close on the same line, e.g. `public Svc() { }`
        if depth > base or "{" in line:
            opened = True
        if opened and depth <= base:
            spans.append((name, start + 1, idx + 1))
            current = None
    return spans


def _python_method_spans(lines: list[str]) -> list[tuple[str, int, int]]:
    spans = []
    for idx, line in enumerate(lines):
        match = _PY_DEF_RE.match(line)
        if not match:
            continue
        indent = len(match.group(1))
        end = idx
        for j in range(idx + 1, len(lines)):
            text = lines[j]
            if not text.strip():
                continue
            if len(text) - len(text.lstrip()) <= indent:
                break
            end = j
        spans.append((match.group(2), idx + 1, end + 1))
    return spans
