"""Cross-file duplication detection over normalized code windows.

Two passes over sliding windows of significant lines: identical text
first, then identical structure (identifiers and literals masked).
Consecutive matching windows are merged into one group, and every
location sharing the block is collected into a single duplication.
"""

import difflib
import re
from collections import defaultdict
from dataclasses import dataclass

from repolens.analyzers.base import Analyzer, AnalyzerContext
from repolens.analyzers.patterns import significant_lines, snippet_for_lines
from repolens.models import (
    CodeDuplication,
    DuplicationLocation,
    DuplicationType,
    Severity,
    SourceFile,
)

_TOKEN_RE = re.compile(r"\"(?:\\.|[^\"\\])*\"|'(?:\\.|[^'\\])*'|\b\d+(?:\.\d+)?\b|\b[A-Za-z_]\w*\b")
_KEYWORDS = frozenset(
    """
    if else for foreach while do switch case default break continue return throw try catch
    finally new var let const function def class public private protected internal static
    async await void int string bool true false null none self this in is not and or
    using import from lambda yield with as
    """.split()
)
_CLASS_RE = re.compile(r"\b(?:class|interface|struct)\s+(\w+)")
_METHOD_NAME_RE = re.compile(r"\b(?:def|function)\s+(\w+)|\b(\w+)\s*\([^()]*\)\s*(?:\{|:|=>|$)")
_CONTROL_WORDS = frozenset({"if", "for", "foreach", "while", "switch", "catch", "using", "return", "lock"})


@dataclass
class _Window:
    file_index: int
    index: int
    start_line: int
    end_line: int
    text: str


def classify_similarity(similarity: float) -> DuplicationType:
    if similarity >= 100.0:
        return DuplicationType.EXACT_MATCH
    if similarity >= 90.0:
        return DuplicationType.STRUCTURAL_MATCH
    if similarity >= 75.0:
        return DuplicationType.LOGICAL_MATCH
    if similarity >= 60.0:
        return DuplicationType.FUNCTIONAL_MATCH
    return DuplicationType.PARTIAL_MATCH


def mask_structure(text: str) -> str:
    """Replace identifiers and literals so renamed copies compare equal."""

    def _mask(match: re.Match) -> str:
        token = match.group()
        if token[0] in "\"'":
            return "STR"
        if token[0].isdigit():
            return "NUM"
        if token.lower() in _KEYWORDS:
            return token
        return "ID"

    return _TOKEN_RE.sub(_mask, text)


class DuplicationAnalyzer(Analyzer):
    """Emits ``CodeDuplication`` groups directly; each spans two or more files."""

    name = "duplications"

    def __init__(self, window_size: int = 3, min_window_chars: int = 30) -> None:
        self.window_size = window_size
        self.min_window_chars = min_window_chars

    def analyze(self, context: AnalyzerContext) -> list[CodeDuplication]:
        files = context.files
        windows = [self._windows(i, f) for i, f in enumerate(files)]
        claimed: list[set[int]] = [set() for _ in files]

        duplications = self._find_groups(files, windows, claimed, structural=False)
        duplications.extend(self._find_groups(files, windows, claimed, structural=True))
        return duplications

    def _windows(self, file_index: int, source: SourceFile) -> list[_Window]:
        significant = significant_lines(source.content)
        size = self.window_size
        result = []
        for i in range(len(significant) - size + 1):
            chunk = significant[i : i + size]
            result.append(
                _Window(
                    file_index=file_index,
                    index=i,
                    start_line=chunk[0][0],
                    end_line=chunk[-1][0],
                    text="\n".join(text for _, text in chunk),
                )
            )
        return result

    def _find_groups(
        self,
        files: list[SourceFile],
        windows: list[list[_Window]],
        claimed: list[set[int]],
        structural: bool,
    ) -> list[CodeDuplication]:
        def key_of(window: _Window) -> str:
            return mask_structure(window.text) if structural else window.text

        index: dict[str, list[_Window]] = defaultdict(list)
        for file_windows in windows:
            for window in file_windows:
                if len(window.text) >= self.min_window_chars:
                    index[key_of(window)].append(window)

        duplications = []
        for file_windows in windows:
            for window in file_windows:
                if window.index in claimed[window.file_index]:
                    continue
                occurrences = [
                    w for w in index.get(key_of(window), []) if w.index not in claimed[w.file_index]
                ]
                occurrences = _non_overlapping(occurrences, self.window_size)
                if len({w.file_index for w in occurrences}) < 2:
                    continue

                extra = self._extend(occurrences, windows, claimed, key_of)
                for w in occurrences:
                    low = w.index - self.window_size + 1
                    high = w.index + extra + self.window_size - 1
                    claimed[w.file_index].update(range(low, high + 1))

                duplications.append(self._build(files, windows, occurrences, extra))
        return duplications

    def _extend(self, occurrences, windows, claimed, key_of) -> int:
        """How many further windows every occurrence shares, in lockstep."""
        extra = 0
        while True:
            step = extra + 1
            keys = set()
            for w in occurrences:
                file_windows = windows[w.file_index]
                nxt = w.index + step
                if nxt >= len(file_windows) or nxt in claimed[w.file_index]:
                    return extra
                keys.add(key_of(file_windows[nxt]))
            if len(keys) != 1:
                return extra
            extra = step

    def _build(
        self,
        files: list[SourceFile],
        windows: list[list[_Window]],
        occurrences: list[_Window],
        extra: int,
    ) -> CodeDuplication:
        locations = []
        texts = []
        for w in occurrences:
            last = windows[w.file_index][w.index + extra]
            source = files[w.file_index]
            method_name, class_name = _enclosing_names(source.lines, w.start_line)
            locations.append(
                DuplicationLocation(
                    file_path=source.file_path,
                    start_line=w.start_line,
                    end_line=last.end_line,
                    method_name=method_name,
                    class_name=class_name,
                )
            )
            texts.append(_span_text(windows[w.file_index], w.index, extra))

        similarity = _similarity(texts)
        dup_type = classify_similarity(similarity)
        first = occurrences[0]
        first_file = files[first.file_index]
        line_count = locations[0].end_line - locations[0].start_line + 1
        duplicated_lines = line_count * (len(locations) - 1)
        if duplicated_lines >= 20 or len(locations) >= 4:
            impact = Severity.HIGH
        elif duplicated_lines >= 8:
            impact = Severity.MEDIUM
        else:
            impact = Severity.LOW

        file_names = sorted({loc.file_path.rsplit("/", 1)[-1] for loc in locations})
        return CodeDuplication(
            duplicated_code=snippet_for_lines(
                first_file.content, locations[0].start_line, locations[0].end_line, max_lines=40
            ),
            locations=locations,
            type=dup_type,
            line_count=line_count,
            similarity_percentage=similarity,
            description=(
                f"{line_count} line block duplicated in {len(locations)} places "
                f"({', '.join(file_names)})"
            ),
            suggestion="Extract the shared block into a reusable method or shared utility.",
            impact=impact,
            refactoring_options=[
                "Extract Method",
                "Move to shared helper or base class",
                "Parameterize the differing values",
            ],
            estimated_effort="Low" if line_count <= 10 else "Medium",
        )


def _non_overlapping(occurrences: list[_Window], size: int) -> list[_Window]:
    kept: list[_Window] = []
    last_index: dict[int, int] = {}
    for w in sorted(occurrences, key=lambda w: (w.file_index, w.index)):
        prev = last_index.get(w.file_index)
        if prev is not None and w.index - prev < size:
            continue
        kept.append(w)
        last_index[w.file_index] = w.index
    return kept


def _span_text(file_windows: list[_Window], start: int, extra: int) -> str:
    parts = [file_windows[start].text]
    for offset in range(1, extra + 1):
        parts.append(file_windows[start + offset].text.rsplit("\n", 1)[-1])
    return "\n".join(parts)


def _similarity(texts: list[str]) -> float:
    base = texts[0]
    ratios = [difflib.SequenceMatcher(None, base, other).ratio() for other in texts[1:]]
    return round(min(ratios) * 100, 1) if ratios else 100.0


def _enclosing_names(lines: list[str], line_number: int) -> tuple[str, str]:
    method_name = ""
    class_name = ""
    for idx in range(min(line_number, len(lines)) - 1, -1, -1):
        text = lines[idx]
        if not class_name:
            match = _CLASS_RE.search(text)
            if match:
                class_name = match.group(1)
                break
        if not method_name:
            match = _METHOD_NAME_RE.search(text)
            if match:
                name = match.group(1) or match.group(2)
                if name and name not in _CONTROL_WORDS:
                    method_name = name
    return method_name, class_name
