"""Tests for model reply parsing."""

import pytest

from repolens.models import DuplicationType, Severity, ViolationType
from repolens.schemas.llm import BugDto, ViolationDto
from repolens.services.response_parser import (
    ResponseParser,
    parse_severity,
    strip_code_fence,
)


class TestStripCodeFence:
    """Test fence removal."""

    def test_strips_json_fence(self):
        """A ```json fenced reply is unwrapped."""
        assert strip_code_fence('```json\n[{"a": 1}]\n```') == '[{"a": 1}]'

    def test_strips_bare_fence(self):
        """A bare ``` fence is unwrapped."""
        assert strip_code_fence("```\n[]\n```") == "[]"

    def test_leaves_plain_text(self):
        """Unfenced text is only trimmed."""
        assert strip_code_fence("  [1, 2]  ") == "[1, 2]"


class TestParseEnums:
    """Test lenient enum parsing."""

    def test_severity_case_insensitive(self):
        """Severity labels match regardless of case."""
        assert parse_severity("critical") == Severity.CRITICAL
        assert parse_severity("HIGH") == Severity.HIGH

    def test_unknown_severity_defaults_to_low(self):
        """Unknown or missing severity becomes Low."""
        assert parse_severity("catastrophic") == Severity.LOW
        assert parse_severity(None) == Severity.LOW


class TestResponseParserRobustness:
    """Parser never raises and skips what it cannot use."""

    @pytest.fixture
    def parser(self):
        return ResponseParser()

    @pytest.mark.parametrize("raw", ["", "   ", None, "not json at all", "[{", "42", '"text"'])
    def test_garbage_yields_empty_list(self, parser, raw):
        """Malformed or non-list replies produce no DTOs."""
        assert parser.parse(raw, ViolationDto) == []

    def test_fenced_array(self, parser):
        """Items inside a fenced array are parsed."""
        raw = '```json\n[{"ruleName": "Naming", "severity": "High", "filePath": "a.cs", "lineNumber": 3}]\n```'
        dtos = parser.parse(raw, ViolationDto)

        assert len(dtos) == 1
        assert dtos[0].rule_name == "Naming"
        assert dtos[0].line_number == 3

    def test_array_embedded_in_prose(self, parser):
        """JSON surrounded by explanation text is still found."""
        raw = 'Here are the bugs:\n[{"title": "Leak", "lineNumber": "7"}]\nHope this helps.'
        dtos = parser.parse(raw, BugDto)

        assert [d.title for d in dtos] == ["Leak"]
        assert dtos[0].line_number == 7

    def test_object_wrapping_array(self, parser):
        """An object holding the list under any key is unwrapped."""
        raw = '{"violations": [{"rule_name": "A"}, {"rule_name": "B"}]}'
        assert [d.rule_name for d in parser.parse(raw, ViolationDto)] == ["A", "B"]

    def test_single_object_is_one_item(self, parser):
        """A lone object is treated as a one-item list."""
        raw = '{"title": "Race", "severity": "High"}'
        assert len(parser.parse(raw, BugDto)) == 1

    def test_skips_non_object_and_empty_items(self, parser):
        """Scalars and empty objects in the array are dropped."""
        raw = '[1, "x", {}, {"title": "Real bug"}]'
        assert [d.title for d in parser.parse(raw, BugDto)] == ["Real bug"]

    def test_lenient_field_types(self, parser):
        """Numbers as strings and lists as strings are coerced."""
        raw = '[{"title": "T", "lineNumber": "12", "endLineNumber": 15.0, "reproductionSteps": "Open page"}]'
        dto = parser.parse(raw, BugDto)[0]

        assert dto.line_number == 12
        assert dto.end_line_number == 15
        assert dto.reproduction_steps == ["Open page"]


class TestTypedParsing:
    """Test conversion into domain findings."""

    @pytest.fixture
    def parser(self):
        return ResponseParser()

    def test_violation_fields_and_defaults(self, parser):
        """Violations get typed enums and a valid line range."""
        raw = '[{"ruleName": "Security", "type": "security", "severity": "critical", "filePath": ".\\\\src\\\\A.cs", "lineNumber": 0}]'
        violation = parser.parse_violations(raw)[0]

        assert violation.type == ViolationType.SECURITY
        assert violation.severity == Severity.CRITICAL
        assert violation.file_path == "./src/A.cs"
        assert violation.line_number == 1
        assert violation.end_line_number == 1

    def test_end_line_before_start_defaults_to_start(self, parser):
        """A smaller end line is raised to the start line."""
        raw = '[{"title": "Bug", "lineNumber": 20, "endLineNumber": 5}]'
        bug = parser.parse_bugs(raw)[0]

        assert bug.line_number == 20
        assert bug.end_line_number == 20

    def test_unknown_violation_type_defaults(self, parser):
        """Unrecognized type strings become BestPractice."""
        violation = parser.parse_violations('[{"ruleName": "X", "type": "Vibes"}]')[0]
        assert violation.type == ViolationType.BEST_PRACTICE

    def test_duplication_without_locations_dropped(self, parser):
        """Duplication groups with no usable locations are skipped."""
        raw = """[
            {"duplicatedCode": "x", "locations": []},
            {"duplicatedCode": "y", "type": "ExactMatch", "similarityPercentage": 140,
             "locations": [{"filePath": "a.cs", "startLine": 1, "endLine": 3}, "bad",
                           {"filePath": "b.cs", "startLine": 4, "endLine": 6}]}
        ]"""
        duplications = parser.parse_duplications(raw)

        assert len(duplications) == 1
        assert duplications[0].type == DuplicationType.EXACT_MATCH
        assert duplications[0].similarity_percentage == 100.0
        assert [loc.file_path for loc in duplications[0].locations] == ["a.cs", "b.cs"]

    def test_standards_from_docs_keep_source(self, parser):
        """Standards parsed for a file record it as their source."""
        raw = '[{"name": "Use DI", "category": "Architecture", "examples": ["ctor injection"]}]'
        standard = parser.parse_standards(raw, source_file="docs/README.md")[0]

        assert standard.is_from_existing_docs is True
        assert standard.source_file == "docs/README.md"
        assert standard.examples == ["ctor injection"]

    def test_project_summary_parsed(self, parser):
        """A summary object becomes a ProjectSummary."""
        raw = '{"projectName": "Shop", "architecture": "MVC", "keyFeatures": ["Cart", "Checkout"]}'
        summary = parser.parse_project_summary(raw)

        assert summary.project_name == "Shop"
        assert summary.key_features == ["Cart", "Checkout"]

    def test_project_summary_none_on_garbage(self, parser):
        """Unparseable summary replies give None."""
        assert parser.parse_project_summary("I cannot help with that") is None
