"""Tests for cross-file duplication detection."""

import pytest

from repolens.analyzers import AnalyzerContext, DuplicationAnalyzer
from repolens.analyzers.duplication_analyzer import classify_similarity, mask_structure
from repolens.models import DuplicationType, FileType, Severity, SourceFile

PRICING_A = """total = price * quantity + shipping_cost
discount = total * rate_value
final_amount = total - discount
"""

PRICING_B = """amount = cost * count + delivery_fee
rebate = amount * pct_value
result_amount = amount - rebate
"""


class TestDuplicationAnalyzer:
    """Test exact and structural duplicate groups."""

    def test_shared_validation_block(self, duplicated_pair):
        """Identical blocks in two files form one exact-match group."""
        duplications = DuplicationAnalyzer().analyze(AnalyzerContext(files=duplicated_pair))

        assert len(duplications) == 1
        duplication = duplications[0]
        assert duplication.type == DuplicationType.EXACT_MATCH
        assert duplication.similarity_percentage == 100.0
        assert duplication.line_count == 3
        assert duplication.impact == Severity.LOW
        assert duplication.file_paths == ["src/AccountWriter.cs", "src/ProfileUpdater.cs"]
        assert [(loc.start_line, loc.end_line) for loc in duplication.locations] == [(5, 7), (5, 7)]

    def test_locations_name_method_and_class(self, duplicated_pair):
        """Each location records its enclosing method and class."""
        duplication = DuplicationAnalyzer().analyze(AnalyzerContext(files=duplicated_pair))[0]

        assert [(loc.method_name, loc.class_name) for loc in duplication.locations] == [
            ("Save", "AccountWriter"),
            ("Update", "ProfileUpdater"),
        ]

    def test_renamed_copy_is_structural(self):
        """Same shape with different names is a non-exact group."""
        files = [
            SourceFile.from_text("pricing/a.py", PRICING_A, FileType.PYTHON),
            SourceFile.from_text("pricing/b.py", PRICING_B, FileType.PYTHON),
        ]

        duplications = DuplicationAnalyzer().analyze(AnalyzerContext(files=files))

        assert len(duplications) == 1
        assert duplications[0].type != DuplicationType.EXACT_MATCH
        assert duplications[0].similarity_percentage < 100.0
        assert len(duplications[0].locations) == 2

    def test_single_file_produces_no_group(self, duplicated_pair):
        """A group needs locations in at least two files."""
        duplications = DuplicationAnalyzer().analyze(AnalyzerContext(files=duplicated_pair[:1]))

        assert duplications == []

    def test_deterministic(self, duplicated_pair):
        """Running twice gives the same groups."""
        analyzer = DuplicationAnalyzer()
        first = analyzer.analyze(AnalyzerContext(files=duplicated_pair))
        second = analyzer.analyze(AnalyzerContext(files=duplicated_pair))

        assert [d.locations for d in first] == [d.locations for d in second]


class TestHelpers:
    """Test masking and classification."""

    def test_mask_structure(self):
        """Identifiers and literals are masked, keywords kept."""
        assert mask_structure('if (user == null) return "x" + 42;') == (
            'if (ID == null) return STR + NUM;'
        )

    @pytest.mark.parametrize(
        "similarity,expected",
        [
            (100.0, DuplicationType.EXACT_MATCH),
            (95.0, DuplicationType.STRUCTURAL_MATCH),
            (80.0, DuplicationType.LOGICAL_MATCH),
            (60.0, DuplicationType.FUNCTIONAL_MATCH),
            (10.0, DuplicationType.PARTIAL_MATCH),
        ],
    )
    def test_classify_similarity(self, similarity, expected):
        """Similarity bands map to duplication types."""
        assert classify_similarity(similarity) == expected
