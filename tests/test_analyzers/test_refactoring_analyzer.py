"""Tests for the refactoring heuristics."""

import pytest

from repolens.analyzers import AnalyzerContext, RefactoringAnalyzer
from repolens.models import FileType, Severity, SourceFile
from conftest import make_long_method_source


def analyze(content, path="src/Sample.cs", file_type=FileType.CSHARP):
    source = SourceFile.from_text(path, content, file_type)
    return RefactoringAnalyzer().analyze(AnalyzerContext(files=[source]))


def of_rule(findings, rule_id):
    return [f for f in findings if f.rule_id == rule_id]


class TestLongMethods:
    """Test Extract Method suggestions."""

    def test_long_method_is_critical(self, long_method_file):
        """A 120-line method yields exactly one critical Extract Method."""
        findings = RefactoringAnalyzer().analyze(AnalyzerContext(files=[long_method_file]))

        extract = [f for f in findings if f.category == "Extract Method"]
        assert len(extract) == 1
        assert extract[0].severity == Severity.CRITICAL
        assert (extract[0].start_line, extract[0].end_line) == (3, 122)
        assert "'Process' spans 120 lines" in extract[0].description

    @pytest.mark.parametrize(
        "blocks,expected",
        [(15, None), (20, Severity.MEDIUM), (25, Severity.HIGH), (39, Severity.CRITICAL)],
    )
    def test_priority_scales_with_length(self, blocks, expected):
        """Priority grows with method length; short methods are fine."""
        findings = of_rule(analyze(make_long_method_source(blocks)), "REF-EXTRACT-METHOD")

        if expected is None:
            assert findings == []
        else:
            assert [f.severity for f in findings] == [expected]

    def test_python_function(self):
        """Indentation defines Python method spans."""
        content = "def big():\n" + "    x = 1\n" * 60

        findings = of_rule(analyze(content, "big.py", FileType.PYTHON), "REF-EXTRACT-METHOD")

        assert [(f.start_line, f.end_line, f.severity) for f in findings] == [
            (1, 61, Severity.MEDIUM)
        ]

    def test_one_line_method_before_long_method(self):
        """A body closed on its signature line does not absorb the next method."""
        lines = ["public class Svc", "{", "    public Svc() { }", "    public void Process()", "    {"]
        lines += ["        Step();"] * 60
        lines += ["    }", "}"]

        findings = of_rule(analyze("\n".join(lines)), "REF-EXTRACT-METHOD")

        assert [(f.title, f.start_line, f.end_line) for f in findings] == [
            ("Extract smaller methods from 'Process'", 4, 66)
        ]


class TestOtherRefactorings:
    """Test nesting, magic numbers, repeated blocks and parameter lists."""

    def test_deep_nesting_brace_language(self):
        """The fourth nested if is reported once."""
        content = (
            "public void Check(Order o)\n"
            "{\n"
            "    if (o != null) {\n"
            "        if (o.Items != null) {\n"
            "            if (o.Total > 0) {\n"
            "                if (o.Paid) {\n"
            "                    Ship();\n"
            "                }\n"
            "            }\n"
            "        }\n"
            "    }\n"
            "}\n"
        )

        findings = of_rule(analyze(content), "REF-SIMPLIFY-CONDITIONAL")

        assert [f.start_line for f in findings] == [6]

    def test_deep_nesting_python(self):
        """Python nesting follows indentation."""
        content = (
            "def f(a):\n"
            "    if a:\n"
            "        if a.b:\n"
            "            if a.c:\n"
            "                if a.d:\n"
            "                    return a\n"
        )

        findings = of_rule(analyze(content, "f.py", FileType.PYTHON), "REF-SIMPLIFY-CONDITIONAL")

        assert [f.start_line for f in findings] == [5]

    def test_magic_numbers_capped_per_file(self):
        """At most three magic numbers are reported per file; constants are skipped."""
        content = "const int Limit = 500;\n" + "".join(
            f"Wait({n});\n" for n in (1000, 2000, 3000, 4000, 5000)
        )

        findings = of_rule(analyze(content), "REF-MAGIC-NUMBER")

        assert [f.start_line for f in findings] == [2, 3, 4]
        assert findings[0].title == "Replace magic number 1000 with a named constant"

    def test_numbers_inside_strings_ignored(self):
        """Literals inside strings are not magic numbers."""
        assert of_rule(analyze('Log("retry 30 times");\n'), "REF-MAGIC-NUMBER") == []

    def test_repeated_block_in_one_file(self):
        """A block repeated later in the same file is reported once."""
        block = "Open();\nRead();\nClose();\n"
        content = block + "Other();\n" + block

        findings = of_rule(analyze(content), "REF-DUPLICATE-CODE")

        assert [(f.start_line, f.end_line) for f in findings] == [(5, 7)]

    def test_long_parameter_list(self):
        """More than five parameters suggests a parameter object."""
        content = "public void Create(string a, string b, int c, int d, bool e, bool f)\n{\n}\n"

        findings = of_rule(analyze(content), "REF-PARAMETER-OBJECT")

        assert len(findings) == 1
        assert findings[0].title == "Introduce a parameter object for 'Create'"
        assert findings[0].details["improvement_areas"] == ["Readability", "API Design"]

    def test_generic_commas_not_counted(self):
        """Commas inside generic arguments are not parameters."""
        content = (
            "public void Load(Dictionary<string, int> a, Dictionary<string, int> b, "
            "Tuple<int, int, int> c)\n{\n}\n"
        )

        assert of_rule(analyze(content), "REF-PARAMETER-OBJECT") == []
