"""Tests for the bug heuristics."""

from repolens.analyzers import AnalyzerContext, BugAnalyzer
from repolens.models import FileType, Severity, SourceFile


def analyze(content, path="src/Sample.cs", file_type=FileType.CSHARP):
    source = SourceFile.from_text(path, content, file_type)
    return BugAnalyzer().analyze(AnalyzerContext(files=[source]))


class TestBugAnalyzer:
    """Test bug pattern checks."""

    def test_controller_findings(self, csharp_controller):
        """Unchecked lookup and unprotected await are reported."""
        findings = BugAnalyzer().analyze(AnalyzerContext(files=[csharp_controller]))

        assert [(f.rule_id, f.start_line, f.end_line) for f in findings] == [
            ("BUG-NULL-DEREF", 12, 13),
            ("BUG-ASYNC-UNHANDLED", 14, 14),
        ]
        null_deref = findings[0]
        assert null_deref.severity == Severity.HIGH
        assert "'user' may be null" in null_deref.description
        assert len(null_deref.details["reproduction_steps"]) == 3

    def test_null_check_suppresses_dereference(self):
        """A guard before the access means no finding."""
        content = (
            "var order = orders.FirstOrDefault(o => o.Id == id);\n"
            "if (order == null) return;\n"
            "var total = order.Total;\n"
        )

        assert analyze(content) == []

    def test_null_conditional_suppresses_dereference(self):
        """?. counts as a null check."""
        content = "var order = orders.Find(id);\nvar total = order?.Total;\n"

        assert analyze(content) == []

    def test_sql_concatenation(self):
        """SQL built by concatenation and then executed is critical."""
        content = (
            'var sql = "SELECT * FROM Users WHERE Id = " + id;\n'
            "command.ExecuteReader(sql);\n"
        )

        findings = analyze(content)

        assert [f.rule_id for f in findings] == ["BUG-SQL-INJECTION"]
        assert findings[0].severity == Severity.CRITICAL

    def test_python_f_string_sql(self):
        """f-string SQL passed to execute is flagged."""
        content = 'cursor.execute(f"SELECT * FROM users WHERE id = {user_id}")\n'

        findings = analyze(content, path="db.py", file_type=FileType.PYTHON)

        assert [f.rule_id for f in findings] == ["BUG-SQL-INJECTION"]

    def test_resource_leak(self):
        """Disposables created outside using are flagged; using blocks are not."""
        leaking = analyze("var stream = new FileStream(path, FileMode.Open);\n")
        guarded = analyze("using (var stream = new FileStream(path, FileMode.Open)) { }\n")

        assert [f.rule_id for f in leaking] == ["BUG-RESOURCE-LEAK"]
        assert guarded == []

    def test_static_collection_without_lock(self):
        """Static mutable collections without locking are thread-safety issues."""
        content = "private static List<string> cache = new List<string>();\n"

        findings = analyze(content)

        assert [f.rule_id for f in findings] == ["BUG-THREAD-SAFETY"]
        assert findings[0].category == "Concurrency"

    def test_clean_code_has_no_bugs(self, ts_service, python_module):
        """Clean files produce nothing."""
        assert BugAnalyzer().analyze(AnalyzerContext(files=[ts_service, python_module])) == []
