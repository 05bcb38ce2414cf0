"""Bug heuristics: null dereference, unhandled async, leaks, injection, races."""

import re

from repolens.analyzers.base import Analyzer, AnalyzerContext, FindingMatch
from repolens.analyzers.patterns import PatternRule, is_comment, match_patterns
from repolens.models import Severity

_NULLABLE_ASSIGN_RE = re.compile(
    r"\b(?:var|let|const|[A-Z]\w*\??)\s+(\w+)\s*=\s*(?:await\s+)?[^;\n]*?"
    r"\b(?:FirstOrDefault|SingleOrDefault|LastOrDefault|Find|find|querySelector|getElementById|GetValueOrDefault)\w*\s*\("
)
_NULL_LOOKAHEAD = 5

RULES = [
    PatternRule(
        rule_id="BUG-ASYNC-UNHANDLED",
        category="Reliability",
        title="Unhandled Async Exception",
        description="Awaited operations run without any try/catch, so a failed task surfaces as an unhandled exception.",
        severity=Severity.HIGH,
        remediation="Wrap awaited calls in try/catch and handle or propagate the failure explicitly.",
        pattern=r"\bawait\b",
        flags=0,
        requires=r"\basync\b",
        unless=r"\b(?:try|catch|except)\b",
        max_matches=1,
        tags=["async"],
        details={
            "root_cause": "No exception handling around asynchronous calls",
            "impact": "Faults in awaited operations crash the request or leave work half done",
            "reproduction_steps": [
                "Make the awaited dependency fail (e.g. stop the downstream service)",
                "Trigger the code path",
                "Observe the unhandled exception",
            ],
        },
    ),
    PatternRule(
        rule_id="BUG-RESOURCE-LEAK",
        category="Resources",
        title="Potential Resource Leak",
        description="A disposable resource is created without a using block or explicit disposal.",
        severity=Severity.MEDIUM,
        remediation="Wrap the resource in a using/with block or dispose it in a finally clause.",
        pattern=(
            r"\bnew\s+(?:FileStream|StreamReader|StreamWriter|SqlConnection|SqlCommand|"
            r"MemoryStream|BinaryReader|BinaryWriter|TcpClient|Process)\s*\("
            r"|^\s*\w+\s*=\s*open\s*\("
        ),
        flags=re.MULTILINE,
        unless=r"\.(?:Dispose|Close|close)\s*\(",
        line_unless=r"\busing\b|\bwith\b",
        tags=["resources"],
        details={
            "root_cause": "Resource lifetime is not bounded by a disposal construct",
            "impact": "File handles or connections accumulate until the process runs out",
            "reproduction_steps": [
                "Call the code path repeatedly under load",
                "Monitor open handles or connection pool usage",
                "Observe steady growth until exhaustion",
            ],
        },
    ),
    PatternRule(
        rule_id="BUG-SQL-INJECTION",
        category="Security",
        title="SQL Injection Risk",
        description="A SQL statement is built by string concatenation or interpolation before being executed.",
        severity=Severity.CRITICAL,
        remediation="Use parameterized queries instead of concatenating values into SQL.",
        pattern=(
            r"[\"'][^\"'\n]*\bSELECT\b[^\"'\n]*[\"']\s*\+"
            r"|(?:\$|\bf)[\"'][^\"'\n]*\bSELECT\b[^\"'\n]*\{"
        ),
        requires=r"\b(?:Execute\w*|execute\w*|Query\w*|query\w*|exec)\s*\(",
        tags=["security", "sql"],
        details={
            "root_cause": "User-influenced values are concatenated into a SQL string",
            "impact": "An attacker can read or modify arbitrary data",
            "reproduction_steps": [
                "Supply input containing a quote followed by SQL (e.g. ' OR '1'='1)",
                "Submit the request that reaches this query",
                "Observe rows beyond the intended filter being returned",
            ],
        },
    ),
    PatternRule(
        rule_id="BUG-THREAD-SAFETY",
        category="Concurrency",
        title="Thread-Safety Issue",
        description="A static mutable collection is shared across threads without synchronization.",
        severity=Severity.HIGH,
        remediation="Use a concurrent collection type or guard access with a lock.",
        pattern=r"\bstatic\s+(?:readonly\s+)?(?:List|Dictionary|HashSet|Queue|Stack|SortedDictionary)<[^>\n]*>\s+\w+",
        flags=0,
        unless=r"\block\s*\(",
        tags=["concurrency"],
        details={
            "root_cause": "Non-thread-safe collection stored in static state",
            "impact": "Concurrent requests corrupt the collection or throw intermittently",
            "reproduction_steps": [
                "Send many concurrent requests that modify the collection",
                "Observe lost updates or InvalidOperationException",
            ],
        },
    ),
]


class BugAnalyzer(Analyzer):
    name = "bugs"

    def analyze(self, context: AnalyzerContext) -> list[FindingMatch]:
        findings: list[FindingMatch] = []
        for source in context.files:
            findings.extend(self._null_dereferences(source.file_path, source.content))
            findings.extend(match_patterns(source.file_path, source.content, RULES))
        findings.sort(key=lambda m: (m.file_path, m.start_line, m.rule_id))
        return findings

    def _null_dereferences(self, file_path: str, content: str) -> list[FindingMatch]:
        """Values from lookups that may return null, dereferenced without ``?.`` or a check."""
        findings = []
        lines = content.split("\n")
        for idx, line in enumerate(lines):
            if is_comment(line):
                continue
            match = _NULLABLE_ASSIGN_RE.search(line)
            if not match:
                continue
            name = match.group(1)
            access = re.compile(rf"\b{re.escape(name)}\.\w")
            guard = re.compile(
                rf"\b{re.escape(name)}\s*(?:[!=]=|is\b)|\bif\s*\(\s*!?\s*{re.escape(name)}\s*\)|\b{re.escape(name)}\?\."
            )
            for offset in range(1, _NULL_LOOKAHEAD + 1):
                if idx + offset >= len(lines):
                    break
                following = lines[idx + offset]
                if guard.search(following):
                    break
                if access.search(following):
                    findings.append(
                        FindingMatch(
                            rule_id="BUG-NULL-DEREF",
                            category="Reliability",
                            title="Potential Null Reference",
                            description=f"'{name}' may be null but is dereferenced without a null check.",
                            severity=Severity.HIGH,
                            remediation=f"Check '{name}' for null or use the null-conditional operator ({name}?.Member).",
                            tags=["null-safety"],
                            file_path=file_path,
                            start_line=idx + 1,
                            end_line=idx + offset + 1,
                            details={
                                "root_cause": "Missing null check before accessing a member",
                                "impact": "Application may crash with a null reference at runtime",
                                "reproduction_steps": [
                                    "Call the method with an input that matches no record",
                                    f"The lookup returns null and '{name}' is dereferenced",
                                    "A null reference exception is thrown",
                                ],
                            },
                        )
                    )
                    break
        return findings
