"""Bug detector."""

from repolens.analyzers import Analyzer, BugAnalyzer, FindingMatch
from repolens.detectors.base import Detector
from repolens.models import Bug


class BugDetector(Detector):
    name = "bug_detector"
    label = "bugs"
    action = "Bug detection in"

    SYSTEM_PROMPT = "You are a bug detection expert. Return bugs in JSON format."

    DETECT_PROMPT = """You are an expert bug detection system. Analyze the following code files and identify:

1. Logic errors and bugs
2. Potential runtime exceptions
3. Security vulnerabilities
4. Performance issues
5. Resource leaks
6. Null reference possibilities

For each bug found, provide:
- title: Brief description
- description: Detailed explanation
- rootCause: Why this is a problem
- impact: Consequences if not fixed
- severity: Critical/High/Medium/Low
- lineNumber: Start line where the issue occurs
- endLineNumber: End line of the issue (same as lineNumber for single-line bugs)
- codeSnippet: The problematic code (single line for simple bugs, entire method for complex bugs)
- suggestedFix: How to resolve it
- reproductionSteps: Exact UI/API steps to reproduce, as a list of strings

Files to analyze:
{files}

Respond with ONLY a JSON array of bugs with fields filePath, lineNumber, endLineNumber, title, description, rootCause, impact, severity, codeSnippet, suggestedFix, reproductionSteps:"""

    def default_analyzer(self) -> Analyzer:
        return BugAnalyzer()

    def parse_reply(self, reply: str) -> list[Bug]:
        return self.parser.parse_bugs(reply)

    def to_finding(self, match: FindingMatch) -> Bug:
        return Bug(
            file_path=match.file_path,
            line_number=match.start_line,
            end_line_number=match.end_line,
            title=match.title,
            description=match.description,
            root_cause=match.details.get("root_cause", ""),
            impact=match.details.get("impact", ""),
            severity=match.severity,
            code_snippet=match.snippet,
            reproduction_steps=list(match.details.get("reproduction_steps", [])),
            suggested_fix=match.remediation,
        )
