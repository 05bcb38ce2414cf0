"""Coding standard violation detector."""

from repolens.analyzers import Analyzer, FindingMatch, ViolationAnalyzer
from repolens.detectors.base import DetectionContext, Detector, format_files
from repolens.models import SourceFile, Standard, Violation, ViolationType
from repolens.services.llm_service import ChatMessage, system_message, user_message


def format_standards(standards: list[Standard]) -> str:
    if not standards:
        return "- No project-specific standards; apply general best practices."
    return "\n".join(f"- {s.name}: {s.description} (Category: {s.category})" for s in standards)


class ViolationDetector(Detector):
    name = "violation_detector"
    label = "violations"
    action = "Analyzing"

    SYSTEM_PROMPT = "You are a coding standards enforcer. Return violations in JSON format."

    DETECT_PROMPT = """You are a coding standards enforcer. Compare the following code files against the established coding standards and identify all violations.

Coding Standards:
{standards}

Code Files:
{files}

For each violation found, provide:
- ruleName: Which standard was violated
- description: Explanation of the violation
- type: One of NamingConvention, Architecture, Security, Performance, CodeSmell, Documentation, Testing, ErrorHandling, BestPractice
- severity: Critical/High/Medium/Low
- filePath: Location of violation
- lineNumber: Exact line
- endLineNumber: Last line of the violating code (same as lineNumber for single-line issues)
- codeSnippet: The violating code
- suggestedFix: How to correct it

Respond with ONLY a JSON array of violations, no other text:"""

    def default_analyzer(self) -> Analyzer:
        return ViolationAnalyzer()

    def build_messages(self, batch: list[SourceFile], context: DetectionContext) -> list[ChatMessage]:
        prompt = self.DETECT_PROMPT.format(
            standards=format_standards(context.standards),
            files=format_files(batch),
        )
        return [system_message(self.SYSTEM_PROMPT), user_message(prompt)]

    def parse_reply(self, reply: str) -> list[Violation]:
        return self.parser.parse_violations(reply)

    def to_finding(self, match: FindingMatch) -> Violation:
        return Violation(
            file_path=match.file_path,
            line_number=match.start_line,
            end_line_number=match.end_line,
            rule_name=match.title,
            description=match.description,
            type=ViolationType(match.category),
            severity=match.severity,
            code_snippet=match.snippet,
            suggested_fix=match.remediation,
        )
