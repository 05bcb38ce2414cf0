"""Refactoring opportunity detector."""

from repolens.analyzers import Analyzer, FindingMatch, RefactoringAnalyzer
from repolens.detectors.base import Detector
from repolens.models import Refactoring


class RefactoringDetector(Detector):
    name = "refactoring_detector"
    label = "refactorings"
    action = "Reviewing structure of"

    SYSTEM_PROMPT = "You are a senior engineer reviewing code for refactoring. Return suggestions in JSON format."

    DETECT_PROMPT = """Review the following code files and suggest refactorings that improve readability, testability and maintainability.

Look for:
- Long methods that should be split (Extract Method)
- Deeply nested conditionals (Simplify Conditional)
- Magic numbers (Replace Magic Number)
- Duplicated blocks (Remove Duplicate Code)
- Long parameter lists (Introduce Parameter Object)

Files to analyze:
{files}

For each suggestion provide: filePath, lineNumber, endLineNumber, refactoringType, title, description, currentCode, suggestedCode, reason, benefits, priority (Critical/High/Medium/Low), improvementAreas (list of strings).

Respond with ONLY a JSON array, no other text:"""

    def default_analyzer(self) -> Analyzer:
        return RefactoringAnalyzer()

    def parse_reply(self, reply: str) -> list[Refactoring]:
        return self.parser.parse_refactorings(reply)

    def to_finding(self, match: FindingMatch) -> Refactoring:
        return Refactoring(
            file_path=match.file_path,
            line_number=match.start_line,
            end_line_number=match.end_line,
            refactoring_type=match.category,
            title=match.title,
            description=match.description,
            current_code=match.snippet,
            suggested_code=match.details.get("suggested_code", ""),
            reason=match.details.get("reason", match.remediation),
            benefits=match.details.get("benefits", ""),
            priority=match.severity,
            improvement_areas=list(match.details.get("improvement_areas", [])),
            code_snippet=match.snippet,
        )
