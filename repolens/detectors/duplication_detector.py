"""Code duplication detector."""

from typing import Any

from repolens.analyzers import Analyzer, AnalyzerContext, DuplicationAnalyzer
from repolens.detectors.base import DetectionContext, Detector
from repolens.models import CodeDuplication, SourceFile


class DuplicationDetector(Detector):
    name = "duplication_detector"
    label = "duplications"
    action = "Comparing"
    cross_file = True

    SYSTEM_PROMPT = "You are a code duplication analyst. Return duplications in JSON format."

    DETECT_PROMPT = """Find duplicated or near-duplicated code across the following files.

Files to analyze:
{files}

For each group of duplicates provide:
- duplicatedCode: the shared code
- locations: list of {{filePath, startLine, endLine, methodName, className}}
- type: ExactMatch, StructuralMatch, LogicalMatch, FunctionalMatch or PartialMatch
- lineCount, similarityPercentage (0-100)
- description, suggestion, impact (Critical/High/Medium/Low)
- refactoringOptions (list of strings), estimatedEffort

Respond with ONLY a JSON array, no other text:"""

    def default_analyzer(self) -> Analyzer:
        return DuplicationAnalyzer()

    def parse_reply(self, reply: str) -> list[CodeDuplication]:
        # A group is only a duplication when it has at least two locations
        return [d for d in self.parser.parse_duplications(reply) if len(d.locations) >= 2]

    def _run_heuristic(self, files: list[SourceFile], context: DetectionContext) -> list[Any]:
        return self.analyzer.analyze(AnalyzerContext(files=files, standards=context.standards))
