"""Shared detector machinery: strategy selection, batch loop, enrichment."""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from repolens.analyzers import Analyzer, AnalyzerContext, FindingMatch
from repolens.exceptions import AnalysisCancelledError, LLMUnavailableError
from repolens.models import Refactoring, SourceFile, Standard
from repolens.services.batching import DEFAULT_BATCH_SIZE, ProgressWindow, make_batches
from repolens.services.file_classifier import describe_file
from repolens.services.llm_service import ChatBackend, ChatMessage, system_message, user_message
from repolens.services.progress import ProgressReporter
from repolens.services.response_parser import ResponseParser
from repolens.services.snippet_extractor import SnippetExtractor

logger = logging.getLogger(__name__)


class DetectionStrategy(str, Enum):
    """How findings are produced."""

    MODEL = "model"
    HEURISTIC = "heuristic"


@dataclass
class DetectionContext:
    """Per-stage inputs shared by all detectors."""

    reporter: ProgressReporter = field(default_factory=ProgressReporter)
    window: ProgressWindow = field(default_factory=lambda: ProgressWindow(0, 100))
    strategy: DetectionStrategy = DetectionStrategy.HEURISTIC
    standards: list[Standard] = field(default_factory=list)
    batch_size: int = DEFAULT_BATCH_SIZE
    max_concurrent_batches: int = 1
    cancel_event: asyncio.Event | None = None

    def check_cancelled(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise AnalysisCancelledError("Analysis cancelled")


def format_files(files: list[SourceFile]) -> str:
    return "\n\n".join(f"File: {f.file_path}\n```\n{f.content}\n```" for f in files)


class Detector:
    """One detector variant. Subclasses supply prompts, parsing and conversion."""

    name: str = "base"
    label: str = "findings"
    action: str = "Analyzing"
    SYSTEM_PROMPT: str = ""
    DETECT_PROMPT: str = ""
    # Heuristic needs all files at once (cross-file comparison)
    cross_file: bool = False

    def __init__(
        self,
        backend: ChatBackend | None = None,
        analyzer: Analyzer | None = None,
        parser: ResponseParser | None = None,
        extractor: SnippetExtractor | None = None,
    ):
        self.backend = backend
        self.analyzer = analyzer or self.default_analyzer()
        self.parser = parser or ResponseParser()
        self.extractor = extractor or SnippetExtractor()

    def default_analyzer(self) -> Analyzer:
        raise NotImplementedError

    def resolve_strategy(self, context: DetectionContext) -> DetectionStrategy:
        if context.strategy == DetectionStrategy.MODEL and self.backend is not None:
            return DetectionStrategy.MODEL
        return DetectionStrategy.HEURISTIC

    async def detect(self, files: list[SourceFile], context: DetectionContext) -> list[Any]:
        """Run the detector over ``files`` in batches, reporting progress inside ``context.window``.

        Per-batch failures are logged and yield no findings for that batch.
        Raises AnalysisCancelledError when the cancel event is set at a
        batch boundary.
        """
        strategy = self.resolve_strategy(context)
        batches = make_batches(files, context.batch_size)
        total = len(batches)
        reporter = context.reporter
        window = context.window
        files_by_path = {f.file_path: f for f in files}
        deferred: list[SourceFile] = []

        logger.info(f"Detecting {self.label} in {len(files)} files ({total} batches, {strategy.value})")

        if not batches:
            await reporter.report(window.hi, f"No files to analyze for {self.label}")
            return []

        if strategy == DetectionStrategy.MODEL and context.max_concurrent_batches > 1:
            per_batch = await self._run_concurrent(batches, context, deferred)
        else:
            per_batch = []
            for b, batch in enumerate(batches):
                context.check_cancelled()
                for i, source in enumerate(batch):
                    await reporter.report(
                        window.file_progress(b, i, len(batch), total),
                        f"{self.action} {describe_file(source.file_path)}: {source.file_name}",
                    )
                per_batch.append(await self._run_batch(batch, b, total, strategy, context, deferred))
                await reporter.report(
                    window.batch_progress(b, total),
                    f"Processed batch {b + 1}/{total} for {self.label}",
                )

        results = [finding for batch_findings in per_batch for finding in batch_findings]
        if deferred:
            results.extend(self._heuristic_batch(deferred, None, context))

        results = [self._enrich(finding, files_by_path) for finding in results]
        logger.info(f"Detected {len(results)} {self.label}")
        return results

    async def _run_concurrent(
        self,
        batches: list[list[SourceFile]],
        context: DetectionContext,
        deferred: list[SourceFile],
    ) -> list[list[Any]]:
        total = len(batches)
        semaphore = asyncio.Semaphore(context.max_concurrent_batches)
        completed = 0

        async def run(b: int, batch: list[SourceFile]) -> list[Any]:
            nonlocal completed
            async with semaphore:
                context.check_cancelled()
                findings = await self._run_batch(
                    batch, b, total, DetectionStrategy.MODEL, context, deferred
                )
            completed += 1
            await context.reporter.report(
                context.window.batch_progress(completed - 1, total),
                f"Processed batch {completed}/{total} for {self.label}",
            )
            return findings

        return list(await asyncio.gather(*(run(b, batch) for b, batch in enumerate(batches))))

    async def _run_batch(
        self,
        batch: list[SourceFile],
        batch_index: int,
        total: int,
        strategy: DetectionStrategy,
        context: DetectionContext,
        deferred: list[SourceFile],
    ) -> list[Any]:
        if strategy == DetectionStrategy.HEURISTIC:
            if self.cross_file:
                deferred.extend(batch)
                return []
            return self._heuristic_batch(batch, batch_index, context)

        try:
            reply = await self.backend.complete(self.build_messages(batch, context))
        except LLMUnavailableError as e:
            logger.warning(
                f"{self.name}: model unavailable for batch {batch_index + 1}/{total}, "
                f"using heuristics: {e}"
            )
            if self.cross_file:
                deferred.extend(batch)
                return []
            return self._heuristic_batch(batch, batch_index, context)
        except Exception as e:
            logger.warning(f"{self.name}: batch {batch_index + 1}/{total} failed: {e}")
            return []

        try:
            return self.parse_reply(reply)
        except Exception as e:
            logger.warning(f"{self.name}: could not use reply for batch {batch_index + 1}/{total}: {e}")
            return []

    def _heuristic_batch(
        self, batch: list[SourceFile], batch_index: int | None, context: DetectionContext
    ) -> list[Any]:
        try:
            return self._run_heuristic(batch, context)
        except Exception as e:
            where = "cross-file pass" if batch_index is None else f"batch {batch_index + 1}"
            logger.warning(f"{self.name}: heuristic {where} failed: {e}")
            return []

    def _run_heuristic(self, files: list[SourceFile], context: DetectionContext) -> list[Any]:
        matches = self.analyzer.analyze(AnalyzerContext(files=files, standards=context.standards))
        return [self.to_finding(match) for match in matches]

    # Model strategy

    def build_messages(self, batch: list[SourceFile], context: DetectionContext) -> list[ChatMessage]:
        prompt = self.DETECT_PROMPT.format(files=format_files(batch))
        return [system_message(self.SYSTEM_PROMPT), user_message(prompt)]

    def parse_reply(self, reply: str) -> list[Any]:
        raise NotImplementedError

    def to_finding(self, match: FindingMatch) -> Any:
        raise NotImplementedError

    # Snippets

    def _enrich(self, finding: Any, files_by_path: dict[str, SourceFile]) -> Any:
        """Fill snippet and range from file content for single-location findings."""
        if not hasattr(finding, "line_number"):
            return finding
        source = _lookup_file(finding.file_path, files_by_path)
        if source is None:
            return finding

        lines = source.lines
        line_number = min(finding.line_number, len(lines))
        end_line = min(max(finding.end_line_number, line_number), len(lines))
        update: dict[str, Any] = {"file_path": source.file_path}

        if not finding.code_snippet or end_line == line_number:
            snippet = self.extractor.extract(lines, line_number)
            if end_line == line_number:
                end_line = max(line_number, snippet.end_line)
            if not finding.code_snippet:
                update["code_snippet"] = snippet.code
            if isinstance(finding, Refactoring) and not finding.current_code:
                update["current_code"] = finding.code_snippet or snippet.code

        update["line_number"] = line_number
        update["end_line_number"] = end_line
        return finding.model_copy(update=update)


def _lookup_file(file_path: str, files_by_path: dict[str, SourceFile]) -> SourceFile | None:
    if file_path in files_by_path:
        return files_by_path[file_path]
    normalized = file_path
    while normalized.startswith(("./", "/")):
        normalized = normalized[1:] if normalized.startswith("/") else normalized[2:]
    if not normalized:
        return None
    for path, source in files_by_path.items():
        if path.endswith("/" + normalized) or normalized.endswith("/" + path) or path == normalized:
            return source
    return None
