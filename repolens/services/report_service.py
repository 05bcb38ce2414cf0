"""Pipeline orchestrator: runs every analysis stage and stores the report."""

import asyncio
import logging
import time

from repolens.config import Settings, get_settings
from repolens.detectors import (
    BugDetector,
    DetectionContext,
    DetectionStrategy,
    DuplicationDetector,
    RefactoringDetector,
    ViolationDetector,
)
from repolens.exceptions import AnalysisCancelledError, ReportNotFoundError
from repolens.models import AnalysisReport, SourceFile, Standard
from repolens.services.aggregator import FindingAggregator, format_execution_time
from repolens.services.batching import ProgressWindow
from repolens.services.file_classifier import FileClassifier
from repolens.services.llm_service import ChatBackend, describe_backend
from repolens.services.progress import ProgressReporter, ProgressSink
from repolens.services.repository_service import RepositoryService
from repolens.services.standards_service import StandardsService
from repolens.services.store import InMemoryStore
from repolens.services.structure_service import (
    StructureService,
    analyze_folder_structure,
    file_type_distribution,
)

logger = logging.getLogger(__name__)

# Contiguous progress windows covering 0-100
LOAD_WINDOW = ProgressWindow(0, 5)
STRUCTURE_WINDOW = ProgressWindow(5, 20)
STANDARDS_WINDOW = ProgressWindow(20, 42)
VIOLATIONS_WINDOW = ProgressWindow(42, 70)
BUGS_WINDOW = ProgressWindow(70, 91)
REFACTORINGS_WINDOW = ProgressWindow(91, 95)
DUPLICATIONS_WINDOW = ProgressWindow(95, 97)
FINALIZE_WINDOW = ProgressWindow(97, 100)


class ReportService:
    """Runs the analysis pipeline for one repository at a time per call."""

    def __init__(
        self,
        store: InMemoryStore,
        repository_service: RepositoryService,
        backend: ChatBackend | None = None,
        settings: Settings | None = None,
        sink: ProgressSink | None = None,
    ):
        self.store = store
        self.repository_service = repository_service
        self.settings = settings or get_settings()
        # Demo mode never calls a model, even when a backend is injected
        self.backend = None if self.settings.is_demo else backend
        self.sink = sink
        self.classifier = FileClassifier()
        self.aggregator = FindingAggregator()
        self.structure_service = StructureService(self.backend)
        self.standards_service = StandardsService(self.backend)
        self.violation_detector = ViolationDetector(self.backend)
        self.bug_detector = BugDetector(self.backend)
        self.refactoring_detector = RefactoringDetector(self.backend)
        self.duplication_detector = DuplicationDetector(self.backend)

    @property
    def strategy(self) -> DetectionStrategy:
        if self.backend is None:
            return DetectionStrategy.HEURISTIC
        return DetectionStrategy.MODEL

    async def generate_report(
        self,
        repository_id: str,
        connection_id: str | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> AnalysisReport:
        """Run every stage in order and return the stored report.

        Raises RepositoryNotFoundError for unknown ids and
        AnalysisCancelledError when ``cancel_event`` is set. Any other stage
        failure is logged and re-raised.
        """
        repository = self.repository_service.get_repository(repository_id)
        reporter = ProgressReporter(self.sink, connection_id)
        started = time.monotonic()
        logger.info(
            f"Starting analysis of '{repository.name}' ({repository.id}) "
            f"with {describe_backend(self.backend)} backend"
        )

        try:
            # Load
            await reporter.report(LOAD_WINDOW.lo, "Starting analysis...")
            files = self.repository_service.get_files(repository_id)
            folders = analyze_folder_structure(files)
            distribution = file_type_distribution(files)
            markdown_files = [f for f in files if self.classifier.is_markdown_file(f.file_type)]
            code_files = [f for f in files if self.classifier.is_code_file(f.file_type)]
            await reporter.report(
                LOAD_WINDOW.hi,
                f"Found: {len(folders)} folders with {len(files)} files "
                f"({len(code_files)} code, {len(markdown_files)} documentation)",
            )

            # Structure
            project_summary = await self.structure_service.summarize(
                files,
                folders,
                distribution,
                reporter=reporter,
                window=STRUCTURE_WINDOW,
                project_name=repository.name,
            )
            await reporter.report(
                STRUCTURE_WINDOW.hi, f"Project analysis complete: {project_summary.architecture}"
            )
            self._check_cancelled(cancel_event)

            # Standards
            standards = await self._standards(markdown_files, code_files, reporter)
            await reporter.report(STANDARDS_WINDOW.hi, f"Generated {len(standards)} coding standards")
            self._check_cancelled(cancel_event)

            # Detectors
            violations = await self.violation_detector.detect(
                code_files, self._context(reporter, VIOLATIONS_WINDOW, standards, cancel_event)
            )
            await reporter.report(VIOLATIONS_WINDOW.hi, f"Found {len(violations)} violations")

            bugs = await self.bug_detector.detect(
                code_files, self._context(reporter, BUGS_WINDOW, standards, cancel_event)
            )
            await reporter.report(BUGS_WINDOW.hi, f"Found {len(bugs)} potential bugs")

            refactorings = await self.refactoring_detector.detect(
                code_files, self._context(reporter, REFACTORINGS_WINDOW, standards, cancel_event)
            )
            await reporter.report(
                REFACTORINGS_WINDOW.hi, f"Found {len(refactorings)} refactoring opportunities"
            )

            duplications = await self.duplication_detector.detect(
                code_files, self._context(reporter, DUPLICATIONS_WINDOW, standards, cancel_event)
            )
            await reporter.report(
                DUPLICATIONS_WINDOW.hi, f"Found {len(duplications)} code duplications"
            )

            # Finalize
            await reporter.report(FINALIZE_WINDOW.lo, "Generating final report...")
            report = self.aggregator.aggregate(
                repository,
                violations,
                bugs,
                refactorings,
                duplications,
                standards,
                project_summary=project_summary,
                execution_time=format_execution_time(time.monotonic() - started),
            )
            self.store.add_report(report)
        except AnalysisCancelledError:
            logger.info(f"Analysis of {repository_id} cancelled")
            raise
        except Exception as exc:
            logger.exception(f"Analysis of {repository_id} failed: {exc}")
            raise

        await reporter.report(FINALIZE_WINDOW.hi, "Analysis completed!")
        logger.info(
            f"Report {report.id} for '{repository.name}': {report.total_violations} violations, "
            f"{report.total_bugs} bugs, {report.total_refactorings} refactorings, "
            f"{report.total_duplications} duplications in {report.execution_time}"
        )
        return report

    async def _standards(
        self,
        markdown_files: list[SourceFile],
        code_files: list[SourceFile],
        reporter: ProgressReporter,
    ) -> list[Standard]:
        if markdown_files:
            await reporter.report(
                STANDARDS_WINDOW.lo,
                f"Found {len(markdown_files)} documentation files, extracting standards...",
            )
            standards = await self.standards_service.extract_from_markdown(
                markdown_files, reporter=reporter, window=STANDARDS_WINDOW
            )
            if standards:
                return standards
            logger.info("No standards found in documentation, generating from codebase")
        else:
            await reporter.report(
                STANDARDS_WINDOW.lo, "No documentation found, generating standards from codebase..."
            )
        return await self.standards_service.generate_from_codebase(
            code_files, reporter=reporter, window=STANDARDS_WINDOW
        )

    def _context(
        self,
        reporter: ProgressReporter,
        window: ProgressWindow,
        standards: list[Standard],
        cancel_event: asyncio.Event | None,
    ) -> DetectionContext:
        return DetectionContext(
            reporter=reporter,
            window=window,
            strategy=self.strategy,
            standards=standards,
            batch_size=self.settings.batch_size,
            max_concurrent_batches=self.settings.max_concurrent_batches,
            cancel_event=cancel_event,
        )

    @staticmethod
    def _check_cancelled(cancel_event: asyncio.Event | None) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise AnalysisCancelledError("Analysis cancelled")

    def get_report(self, report_id: str) -> AnalysisReport:
        report = self.store.get_report(report_id)
        if report is None:
            raise ReportNotFoundError(report_id)
        return report

    def get_reports_by_repository(self, repository_id: str) -> list[AnalysisReport]:
        return self.store.get_reports_by_repository(repository_id)

    def export_report_to_json(self, report_id: str) -> str:
        """Full report with camelCase keys, findings and statistics included."""
        return self.get_report(report_id).to_json()
