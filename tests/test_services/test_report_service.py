"""Tests for the analysis pipeline."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from repolens.detectors import DetectionStrategy
from repolens.exceptions import (
    AnalysisCancelledError,
    ReportNotFoundError,
    RepositoryNotFoundError,
)
from repolens.models import Repository, Severity, ViolationType
from repolens.services.report_service import ReportService
from repolens.services.repository_service import RepositoryService
from repolens.services.store import InMemoryStore


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def repository(store, settings, csharp_controller, ts_service, markdown_standards, duplicated_pair):
    service = RepositoryService(store, settings=settings)
    return service.register(
        Repository(
            name="shop",
            files=[csharp_controller, ts_service, markdown_standards, *duplicated_pair],
        )
    )


def make_service(store, settings, sink=None, backend=None):
    return ReportService(
        store,
        RepositoryService(store, settings=settings),
        backend=backend,
        settings=settings,
        sink=sink,
    )


class TestGenerateReport:
    """Test a full pipeline run."""

    @pytest.mark.asyncio
    async def test_demo_run(self, store, settings, repository, sink):
        """A heuristic run finds the seeded issues and stores the report."""
        service = make_service(store, settings, sink=sink)

        report = await service.generate_report(repository.id, connection_id="conn-1")

        assert service.strategy == DetectionStrategy.HEURISTIC
        assert report.repository_id == repository.id
        assert report.total_files == 5
        assert any(v.rule_name == "Hardcoded Credentials" for v in report.violations)
        assert any(b.title == "Potential Null Reference" for b in report.bugs)
        assert report.total_duplications == 1
        assert [s.name for s in report.standards] == ["Naming Conventions", "Error Handling"]
        assert "existing documentation" in report.summary
        assert report.project_summary.project_name == "shop"
        assert report.execution_time.endswith("s")
        assert store.get_report(report.id) == report

    @pytest.mark.asyncio
    async def test_progress_is_monotonic_and_completes(self, store, settings, repository, sink):
        """Progress never decreases, crosses every stage boundary and ends at 100."""
        service = make_service(store, settings, sink=sink)

        await service.generate_report(repository.id, connection_id="conn-1")

        percentages = sink.percentages
        assert percentages == sorted(percentages)
        assert percentages[0] == 0
        assert {5, 20, 42, 70, 91, 95, 97}.issubset(percentages)
        assert sink.events[-1] == ("conn-1", 100, "Analysis completed!")

    @pytest.mark.asyncio
    async def test_failing_sink_does_not_fail_run(self, store, settings, repository, failing_sink):
        """Progress delivery is best effort."""
        service = make_service(store, settings, sink=failing_sink)

        report = await service.generate_report(repository.id)

        assert report.total_violations > 0

    @pytest.mark.asyncio
    async def test_standards_generated_without_docs(self, store, settings, csharp_controller):
        """Without documentation, standards come from the codebase."""
        repository = store.add_repository(Repository(name="api", files=[csharp_controller]))
        service = make_service(store, settings)

        report = await service.generate_report(repository.id)

        names = [s.name for s in report.standards]
        assert "Naming Conventions - Detected Pattern" in names
        assert "analysis of the codebase" in report.summary

    @pytest.mark.asyncio
    async def test_password_literal_without_docs(
        self, store, settings, csharp_controller, ts_service, python_module
    ):
        """Three undocumented files in demo mode still yield a critical security violation."""
        repository = store.add_repository(
            Repository(name="trio", files=[csharp_controller, ts_service, python_module])
        )
        service = make_service(store, settings)

        report = await service.generate_report(repository.id)

        assert not repository.has_existing_standards
        assert report.standards
        assert all(not s.is_from_existing_docs for s in report.standards)
        assert any(
            v.type == ViolationType.SECURITY and v.severity == Severity.CRITICAL
            for v in report.violations
        )
        assert report.violations_by_severity["Critical"] >= 1

    @pytest.mark.asyncio
    async def test_empty_repository(self, store, settings, sink):
        """A repository without files still produces an empty report."""
        repository = store.add_repository(Repository(name="empty"))
        service = make_service(store, settings, sink=sink)

        report = await service.generate_report(repository.id)

        assert report.total_files == 0
        assert report.total_violations == 0
        assert sink.percentages[-1] == 100

    @pytest.mark.asyncio
    async def test_unknown_repository(self, store, settings):
        """Unknown ids fail before any stage runs."""
        with pytest.raises(RepositoryNotFoundError):
            await make_service(store, settings).generate_report("missing")

    @pytest.mark.asyncio
    async def test_cancellation(self, store, settings, repository):
        """A set cancel event aborts the run and stores nothing."""
        cancel_event = asyncio.Event()
        cancel_event.set()
        service = make_service(store, settings)

        with pytest.raises(AnalysisCancelledError):
            await service.generate_report(repository.id, cancel_event=cancel_event)

        assert service.get_reports_by_repository(repository.id) == []

    @pytest.mark.asyncio
    async def test_stage_failure_propagates(self, store, settings, repository):
        """A failing stage is logged and re-raised."""
        service = make_service(store, settings)
        service.bug_detector.detect = AsyncMock(side_effect=RuntimeError("detector crashed"))

        with pytest.raises(RuntimeError, match="detector crashed"):
            await service.generate_report(repository.id)

        assert service.get_reports_by_repository(repository.id) == []


class TestModelBackend:
    """Test backend wiring."""

    @pytest.mark.asyncio
    async def test_demo_ignores_injected_backend(self, store, settings, repository):
        """Demo mode never calls the model."""
        backend = MagicMock()
        backend.complete = AsyncMock(return_value="[]")

        service = make_service(store, settings, backend=backend)
        await service.generate_report(repository.id)

        assert service.strategy == DetectionStrategy.HEURISTIC
        backend.complete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_model_run_with_empty_replies(self, store, model_settings, repository):
        """Empty model replies give an empty report with generated standards."""
        backend = MagicMock()
        backend.provider = "fake"
        backend.model = "fake-model"
        backend.complete = AsyncMock(return_value="[]")

        service = make_service(store, model_settings, backend=backend)
        report = await service.generate_report(repository.id)

        assert service.strategy == DetectionStrategy.MODEL
        assert backend.complete.await_count > 0
        assert report.total_violations == 0
        assert report.total_bugs == 0
        assert report.standards


class TestReportLookup:
    """Test report retrieval and export."""

    @pytest.mark.asyncio
    async def test_export_uses_camel_case(self, store, settings, repository):
        """Exported JSON carries camelCase keys and all findings."""
        service = make_service(store, settings)
        report = await service.generate_report(repository.id)

        data = json.loads(service.export_report_to_json(report.id))

        assert data["repositoryId"] == repository.id
        assert data["totalViolations"] == report.total_violations
        assert len(data["violations"]) == report.total_violations
        assert "projectSummary" in data

    @pytest.mark.asyncio
    async def test_reports_by_repository(self, store, settings, repository):
        """Each run adds a report for the repository."""
        service = make_service(store, settings)
        first = await service.generate_report(repository.id)
        second = await service.generate_report(repository.id)

        reports = service.get_reports_by_repository(repository.id)

        assert {r.id for r in reports} == {first.id, second.id}

    def test_missing_report(self, store, settings):
        """Unknown report ids raise ReportNotFoundError."""
        with pytest.raises(ReportNotFoundError):
            make_service(store, settings).get_report("missing")
