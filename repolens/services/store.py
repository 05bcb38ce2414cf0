"""In-memory repository and report store."""

import threading

from repolens.models import AnalysisReport, Repository


class InMemoryStore:
    """Thread-safe store for repositories and reports.

    Holds everything for the lifetime of the process. Concurrent runs over
    different repositories only contend on the lock for the dict updates.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._repositories: dict[str, Repository] = {}
        self._reports: dict[str, AnalysisReport] = {}

    def add_repository(self, repository: Repository) -> Repository:
        with self._lock:
            self._repositories[repository.id] = repository
        return repository

    def get_repository(self, repository_id: str) -> Repository | None:
        with self._lock:
            return self._repositories.get(repository_id)

    def get_all_repositories(self) -> list[Repository]:
        with self._lock:
            repositories = list(self._repositories.values())
        return sorted(repositories, key=lambda r: r.uploaded_at, reverse=True)

    def add_report(self, report: AnalysisReport) -> AnalysisReport:
        with self._lock:
            self._reports[report.id] = report
        return report

    def get_report(self, report_id: str) -> AnalysisReport | None:
        with self._lock:
            return self._reports.get(report_id)

    def get_reports_by_repository(self, repository_id: str) -> list[AnalysisReport]:
        """Reports for one repository, newest first."""
        with self._lock:
            reports = [r for r in self._reports.values() if r.repository_id == repository_id]
        return sorted(reports, key=lambda r: r.generated_at, reverse=True)
