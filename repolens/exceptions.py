"""Error types raised by the analysis pipeline."""


class RepoLensError(Exception):
    """Base error for repolens."""
    pass


class NotFoundError(RepoLensError):
    """Requested repository or report does not exist."""
    pass


class RepositoryNotFoundError(NotFoundError):
    """Unknown repository id."""

    def __init__(self, repository_id: str):
        super().__init__(f"Repository with ID {repository_id} not found")
        self.repository_id = repository_id


class ReportNotFoundError(NotFoundError):
    """Unknown report id."""

    def __init__(self, report_id: str):
        super().__init__(f"Report with ID {report_id} not found")
        self.report_id = report_id


class LLMUnavailableError(RepoLensError):
    """Model backend still failing after all retries."""
    pass


class AnalysisCancelledError(RepoLensError):
    """Analysis run was cancelled at a batch boundary."""
    pass
