import argparse
import asyncio
import logging
from pathlib import Path

from rich.console import Console
from rich.table import Table

from repolens.config import SUPPORTED_PROVIDERS, get_settings
from repolens.exceptions import RepoLensError
from repolens.models import AnalysisReport
from repolens.services.aggregator import most_severe
from repolens.services.llm_service import create_chat_backend
from repolens.services.report_service import ReportService
from repolens.services.repository_service import RepositoryService
from repolens.services.store import InMemoryStore

console = Console()


class ConsoleProgressSink:
    """Prints each progress update as a dim status line."""

    async def send_progress(self, connection_id: str | None, percentage: int, message: str) -> None:
        console.print(f"[dim]{percentage:>3}%[/dim] {message}")


def render_report_console(report: AnalysisReport) -> None:
    console.print(f"\n[bold]Repository:[/bold] {report.repository_name}   [bold]Files:[/bold] {report.total_files}")
    if report.project_summary is not None:
        console.print(f"[bold]Stack:[/bold] {report.project_summary.technology_stack or 'unknown'}")
        console.print(f"[bold]Architecture:[/bold] {report.project_summary.architecture}")
    console.print(f"[bold]Execution time:[/bold] {report.execution_time}\n")

    t = Table(title="Findings", show_lines=True)
    t.add_column("Kind")
    t.add_column("Total", justify="right")
    t.add_column("Files", justify="right")
    t.add_column("By level")
    t.add_row("Violations", str(report.total_violations), str(report.files_with_violations),
              _levels(report.violations_by_severity))
    t.add_row("Bugs", str(report.total_bugs), str(report.files_with_bugs),
              _levels(report.bugs_by_severity))
    t.add_row("Refactorings", str(report.total_refactorings), str(report.files_needing_refactoring),
              _levels(report.refactorings_by_priority))
    t.add_row("Duplications", str(report.total_duplications), str(report.files_with_duplications),
              _levels(report.duplications_by_impact))
    console.print(t)

    top = most_severe(report)
    if top:
        issues = Table(title="Most severe issues")
        issues.add_column("Severity")
        issues.add_column("Issue")
        issues.add_column("Location")
        for finding in top:
            title = finding.rule_name if finding.kind == "violation" else finding.title
            issues.add_row(finding.severity.value, title, f"{finding.file_path}:{finding.line_number}")
        console.print(issues)

    console.print(f"[dim]{report.total_duplicated_lines} duplicated lines, "
                  f"{len(report.standards)} standards applied[/dim]")


def _levels(counts: dict[str, int]) -> str:
    return ", ".join(f"{label}: {count}" for label, count in counts.items()) or "-"


def main():
    ap = argparse.ArgumentParser(prog="repolens", description="Analyze a source repository for standards, bugs and duplication")
    ap.add_argument("folder", help="Repository folder to analyze")
    ap.add_argument("--provider", choices=sorted(SUPPORTED_PROVIDERS), help="Model provider (default from settings)")
    ap.add_argument("--out", default="report.json", help="Path of the JSON report")
    ap.add_argument("--batch-size", type=int, help="Files per model batch")
    ap.add_argument("--name", help="Repository display name")
    args = ap.parse_args()

    settings = get_settings()
    update = {}
    if args.provider:
        update["ai_provider"] = args.provider
    if args.batch_size is not None:
        if args.batch_size < 1:
            ap.error("--batch-size must be at least 1")
        update["batch_size"] = args.batch_size
    if update:
        settings = settings.model_copy(update=update)

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not Path(args.folder).is_dir():
        console.print(f"[red]Not a folder: {args.folder}[/red]")
        raise SystemExit(2)

    store = InMemoryStore()
    repositories = RepositoryService(store, settings=settings)
    service = ReportService(
        store,
        repositories,
        backend=create_chat_backend(settings),
        settings=settings,
        sink=ConsoleProgressSink(),
    )

    repository = repositories.load_folder(args.folder, name=args.name)
    if not repository.files:
        console.print("[red]No analyzable files found.[/red]")
        raise SystemExit(2)

    try:
        report = asyncio.run(service.generate_report(repository.id))
    except RepoLensError as e:
        console.print(f"[red]Analysis failed: {e}[/red]")
        raise SystemExit(1)

    render_report_console(report)

    out_path = Path(args.out)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(service.export_report_to_json(report.id), encoding="utf-8")
    console.print(f"[dim]Saved:[/dim] {out_path}")


if __name__ == "__main__":
    main()
