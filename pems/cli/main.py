"""CLI interface for PEMS using Typer."""

import json
from pathlib import Path
from typing import Annotated, NoReturn

import typer
from rich.console import Console
from rich.table import Table

from ..core.config.loader import load_settings
from ..core.errors import InfrastructureError, PEMSError
from ..core.models.enums import CatalogFlag, ReviewStatus
from ..core.policy.catalog import CATALOG_VERSION, POLICY_META, search_catalog_items
from ..core.policy.validator import PolicyValidator
from ..core.ranking.aggregator import rank_from_store
from ..core.review.roster import ReviewerRosterCache
from ..core.services.achievements import AchievementService
from ..core.storage.object_store import ObjectStore
from ..observability.logger import get_logger, setup_logging
from .export import write_ranking_csv

logger = get_logger(__name__)
console = Console()

app = typer.Typer(
    name="pems",
    help="Postgraduate Exemption Management System - recommendation scoring and review",
    add_completion=False,
)


@app.callback()
def main() -> None:
    """Configure logging from settings before any command runs."""
    settings = load_settings()
    setup_logging(settings.log_level, settings.log_format, settings.log_file)


def _get_store() -> ObjectStore:
    """Get file-based object store from config."""
    return ObjectStore(load_settings().object_store_dir)


def _get_service() -> AchievementService:
    settings = load_settings()
    store = ObjectStore(settings.object_store_dir)
    service = AchievementService(
        store,
        roster=ReviewerRosterCache(
            store.fetch_active_reviewers, ttl_seconds=settings.reviewer_cache_ttl_seconds
        ),
    )
    service.validator = PolicyValidator(
        snapshot_loader=service.load_snapshot, cutoff_date=settings.cutoff_date
    )
    return service


def _fail(exc: PEMSError) -> NoReturn:
    """Print a core error and exit non-zero."""
    message = exc.public_message if isinstance(exc, InfrastructureError) else str(exc)
    console.print(f"[red]! Error ({exc.kind.value}):[/red] {message}")
    raise typer.Exit(code=1)


@app.command()
def ranking(
    top_n: Annotated[int, typer.Option("--top-n", "-n", help="Number of students to show")] = 20,
    export: Annotated[
        Path | None,
        typer.Option("--export", "-e", help="Export the full ranking to CSV"),
    ] = None,
):
    """Display the recommendation leaderboard."""
    if top_n <= 0:
        console.print("[red]! Error:[/red] --top-n must be greater than 0")
        raise typer.Exit(code=1)

    store = _get_store()
    try:
        entries = rank_from_store(store)
    except PEMSError as exc:
        _fail(exc)

    if not entries:
        console.print("[yellow]No students with submitted achievements[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("排名", style="dim", width=6)
    table.add_column("学号")
    table.add_column("姓名")
    table.add_column("绩点", justify="right")
    table.add_column("学业(80%)", justify="right")
    table.add_column("学术", justify="right")
    table.add_column("综合", justify="right")
    table.add_column("总分", justify="right")
    table.add_column("加分原因")

    for entry in entries[:top_n]:
        reason = entry.reason_summary
        reason_display = reason[:60] + "..." if len(reason) > 60 else reason
        table.add_row(
            str(entry.rank),
            entry.student.student_number,
            entry.student.name,
            f"{entry.gpa:.2f}" if entry.gpa is not None else "-",
            f"{entry.gpa_weighted_score:.2f}",
            f"{entry.academic_score:.2f}",
            f"{entry.comprehensive_score:.2f}",
            f"{entry.total_score:.2f}",
            reason_display or "—",
        )

    console.print(table)

    if export:
        achievements = {a.id: a for a in store.list_achievements()}
        try:
            count = write_ranking_csv(export, entries, achievements)
            console.print(f"\n[green]Ranking exported to:[/green] {export} ({count} rows)")
        except (IOError, ValueError) as e:
            console.print(f"\n[red]! Error exporting ranking:[/red] {e}")
            raise typer.Exit(code=1)


@app.command()
def summary(
    student: Annotated[str, typer.Option("--student", "-s", help="Student identifier")],
    approved_only: Annotated[
        bool, typer.Option("--approved-only", help="Count approved achievements only")
    ] = False,
):
    """Show a student's capped score summary."""
    service = _get_service()
    try:
        result = service.score_summary(student, statuses=["approved"] if approved_only else None)
    except PEMSError as exc:
        _fail(exc)

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("成果")
    table.add_column("类别")
    table.add_column("池", width=6)
    table.add_column("原始分", justify="right")
    table.add_column("计入分", justify="right")
    table.add_column("说明")
    for detail in result.details:
        table.add_row(
            detail.title,
            detail.category,
            "学术" if detail.bucket == "academic" else "综合",
            f"{detail.raw_score:.2f}",
            f"{detail.applied_score:.2f}",
            detail.notes or "",
        )
    console.print(table)
    console.print(
        f"学术专长 {result.capped_academic_score:.2f} / {POLICY_META['academic_score_cap']}  "
        f"综合表现 {result.capped_comprehensive_score:.2f} / {POLICY_META['comprehensive_score_cap']}  "
        f"合计 {result.total_score:.2f}"
    )


@app.command()
def validate(
    student: Annotated[str, typer.Option("--student", "-s", help="Student identifier")],
    file: Annotated[
        Path,
        typer.Option(
            "--file",
            "-f",
            help="Submission JSON file",
            exists=True,
            file_okay=True,
            dir_okay=False,
        ),
    ],
    record: Annotated[
        bool, typer.Option("--record/--dry-run", help="Record the submission when accepted")
    ] = False,
):
    """Validate a catalog submission against the student's filings."""
    try:
        payload = json.loads(file.read_text(encoding="utf-8"))
    except (IOError, UnicodeDecodeError, json.JSONDecodeError) as e:
        console.print(f"[red]! Error reading submission:[/red] {e}")
        raise typer.Exit(code=1)

    service = _get_service()
    try:
        if record:
            report = service.file_submission(student, payload)
        else:
            report = service.validator.validate_for_student(payload, student)
    except PEMSError as exc:
        _fail(exc)

    if report.violations:
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("级别", width=8)
        table.add_column("字段")
        table.add_column("说明")
        for violation in report.violations:
            colour = "red" if violation.severity == "error" else "yellow"
            table.add_row(f"[{colour}]{violation.severity}[/]", violation.path, violation.message)
        console.print(table)

    if report.accepted:
        console.print("[green]> Submission accepted[/green]")
    else:
        console.print("[red]! Submission rejected[/red]")
        raise typer.Exit(code=1)


@app.command()
def review(
    achievement: Annotated[str, typer.Option("--achievement", "-a", help="Achievement identifier")],
    reviewer: Annotated[str, typer.Option("--reviewer", "-r", help="Reviewer identifier")],
    status: Annotated[str, typer.Option("--status", help="approved | rejected")],
    comment: Annotated[str | None, typer.Option("--comment", "-c", help="Review comment")] = None,
):
    """Record a reviewer's verdict on an achievement."""
    service = _get_service()
    try:
        updated = service.review(achievement, reviewer, status, comment)
    except PEMSError as exc:
        _fail(exc)

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("审核人")
    table.add_column("工号")
    table.add_column("状态")
    table.add_column("说明")
    for slot in updated.reviews:
        colour = {ReviewStatus.APPROVED.value: "green", ReviewStatus.REJECTED.value: "red"}.get(
            slot.status, "yellow"
        )
        table.add_row(
            slot.reviewer_name,
            slot.reviewer_external_id,
            f"[{colour}]{slot.status}[/]",
            slot.comment or "",
        )
    console.print(table)
    console.print(f"Overall status: [bold]{updated.status}[/bold]")


@app.command()
def reviewers():
    """Show the active reviewer roster."""
    service = _get_service()
    try:
        roster = service.roster.get()
    except PEMSError as exc:
        _fail(exc)

    if not roster:
        console.print("[yellow]No active reviewers[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("姓名")
    table.add_column("工号")
    for reviewer in roster:
        table.add_row(reviewer.id, reviewer.name, reviewer.external_id)
    console.print(table)


@app.command()
def catalog(
    search: Annotated[str | None, typer.Option("--search", "-q", help="Keyword")] = None,
    category: Annotated[str | None, typer.Option("--category", "-c", help="Category slug")] = None,
    flag: Annotated[
        list[str] | None, typer.Option("--flag", help="Required flag (repeatable)")
    ] = None,
):
    """Browse the bonus-point catalog."""
    try:
        flags = [CatalogFlag(f) for f in flag or []]
    except ValueError:
        valid = ", ".join(f.value for f in CatalogFlag)
        console.print(f"[red]! Error:[/red] unknown flag; expected one of {valid}")
        raise typer.Exit(code=1)

    items = search_catalog_items(search=search, flags=flags, category=category)
    console.print(f"[dim]Catalog version {CATALOG_VERSION}[/dim]")
    if not items:
        console.print("[yellow]No catalog items match[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Slug", style="dim")
    table.add_column("类别")
    table.add_column("名称")
    table.add_column("上限", justify="right")
    table.add_column("Flags")
    for item in items:
        table.add_row(
            item.slug,
            item.category,
            item.title,
            f"{item.max_score:g}" if item.max_score is not None else "-",
            ", ".join(item.flags),
        )
    console.print(table)


@app.command()
def init_store():
    """Initialize the object store."""
    console.print("[bold blue]Initializing object store...[/bold blue]")
    store = _get_store()
    for name in ("students", "achievements", "academic_records", "submissions"):
        (store.base_dir / name).mkdir(parents=True, exist_ok=True)
    console.print("[green]Object store ready at[/green] ", store.base_dir)


if __name__ == "__main__":
    app()
