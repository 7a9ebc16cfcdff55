"""Console rendering and text export of recommendation reports."""

from datetime import datetime, timezone
from pathlib import Path

from rich.console import Console
from rich.table import Table

from gitskills.models.schemas import SkillReport


def _score_style(score: int) -> str:
    if score >= 80:
        return "green"
    if score >= 60:
        return "yellow"
    return "white"


def render_report(report: SkillReport, console: Console) -> None:
    """Print recommendations and the run summary."""
    console.print()
    if report.recommendations:
        table = Table(title="Recommended Verified Skills")
        table.add_column("Skill ID", style="dim")
        table.add_column("Skill", style="cyan")
        table.add_column("Score", justify="right")
        table.add_column("Why", style="white", max_width=70)
        for rec in report.recommendations:
            style = _score_style(rec.score)
            table.add_row(rec.id, rec.name, f"[{style}]{rec.score}[/{style}]", rec.info)
        console.print(table)
    else:
        console.print("[yellow]No skills could be recommended from the model response.[/yellow]")

    if report.rejected:
        console.print(
            f"[dim]Rejected {len(report.rejected)} names not in the catalog: "
            f"{', '.join(report.rejected)}[/dim]"
        )

    analysis = report.analysis
    summary = Table(title="Run Summary", show_header=False, box=None)
    summary.add_column("Key", style="bold")
    summary.add_column("Value", justify="right")
    summary.add_row("User", f"@{report.username}")
    summary.add_row("Repos discovered", str(analysis.repos_discovered))
    summary.add_row("Repos analyzed", str(analysis.repos_analyzed))
    summary.add_row("Commits | PRs", f"{analysis.total_commits} | {analysis.total_prs}")
    summary.add_row("Analysis source", "cache" if report.from_cache else "GitHub")
    summary.add_row("Total API calls", str(report.total_api_calls))
    summary.add_row("Elapsed", f"{report.elapsed_seconds:.2f}s")

    console.print()
    console.print(summary)
    if analysis.discovery_incomplete:
        console.print(
            "[yellow]Search results were capped by GitHub; some repositories may be missing.[/yellow]"
        )


def format_report_text(report: SkillReport) -> str:
    """Plain-text report body."""
    analysis = report.analysis
    lines = [
        "GitHub Skills Recommendation Report",
        f"Generated: {report.generated_at.isoformat()}",
        f"User: @{report.username}",
        "",
        f"Repos discovered: {analysis.repos_discovered}",
        f"Repos analyzed: {analysis.repos_analyzed}",
        f"Commits: {analysis.total_commits} | PRs: {analysis.total_prs}",
        f"Total API calls: {report.total_api_calls}",
        f"Elapsed time: {report.elapsed_seconds:.2f} seconds",
        "",
        "Recommended Verified Skills:",
    ]
    for rec in report.recommendations:
        lines.extend(
            [
                f"Skill ID: {rec.id}",
                f"Skill Name: {rec.name}",
                f"Score: {rec.score}",
                f"Why: {rec.info}",
                "---",
                "",
            ]
        )
    if not report.recommendations:
        lines.append("(none)")
    return "\n".join(lines).strip() + "\n"


def export_report(report: SkillReport, directory: Path | None = None) -> Path:
    """Write the report to skills-report-<user>-<date>.txt.

    Returns:
        Path of the written file.
    """
    date_str = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    path = (directory or Path(".")) / f"skills-report-{report.username.lower()}-{date_str}.txt"
    path.write_text(format_report_text(report))
    return path
