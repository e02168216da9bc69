"""Rich-based terminal report renderer with JSON support."""

from __future__ import annotations

import io
from datetime import datetime

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .config import DisplayConfig, HackathonConfig, sort_for_display
from .models import ContributorView, HackathonReport, PullRequest, Review
from .snapshot import dumps_snapshot

DETAIL_LIMIT = 5

_TROPHIES = {
    1: "[bold yellow]1st[/bold yellow]",
    2: "[bold white]2nd[/bold white]",
    3: "[bold dark_orange]3rd[/bold dark_orange]",
}

_REVIEW_STATE_STYLES = {
    "APPROVED": "green",
    "CHANGES_REQUESTED": "red",
    "COMMENTED": "blue",
}

_STATUS_STYLES = {"ongoing": "green", "upcoming": "blue", "ended": "dim"}


def _format_number(n: int) -> str:
    return f"{n:,}"


def _format_date(ts: datetime | None) -> str:
    return ts.strftime("%Y-%m-%d") if ts else "-"


def _plural(n: int, word: str) -> str:
    return f"{n} {word}{'' if n == 1 else 's'}"


def _make_inline_bar(count: int, max_count: int, width: int = 15) -> str:
    if max_count == 0:
        return ""
    filled = round(count / max_count * width)
    return "█" * filled


def _write_to_file(content: str, output_file: str) -> None:
    """Write content to a file and print confirmation."""
    with open(output_file, "w", encoding="utf-8") as f:
        f.write(content)
    Console().print(f"Saved to {escape(output_file)}")


def _rank_label(position: int) -> str:
    return _TROPHIES.get(position, str(position))


def _detail_line(title: str, repository: str, when: datetime | None) -> str:
    return f"{escape(title)} [dim]({escape(repository)}, {_format_date(when)})[/dim]"


def _pr_details(view: ContributorView) -> str:
    lines = []
    for pr in view.highlights(DETAIL_LIMIT):
        if isinstance(pr, PullRequest):
            lines.append(_detail_line(pr.title, pr.repository, pr.merged_at))
    return "\n".join(lines)


def _review_details(view: ContributorView) -> str:
    lines = []
    for review in view.highlights(DETAIL_LIMIT):
        if isinstance(review, Review):
            style = _REVIEW_STATE_STYLES.get(review.state.value, "white")
            title = review.pull_request_title or "PR Review"
            lines.append(
                f"{_detail_line(title, review.repository, review.submitted_at)} "
                f"[{style}]{review.state.value.lower()}[/{style}]"
            )
    return "\n".join(lines)


def _leaderboard_table(
    entries: list[ContributorView], unit: str, show_details: bool, reviews: bool
) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right", no_wrap=True)
    table.add_column("Contributor", no_wrap=True)
    table.add_column(unit.title(), justify="right", no_wrap=True)
    if show_details:
        table.add_column("Recent" if reviews else "Contributions")

    for position, view in enumerate(entries, start=1):
        name = escape(view.login)
        if reviews and view.is_contributor:
            name = f"{name} [blue](contributor)[/blue]"
        row = [_rank_label(position), name, _format_number(view.value)]
        if show_details:
            row.append(_review_details(view) if reviews else _pr_details(view))
        table.add_row(*row)
    return table


def _print_prizes(console: Console, hackathon: HackathonConfig) -> None:
    if not hackathon.prizes:
        return
    console.print("[bold]Prizes[/bold]")
    table = Table(show_header=True, header_style="bold")
    table.add_column("Prize")
    table.add_column("Description")
    table.add_column("Value", justify="right", no_wrap=True)
    for prize in hackathon.prizes:
        table.add_row(escape(prize.name), escape(prize.description), escape(prize.value or "-"))
    console.print(table)
    console.print()


def _print_sponsors(console: Console, hackathon: HackathonConfig) -> None:
    console.print("[bold]Sponsors[/bold]")
    grouped = hackathon.sponsors_by_level()
    if not grouped:
        console.print("[italic dim]No sponsors yet.[/italic dim]")
    for level, sponsors in grouped.items():
        names = ", ".join(
            escape(f"{s.name} ({s.website})" if s.website else s.name) for s in sponsors
        )
        console.print(f"  [bold]{level.title()} Sponsors:[/bold] {names}")
    if hackathon.sponsor_note:
        console.print(escape(hackathon.sponsor_note))
    if hackathon.sponsor_link:
        console.print(f"Become a Sponsor: {escape(hackathon.sponsor_link)}")
    console.print()


def render_report(
    report: HackathonReport,
    hackathon: HackathonConfig | None = None,
    output_file: str | None = None,
) -> None:
    """Render a HackathonReport to the terminal using rich.

    ``hackathon`` supplies display options and the event's description,
    rules, prizes and sponsors; without it only the statistics are shown.
    """
    display = hackathon.display if hackathon else DisplayConfig()
    if output_file:
        string_io = io.StringIO()
        console = Console(file=string_io, force_terminal=False, width=120)
    else:
        console = Console()

    period = f"{_format_date(report.window.start)} ~ {_format_date(report.window.end)}"
    console.print(Panel(
        Text(f"{report.name}\nPeriod: {period}", justify="center"),
        style="bold cyan",
    ))
    console.print()

    if hackathon and hackathon.description.strip():
        console.print(escape(hackathon.description.strip()))
        console.print()
    if hackathon and hackathon.rules:
        console.print("[bold]Rules[/bold]")
        console.print(escape(hackathon.rules.strip()))
        console.print()

    if report.failed_stages:
        console.print(
            f"[bold yellow]Warning:[/bold yellow] No data could be collected for: "
            f"{', '.join(report.failed_stages)}"
        )
        console.print()

    stats = report.stats
    console.print("[bold]Summary[/bold]")
    summary = Table(show_header=False, box=None, padding=(0, 2))
    summary.add_column("label", style="dim")
    summary.add_column("value", style="bold")
    summary.add_row("Participants", _format_number(stats.participant_count))
    summary.add_row("Pull Requests", _format_number(stats.total_prs))
    summary.add_row("Merged PRs", _format_number(stats.merged_prs))
    summary.add_row("Issues", _format_number(stats.total_issues))
    summary.add_row("Repositories", _format_number(len(report.repositories)))
    console.print(summary)
    console.print()

    console.print("[bold]Leaderboard[/bold]")
    if report.leaderboard:
        console.print(_leaderboard_table(
            report.leaderboard, "merged PRs", display.show_prs_in_leaderboard, reviews=False
        ))
    else:
        console.print("[italic dim]No contributions yet. Be the first to contribute![/italic dim]")
    console.print()

    console.print("[bold]Review Leaderboard[/bold]")
    if report.review_leaderboard:
        console.print(_leaderboard_table(
            report.review_leaderboard, "reviews", display.show_reviews_in_leaderboard, reviews=True
        ))
    else:
        console.print("[italic dim]No reviews yet. Be the first to review![/italic dim]")
    console.print()

    if display.show_repo_stats and report.repositories:
        console.print("[bold]Repositories[/bold]")
        repo_table = Table(show_header=True, header_style="bold")
        repo_table.add_column("Repository", no_wrap=True)
        repo_table.add_column("PRs", justify="right", no_wrap=True)
        repo_table.add_column("Merged", justify="right", no_wrap=True)
        repo_table.add_column("Issues", justify="right", no_wrap=True)
        repo_table.add_column("Closed", justify="right", no_wrap=True)
        for repository in report.repositories:
            stat = stats.repo_stats.get(repository)
            if stat is None:
                repo_table.add_row(escape(repository), "0", "0", "0", "0")
                continue
            repo_table.add_row(
                escape(repository),
                _format_number(stat.total_prs),
                _format_number(stat.merged_prs),
                _format_number(stat.total_issues),
                _format_number(stat.closed_issues),
            )
        console.print(repo_table)
        console.print()

    active_days = [(d, b) for d, b in stats.daily_activity.items() if b.total or b.merged]
    if active_days:
        console.print("[bold]Daily Activity[/bold]")
        max_merged = max(b.merged for _, b in active_days)
        day_table = Table(show_header=True, header_style="bold")
        day_table.add_column("Date", no_wrap=True)
        day_table.add_column("Opened", justify="right")
        day_table.add_column("Merged", justify="right")
        day_table.add_column("")
        for day, bucket in active_days:
            day_table.add_row(
                day,
                str(bucket.total),
                str(bucket.merged),
                _make_inline_bar(bucket.merged, max_merged),
            )
        console.print(day_table)
        console.print()

    if hackathon:
        _print_prizes(console, hackathon)
        _print_sponsors(console, hackathon)

    if output_file:
        _write_to_file(string_io.getvalue(), output_file)


def render_json(report: HackathonReport, output_file: str | None = None) -> None:
    """Render a HackathonReport as a JSON snapshot."""
    content = dumps_snapshot(report)
    if output_file:
        _write_to_file(content, output_file)
    else:
        print(content)


def render_hackathon_list(
    hackathons: list[HackathonConfig],
    site_name: str = "Hackathons",
    now: datetime | None = None,
) -> None:
    """Render configured hackathons with their status."""
    console = Console()
    console.print(f"[bold]{escape(site_name)}[/bold]")
    if not hackathons:
        console.print("[italic dim]No hackathons configured.[/italic dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Slug", no_wrap=True)
    table.add_column("Name")
    table.add_column("Dates", no_wrap=True)
    table.add_column("Status", no_wrap=True)
    table.add_column("Repositories")
    table.add_column("Time", no_wrap=True)
    for h in sort_for_display(hackathons, now):
        status = h.status(now)
        style = _STATUS_STYLES[status]
        if h.github.organization:
            repos = f"All repos in {escape(h.github.organization)}"
            if h.github.repositories:
                repos += f" + {_plural(len(h.github.repositories), 'repo')}"
        else:
            repos = str(len(h.github.repositories))
        table.add_row(
            h.slug,
            escape(h.name),
            f"{_format_date(h.start_time)} - {_format_date(h.end_time)}",
            f"[{style}]{status.title()}[/{style}]",
            repos,
            h.time_remaining(now),
        )
    console.print(table)
