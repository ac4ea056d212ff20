from datetime import datetime, timezone
from typing import List, Optional

from tabulate import tabulate

from pr_monitor.github import MonitorResult, PrSummary, ReviewStatus


def _draft_badge(pr: PrSummary) -> str:
    return "`DRAFT`" if pr.draft else ""


def _review_badge(pr: PrSummary) -> str:
    if pr.review_status == ReviewStatus.approved:
        return "✅"
    elif pr.review_status == ReviewStatus.changes_requested:
        return "❌"
    return "⏳"


def _summary_table(result: MonitorResult) -> str:
    rows = [
        ("🔴", "Stalled", len(result.stalled)),
        ("🟡", "Unassigned", len(result.unassigned)),
        ("🚫", "Blocked", len(result.blocked)),
        ("📅", "Long-running", len(result.old)),
        ("👀", "Awaiting first review", len(result.needs_review)),
    ]
    return tabulate(rows, headers=("", "Category", "PRs"), tablefmt="github")


def _section(title: str, lines: List[str], empty: Optional[str]) -> str:
    text = f"## {title}\n\n"
    if len(lines) > 0:
        text += "".join(lines)
    elif empty is not None:
        text += f"✅ {empty}\n\n"
    return text


def generate_report(
    result: MonitorResult,
    stale_days: int,
    old_days: int,
    now: Optional[datetime] = None,
) -> str:
    now = now or datetime.now(timezone.utc)

    report = "# 📊 Pull Request Status Report\n\n"
    report += f"**Generated:** {now:%Y-%m-%d %H:%M:%S} UTC\n"
    report += f"**Total Open PRs:** {result.total_prs}\n\n"

    if result.total_issues == 0:
        report += "## ✅ All Clear!\n\nNo issues found with open pull requests.\n\n"
    else:
        report += "## ⚠️ Summary\n\n" + _summary_table(result) + "\n\n"

    report += _section(
        f"⏱️ Stalled PRs (No activity for {stale_days}+ days)",
        [
            f"- {_review_badge(pr)} [#{pr.number}]({pr.url}) {_draft_badge(pr)} - {pr.title}\n"
            f"  - Author: @{pr.author} | Last updated: **{pr.days_since_update} days ago**\n\n"
            for pr in result.stalled
        ],
        "No stalled PRs found.",
    )

    if len(result.needs_review) > 0:
        report += _section(
            "👀 PRs Awaiting First Review",
            [
                f"- [#{pr.number}]({pr.url}) - {pr.title}\n"
                f"  - Author: @{pr.author} | Open for: **{pr.days_since_created} days**\n\n"
                for pr in result.needs_review
            ],
            None,
        )

    report += _section(
        "👤 Unassigned PRs",
        [
            f"- [#{pr.number}]({pr.url}) {_draft_badge(pr)} - {pr.title}\n"
            f"  - Author: @{pr.author}\n\n"
            for pr in result.unassigned
        ],
        "No unassigned PRs found.",
    )

    report += _section(
        "🚫 Blocked PRs",
        [
            f"- [#{pr.number}]({pr.url}) {_draft_badge(pr)} - {pr.title}\n"
            f"  - Author: @{pr.author} | Labels: `{', '.join(pr.labels)}`\n\n"
            for pr in result.blocked
        ],
        "No blocked PRs found.",
    )

    report += _section(
        f"📅 Long-Running PRs (Open for {old_days}+ days)",
        [
            f"- [#{pr.number}]({pr.url}) {_draft_badge(pr)} - {pr.title}\n"
            f"  - Author: @{pr.author} | Open for: **{pr.days_since_created} days**\n\n"
            for pr in result.old
        ],
        "No long-running PRs found.",
    )

    return report
