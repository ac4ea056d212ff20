import asyncio
from datetime import datetime, timezone
import logging
import math
from typing import List, Optional
import uuid

import aiohttp
from gidgethub import GitHubException

from pr_monitor import config as app_config
from pr_monitor.codeowners import OwnershipRule, get_pr_codeowners, load_codeowners
from pr_monitor.github import (
    MonitorResult,
    PrSummary,
    ReviewStatus,
    comment_on_prs,
)
from pr_monitor.github.api import API
from pr_monitor.github.model import PullRequest, Review
from pr_monitor.metric import (
    action_error_count,
    auto_assign_count,
    open_prs,
    pr_issue_count,
    push_metrics,
)
from pr_monitor.model import NEEDS_REVIEW_MESSAGE, MonitorConfig
from pr_monitor.notify import send_slack_notification, send_teams_notification
from pr_monitor.report import generate_report

logger = logging.getLogger("pr_monitor")


def days_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 86400


def review_status(reviews: List[Review]) -> ReviewStatus:
    if any(r.state == "CHANGES_REQUESTED" for r in reviews):
        return ReviewStatus.changes_requested
    if any(r.state == "APPROVED" for r in reviews):
        return ReviewStatus.approved
    return ReviewStatus.pending


def is_blocked(pr: PullRequest, blocked_labels: List[str]) -> bool:
    labels = {label.name.lower() for label in pr.labels}
    return any(b.lower() in labels for b in blocked_labels)


async def try_auto_assign(
    api: API,
    pr: PullRequest,
    rules: List[OwnershipRule],
    dry_run: bool = False,
) -> bool:
    owners = await get_pr_codeowners(api, pr.number, rules)
    if len(owners) == 0:
        logger.debug("No CODEOWNERS found for %s", pr)
        auto_assign_count.labels(result="no_owner").inc()
        return False

    if dry_run:
        logger.info("[dry run] Would auto-assign PR #%d to: %s", pr.number, ", ".join(owners))
        auto_assign_count.labels(result="dry_run").inc()
        return False

    if not await api.add_assignees(pr.number, owners):
        auto_assign_count.labels(result="failure").inc()
        return False

    logger.info("Auto-assigned PR #%d to: %s", pr.number, ", ".join(owners))
    auto_assign_count.labels(result="success").inc()
    return True


async def analyze_pull_request(
    api: API,
    pr: PullRequest,
    config: MonitorConfig,
    result: MonitorResult,
    rules: Optional[List[OwnershipRule]],
    now: datetime,
) -> None:
    days_since_created = days_between(pr.created_at, now)
    days_since_update = days_between(pr.updated_at, now)

    reviews = await api.get_pull_request_reviews(pr.number)

    summary = PrSummary.from_pull_request(
        pr,
        days_since_created=math.floor(days_since_created),
        days_since_update=math.floor(days_since_update),
        review_status=review_status(reviews),
    )

    if days_since_update >= config.stale_days:
        result.stalled.append(summary)

    if days_since_created >= config.old_days:
        result.old.append(summary)

    if len(pr.assignees) == 0:
        assigned = False
        if rules is not None:
            assigned = await try_auto_assign(api, pr, rules, dry_run=config.dry_run)
        if assigned:
            result.auto_assigned.append(summary)
        else:
            result.unassigned.append(summary)

    if is_blocked(pr, config.blocked_labels):
        result.blocked.append(summary)

    if not pr.draft and len(reviews) == 0 and days_since_created >= config.review_days:
        result.needs_review.append(summary)


async def load_rules(api: API, config: MonitorConfig) -> Optional[List[OwnershipRule]]:
    if not config.auto_assign_codeowners:
        return None
    try:
        rules = await load_codeowners(api)
    except GitHubException as e:
        logger.warning("Unable to load CODEOWNERS (%s). Auto-assign disabled.", e)
        return None
    if rules is None:
        logger.warning("CODEOWNERS file not found. Auto-assign disabled.")
        return None
    logger.info("Loaded CODEOWNERS with %d rules", len(rules))
    return rules


def write_outputs(
    result: MonitorResult, report: str, path: Optional[str] = None
) -> bool:
    path = path or app_config.GITHUB_OUTPUT
    if path is None:
        return False

    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    outputs = {
        "stalled-count": len(result.stalled),
        "unassigned-count": len(result.unassigned),
        "blocked-count": len(result.blocked),
        "old-count": len(result.old),
        "needs-review-count": len(result.needs_review),
        "total-issues": result.total_issues,
    }
    with open(path, "a", encoding="utf-8") as fh:
        fh.write(f"report<<{delimiter}\n{report}\n{delimiter}\n")
        for key, value in outputs.items():
            fh.write(f"{key}={value}\n")
    return True


def record_metrics(result: MonitorResult) -> None:
    open_prs.set(result.total_prs)
    for category in ("stalled", "unassigned", "blocked", "old", "needs_review"):
        pr_issue_count.labels(category=category).set(len(getattr(result, category)))


async def take_actions(
    api: API,
    config: MonitorConfig,
    result: MonitorResult,
    report: str,
    now: datetime,
    http: Optional[aiohttp.ClientSession] = None,
) -> None:
    if config.create_issue and result.total_issues > 0:
        title = f"PR Status Report - {now:%Y-%m-%d}"
        if config.dry_run:
            logger.info("[dry run] Would create issue '%s'", title)
        else:
            logger.info("Creating issue with report...")
            issue = await api.create_issue(title, report, config.issue_labels)
            logger.info("Created issue #%d", issue.number)

    if config.auto_comment:
        batches = [
            ("stalled", result.stalled, config.comment_message),
            ("needing review", result.needs_review, NEEDS_REVIEW_MESSAGE),
        ]
        for name, prs, template in batches:
            if len(prs) == 0:
                continue
            if config.dry_run:
                logger.info("[dry run] Would comment on %d PRs %s", len(prs), name)
                continue
            logger.info("Adding comments to PRs %s...", name)
            await comment_on_prs(
                api, prs, template, app_config.BOT_COMMENT_DAYS, now=now
            )

    if result.total_issues == 0:
        return

    if config.slack_webhook is not None:
        if config.dry_run:
            logger.info("[dry run] Would send Slack notification")
        elif not await asyncio.to_thread(
            send_slack_notification, config.slack_webhook, result
        ):
            action_error_count.labels(action="slack").inc()

    if config.teams_webhook is not None:
        if config.dry_run:
            logger.info("[dry run] Would send Teams notification")
        elif not await send_teams_notification(
            config.teams_webhook, result, session=http
        ):
            action_error_count.labels(action="teams").inc()


async def run_monitor(
    api: API,
    config: MonitorConfig,
    http: Optional[aiohttp.ClientSession] = None,
    now: Optional[datetime] = None,
) -> MonitorResult:
    now = now or datetime.now(timezone.utc)

    rules = await load_rules(api, config)

    logger.info("Starting PR status monitoring of %s", api.repository)
    logger.info(
        "Configuration: Stale=%dd, Old=%dd, Ignore Drafts=%s",
        config.stale_days,
        config.old_days,
        config.ignore_drafts,
    )

    pulls = [pr async for pr in api.get_pulls()]
    logger.info("Found %d open PRs", len(pulls))

    result = MonitorResult(total_prs=len(pulls))

    for pr in pulls:
        if config.ignore_drafts and pr.draft:
            logger.debug("Skipping draft PR #%d", pr.number)
            continue
        await analyze_pull_request(api, pr, config, result, rules, now)

    report = generate_report(result, config.stale_days, config.old_days, now=now)
    logger.info("\n%s", report)

    record_metrics(result)
    write_outputs(result, report)

    await take_actions(api, config, result, report, now, http=http)

    push_metrics()

    logger.info(
        "PR monitoring completed, %d issues found, API calls: %d",
        result.total_issues,
        api.call_count,
    )
    return result
