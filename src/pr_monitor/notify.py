import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp
import notifiers
from notifiers.exceptions import NotifierException

from pr_monitor.github import MonitorResult

logger = logging.getLogger("pr_monitor")


def category_counts(result: MonitorResult) -> List[tuple]:
    return [
        ("Stalled PRs", len(result.stalled)),
        ("Unassigned PRs", len(result.unassigned)),
        ("Blocked PRs", len(result.blocked)),
        ("Long-running PRs", len(result.old)),
    ]


def slack_payload(result: MonitorResult) -> Dict[str, Any]:
    total = result.total_issues
    return {
        "message": f"🔔 *PR Status Alert*: {total} issue{'' if total == 1 else 's'} found",
        "attachments": [
            {
                "title": "📊 Pull Request Status Report",
                "fields": [
                    {"title": name, "value": str(count), "short": True}
                    for name, count in category_counts(result)
                ],
            }
        ],
    }


def teams_payload(result: MonitorResult) -> Dict[str, Any]:
    return {
        "@type": "MessageCard",
        "@context": "http://schema.org/extensions",
        "themeColor": "FF6B35",
        "summary": f"PR Status Alert: {result.total_issues} issues found",
        "sections": [
            {
                "activityTitle": "Pull Request Status Report",
                "facts": [
                    {"name": name, "value": str(count)}
                    for name, count in category_counts(result)
                ],
            }
        ],
    }


def send_slack_notification(webhook_url: str, result: MonitorResult) -> bool:
    slack = notifiers.get_notifier("slack")
    try:
        response = slack.notify(webhook_url=webhook_url, **slack_payload(result))
        response.raise_on_errors()
    except NotifierException as e:
        logger.warning("Failed to send Slack notification: %s", e)
        return False
    logger.info("Slack notification sent")
    return True


async def send_teams_notification(
    webhook_url: str,
    result: MonitorResult,
    session: Optional[aiohttp.ClientSession] = None,
) -> bool:
    async def post(s: aiohttp.ClientSession) -> None:
        async with s.post(webhook_url, json=teams_payload(result)) as resp:
            resp.raise_for_status()

    try:
        if session is None:
            async with aiohttp.ClientSession() as s:
                await post(s)
        else:
            await post(session)
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        logger.warning("Failed to send Teams notification: %s", e)
        return False
    logger.info("Teams notification sent")
    return True
