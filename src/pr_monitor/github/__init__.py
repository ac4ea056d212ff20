from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
import logging
from typing import Callable, List, Optional

from gidgethub import GitHubException

from pr_monitor.github.api import API
from pr_monitor.github.model import IssueComment, PullRequest, User

logger = logging.getLogger("pr_monitor")

INACTIVE_MARKER = "This PR has been inactive"


class ReviewStatus(Enum):
    approved = "approved"
    changes_requested = "changes-requested"
    pending = "pending"


@dataclass
class PrSummary:
    number: int
    title: str
    author: str
    url: str
    draft: bool = False
    days_since_update: int = 0
    days_since_created: int = 0
    review_status: ReviewStatus = ReviewStatus.pending
    labels: List[str] = field(default_factory=list)
    assignees: List[User] = field(default_factory=list)
    requested_reviewers: List[User] = field(default_factory=list)

    @classmethod
    def from_pull_request(cls, pr: PullRequest, **kwargs) -> "PrSummary":
        return cls(
            number=pr.number,
            title=pr.title,
            author=pr.user.login,
            url=pr.html_url,
            draft=pr.draft,
            labels=[label.name for label in pr.labels],
            assignees=list(pr.assignees),
            requested_reviewers=list(pr.requested_reviewers),
            **kwargs,
        )


@dataclass
class MonitorResult:
    total_prs: int = 0
    stalled: List[PrSummary] = field(default_factory=list)
    unassigned: List[PrSummary] = field(default_factory=list)
    blocked: List[PrSummary] = field(default_factory=list)
    old: List[PrSummary] = field(default_factory=list)
    needs_review: List[PrSummary] = field(default_factory=list)
    auto_assigned: List[PrSummary] = field(default_factory=list)

    @property
    def total_issues(self) -> int:
        # PRs awaiting a first review are reported but not counted
        return (
            len(self.stalled)
            + len(self.unassigned)
            + len(self.blocked)
            + len(self.old)
        )


async def has_recent_bot_comment(
    api: API,
    number: int,
    predicate: Callable[[IssueComment], bool],
    day_threshold: float = 7,
    now: Optional[datetime] = None,
) -> Optional[IssueComment]:
    now = now or datetime.now(timezone.utc)
    for comment in await api.get_issue_comments(number):
        if comment.user.type != "Bot" or not predicate(comment):
            continue
        age = now - comment.created_at
        if age.total_seconds() / 86400 < day_threshold:
            return comment
    return None


def format_mentions(pr: PrSummary) -> str:
    if len(pr.assignees) > 0:
        mentions = ", ".join(f"@{a.login}" for a in pr.assignees)
    else:
        mentions = f"@{pr.author}"

    if len(pr.requested_reviewers) > 0:
        mentions += ", ".join(f" @{r.login}" for r in pr.requested_reviewers)

    return mentions


def render_comment(template: str, pr: PrSummary) -> str:
    days = pr.days_since_created or pr.days_since_update
    return template.replace("{days}", str(days), 1).replace(
        "{assignees}", format_mentions(pr), 1
    )


async def comment_on_prs(
    api: API,
    prs: List[PrSummary],
    template: str,
    day_threshold: float = 7,
    now: Optional[datetime] = None,
) -> int:
    """Post ``template`` on every PR that has no recent bot reminder.

    Returns the number of comments posted. Failures are logged per PR.
    """
    posted = 0
    for pr in prs:
        try:
            recent = await has_recent_bot_comment(
                api,
                pr.number,
                lambda c: INACTIVE_MARKER in c.body,
                day_threshold,
                now=now,
            )
            if recent is not None:
                logger.debug(
                    "Skipped PR #%d (already commented recently: %s)",
                    pr.number,
                    recent.html_url,
                )
                continue

            message = render_comment(template, pr)
            logger.info("Commenting on PR #%d with message: %s", pr.number, message)
            await api.create_comment(pr.number, message)
            posted += 1
        except GitHubException as e:
            logger.warning("Failed to comment on PR #%d: %s", pr.number, e)

    return posted
