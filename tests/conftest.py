import base64
from datetime import datetime, timedelta, timezone
import http
from typing import Dict, List, Optional

import pytest
from gidgethub import BadRequest

from pr_monitor.github.model import (
    Content,
    Issue,
    IssueComment,
    PrFile,
    PullRequest,
    Review,
)

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


def make_pr(
    number: int,
    created_days: float = 0,
    updated_days: float = 0,
    draft: bool = False,
    assignees=(),
    reviewers=(),
    labels=(),
    author: str = "author",
) -> PullRequest:
    return PullRequest.model_validate(
        {
            "id": 1000 + number,
            "number": number,
            "title": f"PR {number}",
            "state": "open",
            "draft": draft,
            "html_url": f"https://github.com/org/repo/pull/{number}",
            "user": {"login": author, "type": "User"},
            "created_at": (NOW - timedelta(days=created_days)).isoformat(),
            "updated_at": (NOW - timedelta(days=updated_days)).isoformat(),
            "assignees": [{"login": a} for a in assignees],
            "requested_reviewers": [{"login": r} for r in reviewers],
            "labels": [{"name": label} for label in labels],
        }
    )


def make_content(text: str, type: str = "file") -> Content:
    return Content(
        type=type,
        encoding="base64",
        size=len(text),
        name="CODEOWNERS",
        path="CODEOWNERS",
        content=base64.b64encode(text.encode()).decode(),
        sha="0" * 40,
        url="https://api.github.com/repos/org/repo/contents/CODEOWNERS",
    )


class FakeAPI:
    """In-memory stand-in for :class:`pr_monitor.github.api.API`."""

    def __init__(
        self,
        pulls: Optional[List[PullRequest]] = None,
        files: Optional[Dict[int, List[str]]] = None,
        reviews: Optional[Dict[int, List[str]]] = None,
        codeowners: Optional[str] = None,
        comments: Optional[Dict[int, List[IssueComment]]] = None,
        assign_ok: bool = True,
    ):
        self.repository = "org/repo"
        self.call_count = 0
        self.pulls = pulls or []
        self.files = files or {}
        self.reviews = reviews or {}
        self.codeowners = codeowners
        self.comments = comments or {}
        self.assign_ok = assign_ok

        self.content: Optional[Content] = None
        self.files_error: Optional[Exception] = None
        self.comment_error: Optional[Exception] = None

        self.assigned: Dict[int, List[str]] = {}
        self.posted: List[tuple] = []
        self.issues: List[tuple] = []

    async def get_content(self, path: str) -> Content:
        self.call_count += 1
        if self.content is not None:
            return self.content
        if self.codeowners is None:
            raise BadRequest(http.HTTPStatus.NOT_FOUND, "Not Found")
        return make_content(self.codeowners)

    async def get_pulls(self):
        self.call_count += 1
        for pr in self.pulls:
            yield pr

    async def get_pull_request_reviews(self, number: int) -> List[Review]:
        self.call_count += 1
        return [
            Review(id=i, state=state)
            for i, state in enumerate(self.reviews.get(number, []))
        ]

    async def get_pull_request_files(self, number: int):
        self.call_count += 1
        if self.files_error is not None:
            raise self.files_error
        for filename in self.files.get(number, []):
            yield PrFile(filename=filename, status="modified")

    async def add_assignees(self, number: int, assignees) -> bool:
        self.call_count += 1
        if not self.assign_ok:
            return False
        self.assigned[number] = list(assignees)
        return True

    async def create_issue(self, title: str, body: str, labels=()) -> Issue:
        self.call_count += 1
        self.issues.append((title, body, list(labels)))
        return Issue(
            id=1,
            number=99,
            title=title,
            html_url="https://github.com/org/repo/issues/99",
        )

    async def get_issue_comments(self, number: int) -> List[IssueComment]:
        self.call_count += 1
        return list(self.comments.get(number, []))

    async def create_comment(self, number: int, body: str) -> IssueComment:
        self.call_count += 1
        if self.comment_error is not None:
            raise self.comment_error
        self.posted.append((number, body))
        return IssueComment(
            id=len(self.posted),
            body=body,
            user={"login": "bot[bot]", "type": "Bot"},
            created_at=NOW,
        )


@pytest.fixture
def now():
    return NOW
