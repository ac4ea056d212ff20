import logging
from typing import AsyncIterator, Iterable, List

from gidgethub import GitHubException
from gidgethub.abc import GitHubAPI

from pr_monitor.github.model import (
    Content,
    Issue,
    IssueComment,
    PrFile,
    PullRequest,
    Review,
)
from pr_monitor.metric import record_api_call

logger = logging.getLogger("pr_monitor")


class API:
    gh: GitHubAPI
    repository: str

    call_count: int

    def __init__(self, gh: GitHubAPI, repository: str):
        self.gh = gh
        self.repository = repository
        self.call_count = 0

    @property
    def repo_url(self) -> str:
        return f"/repos/{self.repository}"

    def _count(self, endpoint: str) -> None:
        self.call_count += 1
        record_api_call(endpoint)

    async def get_content(self, path: str) -> Content:
        self._count("contents")
        url = f"{self.repo_url}/contents/{path}"
        logger.debug("Get file content: %s", url)
        return Content.model_validate(await self.gh.getitem(url))

    async def get_pulls(self) -> AsyncIterator[PullRequest]:
        self._count("pulls")
        url = (
            f"{self.repo_url}/pulls?state=open&sort=updated&direction=asc&per_page=100"
        )
        logger.debug("Get open pulls %s", url)
        async for item in self.gh.getiter(url):
            yield PullRequest.model_validate(item)

    async def get_pull_request_reviews(self, number: int) -> List[Review]:
        self._count("reviews")
        url = f"{self.repo_url}/pulls/{number}/reviews"
        logger.debug("Getting reviews for PR #%d %s", number, url)
        return [Review.model_validate(item) async for item in self.gh.getiter(url)]

    async def get_pull_request_files(self, number: int) -> AsyncIterator[PrFile]:
        self._count("files")
        url = f"{self.repo_url}/pulls/{number}/files?per_page=100"
        logger.debug("Getting files for PR #%d %s", number, url)
        async for item in self.gh.getiter(url):
            yield PrFile.model_validate(item)

    async def add_assignees(self, number: int, assignees: Iterable[str]) -> bool:
        self._count("assignees")
        url = f"{self.repo_url}/issues/{number}/assignees"
        assignees = list(assignees)
        logger.debug("Assigning %s to PR #%d", assignees, number)
        try:
            await self.gh.post(url, data={"assignees": assignees})
        except GitHubException as e:
            logger.warning("Failed to assign PR #%d: %s", number, e)
            return False
        return True

    async def create_issue(
        self, title: str, body: str, labels: Iterable[str] = ()
    ) -> Issue:
        self._count("issues")
        url = f"{self.repo_url}/issues"
        logger.debug("Creating issue '%s' %s", title, url)
        data = await self.gh.post(
            url, data={"title": title, "body": body, "labels": list(labels)}
        )
        return Issue.model_validate(data)

    async def get_issue_comments(self, number: int) -> List[IssueComment]:
        self._count("comments")
        url = f"{self.repo_url}/issues/{number}/comments"
        logger.debug("Fetching comments for issue #%d", number)
        try:
            return [
                IssueComment.model_validate(item) async for item in self.gh.getiter(url)
            ]
        except GitHubException as e:
            logger.warning("Failed to get comments for issue #%d: %s", number, e)
            return []

    async def create_comment(self, number: int, body: str) -> IssueComment:
        self._count("comments")
        url = f"{self.repo_url}/issues/{number}/comments"
        logger.debug("Commenting on issue #%d", number)
        return IssueComment.model_validate(
            await self.gh.post(url, data={"body": body})
        )
