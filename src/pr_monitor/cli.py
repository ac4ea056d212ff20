import asyncio
from contextlib import asynccontextmanager
import logging
from pathlib import Path
from typing import List, Optional

import aiohttp
import cachetools
import pydantic
import typer
from gidgethub import aiohttp as gh_aiohttp

from pr_monitor import config
from pr_monitor.codeowners import collect_owners, match_file_to_owners, parse_codeowners
from pr_monitor.github.api import API
from pr_monitor.logger import setup_logging
from pr_monitor.model import MonitorConfig
from pr_monitor.monitor import run_monitor

logger = logging.getLogger("pr_monitor")

app = typer.Typer()
httpcache = cachetools.LRUCache(maxsize=500)


@app.callback()
def init():
    setup_logging()


@asynccontextmanager
async def github_client(token: str):
    async with aiohttp.ClientSession() as session:
        gh = gh_aiohttp.GitHubAPI(
            session,
            "pr-monitor",
            oauth_token=token,
            cache=httpcache,
        )
        yield session, gh


def _input(name: str) -> List[str]:
    # GitHub Actions exposes `with:` inputs as INPUT_<NAME>, hyphens preserved
    return [f"INPUT_{name.upper()}"]


@app.command()
def run(
    repository: Optional[str] = typer.Option(
        None, envvar="GITHUB_REPOSITORY", help="Repository as owner/name"
    ),
    token: Optional[str] = typer.Option(
        None, envvar=_input("github-token") + ["GITHUB_TOKEN"], show_default=False
    ),
    stale_days: int = typer.Option(7, envvar=_input("stale-days")),
    old_days: int = typer.Option(30, envvar=_input("old-days")),
    review_days: int = typer.Option(2, envvar=_input("review-days")),
    blocked_labels: str = typer.Option(
        "blocked,on-hold,waiting", envvar=_input("blocked-labels")
    ),
    ignore_drafts: bool = typer.Option(False, envvar=_input("ignore-drafts")),
    create_issue: bool = typer.Option(False, envvar=_input("create-issue")),
    issue_labels: str = typer.Option("pr-monitor", envvar=_input("issue-labels")),
    auto_comment: bool = typer.Option(False, envvar=_input("auto-comment")),
    comment_message: Optional[str] = typer.Option(
        None, envvar=_input("comment-message")
    ),
    slack_webhook: Optional[str] = typer.Option(None, envvar=_input("slack-webhook")),
    teams_webhook: Optional[str] = typer.Option(None, envvar=_input("teams-webhook")),
    auto_assign_codeowners: bool = typer.Option(
        False, envvar=_input("auto-assign-codeowners")
    ),
    dry_run: bool = typer.Option(config.DRY_RUN, envvar=_input("dry-run")),
):
    """Audit the open pull requests of a repository once."""
    if repository is None:
        raise typer.BadParameter("No repository given and GITHUB_REPOSITORY is unset")
    if token is None:
        raise typer.BadParameter("No token given and GITHUB_TOKEN is unset")

    try:
        monitor_config = MonitorConfig(
            stale_days=stale_days,
            old_days=old_days,
            review_days=review_days,
            blocked_labels=blocked_labels,
            ignore_drafts=ignore_drafts,
            create_issue=create_issue,
            issue_labels=issue_labels,
            auto_comment=auto_comment,
            comment_message=comment_message,
            slack_webhook=slack_webhook,
            teams_webhook=teams_webhook,
            auto_assign_codeowners=auto_assign_codeowners,
            dry_run=dry_run,
        )
    except pydantic.ValidationError as e:
        raise typer.BadParameter(str(e))

    async def handle():
        async with github_client(token) as (session, gh):
            api = API(gh, repository)
            await run_monitor(api, monitor_config, http=session)

    try:
        asyncio.run(handle())
    except Exception as e:
        logger.error("Action failed: %s", e, exc_info=True)
        raise typer.Exit(code=1)


@app.command()
def owners(
    files: List[str],
    codeowners: Path = typer.Option(
        Path(config.CODEOWNERS_PATH), exists=True, dir_okay=False
    ),
):
    """Resolve owners of local paths against a CODEOWNERS file."""
    rules = parse_codeowners(codeowners.read_text(encoding="utf-8"))
    logger.debug("Loaded %d rules from %s", len(rules), codeowners)

    for filename in files:
        found = sorted(match_file_to_owners(filename, rules))
        typer.echo(f"{filename}: {', '.join(found) if found else '-'}")

    typer.echo(f"PR owners: {', '.join(sorted(collect_owners(files, rules))) or '-'}")
