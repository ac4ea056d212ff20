from typing import List, Optional

import pydantic

DEFAULT_COMMENT_MESSAGE = (
    "⏰ This PR has had no activity and has been open for {days} days. "
    "{assignees} could you take a look?"
)

NEEDS_REVIEW_MESSAGE = (
    "👀 This PR has been open for {days} days without any reviews. "
    "{assignees} please take a look!"
)


class Model(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(extra="forbid", populate_by_name=True)


def split_labels(value):
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [label.strip() for label in value if label.strip()]


class MonitorConfig(Model):
    stale_days: int = pydantic.Field(7, alias="stale-days", ge=0)
    old_days: int = pydantic.Field(30, alias="old-days", ge=0)
    review_days: int = pydantic.Field(2, alias="review-days", ge=0)

    blocked_labels: List[str] = pydantic.Field(
        default_factory=lambda: ["blocked", "on-hold", "waiting"],
        alias="blocked-labels",
    )
    ignore_drafts: bool = pydantic.Field(False, alias="ignore-drafts")

    create_issue: bool = pydantic.Field(False, alias="create-issue")
    issue_labels: List[str] = pydantic.Field(
        default_factory=lambda: ["pr-monitor"], alias="issue-labels"
    )

    auto_comment: bool = pydantic.Field(False, alias="auto-comment")
    comment_message: str = pydantic.Field(
        DEFAULT_COMMENT_MESSAGE, alias="comment-message"
    )

    slack_webhook: Optional[str] = pydantic.Field(None, alias="slack-webhook")
    teams_webhook: Optional[str] = pydantic.Field(None, alias="teams-webhook")

    auto_assign_codeowners: bool = pydantic.Field(
        False, alias="auto-assign-codeowners"
    )

    dry_run: bool = pydantic.Field(False, alias="dry-run")

    @pydantic.field_validator("blocked_labels", "issue_labels", mode="before")
    @classmethod
    def comma_separated(cls, value):
        return split_labels(value)

    @pydantic.field_validator("slack_webhook", "teams_webhook", mode="before")
    @classmethod
    def empty_is_unset(cls, value):
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

    @pydantic.field_validator("comment_message", mode="before")
    @classmethod
    def default_message(cls, value):
        if value is None or (isinstance(value, str) and value.strip() == ""):
            return DEFAULT_COMMENT_MESSAGE
        return value
