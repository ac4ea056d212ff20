from datetime import datetime
from typing import List, Literal, Optional
import base64

import pydantic


class Model(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(extra="ignore")


class User(Model):
    login: str
    type: str = "User"


class Label(Model):
    name: str


class Content(Model):
    type: str
    encoding: Optional[str] = None
    size: int
    name: str
    path: str
    content: Optional[str] = None
    sha: str
    url: str
    html_url: Optional[str] = None

    def decoded_content(self) -> str:
        if self.encoding != "base64":
            raise ValueError(f"Unknown encoding {self.encoding}")
        return base64.b64decode(self.content or "").decode("utf-8", errors="replace")


class PullRequest(Model):
    id: int
    number: int
    title: str
    state: Literal["open", "closed"] = "open"
    draft: bool = False
    html_url: str
    user: User
    created_at: datetime
    updated_at: datetime
    assignees: List[User] = pydantic.Field(default_factory=list)
    requested_reviewers: List[User] = pydantic.Field(default_factory=list)
    labels: List[Label] = pydantic.Field(default_factory=list)

    @pydantic.field_validator("draft", mode="before")
    @classmethod
    def none_is_not_draft(cls, value):
        return False if value is None else value

    def __str__(self) -> str:
        return f"PR(#{self.number}, {self.title!r})"


class Review(Model):
    id: int
    state: Literal[
        "APPROVED", "CHANGES_REQUESTED", "COMMENTED", "DISMISSED", "PENDING"
    ]
    user: Optional[User] = None
    submitted_at: Optional[datetime] = None


class PrFile(Model):
    sha: Optional[str] = None
    filename: str
    status: Literal[
        "added", "removed", "modified", "renamed", "copied", "changed", "unchanged"
    ]


class IssueComment(Model):
    id: int
    body: str = ""
    user: User
    created_at: datetime
    html_url: Optional[str] = None


class Issue(Model):
    id: int
    number: int
    title: str
    html_url: str
