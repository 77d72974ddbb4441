"""Pydantic models for gh-cr."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ThreadView(StrEnum):
    """The three lenses over the fetched thread set, in Tab order."""

    UNRESOLVED = "unresolved"
    ACTIVE = "active"
    SKIPPED = "skipped"

    def next(self) -> ThreadView:
        members = list(ThreadView)
        return members[(members.index(self) + 1) % len(members)]

    @property
    def label(self) -> str:
        """Name shown to the user."""
        return _VIEW_LABELS[self]

    @property
    def skip_action(self) -> str:
        return "unskip" if self is ThreadView.SKIPPED else "skip"


_VIEW_LABELS = {
    ThreadView.UNRESOLVED: "unresolved",
    ThreadView.ACTIVE: "unskipped",
    ThreadView.SKIPPED: "skipped",
}


class Repo(BaseModel):
    """A GitHub repository."""

    model_config = ConfigDict(frozen=True)

    owner: str = Field(description="Repository owner (user or organization)")
    name: str = Field(description="Repository name")

    def __str__(self) -> str:
        return f"{self.owner}/{self.name}"


class Comment(BaseModel):
    """A single comment within a review thread."""

    model_config = ConfigDict(frozen=True)

    comment_id: str = Field(description="GraphQL node ID of the comment")
    database_id: int = Field(description="Numeric ID, used as the reply target")
    author: str = Field(default="unknown", description="GitHub username of the comment author")
    body: str = Field(default="", description="Comment body text")
    diff_hunk: str | None = Field(default=None, description="Diff excerpt the comment is anchored to")
    created_at: datetime = Field(description="When the comment was posted (UTC)")

    @field_validator("created_at")
    @classmethod
    def _normalize_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            msg = "created_at must carry a timezone"
            raise ValueError(msg)
        return value.astimezone(UTC)


class Thread(BaseModel):
    """A review thread on a pull request. Immutable snapshot of one fetch."""

    model_config = ConfigDict(frozen=True)

    thread_id: str = Field(description="GraphQL node ID (PRRT_...)")
    path: str = Field(default="unknown", description="File path the thread is anchored to")
    diff_hunk: str | None = Field(default=None, description="Diff excerpt shown above the comments")
    is_resolved: bool = Field(default=False, description="Whether the thread is resolved")
    comments: tuple[Comment, ...] = Field(min_length=1, description="Comments in arrival order")

    @property
    def created_at(self) -> datetime:
        """Thread creation time, taken from its first comment."""
        return self.comments[0].created_at

    @property
    def last_comment(self) -> Comment:
        return self.comments[-1]

    def sort_key(self) -> tuple[bool, datetime]:
        """Unresolved-and-oldest sorts first."""
        return (self.is_resolved, self.created_at)


class QueuedReply(BaseModel):
    """A composed reply waiting to be published."""

    model_config = ConfigDict(frozen=True)

    comment_database_id: int = Field(description="Numeric ID of the comment being replied to")
    body: str = Field(min_length=1, description="Reply text")
