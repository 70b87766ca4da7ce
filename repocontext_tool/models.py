"""Data model for discovered repository context."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_TTL_SECONDS = 30.0
DEFAULT_COMMAND_TIMEOUT = 5.0
DEFAULT_WAIT_TIMEOUT = 5.0
DEFAULT_POLL_INTERVAL = 0.1
DEFAULT_HOSTING_DOMAIN = "github.com"

FALLBACK_ERROR = "Unable to determine repository context"
UNKNOWN_ERROR = "Unknown error"

RemoteDirection = Literal["fetch", "push"]


class Remote(BaseModel):
    """One line of ``git remote -v`` output."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Remote name, for example 'origin'.")
    url: str = Field(description="Remote URL exactly as git reports it.")
    direction: RemoteDirection = Field(description="Whether the URL is used to fetch or push.")


class HostedRepoIdentity(BaseModel):
    """Owner/name pair resolved from a remote on the hosting domain."""

    model_config = ConfigDict(frozen=True)

    owner: str
    name: str
    url: str = Field(description="Raw URL of the remote the identity came from.")

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.name}"


class RepoContext(BaseModel):
    """Snapshot of a working directory's version-control identity.

    A context is valid exactly when at least one remote was discovered; an
    invalid context always carries a ``validation_error`` explaining why.
    Instances are frozen, so the manager replaces them instead of editing them.
    """

    model_config = ConfigDict(frozen=True)

    working_directory: str
    is_valid_repo: bool
    remotes: tuple[Remote, ...] = ()
    hosted_repo: HostedRepoIdentity | None = None
    validation_error: str | None = None
    last_updated: datetime

    @model_validator(mode="after")
    def _check_consistency(self) -> "RepoContext":
        if self.is_valid_repo != bool(self.remotes):
            raise ValueError("is_valid_repo must be true exactly when remotes were discovered")
        if self.is_valid_repo == (self.validation_error is not None):
            raise ValueError("validation_error must be set exactly when the context is invalid")
        if self.hosted_repo is not None and not self.is_valid_repo:
            raise ValueError("hosted_repo requires a valid repository context")
        return self

    @classmethod
    def invalid(cls, working_directory: str, error: str, last_updated: datetime) -> "RepoContext":
        return cls(
            working_directory=working_directory,
            is_valid_repo=False,
            validation_error=error,
            last_updated=last_updated,
        )

    def to_payload(self) -> dict[str, Any]:
        """Return a JSON-serialisable representation of the context."""

        return self.model_dump(mode="json")


__all__ = [
    "DEFAULT_COMMAND_TIMEOUT",
    "DEFAULT_HOSTING_DOMAIN",
    "DEFAULT_POLL_INTERVAL",
    "DEFAULT_TTL_SECONDS",
    "DEFAULT_WAIT_TIMEOUT",
    "FALLBACK_ERROR",
    "UNKNOWN_ERROR",
    "HostedRepoIdentity",
    "Remote",
    "RemoteDirection",
    "RepoContext",
]
