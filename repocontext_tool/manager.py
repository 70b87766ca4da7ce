"""Cached, single-flight discovery of the current repository context."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Optional

import anyio

from .git_repo import NO_REMOTES_ERROR, GitRunner, list_remotes, run_git
from .hosting import resolve_hosted_repo
from .models import (
    DEFAULT_COMMAND_TIMEOUT,
    DEFAULT_HOSTING_DOMAIN,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_TTL_SECONDS,
    DEFAULT_WAIT_TIMEOUT,
    FALLBACK_ERROR,
    UNKNOWN_ERROR,
    RepoContext,
)
from .render import build_context_section

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RepositoryContextManager:
    """Keep one repository context per instance and refresh it at most once at a time.

    ``get_context`` serves the cached context while it is younger than ``ttl``
    seconds. When it is missing or stale the caller runs a refresh itself. A
    caller that arrives while another refresh is in flight gets the stale
    context straight away, or, with nothing cached yet, polls until the
    refresh finishes and falls back to a synthetic invalid context after
    ``wait_timeout`` seconds. Neither method raises for discovery problems;
    they are reported through ``RepoContext.validation_error``.

    ``root`` pins the directory to inspect. Without it the process working
    directory is captured at every refresh.
    """

    def __init__(
        self,
        root: Path | str | None = None,
        *,
        runner: GitRunner = run_git,
        hosting_domain: str = DEFAULT_HOSTING_DOMAIN,
        ttl: float = DEFAULT_TTL_SECONDS,
        command_timeout: float = DEFAULT_COMMAND_TIMEOUT,
        wait_timeout: float = DEFAULT_WAIT_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        clock: Optional[Clock] = None,
    ) -> None:
        if ttl < 0:
            raise ValueError("ttl must be greater than or equal to zero")
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")

        self.root = Path(root).expanduser().resolve() if root is not None else None
        self.hosting_domain = hosting_domain
        self.ttl = timedelta(seconds=ttl)
        self.command_timeout = command_timeout
        self.wait_timeout = wait_timeout
        self.poll_interval = poll_interval
        self._runner = runner
        self._clock = clock or _utcnow

        self._context: Optional[RepoContext] = None
        self._refreshing = False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    @property
    def context(self) -> Optional[RepoContext]:
        return self._context

    @property
    def is_refreshing(self) -> bool:
        return self._refreshing

    def is_fresh(self) -> bool:
        if self._context is None:
            return False
        return self._clock() - self._context.last_updated < self.ttl

    async def get_context(self) -> RepoContext:
        if self.is_fresh():
            return self._context

        if self._refreshing:
            if self._context is not None:
                return self._context
            await self._wait_for_refresh()
            return self._context or self._fallback_context()

        await self._refresh()
        return self._context or self._fallback_context()

    async def refresh_context(self) -> RepoContext:
        """Rediscover the context regardless of how fresh the cached one is."""

        await self._refresh()
        return self._context or self._fallback_context()

    def build_context_section(self, context: RepoContext) -> str:
        return build_context_section(context)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    async def _refresh(self) -> None:
        if self._refreshing:
            logger.debug("Repository context refresh already in flight; skipping")
            return

        self._refreshing = True
        try:
            working_directory = self._working_directory()
            listing = await list_remotes(
                working_directory,
                runner=self._runner,
                timeout=self.command_timeout,
            )
            hosted_repo = resolve_hosted_repo(listing.remotes, self.hosting_domain)
            valid = bool(listing.remotes)
            self._context = RepoContext(
                working_directory=working_directory,
                is_valid_repo=valid,
                remotes=listing.remotes,
                hosted_repo=hosted_repo,
                validation_error=None if valid else (listing.error or NO_REMOTES_ERROR),
                last_updated=self._clock(),
            )
            logger.debug(
                "Repository context refreshed for %s: %d remote(s), hosted=%s",
                working_directory,
                len(listing.remotes),
                hosted_repo.slug if hosted_repo else None,
            )
        except Exception as exc:
            logger.warning("Repository context refresh failed: %s", exc, exc_info=True)
            self._context = RepoContext.invalid(
                self._safe_working_directory(),
                str(exc) or UNKNOWN_ERROR,
                self._clock(),
            )
        finally:
            self._refreshing = False

    async def _wait_for_refresh(self) -> None:
        with anyio.move_on_after(self.wait_timeout):
            while self._refreshing:
                await anyio.sleep(self.poll_interval)

    def _working_directory(self) -> str:
        if self.root is not None:
            return str(self.root)
        return os.getcwd()

    def _safe_working_directory(self) -> str:
        try:
            return self._working_directory()
        except OSError:
            return str(self.root) if self.root is not None else "."

    def _fallback_context(self) -> RepoContext:
        # Built for a caller that gave up waiting; never stored.
        return RepoContext.invalid(self._safe_working_directory(), FALLBACK_ERROR, self._clock())


__all__ = ["RepositoryContextManager"]
