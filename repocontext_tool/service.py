"""High-level helpers for producing repository context blocks."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import anyio

from .git_repo import GitRunner, run_git
from .manager import RepositoryContextManager
from .models import DEFAULT_HOSTING_DOMAIN, RepoContext
from .render import build_context_section
from .utils import resolve_root


class RepoContextConsoleIO:
    """Diagnostics go to stdout only when verbose; warnings always go to stderr."""

    def __init__(self, verbose: bool = False) -> None:
        self.verbose = verbose

    def tool_output(self, message: str) -> None:
        if self.verbose:
            print(message)

    def tool_warning(self, message: str) -> None:
        print(message, file=sys.stderr)


@dataclass
class RepoContextBuilder:
    """Wrap a :class:`RepositoryContextManager` and report what it discovers.

    A builder keeps its manager, so repeated calls share one cache; pass
    ``refresh=True`` to bypass it. ``manager_kwargs`` are passed straight to
    the manager, which is how the cache TTL and the timeouts are tuned.
    """

    root: Path | str | None = None
    hosting_domain: str = DEFAULT_HOSTING_DOMAIN
    verbose: bool = False
    io: Optional[RepoContextConsoleIO] = None
    runner: GitRunner = run_git
    manager_kwargs: dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.root = resolve_root(self.root)
        self.io = self.io or RepoContextConsoleIO(verbose=self.verbose)
        self.manager = RepositoryContextManager(
            self.root,
            runner=self.runner,
            hosting_domain=self.hosting_domain,
            **self.manager_kwargs,
        )

    async def get_context(self, refresh: bool = False) -> RepoContext:
        if refresh:
            context = await self.manager.refresh_context()
        else:
            context = await self.manager.get_context()
        self._report(context)
        return context

    async def render(self, refresh: bool = False) -> str:
        context = await self.get_context(refresh=refresh)
        return build_context_section(context)

    def _report(self, context: RepoContext) -> None:
        if not context.is_valid_repo:
            self.io.tool_warning(
                f"No repository context for {context.working_directory}: {context.validation_error}"
            )
            return

        self.io.tool_output(
            f"Discovered {len(context.remotes)} remote entries in {context.working_directory}"
        )
        if context.hosted_repo is None:
            self.io.tool_output(f"No remote points at {self.hosting_domain}")
        else:
            self.io.tool_output(f"Hosted repository: {context.hosted_repo.slug}")


async def build_repo_context_async(
    root: Path | str | None = None,
    hosting_domain: str = DEFAULT_HOSTING_DOMAIN,
    verbose: bool = False,
) -> str:
    builder = RepoContextBuilder(root=root, hosting_domain=hosting_domain, verbose=verbose)
    return await builder.render()


def build_repo_context(
    root: Path | str | None = None,
    hosting_domain: str = DEFAULT_HOSTING_DOMAIN,
    verbose: bool = False,
) -> str:
    """Convenience wrapper to return the rendered repository context in one call."""

    return anyio.run(build_repo_context_async, root, hosting_domain, verbose)


__all__ = [
    "RepoContextBuilder",
    "RepoContextConsoleIO",
    "build_repo_context",
    "build_repo_context_async",
]
