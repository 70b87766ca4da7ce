"""Public API for the repository context toolkit."""

from .git_repo import GitCommandError, RemoteListing, list_remotes, run_git
from .hosting import parse_hosted_url, resolve_hosted_repo
from .manager import RepositoryContextManager
from .models import HostedRepoIdentity, Remote, RepoContext
from .render import build_context_section, mentions_repository
from .service import RepoContextBuilder, RepoContextConsoleIO, build_repo_context

__all__ = [
    "GitCommandError",
    "HostedRepoIdentity",
    "Remote",
    "RemoteListing",
    "RepoContext",
    "RepoContextBuilder",
    "RepoContextConsoleIO",
    "RepositoryContextManager",
    "build_context_section",
    "build_repo_context",
    "list_remotes",
    "mentions_repository",
    "parse_hosted_url",
    "resolve_hosted_repo",
    "run_git",
]
