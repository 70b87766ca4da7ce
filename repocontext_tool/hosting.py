"""Resolve an owner/name identity from remote URLs on a hosting domain."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable, Optional, Pattern, Tuple

from .models import DEFAULT_HOSTING_DOMAIN, HostedRepoIdentity, Remote


@lru_cache(maxsize=None)
def _url_patterns(host: str) -> Tuple[Pattern[str], Pattern[str]]:
    escaped = re.escape(host)
    ssh = re.compile(rf"^[^@/\s]+@{escaped}:([^/]+)/([^/]+?)(?:\.git)?$")
    https = re.compile(rf"^https://{escaped}/([^/]+)/([^/]+?)(?:\.git)?/?$")
    return ssh, https


def parse_hosted_url(url: str, host: str = DEFAULT_HOSTING_DOMAIN) -> Optional[Tuple[str, str]]:
    """Return ``(owner, name)`` when *url* points at a repository on *host*.

    Two shapes are recognised::

        git@github.com:owner/repo.git
        https://github.com/owner/repo.git

    A trailing ``.git`` or ``/`` is dropped from the name; nothing else is
    normalised.
    """

    for pattern in _url_patterns(host):
        match = pattern.match(url)
        if match:
            owner, name = match.groups()
            return owner, name
    return None


def resolve_hosted_repo(
    remotes: Iterable[Remote],
    host: str = DEFAULT_HOSTING_DOMAIN,
) -> Optional[HostedRepoIdentity]:
    """Return the identity of the first remote, in discovery order, hosted on *host*."""

    for remote in remotes:
        parsed = parse_hosted_url(remote.url, host)
        if parsed:
            owner, name = parsed
            return HostedRepoIdentity(owner=owner, name=name, url=remote.url)
    return None


__all__ = ["parse_hosted_url", "resolve_hosted_repo"]
