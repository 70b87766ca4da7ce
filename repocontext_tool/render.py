"""Render a :class:`RepoContext` into the block injected into system prompts."""

from __future__ import annotations

from .models import RepoContext

DEFAULT_INVALID_ERROR = "Not a Git repository"

INVALID_INSTRUCTION = (
    "Repository operations are not available. Only general GitHub operations can be performed."
)
VALID_INSTRUCTION = (
    "Repository context is automatically available. No manual validation required."
)


def _render_invalid(context: RepoContext) -> str:
    error = context.validation_error or DEFAULT_INVALID_ERROR
    lines = [
        "<repository_context>",
        "  <status>invalid</status>",
        f"  <working_directory>{context.working_directory}</working_directory>",
        f"  <error>{error}</error>",
        f"  <instruction>{INVALID_INSTRUCTION}</instruction>",
        "</repository_context>",
    ]
    return "\n".join(lines)


def _render_valid(context: RepoContext) -> str:
    lines = [
        "<repository_context>",
        "  <status>valid</status>",
        f"  <working_directory>{context.working_directory}</working_directory>",
    ]

    hosted = context.hosted_repo
    if hosted is not None:
        lines.extend(
            [
                "  <github_repository>",
                f"    <owner>{hosted.owner}</owner>",
                f"    <name>{hosted.name}</name>",
                f"    <url>{hosted.url}</url>",
                "  </github_repository>",
            ]
        )
    else:
        lines.append("  <github_repository>none</github_repository>")

    lines.append("  <git_remotes>")
    for remote in context.remotes:
        lines.append(f'    <remote name="{remote.name}" type="{remote.direction}">{remote.url}</remote>')
    lines.append("  </git_remotes>")
    lines.append(f"  <instruction>{VALID_INSTRUCTION}</instruction>")
    lines.append("</repository_context>")
    return "\n".join(lines)


def build_context_section(context: RepoContext) -> str:
    """Return the ``<repository_context>`` block describing *context*.

    The output depends only on *context*. Owner and name are written
    verbatim so callers can look for an ``owner/name`` pair in the text.
    """

    if not context.is_valid_repo:
        return _render_invalid(context)
    return _render_valid(context)


def mentions_repository(section: str | None, slug: str) -> bool:
    """Return ``True`` when a rendered *section* refers to the ``owner/name`` *slug*."""

    if not section or not slug:
        return False
    return slug in section


__all__ = [
    "DEFAULT_INVALID_ERROR",
    "INVALID_INSTRUCTION",
    "VALID_INSTRUCTION",
    "build_context_section",
    "mentions_repository",
]
