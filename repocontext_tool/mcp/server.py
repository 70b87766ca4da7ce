"""Expose :mod:`repocontext_tool` as an MCP server."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Iterable

import anyio
from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations

from ..git_repo import GitRunner, run_git
from ..manager import RepositoryContextManager
from ..models import DEFAULT_HOSTING_DOMAIN, RepoContext
from ..render import build_context_section
from ..utils import resolve_root

_LOG_LEVELS: tuple[str, ...] = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")

_READ_ONLY = dict(
    readOnlyHint=True,
    destructiveHint=False,
    openWorldHint=False,
)


def _normalise_log_level(value: str | None) -> str:
    if value is None:
        return "INFO"

    candidate = value.upper()
    if candidate not in _LOG_LEVELS:
        raise ValueError(f"Invalid log level: {value}")
    return candidate


class RepositoryContextTools:
    """Tool implementations backed by one shared :class:`RepositoryContextManager`."""

    def __init__(self, manager: RepositoryContextManager) -> None:
        self.manager = manager

    async def get_repository_context(self) -> str:
        """Return the cached ``<repository_context>`` block, refreshing it when stale."""

        context = await self.manager.get_context()
        return build_context_section(context)

    async def refresh_repository_context(self) -> str:
        """Re-run remote discovery and return the new ``<repository_context>`` block."""

        context = await self.manager.refresh_context()
        return build_context_section(context)

    async def inspect_repository_context(self, refresh: bool = False) -> RepoContext:
        """Return the structured context (remotes, hosted repository, validation error)."""

        if refresh:
            return await self.manager.refresh_context()
        return await self.manager.get_context()


def register_tools(server: FastMCP, tools: RepositoryContextTools) -> FastMCP:
    """Attach repository context tools to *server* and return it."""

    async def get_repository_context() -> str:
        """Describe the Git repository the agent is working in.

        The response is a ``<repository_context>`` block ready to drop into a
        prompt. It is cached for a short time; call
        ``refresh_repository_context`` after changing remotes.
        """

        return await tools.get_repository_context()

    async def refresh_repository_context() -> str:
        """Bypass the cache and describe the Git repository again."""

        return await tools.refresh_repository_context()

    async def inspect_repository_context(refresh: bool = False) -> RepoContext:
        """Return the repository context as structured data."""

        return await tools.inspect_repository_context(refresh=refresh)

    server.tool(
        name="get_repository_context",
        title="Get repository context",
        description=(
            "Report whether the working directory is a Git repository, which remotes it "
            "has, and which hosted repository (owner/name) they point at."
        ),
        annotations=ToolAnnotations(
            title="Get repository context",
            idempotentHint=True,
            callGuidance=(
                "Call before repository operations to learn the owner and name of the"
                " current repository. The result is cached for about thirty seconds."
            ),
            **_READ_ONLY,
        ),
    )(get_repository_context)

    server.tool(
        name="refresh_repository_context",
        title="Refresh repository context",
        description="Run remote discovery again, ignoring any cached repository context.",
        annotations=ToolAnnotations(
            title="Refresh repository context",
            idempotentHint=False,
            callGuidance="Use after adding, removing or renaming remotes.",
            **_READ_ONLY,
        ),
    )(refresh_repository_context)

    server.tool(
        name="inspect_repository_context",
        title="Inspect repository context",
        description=(
            "Return the repository context as structured data: working directory, "
            "remotes, hosted repository and validation error."
        ),
        annotations=ToolAnnotations(
            title="Inspect repository context",
            idempotentHint=True,
            **_READ_ONLY,
        ),
        structured_output=True,
    )(inspect_repository_context)

    return server


def create_server(
    *,
    default_root: str | Path | None = None,
    hosting_domain: str = DEFAULT_HOSTING_DOMAIN,
    log_level: str | None = None,
    runner: GitRunner = run_git,
    **kwargs,
) -> FastMCP:
    """Create a :class:`FastMCP` server with the repository context tools registered.

    Each server owns its own manager, so the cache is shared by every tool
    call the server handles and by nothing else. Extra keyword arguments
    (``host``, ``port``, ``debug``...) are FastMCP settings.
    """

    manager = RepositoryContextManager(
        resolve_root(default_root),
        runner=runner,
        hosting_domain=hosting_domain,
    )

    server = FastMCP(
        name="repocontext-tool",
        instructions=(
            "Use repocontext-tool to learn which Git repository the agent is running in. "
            "Call 'get_repository_context' for a ready-to-inject context block, "
            "'inspect_repository_context' for structured data, and "
            "'refresh_repository_context' after the repository's remotes change."
        ),
        log_level=_normalise_log_level(log_level),
        **kwargs,
    )
    server.repository_context_manager = manager
    return register_tools(server, RepositoryContextTools(manager))


app = create_server()


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Serve the repository context tools over the Model Context Protocol.",
    )

    network = parser.add_argument_group("transport")
    network.add_argument("--transport", choices=["stdio", "sse", "http"], default="stdio")
    network.add_argument(
        "--host",
        default=None,
        help="Interface to bind for the sse and http transports (FastMCP default: 127.0.0.1).",
    )
    network.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to bind for the sse and http transports (FastMCP default: 8000).",
    )
    network.add_argument("--mount-path", default=None, help="Mount path for the sse transport.")

    repository = parser.add_argument_group("repository")
    repository.add_argument(
        "--root",
        default=None,
        help="Directory whose repository is described (defaults to the working directory).",
    )
    repository.add_argument(
        "--hosting-domain",
        default=DEFAULT_HOSTING_DOMAIN,
        help=f"Domain whose remotes yield an owner/name identity (defaults to {DEFAULT_HOSTING_DOMAIN}).",
    )

    parser.add_argument(
        "--log-level",
        default="INFO",
        type=_normalise_log_level,
        choices=_LOG_LEVELS,
    )
    parser.add_argument("--debug", action="store_true", help="Enable FastMCP debug mode.")
    return parser


def _network_settings(args: argparse.Namespace) -> dict:
    """FastMCP settings for the bind address; unset flags keep FastMCP's defaults."""

    settings = {"host": args.host, "port": args.port}
    return {key: value for key, value in settings.items() if value is not None}


def _endpoint(server: FastMCP, transport: str, mount_path: str | None) -> str:
    if transport == "stdio":
        return "stdio"
    path = (mount_path or server.settings.mount_path) if transport == "sse" else server.settings.streamable_http_path
    return f"http://{server.settings.host}:{server.settings.port}{path}"


def main(argv: Iterable[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    try:
        default_root = resolve_root(args.root)
    except ValueError as exc:
        parser.error(str(exc))

    server = create_server(
        default_root=default_root,
        hosting_domain=args.hosting_domain,
        log_level=args.log_level,
        debug=args.debug,
        **_network_settings(args),
    )

    endpoint = _endpoint(server, args.transport, args.mount_path)
    if args.transport == "stdio":
        message = "repocontext-mcp awaiting MCP client handshake on stdio"
    else:
        message = f"repocontext-mcp serving {args.transport} transport at {endpoint}"
    if default_root is not None:
        message = f"{message} (repository root: {default_root})"
    print(message, file=sys.stderr, flush=True)

    runners = {
        "stdio": (server.run_stdio_async,),
        "sse": (server.run_sse_async, args.mount_path),
        "http": (server.run_streamable_http_async,),
    }
    try:
        anyio.run(*runners[args.transport])
    except KeyboardInterrupt:
        print("repocontext-mcp interrupted by user", file=sys.stderr, flush=True)
        return 130

    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
