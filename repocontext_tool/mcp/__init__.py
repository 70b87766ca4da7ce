"""Model Context Protocol integration for :mod:`repocontext_tool`."""

from .server import RepositoryContextTools, app, create_server, main

__all__ = [
    "RepositoryContextTools",
    "app",
    "create_server",
    "main",
]
