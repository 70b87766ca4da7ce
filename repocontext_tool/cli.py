"""Command line tool for printing the repository context block."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List

import anyio

from .models import DEFAULT_HOSTING_DOMAIN
from .render import build_context_section, mentions_repository
from .service import RepoContextBuilder


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Describe the Git repository of a directory the way the agent prompt sees it.",
    )
    parser.add_argument(
        "--root",
        type=Path,
        default=None,
        help="Directory to inspect (defaults to current working directory).",
    )
    parser.add_argument(
        "--hosting-domain",
        default=DEFAULT_HOSTING_DOMAIN,
        help=f"Domain whose remotes identify the repository (defaults to {DEFAULT_HOSTING_DOMAIN}).",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the structured context as JSON instead of the rendered block.",
    )
    parser.add_argument(
        "--check-repo",
        metavar="OWNER/NAME",
        default=None,
        help="Exit with status 0 only if the rendered block mentions this repository.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Print diagnostic information while discovering remotes.",
    )
    return parser


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.check_repo is not None and args.check_repo.count("/") != 1:
        parser.error("--check-repo expects OWNER/NAME")

    try:
        builder = RepoContextBuilder(
            root=args.root,
            hosting_domain=args.hosting_domain,
            verbose=args.verbose,
        )
    except ValueError as exc:
        parser.error(str(exc))

    context = anyio.run(builder.get_context)
    section = build_context_section(context)

    if args.json:
        print(json.dumps(context.to_payload(), indent=2))
    else:
        print(section)

    if args.check_repo is not None:
        return 0 if mentions_repository(section, args.check_repo) else 1
    return 0 if context.is_valid_repo else 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
