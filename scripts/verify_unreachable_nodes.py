#!/usr/bin/env python3
"""Check that unreachable dialogue nodes match the quarantine list.

CI gate for content changes: regenerates the reachability report from the
configured corpus and diffs it against the checked-in quarantine list.

Usage:
    python scripts/verify_unreachable_nodes.py [--project DIR] [--no-refresh]

Exit codes:
    0: Unreachable nodes match the quarantine list exactly
    1: Mismatch (or the corpus failed to build)
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path


def main(argv: list[str] | None = None) -> int:
    """Run the reachability audit and quarantine diff.

    Returns:
        Exit code (0 for success, 1 for failure).
    """
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--project", type=Path, default=Path(), help="Project directory")
    parser.add_argument(
        "--no-refresh",
        action="store_true",
        help="Diff the existing report instead of regenerating it",
    )
    args = parser.parse_args(argv)

    from dotenv import load_dotenv

    from stationgraph.config import ConfigError, load_project_config
    from stationgraph.graph import ContentBuildFailed, GraphFileError, load_corpus
    from stationgraph.graph.quarantine import QuarantineFileError, verify
    from stationgraph.graph.reachability import analyze

    load_dotenv()
    try:
        config = load_project_config(args.project)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not args.no_refresh:
        try:
            registry = load_corpus(config.content.paths, include_builtin=config.content.builtin)
        except (ContentBuildFailed, GraphFileError) as e:
            print(str(e), file=sys.stderr)
            return 1
        analyze(registry).write(config.qa.report)

    try:
        result = verify(config.qa.report, config.qa.quarantine)
    except QuarantineFileError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    stream = sys.stdout if result.ok else sys.stderr
    for line in result.format_lines(config.qa.max_examples):
        print(line, file=stream)
    return result.exit_code


if __name__ == "__main__":
    sys.exit(main())
