#!/usr/bin/env python3
"""
Executable CLI 'run' for checking package index pull requests.

Usage:
  ./run --owner O --repo R --pr N --reporter USER [--token T]
      -> checks the PR's diff, prints the report and posts it on the PR
  ./run --diff-file FILE --reporter USER
      -> checks a diff read from FILE and prints the report

Exit status: 0 if every check passed, 1 for a failing report, 2 if the
checker itself couldn't run (GitHub or the index unreachable, ...).
"""
from __future__ import annotations # Allows annotations (like return types) to be postponed and interpreted as strings

# ----------------------------
# Standard library imports
# ----------------------------
import argparse      # for parsing command line arguments
import os            # for environment variables
import sys           # for exit codes and stderr
from pathlib import Path       # for safer path operations
from typing import List        # type hints

from index_checker.errors import IndexCheckError
from index_checker.report import ASCII, EMOJI
from index_checker.services.github import GitHubClient
from index_checker.services.index import get_index
from index_checker.services.validator import make_report
from index_checker.utils.logging import logger


# ----------------------------
# Argument parsing
# ----------------------------
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="run", description="Check package additions to the Nickel package index")
    parser.add_argument("--owner", help="owner of the index repository")
    parser.add_argument("--repo", help="name of the index repository")
    parser.add_argument("--pr", type=int, help="pull request number to check and comment on")
    parser.add_argument("--reporter", required=True, help="GitHub handle of whoever opened the PR")
    parser.add_argument("--token", default=os.environ.get("GITHUB_TOKEN"), help="GitHub token (default: $GITHUB_TOKEN)")
    parser.add_argument("--diff-file", help="read the diff from this file instead of the PR")
    parser.add_argument("--ascii", action="store_true", help="use plain ASCII status markers")
    parser.add_argument("--jobs", type=int, default=1, help="check up to this many packages at once")
    return parser


def read_diff(args: argparse.Namespace, github: GitHubClient) -> str:
    if args.diff_file:
        return Path(args.diff_file).read_text(encoding="utf-8")
    return github.get_pr_diff(args.owner, args.repo, args.pr)


# ----------------------------
# CLI Entrypoint
# ----------------------------
def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.pr is None and not args.diff_file:
        parser.error("one of --pr or --diff-file is required")
    if args.pr is not None and not (args.owner and args.repo):
        parser.error("--pr needs --owner and --repo")

    github = GitHubClient(token=args.token)
    glyphs = ASCII if args.ascii else EMOJI

    try:
        diff = read_diff(args, github)
        report = make_report(diff, github, args.reporter, get_index(), jobs=args.jobs)
    except (IndexCheckError, OSError) as exc:
        logger.error("Check aborted: %s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    # Printed and posted before deciding pass/fail, so both always agree.
    text = report.render(glyphs)
    print(text, end="")

    if args.pr is not None:
        try:
            github.create_comment(args.owner, args.repo, args.pr, text)
        except IndexCheckError as exc:
            logger.error("Could not post report: %s", exc)
            print(f"Error: {exc}", file=sys.stderr)
            return 2

    if report.is_good():
        return 0
    print("Failing report", file=sys.stderr)
    return 1


def cli() -> None:
    sys.exit(main())


# If run directly, call main() and exit with this code
if __name__ == "__main__":
    cli()
