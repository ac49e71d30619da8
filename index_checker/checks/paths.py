"""
Sorting the files a PR touches into "index entries" and everything else.

Only files under b/github/ are package descriptors. Touching our own CI
(b/.github/) gets a warning; any other path is almost certainly a mistake.
"""
from __future__ import annotations

from enum import Enum

from index_checker.report import PathReport
from index_checker.utils.diff import Patch
from index_checker.utils.logging import logger

NEW_FILE_PREFIX = "b"
INDEX_ROOT = "github"
# Modifications to these are not necessarily bad, but a human should look.
ALLOWED_DIRS = (".github",)


class PathClass(Enum):
    IN_SCOPE = "in-scope"
    OUT_OF_SCOPE = "out-of-scope"
    REJECTED = "rejected"


def classify_path(path: str) -> PathClass:
    parts = path.split("/")
    if parts[0] != NEW_FILE_PREFIX or len(parts) < 2:
        return PathClass.REJECTED
    if parts[1] == INDEX_ROOT:
        return PathClass.IN_SCOPE
    if parts[1] in ALLOWED_DIRS:
        return PathClass.OUT_OF_SCOPE
    return PathClass.REJECTED


def check_diff_paths(patches: list[Patch]) -> tuple[list[Patch], list[PathReport]]:
    """
    Split patches into the ones modifying index entries and diagnostics for
    the rest. Both keep the order of the diff.
    """
    kept: list[Patch] = []
    reports: list[PathReport] = []
    for patch in patches:
        path = patch.path
        kind = classify_path(path)
        if kind is PathClass.IN_SCOPE:
            kept.append(patch)
            continue

        # Trim off the "b/" for a better message, when there is one.
        shown = path[len(NEW_FILE_PREFIX) + 1:] if path.startswith(NEW_FILE_PREFIX + "/") else path
        logger.info("PR modifies %s outside the index (%s)", shown, kind.value)
        reports.append(PathReport(path=shown, good=kind is PathClass.OUT_OF_SCOPE))
    return kept, reports
