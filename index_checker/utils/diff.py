"""
Unified diff parsing.

Thin adapter over `unidiff`: we keep only what the checks need (the new-file
path and the tagged lines of each hunk), in file and hunk order.
"""
from __future__ import annotations

import io
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

from unidiff import PatchSet
from unidiff.constants import DEV_NULL
from unidiff.errors import UnidiffParseError

from index_checker.errors import DiffSyntaxError
from index_checker.utils.logging import logger


class LineKind(Enum):
    ADDED = "+"
    REMOVED = "-"
    CONTEXT = " "


@dataclass(frozen=True)
class Line:
    kind: LineKind
    text: str


@dataclass(frozen=True)
class Hunk:
    lines: tuple[Line, ...]


@dataclass(frozen=True)
class Patch:
    # new-file path as written in the diff, e.g. "b/github/org/name".
    # Deleted files keep their old path, under the new-file prefix.
    path: str
    hunks: tuple[Hunk, ...] = ()
    deleted: bool = False

    def lines(self) -> Iterator[Line]:
        for hunk in self.hunks:
            yield from hunk.lines


def _convert_hunk(hunk) -> Hunk:
    lines = []
    for line in hunk:
        if line.is_added:
            kind = LineKind.ADDED
        elif line.is_removed:
            kind = LineKind.REMOVED
        elif line.is_context:
            kind = LineKind.CONTEXT
        else:
            # "\ No newline at end of file"
            continue
        lines.append(Line(kind, line.value.rstrip("\r\n")))
    return Hunk(tuple(lines))


def _convert_file(patched_file) -> Patch:
    hunks = tuple(_convert_hunk(h) for h in patched_file)
    if patched_file.target_file != DEV_NULL:
        return Patch(patched_file.target_file, hunks)
    source = patched_file.source_file
    if source.startswith("a/"):
        source = "b/" + source[2:]
    return Patch(source, hunks, deleted=True)


def _check_stray_lines(text: str, patch_set: PatchSet) -> None:
    """
    unidiff stops reading a hunk once its line counts are satisfied and
    treats whatever follows as header noise. An added or removed line that
    no hunk claimed means the counts in some hunk header are wrong.
    """
    claimed = {line.diff_line_no for patched_file in patch_set for hunk in patched_file for line in hunk}
    for line_no, raw in enumerate(io.StringIO(text), 1):
        if line_no in claimed or raw.startswith(("+++ ", "--- ")):
            continue
        # format-patch separators
        if raw.rstrip("\r\n") in ("---", "-- "):
            continue
        if raw.startswith(("+", "-")):
            raise DiffSyntaxError(f"line {line_no} is outside of any hunk: {raw.rstrip()}")


def parse_diff(text: str) -> list[Patch]:
    """
    Parse a (git) unified diff into one Patch per file.

    Raises DiffSyntaxError if the text is not a well-formed diff, or if it
    doesn't touch any file at all.
    """
    try:
        patch_set = PatchSet(text)
    except UnidiffParseError as e:
        logger.warning("Could not parse diff: %s", e)
        raise DiffSyntaxError(str(e)) from e

    if not patch_set:
        raise DiffSyntaxError("no file changes found")
    _check_stray_lines(text, patch_set)

    patches = [_convert_file(patched_file) for patched_file in patch_set]
    logger.debug("Parsed %d file patches", len(patches))
    return patches
