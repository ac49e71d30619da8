"""
The report tree.

A run produces exactly one Report: either InvalidDiff (the diff couldn't be
trusted at all) or PackageReports, an ordered list of PathReport and
PackageReport items. Every node knows whether it is acceptable (`is_good`)
and how to write itself as indented markdown-ish text. The same rendered
text is printed and posted to the pull request.
"""
from __future__ import annotations

import io
from dataclasses import dataclass
from typing import TextIO, Union

from index_checker.checks.manifest import ManifestCheck
from index_checker.checks.permission import Permission
from index_checker.errors import InvalidDiffError
from index_checker.models import PackageDescriptor


@dataclass(frozen=True)
class Glyphs:
    ok: str
    warn: str
    fail: str


EMOJI = Glyphs(ok="✅", warn="⚠️", fail="❌")
ASCII = Glyphs(ok="[ok]", warn="[warn]", fail="[fail]")

# each nesting level adds this much to the bullet's indentation
INDENT_STEP = "  "


def _continued(message: str, pad: str) -> str:
    """Keep multi-line messages (e.g. nickel evaluation errors) under their bullet."""
    return message.replace("\n", "\n" + pad)


# ----------------------------
# Per-package status
# ----------------------------
@dataclass(frozen=True)
class FetchFailed:
    message: str


@dataclass(frozen=True)
class EvalFailed:
    message: str


PackageStatus = Union[FetchFailed, EvalFailed, ManifestCheck]


# ----------------------------
# Report items
# ----------------------------
@dataclass(frozen=True)
class PathReport:
    """A diagnostic for a file the PR touches outside of the index."""

    path: str
    good: bool

    def is_good(self) -> bool:
        return self.good

    def format_with_indent(self, out: TextIO, indent: str, glyphs: Glyphs) -> None:
        sym = glyphs.warn if self.good else glyphs.fail
        out.write(f"{indent}{sym} this PR modifies {self.path}\n")


@dataclass(frozen=True)
class PackageReport:
    pkg: PackageDescriptor
    permission: Permission
    status: PackageStatus

    def is_good(self) -> bool:
        return (
            self.permission.is_allowed
            and isinstance(self.status, ManifestCheck)
            and self.status.is_good()
        )

    def format_with_indent(self, out: TextIO, indent: str, glyphs: Glyphs) -> None:
        ident = self.pkg.id
        perm = self.permission
        bullet = " " * len(indent) + "* "
        pad = " " * len(bullet)

        out.write(f"{indent}package {ident.index_path}, version {self.pkg.version}\n")
        if perm.is_allowed:
            out.write(
                f"{bullet}{glyphs.ok} this PR is by {perm.user}, a collaborator on {perm.org}/{perm.repo}\n"
            )
        else:
            out.write(
                f"{bullet}{glyphs.fail} this PR is by {perm.user}, who is not a public member of {perm.org}\n"
            )

        if isinstance(self.status, FetchFailed):
            out.write(f"{bullet}{glyphs.fail} failed to fetch package: {_continued(self.status.message, pad)}\n")
            return
        out.write(f"{bullet}{glyphs.ok} fetched package\n")

        if isinstance(self.status, EvalFailed):
            out.write(f"{bullet}{glyphs.fail} failed to evaluate manifest: {_continued(self.status.message, pad)}\n")
            return
        out.write(f"{bullet}{glyphs.ok} evaluated manifest\n")

        self.status.format_with_indent(out, " " * len(indent) + INDENT_STEP, glyphs)


ReportItem = Union[PathReport, PackageReport]


# ----------------------------
# Whole-run reports
# ----------------------------
class _Renderable:
    def render(self, glyphs: Glyphs = EMOJI) -> str:
        out = io.StringIO()
        self.format(out, glyphs)
        return out.getvalue()

    def __str__(self) -> str:
        return self.render()


@dataclass(frozen=True)
class InvalidDiff(_Renderable):
    error: InvalidDiffError

    def is_good(self) -> bool:
        return False

    def format(self, out: TextIO, glyphs: Glyphs) -> None:
        out.write(f"{glyphs.fail} invalid index changes: {self.error}\n")


@dataclass(frozen=True)
class PackageReports(_Renderable):
    items: tuple[ReportItem, ...]

    def is_good(self) -> bool:
        return all(item.is_good() for item in self.items)

    def format(self, out: TextIO, glyphs: Glyphs) -> None:
        if not self.items:
            out.write(f"{glyphs.ok} no index changes to check\n")
            return
        for item in self.items:
            item.format_with_indent(out, " - ", glyphs)


Report = Union[InvalidDiff, PackageReports]
