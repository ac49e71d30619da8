"""
Extracting the packages a diff adds to the index.

This is the strict part: the diff comes from an untrusted contributor, so a
single bad line invalidates the whole diff instead of being skipped.
"""
from __future__ import annotations

from pydantic import ValidationError

from index_checker.checks.paths import INDEX_ROOT, NEW_FILE_PREFIX
from index_checker.errors import (
    BadPrefix,
    DeletionNotAllowed,
    InvalidDescriptor,
    MissingOrg,
    MissingRepo,
    OrgNameMismatch,
    PathTooDeep,
)
from index_checker.models import PackageDescriptor
from index_checker.utils.diff import LineKind, Patch
from index_checker.utils.logging import logger


def _index_path(path: str) -> str:
    """Validate a new-file path and return it relative to the index root."""
    parts = path.split("/")
    if parts[:2] != [NEW_FILE_PREFIX, INDEX_ROOT]:
        raise BadPrefix(path)
    rest = parts[2:]
    if not rest or not rest[0]:
        raise MissingOrg(path)
    if len(rest) < 2 or not rest[1]:
        raise MissingRepo(path)
    # org/name, or org/name/subdir
    if len(rest) > 3:
        raise PathTooDeep(path)
    return "/".join(rest)


def changed_packages(patches: list[Patch]) -> list[PackageDescriptor]:
    """
    Every package added by `patches`, in file-then-line order.

    Raises an InvalidDiffError on the first removed line, undecodable line,
    or descriptor that doesn't belong in the file it was added to.
    """
    ret: list[PackageDescriptor] = []
    for patch in patches:
        file_path = _index_path(patch.path)
        for line in patch.lines():
            if line.kind is LineKind.CONTEXT:
                continue
            if line.kind is LineKind.REMOVED:
                raise DeletionNotAllowed(line.text)

            try:
                package = PackageDescriptor.from_index_line(line.text)
            except ValidationError as e:
                raise InvalidDescriptor(str(e)) from e

            if package.id.index_path != file_path:
                raise OrgNameMismatch(
                    path=f"{INDEX_ROOT}/{file_path}",
                    package=f"{INDEX_ROOT}/{package.id.index_path}",
                )
            logger.info("Found package %s version %s", package.id, package.version)
            ret.append(package)

        # deleting an empty file removes no line, but is still a deletion
        if patch.deleted:
            raise DeletionNotAllowed(f"{INDEX_ROOT}/{file_path}")
    return ret
