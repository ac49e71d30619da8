"""
Read-only snapshots of the package index.

The index is a git repository with one file per package, at
github/<org>/<name>[/<path>], holding one descriptor per line. A run
refreshes it once and then only reads from it.
"""
from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo
from pydantic import ValidationError

from index_checker.errors import IndexUnavailableError
from index_checker.models import PackageDescriptor, PackageId, SemVer
from index_checker.utils.logging import logger

DEFAULT_INDEX_URL = "https://github.com/nickel-lang/nickel-mine.git"
DEFAULT_INDEX_DIR = Path.home() / ".cache" / "nickel-index-checker" / "index"


class LocalIndex:
    """An in-memory index, for tests and local dry runs."""

    def __init__(self, packages: Iterable[PackageDescriptor] = ()):
        self._versions: dict[str, list[SemVer]] = {}
        for pkg in packages:
            self.add_package(pkg)

    def add_package(self, package: PackageDescriptor) -> None:
        self._versions.setdefault(package.id.index_path, []).append(package.version)

    def refresh(self) -> None:
        pass

    def available_versions(self, package_id: PackageId) -> list[SemVer]:
        return list(self._versions.get(package_id.index_path, []))


class GitIndex:
    """A checkout of the real index."""

    def __init__(self, url: str = DEFAULT_INDEX_URL, directory: Path | str = DEFAULT_INDEX_DIR):
        self.url = url
        self.directory = Path(directory)

    def refresh(self) -> None:
        """Clone the index, or bring an existing checkout up to date."""
        try:
            try:
                repo = Repo(self.directory)
            except (InvalidGitRepositoryError, NoSuchPathError):
                logger.info("Cloning index %s into %s", self.url, self.directory)
                self.directory.parent.mkdir(parents=True, exist_ok=True)
                Repo.clone_from(self.url, self.directory, depth=1)
                return

            logger.info("Refreshing index checkout at %s", self.directory)
            origin = repo.remotes.origin
            origin.fetch(depth=1)
            branch = repo.active_branch.name
            repo.git.reset("--hard", f"origin/{branch}")
        except (GitCommandError, OSError, TypeError) as e:
            # TypeError: detached HEAD, so no active branch to follow
            logger.error("Failed to refresh index: %s", e)
            raise IndexUnavailableError(f"failed to refresh the package index: {e}") from e

    def available_versions(self, package_id: PackageId) -> list[SemVer]:
        """Versions of `package_id` in the index, in the order they were published."""
        path = self.directory / "github" / package_id.index_path
        if not path.is_file():
            return []
        try:
            lines = path.read_text(encoding="utf-8").splitlines()
            return [PackageDescriptor.from_index_line(ln).version for ln in lines if ln.strip()]
        except (OSError, ValidationError) as e:
            raise IndexUnavailableError(f"could not read index entry {path}: {e}") from e


def get_index() -> GitIndex:
    url = os.environ.get("INDEX_URL", DEFAULT_INDEX_URL)
    directory = os.environ.get("INDEX_DIR") or DEFAULT_INDEX_DIR
    logger.info("Using index %s at %s", url, directory)
    return GitIndex(url, directory)
