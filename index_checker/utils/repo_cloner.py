import os
import shutil
import stat
import sys
import tempfile
from contextlib import contextmanager
from pathlib import Path

from git import GitError, Repo

from index_checker.errors import FetchError
from index_checker.models import PackageDescriptor
from index_checker.utils.logging import logger


def remove_readonly(func, path, excinfo):
    """Error handler for shutil.rmtree that removes read-only permissions."""
    os.chmod(path, stat.S_IWRITE)
    func(path)


@contextmanager
def scratch_dir(prefix: str = "index-checker-"):
    """
    A fresh temporary directory, removed when the block exits (however it exits).
    """
    temp_dir = tempfile.mkdtemp(prefix=prefix)
    try:
        yield Path(temp_dir)
    finally:
        logger.info(f"Cleaning up temp directory: {temp_dir}")
        if sys.version_info >= (3, 12):
            shutil.rmtree(temp_dir, onexc=remove_readonly)
        else:
            shutil.rmtree(temp_dir, onerror=remove_readonly)


def fetch_package(pkg: PackageDescriptor, dest: Path) -> None:
    """
    Materializes the package's repository, at its pinned commit, into `dest`.

    Only the pinned commit is fetched (GitHub serves any reachable commit by
    id), so this also catches descriptors pointing at commits that don't exist.
    Raises FetchError with git's own message on failure.
    """
    ident = pkg.id
    logger.info(f"Fetching {ident.url} at {ident.commit} into {dest}")
    try:
        repo = Repo.init(dest)
        origin = repo.create_remote("origin", ident.url)
        origin.fetch(ident.commit, depth=1)
        repo.git.checkout(ident.commit)
    except (GitError, OSError) as e:
        message = (getattr(e, "stderr", "") or str(e)).strip()
        logger.warning(f"Git fetch of {ident.url} failed: {message}")
        raise FetchError(message) from e
