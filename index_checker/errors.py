"""
Error taxonomy for the index checker.

Three families, handled at three different places:

- InvalidDiffError: the diff itself can't be trusted. The orchestrator turns
  these into the single "invalid index changes" report.
- ServiceError: one of our collaborators (GitHub, the index) is broken. These
  abort the run, since the checker rather than the submission is at fault.
- PackageCheckError: a single package failed to fetch or evaluate. These are
  recorded on that package's report and never abort the run.
"""
from __future__ import annotations


class IndexCheckError(Exception):
    """Base class for everything the checker raises on purpose."""


# ----------------------------
# Invalid diffs
# ----------------------------
class InvalidDiffError(IndexCheckError):
    pass


class DiffSyntaxError(InvalidDiffError):
    def __init__(self, message: str):
        self.parser_message = message
        super().__init__(f"failed to parse diff: {message}")


class BadPrefix(InvalidDiffError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f'expected new files to start with "b/github", got "{path}"')


class MissingOrg(InvalidDiffError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f'missing org, got "{path}"')


class MissingRepo(InvalidDiffError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f'missing repo, got "{path}"')


class DeletionNotAllowed(InvalidDiffError):
    def __init__(self, line: str):
        self.line = line
        super().__init__(f'you can\'t delete a line: "{line}"')


class InvalidDescriptor(InvalidDiffError):
    def __init__(self, message: str):
        super().__init__(f"invalid package spec: {message}")


class OrgNameMismatch(InvalidDiffError):
    def __init__(self, path: str, package: str):
        self.path = path
        self.package = package
        super().__init__(f'org/name mismatch: path was "{path}", package was "{package}"')


class PathTooDeep(InvalidDiffError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f'path too deep: expected at most three components, got "{path}"')


# ----------------------------
# Broken collaborators
# ----------------------------
class ServiceError(IndexCheckError):
    pass


class GitHubError(ServiceError):
    pass


class IndexUnavailableError(ServiceError):
    pass


# ----------------------------
# Per-package failures
# ----------------------------
class PackageCheckError(IndexCheckError):
    pass


class FetchError(PackageCheckError):
    pass


class ManifestEvalError(PackageCheckError):
    pass
