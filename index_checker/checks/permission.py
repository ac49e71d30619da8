from __future__ import annotations

from dataclasses import dataclass

from index_checker.utils.logging import logger


@dataclass(frozen=True)
class Permission:
    """Someone submitted a package to us. Do we think it's "their" package?"""

    user: str  # who opened the PR
    org: str  # who owns the package
    repo: str  # the repo containing the package
    is_allowed: bool

    @classmethod
    def check(cls, github, user: str, org: str, repo: str) -> Permission:
        """
        Allowed if the package lives in the submitter's own namespace, or the
        submitter is a public member of the owning organization.

        Checking repository collaborators would need more than the default CI
        token, so we don't. Errors from `github` propagate.
        """
        is_allowed = user == org or github.is_public_member(org, user)
        logger.info("Permission for %s on %s/%s: %s", user, org, repo, is_allowed)
        return cls(user=user, org=org, repo=repo, is_allowed=is_allowed)
