"""
The bits of the GitHub REST API the checker needs: reading a PR's diff,
checking public org membership and commenting on the PR.

Any transport error or unexpected status is a GitHubError; callers treat
those as fatal.
"""
from __future__ import annotations

import os

import requests

from index_checker.errors import GitHubError
from index_checker.utils.logging import logger

DEFAULT_API_URL = "https://api.github.com"


class GitHubClient:
    def __init__(self, token: str | None = None, api_url: str | None = None,
                 timeout: int = 30, session: requests.Session | None = None):
        self.api_url = (api_url or os.environ.get("GITHUB_API_URL") or DEFAULT_API_URL).rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers["Accept"] = "application/vnd.github+json"
        if token and not token.startswith("ghp_REPLACE"):
            self.session.headers["Authorization"] = f"token {token}"

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.api_url}{path}"
        logger.info("GitHub %s %s", method, url)
        try:
            return self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error("GitHub request failed: %s", e)
            raise GitHubError(f"{method} {path} failed: {e}") from e

    @staticmethod
    def _fail(resp: requests.Response, what: str) -> GitHubError:
        return GitHubError(f"{what}: GitHub returned {resp.status_code} {resp.text.strip()[:200]}")

    def get_pr_diff(self, owner: str, repo: str, pr: int) -> str:
        resp = self._request(
            "GET", f"/repos/{owner}/{repo}/pulls/{pr}",
            headers={"Accept": "application/vnd.github.v3.diff"},
        )
        if resp.status_code != 200:
            raise self._fail(resp, f"could not read the diff of {owner}/{repo}#{pr}")
        return resp.text

    def is_public_member(self, org: str, user: str) -> bool:
        resp = self._request("GET", f"/orgs/{org}/public_members/{user}")
        if resp.status_code == 204:
            return True
        if resp.status_code == 404:
            return False
        raise self._fail(resp, f"could not check whether {user} is a member of {org}")

    def create_comment(self, owner: str, repo: str, pr: int, body: str) -> None:
        resp = self._request("POST", f"/repos/{owner}/{repo}/issues/{pr}/comments", json={"body": body})
        if resp.status_code != 201:
            raise self._fail(resp, f"could not comment on {owner}/{repo}#{pr}")
