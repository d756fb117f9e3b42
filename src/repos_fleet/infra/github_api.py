# GitHub REST API: pull requests and repository metadata
#
# Main functions:
#   - parse_github_url(): owner/repo from ssh, http(s) and bare host URLs
#   - GitHubClient: create/get/list pull requests, repository info, topics,
#     releases
#
# Read-only calls work without a token; creating a pull request needs one.
# Non-2xx responses raise GitHubApiError carrying status code and body.

import json
import re
from typing import Any, Dict, List, Optional, Tuple
from urllib import error, parse, request

from ..constants import API_BASE, USER_AGENT
from ..errors import GitHubApiError, InvalidRepositoryUrlError, TokenRequiredError

ACCEPT_V3 = "application/vnd.github.v3+json"
# the topics endpoint needs its preview media type
ACCEPT_TOPICS = "application/vnd.github.mercy-preview+json"
MAX_PER_PAGE = 100
DEFAULT_TIMEOUT = 30

SSH_URL_PATTERN = re.compile(r"^git@([^:]+):([^/]+)/(.+)$")
HTTP_URL_PATTERN = re.compile(r"^https?://([^/]+)/([^/]+)/(.+)$")
BARE_URL_PATTERN = re.compile(r"^([^/:@]+)[:/]([^/]+)/([^/]+)$")


def parse_github_url(url: str) -> Tuple[str, str]:
    """Extract ``(owner, repo)`` from a repository URL.

    Supported shapes, tried in order after stripping trailing ``/`` and
    ``.git``:

    - ``git@host:owner/repo``
    - ``https://host/owner/repo`` (or ``http://``)
    - ``host/owner/repo`` or ``host:owner/repo``
    """
    cleaned = url.strip().rstrip("/")
    if cleaned.endswith(".git"):
        cleaned = cleaned[: -len(".git")]

    for pattern in (SSH_URL_PATTERN, HTTP_URL_PATTERN, BARE_URL_PATTERN):
        match = pattern.match(cleaned)
        if match:
            return match.group(2), match.group(3)

    raise InvalidRepositoryUrlError(f"Invalid GitHub URL format: {url}")


class GitHubClient:
    """Thin client for the GitHub REST API (github.com or Enterprise)."""

    def __init__(
        self,
        token: Optional[str] = None,
        api_base: str = API_BASE,
        timeout: int = DEFAULT_TIMEOUT,
    ):
        self.token = token or None
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def _headers(self, accept: str) -> Dict[str, str]:
        headers = {
            "User-Agent": USER_AGENT,
            "Accept": accept,
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(
        self,
        action: str,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        accept: str = ACCEPT_V3,
    ) -> Any:
        url = f"{self.api_base}{path}"
        if params:
            url = f"{url}?{parse.urlencode(params)}"

        headers = self._headers(accept)
        data = None
        if payload is not None:
            data = json.dumps(payload).encode("utf-8")
            headers["Content-Type"] = "application/json"

        req = request.Request(url, data=data, headers=headers, method=method)
        try:
            with request.urlopen(req, timeout=self.timeout) as resp:
                body = resp.read().decode("utf-8")
        except error.HTTPError as e:
            try:
                error_body = e.read().decode("utf-8", errors="replace")
            except OSError:
                error_body = str(e.reason)
            raise GitHubApiError(action, e.code, error_body) from e
        except error.URLError as e:
            raise GitHubApiError(action, None, f"cannot reach GitHub API: {e.reason}") from e

        if not body:
            return None
        try:
            return json.loads(body)
        except ValueError as e:
            raise GitHubApiError(action, None, f"invalid JSON response: {e}") from e

    # ---- pull requests ----

    def create_pull_request(
        self,
        owner: str,
        repo: str,
        title: str,
        body: str,
        head: str,
        base: str,
        draft: bool = False,
    ) -> Dict[str, Any]:
        if not self.token:
            raise TokenRequiredError("GitHub token is required for creating pull requests")

        payload = {
            "title": title,
            "body": body,
            "head": head,
            "base": base,
            "draft": draft,
        }
        return self._request(
            "Create pull request", "POST", f"/repos/{owner}/{repo}/pulls", payload=payload
        )

    def get_pull_request(self, owner: str, repo: str, number: int) -> Dict[str, Any]:
        return self._request("Get pull request", "GET", f"/repos/{owner}/{repo}/pulls/{number}")

    def list_pull_requests(
        self,
        owner: str,
        repo: str,
        state: Optional[str] = None,
        base: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {}
        if state:
            params["state"] = state
        if base:
            params["base"] = base
        return self._request(
            "List pull requests", "GET", f"/repos/{owner}/{repo}/pulls", params=params
        ) or []

    # ---- repositories ----

    def get_repository(self, owner: str, repo: str) -> Dict[str, Any]:
        return self._request("Get repository information", "GET", f"/repos/{owner}/{repo}")

    def get_repository_topics(self, owner: str, repo: str) -> List[str]:
        result = self._request(
            "Get repository topics",
            "GET",
            f"/repos/{owner}/{repo}/topics",
            accept=ACCEPT_TOPICS,
        ) or {}
        return [name for name in result.get("names", []) if isinstance(name, str)]

    def get_latest_release(self, owner: str, repo: str) -> Dict[str, Any]:
        return self._request(
            "Get latest release", "GET", f"/repos/{owner}/{repo}/releases/latest"
        )

    def list_releases(
        self,
        owner: str,
        repo: str,
        per_page: Optional[int] = None,
        page: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {}
        if per_page is not None:
            params["per_page"] = min(per_page, MAX_PER_PAGE)
        if page is not None:
            params["page"] = page
        return self._request(
            "List releases", "GET", f"/repos/{owner}/{repo}/releases", params=params
        ) or []
