"""
GitHub VCS provider.

Talks to the GitHub REST API with a plain requests Session. Requests are never
retried: a failed call is reported to the caller, who decides what to do.
"""

import base64
import logging
from typing import Any, Dict, List, Optional, Type
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter

from ..errors import VCSError, VCSFetchError, VCSMutationError
from .base import VCS
from .types import IssueDraft, PullRequestDraft, VCSIssue, VCSPullRequest

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
PER_PAGE = 100
REQUEST_TIMEOUT = 30
MARKER_FILE_NAME = ".driftive-remediation"


def create_http_session(token: str) -> requests.Session:
    """Create an authenticated requests session with connection pooling and no retries."""
    session = requests.Session()
    session.headers.update({
        "Authorization": f"Bearer {token}",
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
    })

    adapter = HTTPAdapter(max_retries=0, pool_connections=10, pool_maxsize=10)
    session.mount("http://", adapter)
    session.mount("https://", adapter)

    return session


class GithubVCS(VCS):
    """
    GitHub implementation of the VCS interface.

    Args:
        owner: Repository owner
        repo: Repository name
        token: GitHub token with issues / pull requests / contents scope
        api_url: API base URL (GitHub Enterprise uses a different one)
        session: Pre-built session, mainly for tests
    """

    def __init__(self, owner: str, repo: str, token: str, api_url: str = GITHUB_API_URL,
                 session: Optional[requests.Session] = None):
        self.owner = owner
        self.repo = repo
        self.api_url = api_url.rstrip("/")
        self.session = session if session is not None else create_http_session(token)

    @property
    def _repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    def _request(self, method: str, path: str, error_cls: Type[VCSError],
                 allow_404: bool = False, **kwargs) -> Optional[requests.Response]:
        url = path if path.startswith("http") else f"{self.api_url}{path}"
        try:
            response = self.session.request(method, url, timeout=REQUEST_TIMEOUT, **kwargs)
        except requests.exceptions.RequestException as e:
            raise error_cls(f"{method} {url} failed: {e}") from e

        if allow_404 and response.status_code == 404:
            return None
        if response.status_code >= 400:
            raise error_cls(f"{method} {url} returned {response.status_code}: {response.text[:500]}")
        return response

    def _paginate(self, path: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Follow Link rel="next" headers and collect every page."""
        items: List[Dict[str, Any]] = []
        query = dict(params or {})
        query["per_page"] = PER_PAGE
        url: Optional[str] = path

        while url:
            response = self._request("GET", url, VCSFetchError, params=query)
            items.extend(response.json())
            url = response.links.get("next", {}).get("url")
            # The next link already carries the query string
            query = {}

        return items

    # Listing

    def get_all_open_issues(self) -> List[VCSIssue]:
        raw = self._paginate(f"{self._repo_path}/issues", {"state": "open"})
        issues = [
            VCSIssue(
                number=item["number"],
                title=item.get("title") or "",
                body=item.get("body") or "",
                state=item.get("state", "open"),
                url=item.get("html_url", ""),
            )
            for item in raw
            if "pull_request" not in item
        ]
        logger.info(f"Found {len(issues)} open issues in {self.owner}/{self.repo}")
        return issues

    def get_all_open_prs(self) -> List[VCSPullRequest]:
        raw = self._paginate(f"{self._repo_path}/pulls", {"state": "open"})
        prs = [
            VCSPullRequest(
                number=item["number"],
                title=item.get("title") or "",
                body=item.get("body") or "",
                state=item.get("state", "open"),
                url=item.get("html_url", ""),
                head_branch=(item.get("head") or {}).get("ref", ""),
            )
            for item in raw
        ]
        logger.info(f"Found {len(prs)} open pull requests in {self.owner}/{self.repo}")
        return prs

    def get_changed_files_for_open_prs(self, prs: List[VCSPullRequest]) -> List[str]:
        changed_files: List[str] = []
        for pr in prs:
            try:
                files = self._paginate(f"{self._repo_path}/pulls/{pr.number}/files")
            except VCSFetchError as e:
                logger.error(f"Failed to list changed files of pull request #{pr.number}: {e}")
                continue
            for item in files:
                filename = item.get("filename")
                if filename and filename not in changed_files:
                    changed_files.append(filename)
        logger.info(f"Open pull requests change {len(changed_files)} files")
        return changed_files

    # Issues

    def create_issue(self, issue: IssueDraft) -> VCSIssue:
        response = self._request("POST", f"{self._repo_path}/issues", VCSMutationError, json={
            "title": issue.title,
            "body": issue.body,
            "labels": list(issue.labels),
        })
        data = response.json()
        return VCSIssue(number=data["number"], title=data.get("title", issue.title),
                        body=data.get("body") or issue.body, state=data.get("state", "open"),
                        url=data.get("html_url", ""))

    def update_issue_body(self, number: int, body: str) -> None:
        self._request("PATCH", f"{self._repo_path}/issues/{number}", VCSMutationError, json={"body": body})

    def create_issue_comment(self, number: int, text: str) -> None:
        self._request("POST", f"{self._repo_path}/issues/{number}/comments", VCSMutationError,
                      json={"body": text})

    def close_issue(self, number: int) -> None:
        self._request("PATCH", f"{self._repo_path}/issues/{number}", VCSMutationError,
                      json={"state": "closed"})

    # Pull requests

    def _branch_sha(self, branch: str) -> Optional[str]:
        response = self._request("GET", f"{self._repo_path}/git/ref/heads/{quote(branch, safe='/')}",
                                 VCSMutationError, allow_404=True)
        if response is None:
            return None
        return response.json()["object"]["sha"]

    def _commit_marker_file(self, pr: PullRequestDraft) -> None:
        path = f"{pr.project.dir.strip('/')}/{MARKER_FILE_NAME}"
        content = (f"Drift remediation for {pr.project.dir}\n"
                   f"Opened by driftive at {pr.time.isoformat()}\n")
        payload: Dict[str, Any] = {
            "message": f"driftive: drift remediation for {pr.project.dir}",
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "branch": pr.branch,
        }
        contents_url = f"{self._repo_path}/contents/{quote(path, safe='/')}"
        existing = self._request("GET", contents_url, VCSMutationError, allow_404=True,
                                 params={"ref": pr.branch})
        if existing is not None:
            payload["sha"] = existing.json()["sha"]
        self._request("PUT", contents_url, VCSMutationError, json=payload)

    def _delete_branch(self, branch: str) -> None:
        try:
            self._request("DELETE", f"{self._repo_path}/git/refs/heads/{quote(branch, safe='/')}",
                          VCSMutationError)
        except VCSMutationError as e:
            logger.error(f"Failed to delete branch {branch} after marker commit failure: {e}")

    def open_pull_request(self, pr: PullRequestDraft) -> VCSPullRequest:
        if self._branch_sha(pr.branch) is not None:
            raise VCSMutationError(f"Branch {pr.branch} already exists")

        base_sha = self._branch_sha(pr.base)
        if base_sha is None:
            raise VCSMutationError(f"Base branch {pr.base} not found")

        logger.info(f"Creating branch {pr.branch} from {pr.base}")
        self._request("POST", f"{self._repo_path}/git/refs", VCSMutationError, json={
            "ref": f"refs/heads/{pr.branch}",
            "sha": base_sha,
        })
        try:
            self._commit_marker_file(pr)
        except VCSMutationError:
            self._delete_branch(pr.branch)
            raise

        response = self._request("POST", f"{self._repo_path}/pulls", VCSMutationError, json={
            "title": pr.title,
            "body": pr.body,
            "head": pr.branch,
            "base": pr.base,
        })
        data = response.json()
        created = VCSPullRequest(number=data["number"], title=data.get("title", pr.title),
                                 body=data.get("body") or pr.body, state=data.get("state", "open"),
                                 url=data.get("html_url", ""), head_branch=pr.branch)

        if pr.labels:
            try:
                self._request("POST", f"{self._repo_path}/issues/{created.number}/labels",
                              VCSMutationError, json={"labels": list(pr.labels)})
            except VCSMutationError as e:
                # PR is already open at this point
                logger.error(f"Failed to label pull request #{created.number}: {e}")

        return created

    def update_pull_request_body(self, number: int, body: str) -> None:
        self._request("PATCH", f"{self._repo_path}/pulls/{number}", VCSMutationError, json={"body": body})

    def create_pull_request_comment(self, number: int, text: str) -> None:
        self._request("POST", f"{self._repo_path}/issues/{number}/comments", VCSMutationError,
                      json={"body": text})

    def close_pull_request(self, number: int) -> None:
        self._request("PATCH", f"{self._repo_path}/pulls/{number}", VCSMutationError,
                      json={"state": "closed"})
