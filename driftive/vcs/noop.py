"""VCS stand-in for runs without issue tracking configured."""

import logging
from typing import List, Optional

from .base import VCS
from .types import (
    CreateOrUpdateResult,
    IssueDraft,
    PullRequestDraft,
    VCSIssue,
    VCSPullRequest,
)

logger = logging.getLogger(__name__)


class NoopVCS(VCS):
    """Lists nothing and changes nothing."""

    enabled = False

    def get_all_open_issues(self) -> List[VCSIssue]:
        return []

    def get_all_open_prs(self) -> List[VCSPullRequest]:
        return []

    def get_changed_files_for_open_prs(self, prs: List[VCSPullRequest]) -> List[str]:
        return []

    def create_issue(self, issue: IssueDraft) -> VCSIssue:
        raise NotImplementedError("NoopVCS never creates issues")

    def update_issue_body(self, number: int, body: str) -> None:
        pass

    def create_issue_comment(self, number: int, text: str) -> None:
        pass

    def close_issue(self, number: int) -> None:
        pass

    def open_pull_request(self, pr: PullRequestDraft) -> VCSPullRequest:
        raise NotImplementedError("NoopVCS never opens pull requests")

    def update_pull_request_body(self, number: int, body: str) -> None:
        pass

    def create_pull_request_comment(self, number: int, text: str) -> None:
        pass

    def close_pull_request(self, number: int) -> None:
        pass

    def create_or_update_issue(self, issue: IssueDraft, open_issues: List[VCSIssue],
                               update_only: bool) -> CreateOrUpdateResult:
        logger.debug(f"No VCS configured, not creating issue for {issue.project.dir}")
        return CreateOrUpdateResult()

    def create_or_update_pull_request(self, pr: PullRequestDraft, update_only: bool,
                                      open_prs: Optional[List[VCSPullRequest]] = None) -> CreateOrUpdateResult:
        logger.debug(f"No VCS configured, not opening pull request for {pr.project.dir}")
        return CreateOrUpdateResult()
