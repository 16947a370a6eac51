"""
VCS collaborator interface.

Providers implement the listing and mutation primitives; the upsert logic
(title match, body compare, open-object cap, create) lives here once.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from .types import (
    CreateOrUpdateResult,
    IssueDraft,
    PullRequestDraft,
    VCSIssue,
    VCSPullRequest,
)

logger = logging.getLogger(__name__)


class VCS(ABC):
    """Issue / pull request operations driftive needs from a VCS provider."""

    # False for stand-ins that track nothing
    enabled = True

    # Listing. Failures raise VCSFetchError.

    @abstractmethod
    def get_all_open_issues(self) -> List[VCSIssue]:
        ...

    @abstractmethod
    def get_all_open_prs(self) -> List[VCSPullRequest]:
        ...

    @abstractmethod
    def get_changed_files_for_open_prs(self, prs: List[VCSPullRequest]) -> List[str]:
        ...

    # Mutations. Failures raise VCSMutationError.

    @abstractmethod
    def create_issue(self, issue: IssueDraft) -> VCSIssue:
        ...

    @abstractmethod
    def update_issue_body(self, number: int, body: str) -> None:
        ...

    @abstractmethod
    def create_issue_comment(self, number: int, text: str) -> None:
        ...

    @abstractmethod
    def close_issue(self, number: int) -> None:
        ...

    @abstractmethod
    def open_pull_request(self, pr: PullRequestDraft) -> VCSPullRequest:
        """Create the branch, commit the marker file, open the PR and label it."""
        ...

    @abstractmethod
    def update_pull_request_body(self, number: int, body: str) -> None:
        ...

    @abstractmethod
    def create_pull_request_comment(self, number: int, text: str) -> None:
        ...

    @abstractmethod
    def close_pull_request(self, number: int) -> None:
        ...

    def create_or_update_issue(
        self,
        issue: IssueDraft,
        open_issues: List[VCSIssue],
        update_only: bool,
    ) -> CreateOrUpdateResult:
        """
        Make sure an open issue titled `issue.title` exists with `issue.body`.

        Args:
            issue: Desired issue
            open_issues: Currently open issues (used for title matching)
            update_only: Open-object cap reached; never create, only update

        Returns:
            CreateOrUpdateResult describing what happened

        Raises:
            VCSMutationError: Updating or creating the issue failed
        """
        for existing in open_issues:
            if existing.title != issue.title:
                continue
            if existing.body == issue.body:
                logger.info(f"Issue [{issue.kind}] already exists for project {issue.project.dir}")
                return CreateOrUpdateResult(issue=existing)
            self.update_issue_body(existing.number, issue.body)
            existing.body = issue.body
            logger.info(f"Updated issue [{issue.kind}] #{existing.number} for project {issue.project.dir}")
            return CreateOrUpdateResult(updated=True, issue=existing)

        if update_only:
            logger.warning(f"Max number of open issues reached. Skipping issue [{issue.kind}] "
                           f"creation for project {issue.project.dir}")
            return CreateOrUpdateResult(rate_limited=True)

        logger.info(f"Creating issue [{issue.kind}] for project {issue.project.dir}")
        created = self.create_issue(issue)
        return CreateOrUpdateResult(created=True, issue=created)

    def create_or_update_pull_request(
        self,
        pr: PullRequestDraft,
        update_only: bool,
        open_prs: Optional[List[VCSPullRequest]] = None,
    ) -> CreateOrUpdateResult:
        """
        Make sure an open pull request titled `pr.title` exists with `pr.body`.

        Args:
            pr: Desired pull request
            update_only: Open-object cap reached; never create, only update
            open_prs: Currently open pull requests; listed from the VCS if omitted

        Raises:
            VCSMutationError: Updating or opening the pull request failed
        """
        if open_prs is None:
            open_prs = self.get_all_open_prs()

        for existing in open_prs:
            if existing.title != pr.title:
                continue
            if existing.body == pr.body:
                logger.info(f"Pull request [{pr.kind}] already exists for project {pr.project.dir}")
                return CreateOrUpdateResult(pull_request=existing)
            self.update_pull_request_body(existing.number, pr.body)
            existing.body = pr.body
            logger.info(f"Updated pull request [{pr.kind}] #{existing.number} for project {pr.project.dir}")
            return CreateOrUpdateResult(updated=True, pull_request=existing)

        if update_only:
            logger.warning(f"Max number of open pull requests reached. Skipping pull request [{pr.kind}] "
                           f"creation for project {pr.project.dir}")
            return CreateOrUpdateResult(rate_limited=True)

        logger.info(f"Opening pull request [{pr.kind}] for project {pr.project.dir} ({pr.branch} -> {pr.base})")
        created = self.open_pull_request(pr)
        return CreateOrUpdateResult(created=True, pull_request=created)
