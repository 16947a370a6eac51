"""
Notification dispatch.

Runs every configured channel for one analysis, in order: issues, pull
requests, summary issue, console, Slack, dashboard API. A failing channel is
logged and the next one still runs; a failed listing aborts the dispatch.
"""

import logging
from typing import Optional, Sequence

from ..config import DriftiveConfig
from ..drift.models import DriftDetectionResult
from ..errors import NotificationError, VCSMutationError
from ..repo_config import DriftiveRepoConfig
from ..vcs.base import VCS
from ..vcs.types import VCSIssue, VCSPullRequest
from . import console
from .driftive_api import DriftiveApiNotification
from .issues import GithubIssueNotification
from .pull_requests import GithubPullRequestNotification
from .slack import SlackNotification
from .summary import GithubSummary
from .types import GithubState

logger = logging.getLogger(__name__)


class NotificationHandler:
    """
    Dispatches one analysis to every enabled channel.

    Args:
        config: Process configuration
        repo_config: Repository configuration
        vcs: VCS collaborator (NoopVCS disables the GitHub channels)
        slack: Slack channel; built from config.slack_webhook_url if omitted
        driftive_api: Dashboard upload; built from config if omitted
    """

    def __init__(self, config: DriftiveConfig, repo_config: DriftiveRepoConfig, vcs: VCS,
                 slack: Optional[SlackNotification] = None,
                 driftive_api: Optional[DriftiveApiNotification] = None):
        self.config = config
        self.repo_config = repo_config
        self.vcs = vcs
        self.slack = slack
        if self.slack is None and config.slack_webhook_url:
            self.slack = SlackNotification(config.slack_webhook_url)
        self.driftive_api = driftive_api
        if self.driftive_api is None and config.has_driftive_api:
            self.driftive_api = DriftiveApiNotification(config.driftive_api_url, config.driftive_token)

    def handle(self, result: DriftDetectionResult,
               open_issues: Optional[Sequence[VCSIssue]] = None,
               open_prs: Optional[Sequence[VCSPullRequest]] = None) -> GithubState:
        """
        Notify every channel about one analysis.

        Args:
            result: Suppression-filtered analysis
            open_issues: Issue listing fetched before the analysis, if any
            open_prs: Pull request listing fetched before the analysis, if any

        Returns:
            The combined reconciliation state (empty when GitHub is not in use)

        Raises:
            VCSFetchError: Listing open issues or pull requests failed
        """
        github = self.repo_config.github
        state = GithubState()

        if github.issues.enabled and self.vcs.enabled:
            logger.info("Updating Github issues...")
            try:
                if open_issues is None:
                    open_issues = self.vcs.get_all_open_issues()
                issues = GithubIssueNotification(self.vcs, github.issues)
                state = state.merge(issues.handle(result, open_issues))
            except (VCSMutationError, NotificationError) as e:
                logger.error(f"Failed to update github issues: {e}")

        if github.pull_requests.enabled and self.vcs.enabled:
            logger.info("Updating Github pull requests...")
            try:
                prs = GithubPullRequestNotification(self.vcs, github.pull_requests)
                state = state.merge(prs.handle(result, open_prs))
            except (VCSMutationError, NotificationError) as e:
                logger.error(f"Failed to update github pull requests: {e}")

        if github.summary.enabled and self.vcs.enabled:
            logger.info("Updating Github summary issue...")
            try:
                if open_issues is None:
                    open_issues = self.vcs.get_all_open_issues()
                GithubSummary(self.vcs, github.summary).publish(state, open_issues)
            except (VCSMutationError, NotificationError) as e:
                logger.error(f"Failed to update github summary issue: {e}")

        if self.config.enable_stdout_result:
            console.print_result(result)

        if self.slack is not None:
            logger.info("Sending notification to slack...")
            try:
                self.slack.send(result, state)
            except (VCSMutationError, NotificationError) as e:
                logger.error(f"Failed to send slack notification. {e}")

        if self.driftive_api is not None:
            logger.info("Sending notification to driftive api...")
            try:
                self.driftive_api.send(result)
            except (VCSMutationError, NotificationError) as e:
                logger.error(f"Failed to send analysis result to driftive api. {e}")

        return state
