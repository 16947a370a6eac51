"""
VCS collaborators.

`new_vcs` picks the GitHub provider when credentials and a repository context
are available and the no-op stub otherwise.
"""

import logging

from ..config import DriftiveConfig
from .base import VCS
from .github import GithubVCS
from .noop import NoopVCS
from .types import (
    CreateOrUpdateResult,
    IssueDraft,
    PullRequestDraft,
    TrackedObject,
    VCSIssue,
    VCSPullRequest,
)

logger = logging.getLogger(__name__)


def new_vcs(config: DriftiveConfig) -> VCS:
    """Build the VCS collaborator for this run."""
    if config.has_github:
        ctx = config.github_context
        logger.info(f"Using GitHub repository {ctx.repository}")
        return GithubVCS(ctx.owner, ctx.name, config.github_token, api_url=config.github_api_url)
    logger.info("No GitHub token or repository context. Issue tracking disabled.")
    return NoopVCS()


__all__ = [
    'VCS', 'GithubVCS', 'NoopVCS', 'new_vcs',
    'CreateOrUpdateResult', 'IssueDraft', 'PullRequestDraft', 'TrackedObject',
    'VCSIssue', 'VCSPullRequest',
]
