"""
Notifications and reconciliation.

Keeps GitHub issues / pull requests in sync with the latest analysis and
reports it to the console, Slack and the dashboard API.
"""

from .handler import NotificationHandler
from .issues import GithubIssueNotification
from .metadata import ObjectMetadata, decode_metadata, encode_metadata
from .pull_requests import GithubPullRequestNotification
from .reconcile import ObjectReconciler, recover_project_objects
from .slack import SlackNotification
from .summary import GithubSummary
from .types import GithubState, LaneOutcome, ProjectObject

__all__ = [
    'NotificationHandler', 'GithubIssueNotification', 'GithubPullRequestNotification',
    'GithubSummary', 'SlackNotification', 'ObjectReconciler', 'recover_project_objects',
    'ObjectMetadata', 'decode_metadata', 'encode_metadata',
    'GithubState', 'LaneOutcome', 'ProjectObject',
]
