"""Exception types shared across driftive."""

from typing import Optional


class DriftiveError(Exception):
    """Base exception for driftive errors"""
    pass


class ExecutionError(DriftiveError):
    """
    An external planning tool (terraform, tofu, terragrunt) failed.

    Attributes:
        output: Combined stdout/stderr captured before the failure
        returncode: Process exit code, None if the process never started
        cancelled: True if the process was terminated by a shutdown signal
    """

    def __init__(self, message: str, output: str = "", returncode: Optional[int] = None,
                 cancelled: bool = False):
        super().__init__(message)
        self.output = output
        self.returncode = returncode
        self.cancelled = cancelled


class VCSError(DriftiveError):
    """Base class for errors talking to the VCS provider"""
    pass


class VCSFetchError(VCSError):
    """Listing open issues, pull requests or changed files failed"""
    pass


class VCSMutationError(VCSError):
    """Creating, updating, commenting on or closing an object failed"""
    pass


class ConfigConflictError(DriftiveError, ValueError):
    """Repository configuration is invalid (e.g. a label shared by drift and error lanes)"""
    pass


class NotificationError(DriftiveError):
    """A notification channel (Slack, etc.) rejected the message"""
    pass


class RunCancelledError(DriftiveError):
    """A shutdown signal arrived while projects were being analyzed"""
    pass
