"""Slack webhook notification."""

import logging
from typing import Optional

import requests

from ..drift.models import DriftDetectionResult
from ..errors import NotificationError
from .types import GithubState

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 15


def format_duration(seconds: float) -> str:
    minutes, secs = divmod(int(round(seconds)), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h{minutes}m{secs}s"
    if minutes:
        return f"{minutes}m{secs}s"
    return f"{secs}s"


def build_message(result: DriftDetectionResult, state: Optional[GithubState] = None) -> str:
    """Slack message text (mrkdwn) for one analysis."""
    lines = [
        ":bangbang: State Drift detected in projects",
        f":gear: Drifts `{result.total_drifted}`/`{result.total_projects}`",
        f":clock1: Analysis duration `{format_duration(result.duration.total_seconds())}`",
    ]
    if result.total_errored:
        lines.append(f":x: Projects with plan errors `{result.total_errored}`")
    if state is not None and state.num_resolved > 0:
        lines.append(f":white_check_mark: Resolved drifts since last analysis `{state.num_resolved}`")

    message = "\n".join(lines) + "\n"

    drifted = result.drifted_projects()
    if drifted:
        message += ":point_down: Projects with state drifts \n\n```"
        message += "".join(f"{r.project.dir}\n" for r in drifted)
        message += "```\n"

    skipped = result.skipped_projects()
    if skipped:
        message += ":construction: Skipped, already being fixed in an open pull request \n\n```"
        message += "".join(f"{r.project.dir}\n" for r in skipped)
        message += "```\n"
    return message


class SlackNotification:
    """Posts the analysis to a Slack incoming webhook."""

    def __init__(self, webhook_url: str, session: Optional[requests.Session] = None):
        self.webhook_url = webhook_url
        self.session = session if session is not None else requests.Session()

    def send(self, result: DriftDetectionResult, state: Optional[GithubState] = None) -> bool:
        """
        Send the message when there is something to say.

        Returns:
            True if a message was posted, False if there was nothing to report

        Raises:
            NotificationError: The webhook call failed
        """
        if result.total_drifted == 0 and (state is None or state.num_resolved == 0):
            logger.info("No drift detected. Skipping slack notification")
            return False

        try:
            response = self.session.post(
                self.webhook_url,
                json={"text": build_message(result, state)},
                timeout=REQUEST_TIMEOUT,
            )
        except requests.exceptions.RequestException as e:
            raise NotificationError(f"Failed to send slack message: {e}") from e

        if response.status_code != 200:
            raise NotificationError(f"Failed to send slack request. {response.status_code}. Body: {response.text}")

        logger.info("✅ Slack notification sent")
        return True
