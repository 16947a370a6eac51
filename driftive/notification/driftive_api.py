"""Upload of analysis results to the driftive dashboard API."""

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from ..drift.models import DriftDetectionResult
from ..errors import NotificationError

logger = logging.getLogger(__name__)

ANALYSIS_PATH = "/api/v1/drift_analysis"
REQUEST_TIMEOUT = 30


@dataclass
class AnalysisResponse:
    run_id: str = ""
    dashboard_url: str = ""


class DriftiveApiNotification:
    """POSTs the serialized DriftDetectionResult with an X-Token header."""

    def __init__(self, api_url: str, token: str, session: Optional[requests.Session] = None):
        self.api_url = api_url.rstrip("/")
        self.token = token
        self.session = session if session is not None else requests.Session()

    def send(self, result: DriftDetectionResult) -> AnalysisResponse:
        """
        Upload the analysis.

        Returns:
            The run id and dashboard URL; empty if the response body could not be parsed

        Raises:
            NotificationError: The request failed or was rejected
        """
        url = f"{self.api_url}{ANALYSIS_PATH}"
        try:
            response = self.session.post(url, json=result.to_dict(), headers={"X-Token": self.token},
                                         timeout=REQUEST_TIMEOUT)
        except requests.exceptions.RequestException as e:
            raise NotificationError(f"Failed to send drift analysis result: {e}") from e

        if response.status_code != 200:
            raise NotificationError(f"Failed to send drift analysis result. Invalid token? "
                                    f"{response.status_code}: {response.text[:500]}")

        try:
            data = response.json()
        except ValueError as e:
            logger.warning(f"Failed to parse driftive api response: {e}")
            return AnalysisResponse()

        analysis = AnalysisResponse(run_id=data.get("run_id", ""), dashboard_url=data.get("dashboard_url", ""))
        if analysis.dashboard_url:
            logger.info(f"📊 Analysis uploaded: {analysis.dashboard_url}")
        return analysis
