"""GitHub issue reconciliation: one issue per drifted (or failing) project."""

import logging
from typing import List, Optional, Sequence

from ..drift.models import DriftDetectionResult, DriftProjectResult
from ..models import DRIFT_KIND, ERROR_KIND, KINDS
from ..repo_config import IssuesConfig, LaneSettings
from ..vcs.base import VCS
from ..vcs.types import CreateOrUpdateResult, IssueDraft, TrackedObject
from . import rendering
from .reconcile import ObjectReconciler
from .types import GithubState

logger = logging.getLogger(__name__)

DRIFT_ISSUE_TITLE = "drift detected: %s"
ERROR_ISSUE_TITLE = "plan error: %s"
ISSUE_RESOLVED_COMMENT = "Issue has been resolved."


def issue_title(project_dir: str, kind: str) -> str:
    if kind == ERROR_KIND:
        return ERROR_ISSUE_TITLE % project_dir
    return DRIFT_ISSUE_TITLE % project_dir


def build_issue(result: DriftProjectResult, kind: str, labels: List[str]) -> IssueDraft:
    template = rendering.ERROR_ISSUE_TEMPLATE if kind == ERROR_KIND else rendering.DRIFT_ISSUE_TEMPLATE
    return IssueDraft(
        title=issue_title(result.project.dir, kind),
        body=rendering.render_project_body(template, result, kind),
        project=result.project,
        kind=kind,
        labels=list(labels),
    )


class GithubIssueNotification(ObjectReconciler):
    """Keeps drift and plan-error issues in sync with the analysis."""

    object_name = "issue"
    resolution_comment = ISSUE_RESOLVED_COMMENT

    def __init__(self, vcs: VCS, issues_config: IssuesConfig):
        super().__init__(vcs, {kind: issues_config.lane(kind) for kind in KINDS})

    def list_open(self) -> List[TrackedObject]:
        return list(self.vcs.get_all_open_issues())

    def upsert(self, result: DriftProjectResult, kind: str, lane: LaneSettings,
               open_objects: List[TrackedObject], update_only: bool) -> CreateOrUpdateResult:
        return self.vcs.create_or_update_issue(build_issue(result, kind, lane.labels), open_objects, update_only)

    def created_object(self, outcome: CreateOrUpdateResult) -> TrackedObject:
        return outcome.issue

    def comment(self, number: int, text: str) -> None:
        self.vcs.create_issue_comment(number, text)

    def close(self, number: int) -> None:
        self.vcs.close_issue(number)

    def handle(self, analysis: DriftDetectionResult,
               open_issues: Optional[Sequence[TrackedObject]] = None) -> GithubState:
        """
        Reconcile issues with the analysis.

        Args:
            analysis: Suppression-filtered drift analysis
            open_issues: Pre-fetched open issues; listed from the VCS if omitted

        Returns:
            GithubState with the issue fields and rate-limited projects filled in

        Raises:
            VCSFetchError: Listing open issues failed
        """
        outcomes = self.reconcile(analysis, open_issues)
        drift, error = outcomes[DRIFT_KIND], outcomes[ERROR_KIND]
        logger.info(f"Issues: {len(drift.open)} drift open ({len(drift.created)} new, {len(drift.resolved)} closed), "
                    f"{len(error.open)} error open ({len(error.created)} new, {len(error.resolved)} closed)")
        return GithubState(
            drift_issues_open=drift.open,
            drift_issues_resolved=drift.resolved,
            error_issues_open=error.open,
            error_issues_resolved=error.resolved,
            rate_limited_drifts=drift.rate_limited,
            rate_limited_errors=error.rate_limited,
        )
