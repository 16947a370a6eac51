"""GitHub pull request reconciliation: one remediation PR per drifted (or failing) project."""

import logging
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from ..drift.models import DriftDetectionResult, DriftProjectResult
from ..models import DRIFT_KIND, ERROR_KIND, KINDS
from ..repo_config import LaneSettings, PullRequestsConfig
from ..vcs.base import VCS
from ..vcs.types import CreateOrUpdateResult, PullRequestDraft, TrackedObject
from . import rendering
from .reconcile import ObjectReconciler
from .types import GithubState

logger = logging.getLogger(__name__)

DRIFT_PR_TITLE = "Drift remediation for %s"
ERROR_PR_TITLE = "Plan error remediation for %s"
PR_RESOLVED_COMMENT = "Drift has been resolved."
BRANCH_TIME_FORMAT = "%Y%m%d%H%M%S"


def pull_request_title(project_dir: str, kind: str) -> str:
    if kind == ERROR_KIND:
        return ERROR_PR_TITLE % project_dir
    return DRIFT_PR_TITLE % project_dir


def branch_name(prefix: str, project_dir: str, now: datetime) -> str:
    return f"{prefix}-{now.strftime(BRANCH_TIME_FORMAT)}-{project_dir}"


class GithubPullRequestNotification(ObjectReconciler):
    """Opens, updates and closes remediation pull requests."""

    object_name = "pull request"
    resolution_comment = PR_RESOLVED_COMMENT

    def __init__(self, vcs: VCS, pull_requests_config: PullRequestsConfig,
                 clock: Callable[[], datetime] = datetime.now):
        super().__init__(vcs, {kind: pull_requests_config.lane(kind) for kind in KINDS})
        self.base_branch = pull_requests_config.base_branch
        self.branch_prefix = pull_requests_config.branch_prefix
        self.clock = clock

    def build_pull_request(self, result: DriftProjectResult, kind: str, labels: List[str]) -> PullRequestDraft:
        now = self.clock()
        template = rendering.ERROR_PR_TEMPLATE if kind == ERROR_KIND else rendering.DRIFT_PR_TEMPLATE
        return PullRequestDraft(
            title=pull_request_title(result.project.dir, kind),
            body=rendering.render_project_body(template, result, kind),
            project=result.project,
            kind=kind,
            branch=branch_name(self.branch_prefix, result.project.dir, now),
            base=self.base_branch,
            labels=list(labels),
            time=now,
        )

    def list_open(self) -> List[TrackedObject]:
        return list(self.vcs.get_all_open_prs())

    def upsert(self, result: DriftProjectResult, kind: str, lane: LaneSettings,
               open_objects: List[TrackedObject], update_only: bool) -> CreateOrUpdateResult:
        pr = self.build_pull_request(result, kind, lane.labels)
        return self.vcs.create_or_update_pull_request(pr, update_only, open_objects)

    def created_object(self, outcome: CreateOrUpdateResult) -> TrackedObject:
        return outcome.pull_request

    def comment(self, number: int, text: str) -> None:
        self.vcs.create_pull_request_comment(number, text)

    def close(self, number: int) -> None:
        self.vcs.close_pull_request(number)

    def handle(self, analysis: DriftDetectionResult,
               open_prs: Optional[Sequence[TrackedObject]] = None) -> GithubState:
        """
        Reconcile remediation pull requests with the analysis.

        Raises:
            VCSFetchError: Listing open pull requests failed
        """
        outcomes = self.reconcile(analysis, open_prs)
        drift, error = outcomes[DRIFT_KIND], outcomes[ERROR_KIND]
        logger.info(f"Pull requests: {len(drift.open)} drift open ({len(drift.created)} new, "
                    f"{len(drift.resolved)} closed), {len(error.open)} error open")
        return GithubState(
            drift_pull_requests_open=drift.open,
            drift_pull_requests_resolved=drift.resolved,
            error_pull_requests_open=error.open,
            error_pull_requests_resolved=error.resolved,
            rate_limited_drifts=drift.rate_limited,
            rate_limited_errors=error.rate_limited,
        )
