"""Summary issue: one pinned-style issue listing every open drift and plan error."""

import json
import logging
from datetime import datetime, timezone
from typing import Callable, Sequence

from ..models import Project
from ..repo_config import SummaryConfig
from ..vcs.base import VCS
from ..vcs.types import CreateOrUpdateResult, IssueDraft, TrackedObject
from . import rendering
from .types import GithubState

logger = logging.getLogger(__name__)

SUMMARY_KIND = "summary"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def summary_state_json(state: GithubState, last_analysis_date: str) -> str:
    """
    JSON state block for the summary body.

    `<` and `>` are escaped; the payload never contains comment or metadata delimiters.
    """
    payload = {
        "last_analysis_date": last_analysis_date,
        "drifted": [o.to_dict() for o in state.drift_issues_open],
        "errored": [o.to_dict() for o in state.error_issues_open],
        "rate_limited": state.rate_limited_projects,
    }
    return json.dumps(payload, separators=(",", ":")).replace("<", "\\u003c").replace(">", "\\u003e")


class GithubSummary:
    """Creates or updates the summary issue from a reconciliation state."""

    def __init__(self, vcs: VCS, summary_config: SummaryConfig, clock: Callable[[], datetime] = _utc_now):
        self.vcs = vcs
        self.title = summary_config.issue_title
        self.clock = clock

    def build_body(self, state: GithubState) -> str:
        last_analysis_date = self.clock().strftime("%Y-%m-%d %H:%M:%S %Z").strip()
        return rendering.render(
            rendering.SUMMARY_TEMPLATE,
            title=self.title,
            last_analysis_date=last_analysis_date,
            drifted=state.drift_issues_open,
            errored=state.error_issues_open,
            rate_limited=state.rate_limited_projects,
            state_json=summary_state_json(state, last_analysis_date),
        )

    def publish(self, state: GithubState, open_issues: Sequence[TrackedObject]) -> CreateOrUpdateResult:
        """
        Upsert the summary issue.

        Args:
            state: Reconciliation state of this run
            open_issues: The issue listing already fetched for this run

        Raises:
            VCSMutationError: Creating or updating the summary issue failed
        """
        draft = IssueDraft(
            title=self.title,
            body=self.build_body(state),
            project=Project(dir=""),
            kind=SUMMARY_KIND,
        )
        result = self.vcs.create_or_update_issue(draft, list(open_issues), update_only=False)
        logger.info(f"📋 Summary issue '{self.title}' "
                    f"{'created' if result.created else 'updated' if result.updated else 'unchanged'}")
        return result
