"""Reconciliation state types."""

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List

from ..models import Project
from ..vcs.types import TrackedObject


@dataclass
class ProjectObject:
    """An open issue or pull request that driftive manages, with its recovered metadata."""

    project: Project
    tracked: TrackedObject
    kind: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project": {"dir": self.project.dir},
            "number": self.tracked.number,
            "title": self.tracked.title,
            "url": self.tracked.url,
            "kind": self.kind,
        }


@dataclass
class LaneOutcome:
    """Result of reconciling one kind for one object type."""

    kind: str
    open: List[ProjectObject] = field(default_factory=list)
    resolved: List[ProjectObject] = field(default_factory=list)
    created: List[ProjectObject] = field(default_factory=list)
    rate_limited: List[str] = field(default_factory=list)


@dataclass
class GithubState:
    """
    What the tracked objects look like after a reconciliation pass.

    Built from the pass itself; callers render it without listing the VCS again.
    """

    drift_issues_open: List[ProjectObject] = field(default_factory=list)
    drift_issues_resolved: List[ProjectObject] = field(default_factory=list)
    error_issues_open: List[ProjectObject] = field(default_factory=list)
    error_issues_resolved: List[ProjectObject] = field(default_factory=list)

    drift_pull_requests_open: List[ProjectObject] = field(default_factory=list)
    drift_pull_requests_resolved: List[ProjectObject] = field(default_factory=list)
    error_pull_requests_open: List[ProjectObject] = field(default_factory=list)
    error_pull_requests_resolved: List[ProjectObject] = field(default_factory=list)

    rate_limited_drifts: List[str] = field(default_factory=list)
    rate_limited_errors: List[str] = field(default_factory=list)

    @property
    def rate_limited_projects(self) -> List[str]:
        merged: List[str] = []
        for project_dir in self.rate_limited_drifts + self.rate_limited_errors:
            if project_dir not in merged:
                merged.append(project_dir)
        return merged

    @property
    def num_resolved(self) -> int:
        """Drift issues and pull requests closed in this pass."""
        return len(self.drift_issues_resolved) + len(self.drift_pull_requests_resolved)

    def merge(self, other: "GithubState") -> "GithubState":
        """Combine the issue and pull request halves of a run into one state."""
        merged = GithubState()
        for f in fields(self):
            combined = list(getattr(self, f.name))
            for item in getattr(other, f.name):
                if item not in combined:
                    combined.append(item)
            setattr(merged, f.name, combined)
        return merged
