"""Result types produced by a drift analysis run."""

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, List

from ..models import Project


@dataclass
class DriftProjectResult:
    """Outcome of analyzing one project. Only `skipped_due_to_pr` changes after creation."""

    project: Project
    drifted: bool = False
    # True if the analysis itself ran to completion, even if the project drifted
    succeeded: bool = False
    init_output: str = ""
    plan_output: str = ""
    # Set when an open pull request already touches the drifted project
    skipped_due_to_pr: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project": self.project.to_dict(),
            "drifted": self.drifted,
            "succeeded": self.succeeded,
            "init_output": self.init_output,
            "plan_output": self.plan_output,
            "skipped_due_to_pr": self.skipped_due_to_pr,
        }


@dataclass
class DriftDetectionResult:
    """Aggregate of one run. Order of `project_results` is not meaningful."""

    project_results: List[DriftProjectResult] = field(default_factory=list)
    total_drifted: int = 0
    total_errored: int = 0
    total_projects: int = 0
    total_checked: int = 0
    duration: timedelta = field(default_factory=timedelta)

    def drifted_projects(self) -> List[DriftProjectResult]:
        """Drifted results nobody is already fixing through an open pull request."""
        return [r for r in self.project_results if r.drifted and not r.skipped_due_to_pr]

    def skipped_projects(self) -> List[DriftProjectResult]:
        return [r for r in self.project_results if r.drifted and r.skipped_due_to_pr]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project_results": [r.to_dict() for r in self.project_results],
            "total_drifted": self.total_drifted,
            "total_errored": self.total_errored,
            "total_projects": self.total_projects,
            "total_checked": self.total_checked,
            "duration": self.duration.total_seconds(),
        }
