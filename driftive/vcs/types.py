"""Provider-neutral VCS object types."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from ..models import Project


@dataclass
class TrackedObject:
    """An issue or pull request as fetched from the VCS."""

    number: int
    title: str = ""
    body: str = ""
    state: str = "open"
    url: str = ""


@dataclass
class VCSIssue(TrackedObject):
    pass


@dataclass
class VCSPullRequest(TrackedObject):
    head_branch: str = ""


@dataclass
class IssueDraft:
    """Issue driftive wants to exist."""

    title: str
    body: str
    project: Project
    kind: str
    labels: List[str] = field(default_factory=list)


@dataclass
class PullRequestDraft:
    """Remediation pull request driftive wants to exist."""

    title: str
    body: str
    project: Project
    kind: str
    branch: str
    base: str
    labels: List[str] = field(default_factory=list)
    # Written into the marker file committed on the branch
    time: datetime = field(default_factory=datetime.now)


@dataclass
class CreateOrUpdateResult:
    """Outcome of an upsert. Nothing created and not rate limited means no-op or update."""

    created: bool = False
    rate_limited: bool = False
    updated: bool = False
    issue: Optional[VCSIssue] = None
    pull_request: Optional[VCSPullRequest] = None
