from __future__ import annotations

import threading
import time
from datetime import timedelta
from typing import Dict, List, Optional

import pytest

from driftive.drift.models import DriftDetectionResult, DriftProjectResult
from driftive.errors import ExecutionError, VCSFetchError, VCSMutationError
from driftive.exec import parsing
from driftive.models import Project, ProjectKind
from driftive.vcs.base import VCS
from driftive.vcs.types import IssueDraft, PullRequestDraft, VCSIssue, VCSPullRequest

NO_DRIFT_OUTPUT = """
Initializing plugins and modules...
aws_s3_bucket.logs: Refreshing state... [id=logs]

No changes. Infrastructure is up-to-date.

This means that Terraform did not detect any differences.
"""

DRIFT_OUTPUT = """
aws_s3_bucket.logs: Refreshing state... [id=logs]

Terraform used the selected providers to generate the following execution
plan. Resource actions are indicated with the following symbols:
  ~ update in-place

Terraform will perform the following actions:

  # aws_s3_bucket.logs will be updated in-place
  ~ resource "aws_s3_bucket" "logs" {
      ~ tags = {
          - "owner" = "ops" -> null
        }
    }

Plan: 0 to add, 1 to change, 0 to destroy.

─────────────────────────────────────────────────────────────────────────────

Note: You didn't use the -out option to save this plan, so Terraform can't
guarantee to take exactly these actions if you run "terraform apply" now.
"""


class FakeVCS(VCS):
    """In-memory VCS recording every call."""

    def __init__(self):
        self.issues: Dict[int, VCSIssue] = {}
        self.prs: Dict[int, VCSPullRequest] = {}
        self.changed_files: List[str] = []
        self.comments: Dict[int, List[str]] = {}
        self.labels: Dict[int, List[str]] = {}
        self.calls: List[tuple] = []
        self.fail_on: set = set()
        self.fail_listing = False
        self._next_number = 1

    # helpers

    def _record(self, name: str, *args):
        self.calls.append((name,) + args)
        if name in self.fail_on:
            raise VCSMutationError(f"{name} failed")

    def _number(self) -> int:
        number = self._next_number
        self._next_number += 1
        return number

    def add_issue(self, title: str, body: str) -> VCSIssue:
        number = self._number()
        issue = VCSIssue(number=number, title=title, body=body, url=f"https://example.test/issues/{number}")
        self.issues[issue.number] = issue
        return issue

    def add_pr(self, title: str, body: str, branch: str = "feature") -> VCSPullRequest:
        pr = VCSPullRequest(number=self._number(), title=title, body=body, head_branch=branch)
        self.prs[pr.number] = pr
        return pr

    @property
    def mutations(self) -> List[tuple]:
        return [c for c in self.calls if not c[0].startswith("get_")]

    def open_issues(self) -> List[VCSIssue]:
        return [i for i in self.issues.values() if i.state == "open"]

    def open_prs(self) -> List[VCSPullRequest]:
        return [p for p in self.prs.values() if p.state == "open"]

    # listing

    def get_all_open_issues(self) -> List[VCSIssue]:
        self.calls.append(("get_all_open_issues",))
        if self.fail_listing:
            raise VCSFetchError("listing issues failed")
        return [VCSIssue(number=i.number, title=i.title, body=i.body, url=i.url) for i in self.open_issues()]

    def get_all_open_prs(self) -> List[VCSPullRequest]:
        self.calls.append(("get_all_open_prs",))
        if self.fail_listing:
            raise VCSFetchError("listing pull requests failed")
        return [VCSPullRequest(number=p.number, title=p.title, body=p.body, head_branch=p.head_branch)
                for p in self.open_prs()]

    def get_changed_files_for_open_prs(self, prs: List[VCSPullRequest]) -> List[str]:
        self.calls.append(("get_changed_files_for_open_prs",))
        return list(self.changed_files)

    # mutations

    def create_issue(self, issue: IssueDraft) -> VCSIssue:
        self._record("create_issue", issue.title)
        created = self.add_issue(issue.title, issue.body)
        self.labels[created.number] = list(issue.labels)
        return VCSIssue(number=created.number, title=created.title, body=created.body, url=created.url)

    def update_issue_body(self, number: int, body: str) -> None:
        self._record("update_issue_body", number)
        self.issues[number].body = body

    def create_issue_comment(self, number: int, text: str) -> None:
        self._record("create_issue_comment", number, text)
        self.comments.setdefault(number, []).append(text)

    def close_issue(self, number: int) -> None:
        self._record("close_issue", number)
        self.issues[number].state = "closed"

    def open_pull_request(self, pr: PullRequestDraft) -> VCSPullRequest:
        self._record("open_pull_request", pr.title, pr.branch)
        created = self.add_pr(pr.title, pr.body, pr.branch)
        self.labels[created.number] = list(pr.labels)
        return VCSPullRequest(number=created.number, title=created.title, body=created.body,
                              head_branch=created.head_branch)

    def update_pull_request_body(self, number: int, body: str) -> None:
        self._record("update_pull_request_body", number)
        self.prs[number].body = body

    def create_pull_request_comment(self, number: int, text: str) -> None:
        self._record("create_pull_request_comment", number, text)
        self.comments.setdefault(number, []).append(text)

    def close_pull_request(self, number: int) -> None:
        self._record("close_pull_request", number)
        self.prs[number].state = "closed"


class ConcurrencyTracker:
    def __init__(self):
        self._lock = threading.Lock()
        self.running = 0
        self.max_running = 0
        self.directories: List[str] = []

    def enter(self, directory: str):
        with self._lock:
            self.running += 1
            self.max_running = max(self.max_running, self.running)
            self.directories.append(directory)

    def exit(self):
        with self._lock:
            self.running -= 1


class FakeExecutor:
    """Returns scripted outputs instead of running a binary. Scripted exceptions are raised."""

    def __init__(self, project: Project, directory: str, cancel_event, script: Dict, tracker: ConcurrencyTracker):
        self.project = project
        self.directory = directory
        self.cancel_event = cancel_event
        self.script = script
        self.tracker = tracker

    def _step(self, name: str) -> str:
        value = self.script.get(name, "")
        if isinstance(value, Exception):
            raise value
        return value

    def init(self, *args: str) -> str:
        return self._step("init")

    def plan(self, *args: str) -> str:
        self.tracker.enter(self.directory)
        try:
            time.sleep(0.01)
            return self._step("plan")
        finally:
            self.tracker.exit()

    def parse_plan(self, output: str) -> str:
        return parsing.parse_plan(output)

    def parse_error_output(self, output: str) -> str:
        return parsing.parse_error_output(output)


@pytest.fixture
def fake_vcs() -> FakeVCS:
    return FakeVCS()


@pytest.fixture
def make_executor_factory():
    """Build an executor factory from {project_dir: {"init": ..., "plan": ...}}; unscripted projects plan clean."""

    def _make(scripts: Optional[Dict[str, Dict]] = None):
        scripts = scripts or {}
        tracker = ConcurrencyTracker()

        def factory(project: Project, directory: str, cancel_event=None):
            script = scripts.get(project.dir, {"plan": NO_DRIFT_OUTPUT})
            return FakeExecutor(project, directory, cancel_event, script, tracker)

        return factory, tracker

    return _make


@pytest.fixture
def make_result():
    def _make(project_dir: str, drifted: bool = False, succeeded: bool = True, plan_output: str = "",
              init_output: str = "", skipped: bool = False,
              kind: ProjectKind = ProjectKind.TERRAFORM) -> DriftProjectResult:
        return DriftProjectResult(
            project=Project(dir=project_dir, kind=kind),
            drifted=drifted,
            succeeded=succeeded,
            init_output=init_output,
            plan_output=plan_output,
            skipped_due_to_pr=skipped,
        )

    return _make


@pytest.fixture
def make_analysis():
    def _make(results: List[DriftProjectResult]) -> DriftDetectionResult:
        return DriftDetectionResult(
            project_results=list(results),
            total_drifted=sum(1 for r in results if r.drifted and not r.skipped_due_to_pr),
            total_errored=sum(1 for r in results if not r.succeeded),
            total_projects=len(results),
            total_checked=len(results),
            duration=timedelta(seconds=3),
        )

    return _make


@pytest.fixture
def execution_error():
    def _make(output: str, returncode: int = 1) -> ExecutionError:
        return ExecutionError("command failed", output=output, returncode=returncode)

    return _make
