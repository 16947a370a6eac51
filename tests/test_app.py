from __future__ import annotations

import json
import threading
from pathlib import Path

import pytest

from conftest import DRIFT_OUTPUT
from driftive import app
from driftive.app import analyze_repository, run_driftive
from driftive.config import DriftiveConfig, GithubActionContext
from driftive.errors import ConfigConflictError, RunCancelledError, VCSFetchError
from driftive.notification.metadata import encode_metadata
from driftive.vcs.noop import NoopVCS


@pytest.fixture(autouse=True)
def no_env_repo_config(monkeypatch):
    monkeypatch.delenv("DRIFTIVE_REPO_CONFIG", raising=False)


@pytest.fixture
def repo(tmp_path) -> Path:
    for rel in ("infra/a/main.tf", "infra/b/terragrunt.hcl"):
        path = tmp_path / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("")
    return tmp_path


def _config(repo_dir: Path, **kwargs) -> DriftiveConfig:
    config = DriftiveConfig(repository_path=str(repo_dir), repository_url="", slack_webhook_url="",
                            github_token="tok", github_context=GithubActionContext("acme/infra", "acme"),
                            driftive_api_url="", driftive_token="", enable_stdout_result=False, json_output="")
    for name, value in kwargs.items():
        setattr(config, name, value)
    return config


def test_analysis_opens_issue_for_drifted_project(repo, fake_vcs, make_executor_factory) -> None:
    (repo / "driftive.yml").write_text("github: {issues: {enabled: true}}")
    factory, _ = make_executor_factory({"infra/a": {"plan": DRIFT_OUTPUT}})

    result = analyze_repository(str(repo), _config(repo), vcs=fake_vcs, executor_factory=factory)

    assert result.has_drift
    assert result.analysis.total_projects == 2
    assert [i.title for i in fake_vcs.open_issues()] == ["drift detected: infra/a"]
    assert [o.project.dir for o in result.state.drift_issues_open] == ["infra/a"]
    assert fake_vcs.calls[:3] == [("get_all_open_issues",), ("get_all_open_prs",),
                                  ("get_changed_files_for_open_prs",)]


def test_second_run_is_idempotent(repo, fake_vcs, make_executor_factory) -> None:
    (repo / "driftive.yml").write_text("github: {issues: {enabled: true}}")
    factory, _ = make_executor_factory({"infra/a": {"plan": DRIFT_OUTPUT}})

    analyze_repository(str(repo), _config(repo), vcs=fake_vcs, executor_factory=factory)
    fake_vcs.calls.clear()
    analyze_repository(str(repo), _config(repo), vcs=fake_vcs, executor_factory=factory)

    assert fake_vcs.mutations == []


def test_open_pr_suppresses_drift(repo, fake_vcs, make_executor_factory) -> None:
    (repo / "driftive.yml").write_text("github: {issues: {enabled: true}}")
    fake_vcs.add_pr("fix bucket", "manual fix")
    fake_vcs.changed_files = ["infra/a/main.tf"]
    factory, _ = make_executor_factory({"infra/a": {"plan": DRIFT_OUTPUT}})

    result = analyze_repository(str(repo), _config(repo), vcs=fake_vcs, executor_factory=factory)

    assert result.has_drift is False
    assert result.analysis.project_results[0].skipped_due_to_pr or \
        result.analysis.project_results[1].skipped_due_to_pr
    assert fake_vcs.open_issues() == []


def test_skip_check_disabled_by_setting(repo, fake_vcs, make_executor_factory) -> None:
    (repo / "driftive.yml").write_text("settings: {skip_if_open_pr: false}")
    factory, _ = make_executor_factory()

    analyze_repository(str(repo), _config(repo), vcs=fake_vcs, executor_factory=factory)

    assert ("get_changed_files_for_open_prs",) not in fake_vcs.calls


def test_listing_failure_aborts_run(repo, fake_vcs, make_executor_factory) -> None:
    fake_vcs.fail_listing = True
    factory, tracker = make_executor_factory()

    with pytest.raises(VCSFetchError):
        analyze_repository(str(repo), _config(repo), vcs=fake_vcs, executor_factory=factory)
    assert tracker.directories == []


def test_issues_without_credentials_is_rejected(repo, make_executor_factory) -> None:
    (repo / "driftive.yml").write_text("github: {issues: {enabled: true}}")
    factory, _ = make_executor_factory()

    with pytest.raises(ValueError, match="Github issues or pull requests are enabled"):
        analyze_repository(str(repo), _config(repo, github_token=""), vcs=NoopVCS(), executor_factory=factory)


def test_conflicting_repo_config_is_rejected(repo, fake_vcs, make_executor_factory) -> None:
    (repo / "driftive.yml").write_text(
        "github: {issues: {labels: [drift], errors: {enabled: true, labels: [drift]}}}")
    factory, _ = make_executor_factory()

    with pytest.raises(ConfigConflictError):
        analyze_repository(str(repo), _config(repo), vcs=fake_vcs, executor_factory=factory)


def test_json_output_written(repo, tmp_path_factory, make_executor_factory) -> None:
    out = tmp_path_factory.mktemp("out") / "analysis.json"
    factory, _ = make_executor_factory({"infra/b": {"plan": DRIFT_OUTPUT}})

    analyze_repository(str(repo), _config(repo, json_output=str(out)), vcs=NoopVCS(), executor_factory=factory)

    data = json.loads(out.read_text())
    assert data["total_drifted"] == 1
    assert data["total_projects"] == 2
    assert {r["project"]["dir"] for r in data["project_results"]} == {"infra/a", "infra/b"}


def test_run_driftive_clones_and_cleans_up(monkeypatch, tmp_path) -> None:
    clone_dir = tmp_path / "clone"
    clone_dir.mkdir()
    calls = []

    monkeypatch.setattr(app, "create_temp_clone_dir", lambda: str(clone_dir))
    monkeypatch.setattr(app, "clone_repo", lambda url, branch, target, token=None: calls.append(
        ("clone", url, branch, target, token)))
    monkeypatch.setattr(app, "cleanup_dir", lambda path: calls.append(("cleanup", path)))

    def fake_analyze(repo_dir, config, cancel_event=None):
        calls.append(("analyze", repo_dir))
        raise VCSFetchError("listing failed")

    monkeypatch.setattr(app, "analyze_repository", fake_analyze)
    config = DriftiveConfig(repository_url="https://github.com/acme/infra.git", repository_path="",
                            branch="main", github_token="tok")

    with pytest.raises(VCSFetchError):
        run_driftive(config)

    assert calls == [
        ("clone", "https://github.com/acme/infra.git", "main", str(clone_dir), "tok"),
        ("analyze", str(clone_dir)),
        ("cleanup", str(clone_dir)),
    ]


def test_cancelled_analysis_leaves_tracked_objects_alone(repo, fake_vcs, execution_error,
                                                         make_executor_factory) -> None:
    (repo / "driftive.yml").write_text(
        "github: {issues: {enabled: true, close_resolved: true, errors: {enabled: true}}}")
    issue = fake_vcs.add_issue("drift detected: infra/a", encode_metadata("infra/a", "drift") + "\nold plan")
    cancelled = execution_error("")
    cancelled.cancelled = True
    factory, _ = make_executor_factory({"infra/a": {"plan": cancelled}, "infra/b": {"plan": cancelled}})
    cancel_event = threading.Event()
    cancel_event.set()

    with pytest.raises(RunCancelledError):
        analyze_repository(str(repo), _config(repo), vcs=fake_vcs, executor_factory=factory,
                           cancel_event=cancel_event)

    assert fake_vcs.mutations == []
    assert fake_vcs.issues[issue.number].state == "open"
