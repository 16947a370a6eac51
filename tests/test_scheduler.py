from __future__ import annotations

import threading
from types import SimpleNamespace

from scripts import drift_scheduler
from scripts.drift_scheduler import DriftRunner, RepoConfigFileHandler
from driftive.config import DriftiveConfig
from driftive.errors import VCSFetchError


class RecordingScheduler:
    def __init__(self):
        self.jobs = []

    def add_job(self, func, **kwargs):
        self.jobs.append((func, kwargs))


def test_config_change_schedules_one_debounced_run() -> None:
    scheduler = RecordingScheduler()
    runner = DriftRunner(DriftiveConfig(repository_path="/repo"), threading.Event())
    handler = RepoConfigFileHandler(scheduler, runner)

    handler.on_modified(SimpleNamespace(src_path="/repo/main.tf"))
    handler.on_modified(SimpleNamespace(src_path="/repo/driftive.yml"))
    handler.on_created(SimpleNamespace(src_path="/repo/.driftive.yaml"))

    assert len(scheduler.jobs) == 1
    func, kwargs = scheduler.jobs[0]
    assert func == runner.run
    assert kwargs["id"] == "config_change_run"


def test_runner_logs_failures_and_releases_lock(monkeypatch) -> None:
    calls = []

    def failing_run(config, cancel_event=None):
        calls.append(config)
        raise VCSFetchError("listing failed")

    monkeypatch.setattr(drift_scheduler, "run_driftive", failing_run)
    runner = DriftRunner(DriftiveConfig(repository_path="/repo"), threading.Event())

    runner.run()
    runner.run()

    assert len(calls) == 2


def test_runner_skips_while_previous_run_in_progress(monkeypatch) -> None:
    calls = []
    monkeypatch.setattr(drift_scheduler, "run_driftive", lambda config, cancel_event=None: calls.append(config))
    runner = DriftRunner(DriftiveConfig(repository_path="/repo"), threading.Event())

    runner._lock.acquire()
    try:
        runner.run(reason="scheduled")
    finally:
        runner._lock.release()

    assert calls == []
