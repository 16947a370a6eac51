"""
One complete driftive run.

    clone (optional) -> load repo config -> fetch open issues / PRs
    -> discover projects -> detect drift -> suppress PR-covered drift -> notify

Shared by the CLI (main.py) and the scheduled runner.
"""

import json
import logging
import threading
from dataclasses import dataclass, field
from typing import List, Optional

from .config import DriftiveConfig
from .discovery import discover_projects
from .errors import RunCancelledError
from .drift import DriftDetectionResult, DriftDetector, handle_skip_if_contains_pr_changes
from .exec.executors import ExecutorFactory, new_executor
from .git_operations import cleanup_dir, clone_repo, create_temp_clone_dir
from .notification import GithubState, NotificationHandler
from .repo_config import DriftiveRepoConfig, detect_repo_config, repo_config_or_default, validate_repo_config
from .vcs import VCS, VCSIssue, VCSPullRequest, new_vcs

logger = logging.getLogger(__name__)


@dataclass
class Stash:
    """VCS state fetched once, before the analysis starts."""

    open_issues: Optional[List[VCSIssue]] = None
    open_prs: Optional[List[VCSPullRequest]] = None
    open_pr_changed_files: List[str] = field(default_factory=list)


@dataclass
class RunResult:
    analysis: DriftDetectionResult
    state: GithubState

    @property
    def has_drift(self) -> bool:
        return self.analysis.total_drifted > 0


def _on_off(enabled: bool) -> str:
    return "on" if enabled else "off"


def show_init_message(config: DriftiveConfig, repo_config: DriftiveRepoConfig) -> None:
    """
    Log the effective options.

    Raises:
        ValueError: GitHub issues or pull requests are enabled without a token and repository context
    """
    github = repo_config.github
    logger.info("🚀 Starting driftive...")
    logger.info(f"Options: concurrency: {config.concurrency}. "
                f"github issues: {_on_off(github.issues.enabled)}. "
                f"github pull requests: {_on_off(github.pull_requests.enabled)}. "
                f"slack: {_on_off(bool(config.slack_webhook_url))}. "
                f"close resolved issues: {_on_off(github.issues.close_resolved)}. "
                f"max opened issues: {github.issues.max_open_issues}")

    if (github.issues.enabled or github.pull_requests.enabled) and not config.has_github:
        raise ValueError("Github issues or pull requests are enabled but the required Github token or "
                         "context is not provided. Use the --github-token flag or set the GITHUB_TOKEN "
                         "environment variable, and make sure GITHUB_CONTEXT or GITHUB_REPOSITORY is set.")


def load_repo_config(repo_dir: str) -> DriftiveRepoConfig:
    """
    Detect, default and validate the repository config.

    Raises:
        ValueError: The config could not be parsed
        ConfigConflictError: The config is inconsistent
    """
    repo_config = repo_config_or_default(detect_repo_config(repo_dir))
    validate_repo_config(repo_config)
    return repo_config


def prepare_stash(vcs: VCS, repo_config: DriftiveRepoConfig) -> Stash:
    """
    Fetch open issues, open pull requests and their changed files.

    Raises:
        VCSFetchError: Any listing failed
    """
    if not vcs.enabled:
        return Stash()

    logger.info("Github context detected.")
    stash = Stash(open_issues=vcs.get_all_open_issues(), open_prs=vcs.get_all_open_prs())
    if repo_config.settings.skip_if_open_pr:
        stash.open_pr_changed_files = vcs.get_changed_files_for_open_prs(stash.open_prs)
    else:
        logger.info("Not checking for changed files in open PRs because skip_if_open_pr is not enabled.")
    return stash


def write_json_output(path: str, analysis: DriftDetectionResult) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(analysis.to_dict(), f, indent=2)
    logger.info(f"Analysis written to {path}")


def analyze_repository(
    repo_dir: str,
    config: DriftiveConfig,
    vcs: Optional[VCS] = None,
    executor_factory: ExecutorFactory = new_executor,
    cancel_event: Optional[threading.Event] = None,
    notification_handler: Optional[NotificationHandler] = None,
) -> RunResult:
    """
    Analyze a checked-out repository and dispatch notifications.

    Args:
        repo_dir: Repository root
        config: Process configuration
        vcs: VCS collaborator; built from config if omitted
        executor_factory: Builds execution adapters (replaced in tests)
        cancel_event: Shutdown signal forwarded to running tools
        notification_handler: Dispatcher; built from config if omitted

    Returns:
        The analysis and the reconciliation state

    Raises:
        ValueError / ConfigConflictError: Invalid repository config
        VCSFetchError: Fetching open issues or pull requests failed
        RunCancelledError: The cancel event was set during the analysis
    """
    repo_config = load_repo_config(repo_dir)
    show_init_message(config, repo_config)

    if vcs is None:
        vcs = new_vcs(config)
    stash = prepare_stash(vcs, repo_config)

    projects = discover_projects(repo_dir, repo_config)
    logger.info(f"Projects detected: {len(projects)}")

    detector = DriftDetector(repo_dir, projects, config.concurrency,
                             executor_factory=executor_factory, cancel_event=cancel_event)
    analysis = detector.detect_drift()
    if cancel_event is not None and cancel_event.is_set():
        raise RunCancelledError("Drift analysis cancelled, skipping notifications")
    handle_skip_if_contains_pr_changes(analysis, stash.open_pr_changed_files, repo_dir)

    if config.json_output:
        write_json_output(config.json_output, analysis)

    if notification_handler is None:
        notification_handler = NotificationHandler(config, repo_config, vcs)
    state = notification_handler.handle(analysis, stash.open_issues, stash.open_prs)

    if analysis.total_drifted <= 0:
        logger.info("No drifts detected")
    return RunResult(analysis=analysis, state=state)


def run_driftive(config: DriftiveConfig, cancel_event: Optional[threading.Event] = None) -> RunResult:
    """
    Run driftive end to end, cloning the repository first when no local path is configured.

    The temporary clone is always removed afterwards.
    """
    if config.repository_path:
        return analyze_repository(config.repository_path, config, cancel_event=cancel_event)

    repo_dir = create_temp_clone_dir()
    logger.debug(f"Created temp dir: {repo_dir}")
    try:
        clone_repo(config.repository_url, config.branch, repo_dir, token=config.github_token or None)
        return analyze_repository(repo_dir, config, cancel_event=cancel_event)
    finally:
        cleanup_dir(repo_dir)
