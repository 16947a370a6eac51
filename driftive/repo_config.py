"""
Repository configuration (driftive.yml).

Controls project auto-discovery, GitHub issue / pull request handling and
PR-based suppression. Loaded from the DRIFTIVE_REPO_CONFIG environment
variable or a driftive.y(a)ml file at the repository root.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigConflictError
from .models import DRIFT_KIND, ERROR_KIND, ProjectKind

logger = logging.getLogger(__name__)

REPO_CONFIG_ENV_VAR = "DRIFTIVE_REPO_CONFIG"
REPO_CONFIG_FILE_NAMES = ("driftive.yml", "driftive.yaml", ".driftive.yml", ".driftive.yaml")

DEFAULT_MAX_OPEN_DRIFT = 10
DEFAULT_MAX_OPEN_ERROR = 5
DEFAULT_SUMMARY_TITLE = "Driftive Summary"


@dataclass
class LaneSettings:
    """How one kind of tracked object (drift or error) is handled for one object type."""

    enabled: bool = False
    labels: List[str] = field(default_factory=list)
    max_open: int = DEFAULT_MAX_OPEN_DRIFT
    close_resolved: bool = False


def _default_when_zero(value: int, default: int) -> int:
    return default if not value else value


class AutoDiscoverRule(BaseModel):
    pattern: str
    executable: ProjectKind = ProjectKind.TERRAFORM

    @field_validator('executable', mode='before')
    @classmethod
    def parse_executable(cls, v):
        if isinstance(v, str):
            return ProjectKind.from_executable(v)
        return v


class AutoDiscoverConfig(BaseModel):
    enabled: bool = True
    inclusions: List[str] = Field(default_factory=lambda: ["**/terragrunt.hcl", "**/*.tf"])
    exclusions: List[str] = Field(default_factory=lambda: [
        ".git/**",
        "**/modules/**",
        "**/.terragrunt-cache/**",
        "**/.terraform/**",
        "terragrunt.hcl",
    ])
    project_rules: List[AutoDiscoverRule] = Field(default_factory=lambda: [
        AutoDiscoverRule(pattern="terragrunt.hcl", executable=ProjectKind.TERRAGRUNT),
        AutoDiscoverRule(pattern="*.tf", executable=ProjectKind.TERRAFORM),
    ])


class ErrorIssuesConfig(BaseModel):
    enabled: bool = False
    labels: List[str] = Field(default_factory=list)
    max_open_issues: int = Field(default=DEFAULT_MAX_OPEN_ERROR, ge=0)
    # None inherits the parent's close_resolved
    close_resolved: Optional[bool] = None

    @field_validator('max_open_issues')
    @classmethod
    def zero_means_default(cls, v):
        return _default_when_zero(v, DEFAULT_MAX_OPEN_ERROR)


class IssuesConfig(BaseModel):
    enabled: bool = False
    close_resolved: bool = False
    max_open_issues: int = Field(default=DEFAULT_MAX_OPEN_DRIFT, ge=0)
    labels: List[str] = Field(default_factory=list)
    errors: ErrorIssuesConfig = Field(default_factory=ErrorIssuesConfig)

    @field_validator('max_open_issues')
    @classmethod
    def zero_means_default(cls, v):
        return _default_when_zero(v, DEFAULT_MAX_OPEN_DRIFT)

    def lane(self, kind: str) -> LaneSettings:
        if kind == ERROR_KIND:
            close_resolved = self.close_resolved if self.errors.close_resolved is None else self.errors.close_resolved
            return LaneSettings(self.errors.enabled, list(self.errors.labels),
                                self.errors.max_open_issues, close_resolved)
        return LaneSettings(self.enabled, list(self.labels), self.max_open_issues, self.close_resolved)


class ErrorPullRequestsConfig(BaseModel):
    enabled: bool = False
    labels: List[str] = Field(default_factory=list)
    max_open_pull_requests: int = Field(default=DEFAULT_MAX_OPEN_ERROR, ge=0)
    close_resolved: Optional[bool] = None

    @field_validator('max_open_pull_requests')
    @classmethod
    def zero_means_default(cls, v):
        return _default_when_zero(v, DEFAULT_MAX_OPEN_ERROR)


class PullRequestsConfig(BaseModel):
    enabled: bool = False
    close_resolved: bool = False
    max_open_pull_requests: int = Field(default=DEFAULT_MAX_OPEN_DRIFT, ge=0)
    labels: List[str] = Field(default_factory=list)
    base_branch: str = "main"
    branch_prefix: str = "drift-remediation"
    errors: ErrorPullRequestsConfig = Field(default_factory=ErrorPullRequestsConfig)

    @field_validator('max_open_pull_requests')
    @classmethod
    def zero_means_default(cls, v):
        return _default_when_zero(v, DEFAULT_MAX_OPEN_DRIFT)

    def lane(self, kind: str) -> LaneSettings:
        if kind == ERROR_KIND:
            close_resolved = self.close_resolved if self.errors.close_resolved is None else self.errors.close_resolved
            return LaneSettings(self.errors.enabled, list(self.errors.labels),
                                self.errors.max_open_pull_requests, close_resolved)
        return LaneSettings(self.enabled, list(self.labels), self.max_open_pull_requests, self.close_resolved)


class SummaryConfig(BaseModel):
    enabled: bool = False
    issue_title: str = DEFAULT_SUMMARY_TITLE

    @field_validator('issue_title')
    @classmethod
    def title_not_empty(cls, v):
        return v or DEFAULT_SUMMARY_TITLE


class GithubConfig(BaseModel):
    issues: IssuesConfig = Field(default_factory=IssuesConfig)
    pull_requests: PullRequestsConfig = Field(default_factory=PullRequestsConfig)
    summary: SummaryConfig = Field(default_factory=SummaryConfig)


class SettingsConfig(BaseModel):
    skip_if_open_pr: bool = True


class DriftiveRepoConfig(BaseModel):
    """Root of driftive.yml."""

    auto_discover: AutoDiscoverConfig = Field(default_factory=AutoDiscoverConfig)
    github: GithubConfig = Field(default_factory=GithubConfig)
    settings: SettingsConfig = Field(default_factory=SettingsConfig)


def parse_repo_config(content: str) -> DriftiveRepoConfig:
    """
    Parse YAML text into a repository config.

    Raises:
        ValueError: Invalid YAML or schema violation
    """
    try:
        data = yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid repository config YAML: {e}") from e
    if not isinstance(data, dict):
        raise ValueError("Repository config must be a YAML mapping")
    try:
        return DriftiveRepoConfig.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid repository config: {e}") from e


def detect_repo_config(repo_dir: str) -> Optional[DriftiveRepoConfig]:
    """
    Find the repository config.

    Returns:
        The parsed config, or None if the repository has none
    """
    env_config = os.getenv(REPO_CONFIG_ENV_VAR)
    if env_config:
        logger.info(f"Loading repo config from {REPO_CONFIG_ENV_VAR}")
        return parse_repo_config(env_config)

    for file_name in REPO_CONFIG_FILE_NAMES:
        path = Path(repo_dir) / file_name
        if path.is_file():
            logger.info(f"Loading repo config from {path}")
            return parse_repo_config(path.read_text(encoding="utf-8"))
    return None


def repo_config_or_default(repo_config: Optional[DriftiveRepoConfig]) -> DriftiveRepoConfig:
    if repo_config is None:
        logger.info("No repository config detected. Using default auto-discovery rules.")
        return DriftiveRepoConfig()
    logger.info("Using detected driftive.y(a)ml configuration.")
    return repo_config


def _validate_lane_labels(object_type: str, drift: LaneSettings, error: LaneSettings) -> None:
    for label in drift.labels + error.labels:
        if not label or not label.strip():
            raise ConfigConflictError(f"Invalid empty label name in github.{object_type}")
    if not error.enabled:
        return
    shared = set(drift.labels) & set(error.labels)
    if shared:
        raise ConfigConflictError(
            f"Label(s) {sorted(shared)} used for both drift and error {object_type}"
        )


def validate_repo_config(repo_config: DriftiveRepoConfig) -> None:
    """
    Check settings pydantic cannot check field by field.

    Raises:
        ConfigConflictError: Empty label names, or a label shared by the drift and error lanes
    """
    issues = repo_config.github.issues
    _validate_lane_labels("issues", issues.lane(DRIFT_KIND), issues.lane(ERROR_KIND))
    prs = repo_config.github.pull_requests
    _validate_lane_labels("pull_requests", prs.lane(DRIFT_KIND), prs.lane(ERROR_KIND))
