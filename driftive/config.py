"""Configuration management for driftive."""

import json
import os
import logging
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 4


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class GithubActionContext:
    """Subset of the GitHub Actions `github` context driftive needs."""

    repository: str = ""
    repository_owner: str = ""

    @property
    def owner(self) -> str:
        return self.repository.split("/")[0] if self.is_valid() else ""

    @property
    def name(self) -> str:
        return self.repository.split("/")[1] if self.is_valid() else ""

    def is_valid(self) -> bool:
        """True if `repository` has the form owner/name."""
        parts = self.repository.split("/")
        return len(parts) == 2 and all(parts)

    @classmethod
    def from_env(cls) -> Optional["GithubActionContext"]:
        """
        Build the context from GITHUB_CONTEXT (JSON), falling back to GITHUB_REPOSITORY.

        Returns:
            The parsed context, or None if neither variable is usable
        """
        raw = os.getenv("GITHUB_CONTEXT")
        if raw:
            try:
                data = json.loads(raw)
                repository = data.get("repository", "") or ""
                owner = data.get("repository_owner", "") or repository.split("/")[0]
                return cls(repository=repository, repository_owner=owner)
            except (json.JSONDecodeError, AttributeError) as e:
                logger.warning(f"Failed to parse GITHUB_CONTEXT: {e}")

        repository = os.getenv("GITHUB_REPOSITORY")
        if repository:
            return cls(repository=repository, repository_owner=repository.split("/")[0])
        return None


@dataclass
class DriftiveConfig:
    """Process-level configuration. Defaults come from the environment (.env is loaded by main)."""

    # Repository
    repository_url: str = field(default_factory=lambda: os.getenv("DRIFTIVE_REPO_URL", ""))
    repository_path: str = field(default_factory=lambda: os.getenv("DRIFTIVE_REPO_PATH", ""))
    branch: str = field(default_factory=lambda: os.getenv("DRIFTIVE_BRANCH", ""))

    # Analysis
    concurrency: int = field(default_factory=lambda: int(os.getenv("DRIFTIVE_CONCURRENCY", str(DEFAULT_CONCURRENCY))))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    # Outputs
    enable_stdout_result: bool = field(default_factory=lambda: not _env_bool("DRIFTIVE_DISABLE_STDOUT", "false"))
    slack_webhook_url: str = field(default_factory=lambda: os.getenv("SLACK_WEBHOOK_URL", ""))
    json_output: str = field(default_factory=lambda: os.getenv("DRIFTIVE_JSON_OUTPUT", ""))
    exit_code: bool = field(default_factory=lambda: _env_bool("DRIFTIVE_EXIT_CODE", "false"))

    # GitHub
    github_token: str = field(default_factory=lambda: os.getenv("GITHUB_TOKEN", ""))
    github_api_url: str = field(default_factory=lambda: os.getenv("GITHUB_API_URL", "https://api.github.com"))
    github_context: Optional[GithubActionContext] = field(default_factory=GithubActionContext.from_env)

    # Driftive dashboard API
    driftive_api_url: str = field(default_factory=lambda: os.getenv("DRIFTIVE_API_URL", ""))
    driftive_token: str = field(default_factory=lambda: os.getenv("DRIFTIVE_TOKEN", ""))

    def validate(self) -> None:
        """Validate configuration and raise errors for missing required values."""
        if not self.repository_url and not self.repository_path:
            raise ValueError("Repository URL or path is required")
        if self.repository_url and not self.repository_path and not self.branch:
            raise ValueError("Branch is required if repository URL is provided")
        if self.concurrency < 1:
            logger.warning(f"Concurrency {self.concurrency} is below 1, using 1")
            self.concurrency = 1

    @property
    def has_github(self) -> bool:
        """Check if GitHub token and repository context are both available."""
        return bool(self.github_token) and self.github_context is not None and self.github_context.is_valid()

    @property
    def has_driftive_api(self) -> bool:
        return bool(self.driftive_api_url) and bool(self.driftive_token)
