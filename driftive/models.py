"""Core project model shared by discovery, execution and notification."""

import logging
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)

# Kinds of tracked objects, stored in issue / pull request metadata
DRIFT_KIND = "drift"
ERROR_KIND = "error"
KINDS = (DRIFT_KIND, ERROR_KIND)


class ProjectKind(str, Enum):
    """Planning tool used to analyze a project."""

    TERRAFORM = "terraform"
    TOFU = "tofu"
    TERRAGRUNT = "terragrunt"

    @classmethod
    def from_executable(cls, executable: str) -> "ProjectKind":
        """
        Map an executable name from the repository config to a project kind.

        Unknown executables fall back to terraform, matching the behaviour of
        auto-discovery rules with a typo in them.
        """
        try:
            return cls(executable.strip().lower())
        except ValueError:
            logger.warning(f"Unknown executable type '{executable}', assuming terraform")
            return cls.TERRAFORM


@dataclass(frozen=True)
class Project:
    """An independently plannable infrastructure directory. Identity is `dir`."""

    dir: str
    kind: ProjectKind = ProjectKind.TERRAFORM

    def to_dict(self) -> dict:
        return {"dir": self.dir, "kind": self.kind.value}
