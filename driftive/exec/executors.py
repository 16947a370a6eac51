"""
Execution adapters for the supported planning tools.

Each adapter runs its binary inside one project directory. Supporting a new
tool means adding a subclass and registering it in EXECUTORS.
"""

import threading
from typing import Callable, Dict, Optional, Type

from ..models import Project, ProjectKind
from . import parsing
from .runner import run_command_in_dir

INIT_ARGS = ("-upgrade", "-lock=false", "-no-color")
PLAN_ARGS = ("-lock=false", "-no-color")


class Executor:
    """Runs `init` and `plan` for one project directory."""

    binary: str = ""

    def __init__(self, directory: str, cancel_event: Optional[threading.Event] = None):
        self.directory = directory
        self.cancel_event = cancel_event

    def environment(self) -> Dict[str, str]:
        """Extra environment variables for the child process."""
        return {}

    def init(self, *args: str) -> str:
        return self._run("init", args)

    def plan(self, *args: str) -> str:
        return self._run("plan", args)

    def parse_plan(self, output: str) -> str:
        return parsing.parse_plan(output)

    def parse_error_output(self, output: str) -> str:
        return parsing.parse_error_output(output)

    def _run(self, subcommand: str, args) -> str:
        return run_command_in_dir(
            self.directory,
            self.binary,
            [subcommand, *args],
            env=self.environment(),
            cancel_event=self.cancel_event,
        )


class TerraformExecutor(Executor):
    binary = "terraform"


class TofuExecutor(Executor):
    binary = "tofu"


class TerragruntExecutor(Executor):
    binary = "terragrunt"

    def environment(self) -> Dict[str, str]:
        # Forward the wrapped tool's native plan output
        return {
            "TERRAGRUNT_FORWARD_TF_STDOUT": "true",
            "TG_TF_FORWARD_STDOUT": "true",
        }


EXECUTORS: Dict[ProjectKind, Type[Executor]] = {
    ProjectKind.TERRAFORM: TerraformExecutor,
    ProjectKind.TOFU: TofuExecutor,
    ProjectKind.TERRAGRUNT: TerragruntExecutor,
}

ExecutorFactory = Callable[[Project, str, Optional[threading.Event]], Executor]


def new_executor(project: Project, directory: str,
                 cancel_event: Optional[threading.Event] = None) -> Executor:
    """
    Create the adapter matching the project's kind.

    Args:
        project: Project to analyze
        directory: Absolute directory to run the tool in
        cancel_event: Shutdown signal forwarded to the running process
    """
    return EXECUTORS[project.kind](directory, cancel_event)
