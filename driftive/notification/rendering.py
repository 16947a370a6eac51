"""Markdown bodies for issues, pull requests and the summary issue."""

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from ..drift.models import DriftProjectResult
from ..models import DRIFT_KIND
from .metadata import encode_metadata

MAX_OUTPUT_CHARS = 64000

DRIFT_ISSUE_TEMPLATE = "drift_issue.md"
ERROR_ISSUE_TEMPLATE = "error_issue.md"
DRIFT_PR_TEMPLATE = "drift_pull_request.md"
ERROR_PR_TEMPLATE = "error_pull_request.md"
SUMMARY_TEMPLATE = "summary.md"

_templates_dir = Path(__file__).resolve().parent / "templates"
_env = Environment(
    loader=FileSystemLoader(str(_templates_dir)),
    autoescape=False,
    trim_blocks=True,
    lstrip_blocks=True,
    undefined=StrictUndefined,
)


def render(template_name: str, **context: Any) -> str:
    return _env.get_template(template_name).render(**context)


def result_output(result: DriftProjectResult, kind: str) -> str:
    """Plan excerpt for drift bodies; error bodies fall back to the init output."""
    if kind == DRIFT_KIND:
        return result.plan_output
    return result.plan_output or result.init_output


def render_project_body(template_name: str, result: DriftProjectResult, kind: str) -> str:
    """
    Render an issue or pull request body for one project result.

    The body starts with the project metadata block; the tool output is cut
    at MAX_OUTPUT_CHARS.
    """
    output = result_output(result, kind)
    truncated = len(output) > MAX_OUTPUT_CHARS
    return render(
        template_name,
        metadata=encode_metadata(result.project.dir, kind),
        project_dir=result.project.dir,
        project_kind=result.project.kind.value,
        output=output[:MAX_OUTPUT_CHARS],
        truncated=truncated,
        max_output=MAX_OUTPUT_CHARS,
    )
