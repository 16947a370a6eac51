"""Suppress drift notifications for projects an open pull request is already changing."""

import logging
from typing import List

from ..utils import get_folder, relative_to_repo, remove_trailing_slash
from .models import DriftDetectionResult

logger = logging.getLogger(__name__)


def handle_skip_if_contains_pr_changes(
    analysis_result: DriftDetectionResult,
    open_pr_changed_files: List[str],
    repo_dir: str,
) -> None:
    """
    Mark drifted projects as skipped when an open PR changes a file directly in their folder.

    Mutates `analysis_result` in place: sets `skipped_due_to_pr` and decrements
    `total_drifted` once per skipped project.

    Args:
        analysis_result: Result of the drift analysis
        open_pr_changed_files: Files changed by open pull requests, relative to the repo root
        repo_dir: Repository root
    """
    if not open_pr_changed_files:
        return

    file_folders = [remove_trailing_slash(get_folder(f)) for f in open_pr_changed_files]

    for project_result in analysis_result.project_results:
        if not project_result.drifted or project_result.skipped_due_to_pr:
            continue

        project_folder = remove_trailing_slash(relative_to_repo(repo_dir, project_result.project.dir))
        for file_folder in file_folders:
            if file_folder == project_folder:
                project_result.skipped_due_to_pr = True
                analysis_result.total_drifted -= 1
                logger.warning(f"Marking project {project_result.project.dir} as skipped due to open PR")
                break
