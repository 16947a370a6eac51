"""Console summary of a drift analysis."""

import logging

from ..drift.models import DriftDetectionResult
from .slack import format_duration

logger = logging.getLogger(__name__)

SEPARATOR = "=" * 44


def print_result(result: DriftDetectionResult) -> None:
    """Log totals and drifted projects. Silent when nothing drifted."""
    if result.total_drifted == 0:
        return

    logger.info(SEPARATOR)
    logger.info(f"Analysis completed in {format_duration(result.duration.total_seconds())}")
    logger.info("State Drift detected in projects")
    logger.info(f"Drifts {result.total_drifted} out of {result.total_projects} total projects")
    logger.info("Projects with state drift:")
    for project_result in result.drifted_projects():
        logger.info(f"Project: {project_result.project.dir}")
    skipped = result.skipped_projects()
    if skipped:
        logger.info("Skipped (open pull request touches the project):")
        for project_result in skipped:
            logger.info(f"Project: {project_result.project.dir}")
    logger.info(SEPARATOR)
