"""
Drift Detector - runs the planning tool for every project in parallel.

Each project gets its own executor; a bounded thread pool limits how many
external tools run at once. One project's failure never stops the batch.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import timedelta
from typing import List, Optional

from ..errors import ExecutionError
from ..exec import INIT_ARGS, PLAN_ARGS, new_executor
from ..exec.executors import ExecutorFactory
from ..exec.parsing import is_drift_detected
from ..models import Project
from ..utils import relative_to_repo, resolve_in_repo
from .models import DriftDetectionResult, DriftProjectResult

logger = logging.getLogger(__name__)


class DriftDetector:
    """
    Bounded-concurrency drift analysis over a list of projects.

    Args:
        repo_dir: Repository root
        projects: Projects to analyze (relative or absolute directories)
        concurrency: Maximum number of planning tools running at once (clamped to >= 1)
        executor_factory: Builds the execution adapter for a project
        cancel_event: Shutdown signal forwarded to running tools
    """

    def __init__(
        self,
        repo_dir: str,
        projects: List[Project],
        concurrency: int = 4,
        executor_factory: ExecutorFactory = new_executor,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.repo_dir = repo_dir
        self.projects = projects
        self.concurrency = max(1, concurrency)
        self.executor_factory = executor_factory
        self.cancel_event = cancel_event

    def detect_drift(self) -> DriftDetectionResult:
        """Analyze all projects and aggregate the results."""
        logger.info(f"Starting drift analysis in {self.repo_dir}. Concurrency: {self.concurrency}")

        to_check = []
        for idx, project in enumerate(self.projects, 1):
            project_dir = relative_to_repo(self.repo_dir, project.dir)
            if project_dir == "":
                # The repository root is never a project
                continue
            logger.info(f"Checking drift in project {idx}/{len(self.projects)}: {project_dir} ({project.kind.value})")
            to_check.append(project)

        start_time = time.monotonic()
        project_results: List[DriftProjectResult] = []

        if to_check:
            with ThreadPoolExecutor(max_workers=self.concurrency, thread_name_prefix="drift") as pool:
                futures = {pool.submit(self._detect_project, project): project for project in to_check}
                for future in as_completed(futures):
                    project = futures[future]
                    try:
                        result = future.result()
                    except Exception as e:
                        logger.exception(f"Unexpected error checking drift in {project.dir}: {e}")
                        result = DriftProjectResult(project=project, drifted=False, succeeded=False,
                                                    plan_output=str(e))
                    project_results.append(result)

        duration = timedelta(seconds=time.monotonic() - start_time)

        result = DriftDetectionResult(
            project_results=project_results,
            total_drifted=sum(1 for r in project_results if r.drifted),
            total_errored=sum(1 for r in project_results if not r.succeeded),
            total_projects=len(self.projects),
            total_checked=len(to_check),
            duration=duration,
        )
        logger.info(f"Drift analysis finished in {duration}. "
                    f"Drifted: {result.total_drifted}, errored: {result.total_errored}, "
                    f"checked: {result.total_checked}/{result.total_projects}")
        return result

    def _detect_project(self, project: Project) -> DriftProjectResult:
        """Run init + plan for a single project and classify the output."""
        directory = resolve_in_repo(self.repo_dir, project.dir)
        executor = self.executor_factory(project, directory, self.cancel_event)

        try:
            executor.init(*INIT_ARGS)
        except ExecutionError as e:
            logger.info(f"Error running init command in {project.dir}: {e}")
            logger.debug(e.output)
            return DriftProjectResult(project=project, drifted=False, succeeded=False,
                                      init_output=e.output, plan_output="")

        try:
            output = executor.plan(*PLAN_ARGS)
        except ExecutionError as e:
            logger.info(f"Error running plan command in {project.dir}: {e}")
            logger.debug(e.output)
            return DriftProjectResult(project=project, drifted=False, succeeded=False,
                                      init_output="", plan_output=executor.parse_error_output(e.output))

        drifted = is_drift_detected(output)
        if drifted:
            logger.info(f"Drift detected in project {project.dir}")
            output = executor.parse_plan(output)

        return DriftProjectResult(project=project, drifted=drifted, succeeded=True,
                                  init_output="", plan_output=output)
