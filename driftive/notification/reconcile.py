"""
Reconciliation Engine

Makes the open issues / pull requests in the VCS match the latest drift
analysis. The VCS is the only durable store: driftive-managed objects are
recognised by the metadata block embedded in their bodies.

One pass, per object type:

    list open objects  ->  recover managed objects  ->  for kind in (drift, error):
        close resolved objects (opt-in)  ->  upsert objects for current results

Listing failures abort the pass. A failed create / update / comment / close
is logged and treated as if it never happened; the rest of the pass goes on.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Sequence, Set

from ..drift.models import DriftDetectionResult, DriftProjectResult
from ..errors import VCSError
from ..models import DRIFT_KIND, ERROR_KIND, KINDS, Project
from ..repo_config import LaneSettings
from ..vcs.base import VCS
from ..vcs.types import CreateOrUpdateResult, TrackedObject
from .metadata import decode_metadata
from .types import LaneOutcome, ProjectObject

logger = logging.getLogger(__name__)


def recover_project_objects(objects: Sequence[TrackedObject]) -> List[ProjectObject]:
    """Keep the objects carrying valid project metadata; everything else is not ours."""
    recovered = []
    for obj in objects:
        metadata = decode_metadata(obj.body)
        if metadata is None:
            continue
        recovered.append(ProjectObject(project=Project(dir=metadata.project_dir), tracked=obj, kind=metadata.kind))
    return recovered


def requires_object(result: DriftProjectResult, kind: str) -> bool:
    """Whether a result should have an open object of the given kind."""
    if kind == DRIFT_KIND:
        return result.drifted and not result.skipped_due_to_pr
    return not result.succeeded


def find_closeable(objects: Sequence[ProjectObject], analysis: DriftDetectionResult, kind: str) -> List[ProjectObject]:
    """
    Objects of `kind` whose project is fine now.

    Drift objects close when their project is no longer drifted;
    error objects close when their project's analysis succeeded. Projects
    absent from the analysis keep their objects.
    """
    if kind == DRIFT_KIND:
        resolved_dirs = {r.project.dir for r in analysis.project_results if not r.drifted}
    else:
        resolved_dirs = {r.project.dir for r in analysis.project_results if r.succeeded}
    return [o for o in objects if o.kind == kind and o.project.dir in resolved_dirs]


class ObjectReconciler(ABC):
    """
    Shared lane algorithm for one object type.

    Subclasses supply the listing, the drafts and the VCS mutations for their
    object type (issues or pull requests).
    """

    object_name = "object"
    resolution_comment = ""

    def __init__(self, vcs: VCS, lanes: Dict[str, LaneSettings]):
        self.vcs = vcs
        self.lanes = lanes

    @abstractmethod
    def list_open(self) -> List[TrackedObject]:
        """List open objects. Raises VCSFetchError."""

    @abstractmethod
    def upsert(self, result: DriftProjectResult, kind: str, lane: LaneSettings,
               open_objects: List[TrackedObject], update_only: bool) -> CreateOrUpdateResult:
        """Create or update the object for one result. Raises VCSError."""

    @abstractmethod
    def created_object(self, outcome: CreateOrUpdateResult) -> TrackedObject:
        ...

    @abstractmethod
    def comment(self, number: int, text: str) -> None:
        ...

    @abstractmethod
    def close(self, number: int) -> None:
        ...

    def reconcile(self, analysis: DriftDetectionResult,
                  open_objects: Sequence[TrackedObject] = None) -> Dict[str, LaneOutcome]:
        """
        Run both kind lanes, drift first.

        Args:
            analysis: The (suppression-filtered) drift analysis
            open_objects: Pre-fetched open objects; listed from the VCS if omitted

        Returns:
            LaneOutcome per kind

        Raises:
            VCSFetchError: Listing the open objects failed
        """
        if open_objects is None:
            open_objects = self.list_open()
        listing = list(open_objects)
        recovered = recover_project_objects(listing)
        logger.info(f"Found {len(recovered)} driftive {self.object_name}s among {len(listing)} open")

        return {kind: self._reconcile_lane(kind, analysis, recovered, listing) for kind in KINDS}

    def _reconcile_lane(self, kind: str, analysis: DriftDetectionResult,
                        recovered: List[ProjectObject], listing: List[TrackedObject]) -> LaneOutcome:
        lane = self.lanes[kind]
        lane_objects = [o for o in recovered if o.kind == kind]
        open_count = len(lane_objects)

        closed = self._close_objects(find_closeable(lane_objects, analysis, kind), lane, kind)
        open_count -= len(closed)
        closed_numbers: Set[int] = {o.tracked.number for o in closed}
        listing[:] = [o for o in listing if o.number not in closed_numbers]

        outcome = LaneOutcome(kind=kind, resolved=closed)
        if lane.enabled:
            for result in analysis.project_results:
                if not requires_object(result, kind):
                    continue
                open_count += self._upsert_one(result, kind, lane, listing, open_count, outcome)
        elif kind == ERROR_KIND:
            logger.debug(f"Error {self.object_name}s disabled")

        outcome.open = [o for o in lane_objects + outcome.created if o.tracked.number not in closed_numbers]
        return outcome

    def _upsert_one(self, result: DriftProjectResult, kind: str, lane: LaneSettings,
                    listing: List[TrackedObject], open_count: int, outcome: LaneOutcome) -> int:
        """Upsert the object for one result. Returns how many objects were created (0 or 1)."""
        update_only = open_count >= lane.max_open
        try:
            upserted = self.upsert(result, kind, lane, listing, update_only)
        except VCSError as e:
            logger.error(f"Failed to create or update {kind} {self.object_name} for project {result.project.dir}: {e}")
            return 0

        if upserted.rate_limited:
            outcome.rate_limited.append(result.project.dir)
            return 0
        if not upserted.created:
            return 0

        tracked = self.created_object(upserted)
        # Later results for the same project must match this object by title
        listing.append(tracked)
        outcome.created.append(ProjectObject(project=result.project, tracked=tracked, kind=kind))
        logger.info(f"📝 Created {kind} {self.object_name} #{tracked.number} for project {result.project.dir}")
        return 1

    def _close_objects(self, closeable: List[ProjectObject], lane: LaneSettings, kind: str) -> List[ProjectObject]:
        if not closeable:
            return []
        if not lane.close_resolved:
            logger.warning(f"There are {len(closeable)} resolved {kind} {self.object_name}s, "
                           f"but driftive is not configured to close them.")
            return []

        closed = []
        for obj in closeable:
            number = obj.tracked.number
            try:
                self.comment(number, self.resolution_comment)
                self.close(number)
            except VCSError as e:
                logger.error(f"Failed to close {kind} {self.object_name} #{number} "
                             f"for project {obj.project.dir}: {e}")
                continue
            logger.info(f"✅ Closed {kind} {self.object_name} #{number} for project {obj.project.dir}")
            closed.append(obj)
        return closed
