"""In-memory store of the current user's analysis jobs.

The store is the single source of truth for job state. Every change goes
through ``upsert``/``replace_all``, which reconcile the incoming record with
the known one:

- State never moves backwards: a record whose state ranks below the stored
  one, or that tries to leave a terminal state, is discarded.
- Fields absent from the incoming payload keep their stored values, and a
  record without detections never erases detections fetched earlier.
- A detection promoted to an alert stays promoted.
"""

import logging
from collections.abc import Iterable
from typing import Any, Optional

from suspicious_activity.exceptions import DetectionNotFound
from suspicious_activity.models import AnalysisJob, Detection, JobState

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "Analysis failed"


def is_stale(current: AnalysisJob, incoming: AnalysisJob) -> bool:
    """True if ``incoming`` describes an older state than ``current``."""
    if incoming.state.rank < current.state.rank:
        return True
    return current.state.is_terminal and incoming.state is not current.state


def reconcile(
    current: Optional[AnalysisJob],
    incoming: AnalysisJob,
    fields: Optional[set[str]] = None,
) -> AnalysisJob:
    """Merge ``incoming`` into ``current`` and return the resulting snapshot.

    ``fields`` restricts the merge to the attributes a partial reply
    reported; by default every field set on ``incoming`` is merged.
    """
    if current is None:
        return _normalize(incoming)

    if is_stale(current, incoming):
        logger.debug(
            f"Discarding stale record for job {incoming.id}: "
            f"{incoming.state.value} does not follow {current.state.value}"
        )
        return current

    update: dict[str, Any] = {
        name: getattr(incoming, name)
        for name in (incoming.model_fields_set if fields is None else fields)
        if name != "detections"
    }
    if incoming.state is not current.state and "state_display" not in update:
        update["state_display"] = ""
    update["detections"] = _merge_detections(current.detections, incoming.detections)
    return _normalize(current.model_copy(update=update))


def _merge_detections(
    current: Optional[tuple[Detection, ...]],
    incoming: Optional[tuple[Detection, ...]],
) -> Optional[tuple[Detection, ...]]:
    if not incoming:
        return current if current else incoming
    if not current:
        return incoming

    known = {d.id: d for d in current}
    merged = []
    for detection in incoming:
        prior = known.get(detection.id)
        if (
            prior is not None
            and prior.alert_generated
            and prior.alert_id is not None
            and not detection.alert_generated
        ):
            detection = detection.with_alert(prior.alert_id)
        merged.append(detection)
    return tuple(merged)


def _normalize(job: AnalysisJob) -> AnalysisJob:
    update: dict[str, Any] = {}
    if job.state is JobState.ERROR:
        if not job.error_message:
            update["error_message"] = DEFAULT_ERROR_MESSAGE
    elif job.error_message is not None:
        update["error_message"] = None
    if job.state is JobState.COMPLETED and job.detections is not None:
        update["detection_count"] = len(job.detections)
    return job.model_copy(update=update) if update else job


class AnalysisJobStore:
    """Jobs keyed by id, listed most-recent-first."""

    def __init__(self) -> None:
        self._jobs: dict[int, AnalysisJob] = {}

    def __len__(self) -> int:
        return len(self._jobs)

    def __contains__(self, job_id: object) -> bool:
        return job_id in self._jobs

    def get(self, job_id: int) -> Optional[AnalysisJob]:
        return self._jobs.get(job_id)

    def jobs(self) -> list[AnalysisJob]:
        """Snapshot of all jobs, newest first."""
        return sorted(
            self._jobs.values(),
            key=lambda job: (job.started_at, job.id),
            reverse=True,
        )

    def upsert(
        self, job: AnalysisJob, fields: Optional[set[str]] = None
    ) -> AnalysisJob:
        """Insert or reconcile one job; returns the stored snapshot."""
        stored = reconcile(self._jobs.get(job.id), job, fields)
        self._jobs[job.id] = stored
        return stored

    def replace_all(self, jobs: Iterable[AnalysisJob]) -> list[AnalysisJob]:
        """Replace the visible set after a full list refresh.

        Jobs missing from ``jobs`` are dropped; jobs present in both are
        reconciled so a refresh cannot downgrade a state already observed.
        """
        refreshed: dict[int, AnalysisJob] = {}
        for job in jobs:
            current = refreshed.get(job.id) or self._jobs.get(job.id)
            refreshed[job.id] = reconcile(current, job)
        self._jobs = refreshed
        return self.jobs()

    def find_detection(
        self, detection_id: int
    ) -> Optional[tuple[AnalysisJob, Detection]]:
        for job in self._jobs.values():
            detection = job.find_detection(detection_id)
            if detection is not None:
                return job, detection
        return None

    def apply_alert(self, detection_id: int, alert_id: int) -> AnalysisJob:
        """Mark a detection as promoted inside its parent job.

        Raises:
            DetectionNotFound: No loaded job contains the detection.
        """
        found = self.find_detection(detection_id)
        if found is None:
            raise DetectionNotFound(detection_id)
        job, detection = found
        if detection.alert_generated:
            return job

        detections = tuple(
            d.with_alert(alert_id) if d.id == detection_id else d
            for d in job.detections or ()
        )
        return self.upsert(job.model_copy(update={"detections": detections}))

    def clear(self) -> None:
        self._jobs.clear()
