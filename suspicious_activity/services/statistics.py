"""Summary statistics for the analysis dashboard."""

import logging
from collections import Counter
from collections.abc import Iterable
from typing import Optional

from suspicious_activity.models import AnalysisJob, JobState, Statistics
from suspicious_activity.services.api_client import ApiClient, decode_entity

logger = logging.getLogger(__name__)

STATISTICS_PATH = "/actividad-sospechosa/estadisticas/"


class StatisticsAggregator:
    """Fetches backend-aggregated statistics, refreshed on demand.

    The backend figures cover historical jobs that are not held in memory,
    so ``fetch`` is authoritative; ``summarize`` derives the same shape from
    whatever jobs are loaded locally.
    """

    def __init__(self, client: ApiClient):
        self._client = client
        self.latest: Optional[Statistics] = None

    async def fetch(self) -> Statistics:
        result = await self._client.get(STATISTICS_PATH)
        self.latest = decode_entity(Statistics, result.unwrap(), "estadisticas")
        return self.latest

    @staticmethod
    def summarize(jobs: Iterable[AnalysisJob]) -> Statistics:
        jobs = list(jobs)
        detections = [d for job in jobs for d in job.detections or ()]
        by_category = Counter(d.activity_type.category.value for d in detections)

        if detections:
            average = sum(d.confidence for d in detections) / len(detections)
        else:
            weighted = [
                (job.average_confidence, job.detection_count)
                for job in jobs
                if job.average_confidence is not None and job.detection_count > 0
            ]
            total_weight = sum(count for _, count in weighted)
            average = (
                sum(conf * count for conf, count in weighted) / total_weight
                if total_weight
                else 0.0
            )

        return Statistics(
            total_jobs=len(jobs),
            completed_jobs=sum(1 for job in jobs if job.state is JobState.COMPLETED),
            processing_jobs=sum(1 for job in jobs if job.state is JobState.PROCESSING),
            total_detections=sum(job.detection_count for job in jobs),
            detections_by_category=dict(by_category),
            average_confidence=round(average, 2),
            alerts_generated=sum(1 for d in detections if d.alert_generated),
        )
