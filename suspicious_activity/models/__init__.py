"""Domain entities decoded from the analysis backend."""

from suspicious_activity.models.activity import ActivityCategory, ActivityType, Detection
from suspicious_activity.models.camera import Camera, Video
from suspicious_activity.models.job import AnalysisJob, JobAction, JobState
from suspicious_activity.models.statistics import Statistics

__all__ = [
    "ActivityCategory",
    "ActivityType",
    "AnalysisJob",
    "Camera",
    "Detection",
    "JobAction",
    "JobState",
    "Statistics",
    "Video",
]
