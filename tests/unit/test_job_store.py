"""Tests for AnalysisJobStore reconciliation rules."""

import pytest

from suspicious_activity.exceptions import DetectionNotFound
from suspicious_activity.models import AnalysisJob, JobState
from suspicious_activity.services import AnalysisJobStore
from tests.factories import completed_job_payload, job_payload


def make_job(job_id: int = 7, /, estado: str = "PENDIENTE", **overrides) -> AnalysisJob:
    return AnalysisJob.model_validate(job_payload(job_id, estado, **overrides))


def completed_job(job_id: int = 7, detection_ids=(40, 41, 42)) -> AnalysisJob:
    return AnalysisJob.model_validate(completed_job_payload(job_id, detection_ids))


class TestStateOrdering:
    """State never moves backwards in the store."""

    @pytest.fixture
    def store(self) -> AnalysisJobStore:
        return AnalysisJobStore()

    def test_upsert_inserts_new_job(self, store: AnalysisJobStore) -> None:
        stored = store.upsert(make_job())
        assert store.get(7) == stored
        assert stored.state is JobState.PENDING

    def test_forward_transition_applies(self, store: AnalysisJobStore) -> None:
        store.upsert(make_job())
        store.upsert(make_job(estado="PROCESANDO"))
        assert store.get(7).state is JobState.PROCESSING

    def test_older_state_is_discarded(self, store: AnalysisJobStore) -> None:
        store.upsert(make_job(estado="PROCESANDO"))
        stored = store.upsert(make_job(estado="PENDIENTE"))
        assert stored.state is JobState.PROCESSING

    @pytest.mark.parametrize("late_state", ["PENDIENTE", "PROCESANDO", "ERROR"])
    def test_completed_job_never_reverts(
        self, store: AnalysisJobStore, late_state: str
    ) -> None:
        store.upsert(completed_job())
        store.upsert(make_job(estado=late_state, error_mensaje="late"))
        job = store.get(7)
        assert job.state is JobState.COMPLETED
        assert len(job.detections) == 3

    def test_error_job_is_terminal(self, store: AnalysisJobStore) -> None:
        store.upsert(make_job(estado="ERROR", error_mensaje="Video not found"))
        store.upsert(completed_job())
        job = store.get(7)
        assert job.state is JobState.ERROR
        assert job.error_message == "Video not found"

    def test_observed_states_are_non_decreasing(self, store: AnalysisJobStore) -> None:
        sequence = ["PENDIENTE", "PROCESANDO", "PENDIENTE", "COMPLETADO", "PROCESANDO"]
        observed = []
        for estado in sequence:
            observed.append(store.upsert(make_job(estado=estado)).state.rank)
        assert observed == sorted(observed)


class TestMerge:
    """Incoming records never erase richer stored data."""

    def test_summary_does_not_erase_detections(self) -> None:
        store = AnalysisJobStore()
        store.upsert(completed_job())
        summary = make_job(estado="COMPLETADO", actividades_detectadas=3)
        stored = store.upsert(summary)
        assert stored.detail_loaded
        assert [d.id for d in stored.detections] == [40, 41, 42]

    def test_empty_detection_list_keeps_known_detections(self) -> None:
        store = AnalysisJobStore()
        store.upsert(completed_job())
        stored = store.upsert(make_job(estado="COMPLETADO", detecciones=[]))
        assert len(stored.detections) == 3

    def test_reported_fields_limit_the_merge(self) -> None:
        store = AnalysisJobStore()
        store.upsert(make_job(estado="PROCESANDO", estado_display="Procesando 50%"))
        reply = make_job(estado="PROCESANDO", estado_display="Procesando", job_id="old")
        stored = store.upsert(reply, fields={"state"})
        assert stored.state_display == "Procesando 50%"
        assert stored.external_job_id == "pipeline-7"

    def test_missing_fields_keep_stored_values(self) -> None:
        store = AnalysisJobStore()
        store.upsert(make_job(estado="PROCESANDO", confianza_promedio=70.0))
        partial = AnalysisJob.model_validate(
            {
                "id": 7,
                "camera_id": "cam1",
                "video_name": "clip_001.mp4",
                "estado": "PROCESANDO",
                "iniciado_at": "2024-05-01T10:00:00Z",
            }
        )
        stored = store.upsert(partial)
        assert stored.average_confidence == 70.0
        assert stored.external_job_id == "pipeline-7"
        assert stored.requester_name == "Operador"

    def test_detection_count_matches_loaded_detections(self) -> None:
        store = AnalysisJobStore()
        job = AnalysisJob.model_validate(
            completed_job_payload(7, (1, 2)) | {"actividades_detectadas": 5}
        )
        assert store.upsert(job).detection_count == 2

    def test_error_message_only_on_error_state(self) -> None:
        store = AnalysisJobStore()
        stored = store.upsert(make_job(estado="PROCESANDO", error_mensaje="stale"))
        assert stored.error_message is None
        failed = store.upsert(make_job(8, "ERROR"))
        assert failed.error_message

    def test_promoted_detection_stays_promoted(self) -> None:
        store = AnalysisJobStore()
        store.upsert(completed_job())
        store.apply_alert(42, 99)
        store.upsert(completed_job())
        _, detection = store.find_detection(42)
        assert detection.alert_generated is True
        assert detection.alert_id == 99


class TestListing:
    def test_jobs_are_newest_first(self) -> None:
        store = AnalysisJobStore()
        store.upsert(make_job(1, iniciado_at="2024-05-01T08:00:00Z"))
        store.upsert(make_job(2, iniciado_at="2024-05-01T12:00:00Z"))
        store.upsert(make_job(3, iniciado_at="2024-05-01T10:00:00Z"))
        assert [job.id for job in store.jobs()] == [2, 3, 1]

    def test_replace_all_drops_missing_jobs(self) -> None:
        store = AnalysisJobStore()
        store.upsert(make_job(1))
        store.upsert(make_job(2))
        store.replace_all([make_job(2), make_job(3)])
        assert 1 not in store
        assert {job.id for job in store.jobs()} == {2, 3}

    def test_replace_all_does_not_downgrade(self) -> None:
        store = AnalysisJobStore()
        store.upsert(completed_job())
        store.replace_all([make_job(estado="PROCESANDO")])
        job = store.get(7)
        assert job.state is JobState.COMPLETED
        assert job.detail_loaded

    def test_get_unknown_returns_none(self) -> None:
        assert AnalysisJobStore().get(404) is None


class TestApplyAlert:
    def test_updates_detection_inside_parent_job(self) -> None:
        store = AnalysisJobStore()
        store.upsert(completed_job())
        job = store.apply_alert(42, 99)
        detection = job.find_detection(42)
        assert detection.alert_generated and detection.alert_id == 99
        assert store.get(7).find_detection(42).alert_id == 99
        assert not store.get(7).find_detection(41).alert_generated

    def test_second_alert_keeps_first_id(self) -> None:
        store = AnalysisJobStore()
        store.upsert(completed_job())
        store.apply_alert(42, 99)
        store.apply_alert(42, 100)
        assert store.get(7).find_detection(42).alert_id == 99

    def test_unknown_detection_raises(self) -> None:
        store = AnalysisJobStore()
        store.upsert(completed_job())
        with pytest.raises(DetectionNotFound):
            store.apply_alert(999, 1)

    def test_snapshots_are_immutable(self) -> None:
        store = AnalysisJobStore()
        job = store.upsert(make_job())
        with pytest.raises(Exception):
            job.state = JobState.COMPLETED  # type: ignore[misc]
        assert store.get(7).state is JobState.PENDING
