# tests/test_progress.py

from job_store import JobRecord
from progress import all_terminal, calculate_progress, is_terminal


def _record(scene_id, status, progress=0):
    record = JobRecord(scene_id=scene_id, status=status, progress=progress)
    return record


def test_mixed_outcome_snapshot():
    records = [
        _record(1, "completed", 100),
        _record(2, "completed", 100),
        _record(3, "failed", 0),
        _record(4, "completed", 100),
        _record(5, "failed", 0),
    ]

    snapshot = calculate_progress(records)

    assert snapshot.total_videos == 5
    assert snapshot.videos_completed == 3
    assert snapshot.videos_failed == 2
    assert snapshot.videos_in_progress == 0
    assert snapshot.overall_progress == 60
    assert snapshot.current_scene is None
    assert all_terminal(records)


def test_processing_progress_is_weighted_and_current_scene_is_lowest_id():
    records = [
        _record(4, "processing", 50),
        _record(2, "processing", 25),
        _record(1, "pending", 0),
        _record(3, "completed", 100),
    ]

    snapshot = calculate_progress(records)

    # (100 + 50 + 25) / 4 = 43.75
    assert snapshot.overall_progress == 44
    assert snapshot.videos_in_progress == 2
    assert snapshot.current_scene == 2
    assert not all_terminal(records)


def test_pending_progress_is_ignored():
    snapshot = calculate_progress([_record(1, "pending", 80), _record(2, "failed", 40)])

    assert snapshot.overall_progress == 0


def test_empty_session_yields_zero():
    snapshot = calculate_progress([])

    assert snapshot.total_videos == 0
    assert snapshot.overall_progress == 0


def test_overall_progress_is_clamped():
    snapshot = calculate_progress([_record(1, "processing", 250)])

    assert snapshot.overall_progress == 100


def test_snapshot_wire_names():
    data = calculate_progress([_record(1, "processing", 50)]).model_dump(by_alias=True)

    assert data["overallProgress"] == 50
    assert data["currentScene"] == 1
    assert data["scriptGenerated"] is True


def test_is_terminal_accepts_wire_dicts():
    assert is_terminal({"sceneId": 1, "status": "failed"})
    assert not is_terminal({"sceneId": 1, "status": "processing"})
