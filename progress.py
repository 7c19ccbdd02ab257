# progress.py
import math
from typing import Iterable, List

from job_store import JobRecord, TERMINAL_STATUSES
from schemas import ProgressSnapshot

def is_terminal(record) -> bool:
    return _status(record) in TERMINAL_STATUSES

def all_terminal(records: Iterable) -> bool:
    return all(is_terminal(r) for r in records)

def _status(record) -> str:
    # accepts JobRecord, VideoStatus or the raw wire dict
    if isinstance(record, dict):
        status = record.get("status")
    else:
        status = record.status
    return getattr(status, "value", status)

def calculate_progress(records: List[JobRecord]) -> ProgressSnapshot:
    """
    Derive the session snapshot from the live record list.

    Completed scenes weigh 100, processing scenes weigh their own progress,
    pending and failed weigh 0. Nothing here is cached between calls.
    """
    total = len(records)
    completed = [r for r in records if r.status == "completed"]
    failed = [r for r in records if r.status == "failed"]
    processing = [r for r in records if r.status == "processing"]

    overall = 0
    if total > 0:
        weight = 100 * len(completed) + sum(r.progress or 0 for r in processing)
        # half rounds up
        overall = math.floor(weight / total + 0.5)
    overall = max(0, min(overall, 100))

    current = min((r.scene_id for r in processing), default=None)

    return ProgressSnapshot(
        total_videos=total,
        videos_completed=len(completed),
        videos_failed=len(failed),
        videos_in_progress=len(processing),
        overall_progress=overall,
        current_scene=current,
    )
