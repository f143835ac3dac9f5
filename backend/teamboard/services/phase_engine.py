"""
Task Phase Engine.

Governs a task's lifecycle across its project's phases:
- creation seeds the history with exactly one entry
- every move appends exactly one entry and backfills the duration of the
  previous one (the only mutation ever applied to an existing entry)
- status follows the target phase ("Done" -> completed, "In Progress" -> in-progress)

The target phase is not checked against the project's declared phases, so
ad hoc phases remain possible.
"""
import datetime as dt
import logging
import uuid

from teamboard.core.errors import ConflictError, NotFoundError, ValidationError
from teamboard.core.permissions import can_move_task, require
from teamboard.core.pubsub import RoomEvent, project_room
from teamboard.core.timeutil import parse_iso, utc_now
from teamboard.models import Task, User

logger = logging.getLogger("uvicorn.error")

DONE_PHASE = "Done"
IN_PROGRESS_PHASE = "In Progress"
CREATED_NOTE = "Task created"


def seed_history(phase: str, created_by_id, now: dt.datetime) -> list[dict]:
    """
    Build the initial phase history for a new task.
    """
    return [{
        "phase": phase,
        "movedBy": str(created_by_id),
        "movedAt": now.isoformat(),
        "notes": CREATED_NOTE,
    }]


def minutes_between(start: dt.datetime, end: dt.datetime) -> int:
    """Whole minutes elapsed, floored, never negative."""
    return max(0, int((end - start).total_seconds() // 60))


def apply_move(task: Task, requester_id, to_phase: str, note: str | None, now: dt.datetime) -> dict:
    """
    Apply a phase transition to the in-memory task and return the new entry.

    Nothing is persisted here.
    """
    history = [dict(entry) for entry in task.phase_history or []]
    if history:
        last = history[-1]
        last["duration"] = minutes_between(parse_iso(last["movedAt"]), now)

    entry = {
        "phase": to_phase,
        "movedBy": str(requester_id),
        "movedAt": now.isoformat(),
        "notes": note or "",
    }
    history.append(entry)

    task.phase_history = history
    task.current_phase = to_phase
    if to_phase == DONE_PHASE:
        task.status = "completed"
        task.completed_at = now
    elif to_phase == IN_PROGRESS_PHASE:
        task.status = "in-progress"
    return entry


def phase_durations(history: list[dict]) -> dict[str, int]:
    """
    Total minutes spent in each phase, from entries whose duration is known.
    """
    totals: dict[str, int] = {}
    for entry in history or []:
        duration = entry.get("duration")
        if duration is None:
            continue
        totals[entry["phase"]] = totals.get(entry["phase"], 0) + int(duration)
    return totals


async def move_task(
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    requester: User,
    to_phase: str,
    note: str | None = None,
) -> tuple[Task, RoomEvent]:
    """
    Move a task to another phase and build the resulting `taskMoved` event.

    The write is a single conditional UPDATE guarded by the task's version;
    the event is only built once that write has succeeded.

    Raises:
        NotFoundError: task does not exist
        ValidationError: task of another project, or empty target phase
        AuthorizationError: requester is not assigned to the task
        ConflictError: another move committed first
    """
    from teamboard.services.hydration import task_out  # hydration imports this module

    task = await Task.get_or_none(id=task_id)
    if not task:
        raise NotFoundError("Task not found")
    if str(task.project_id) != str(project_id):
        raise ValidationError("Task does not belong to this project")

    assignee_ids = await task.assigned_to.all().values_list("id", flat=True)
    require(can_move_task(requester.id, assignee_ids), "Only assigned members can move this task")

    to_phase = (to_phase or "").strip()
    if not to_phase:
        raise ValidationError("toPhase is required")

    expected_version = task.version
    from_phase = task.current_phase
    now = utc_now()
    apply_move(task, requester.id, to_phase, note, now)
    task.version = expected_version + 1
    task.updated_at = now

    updated = await Task.filter(id=task.id, version=expected_version).update(
        current_phase=task.current_phase,
        phase_history=task.phase_history,
        status=task.status,
        completed_at=task.completed_at,
        version=task.version,
        updated_at=now,
    )
    if not updated:
        raise ConflictError("Task was moved by someone else; reload and retry")

    logger.info("[phases] task %s moved %s -> %s by %s", task.id, from_phase, to_phase, requester.username)
    payload = {"task": await task_out(task), "movedBy": requester.username}
    return task, RoomEvent("taskMoved", payload, project_room(task.project_id))
