# teamboard/api/v1/routers/projects.py
import copy
import logging
import uuid

from fastapi import APIRouter, BackgroundTasks, Depends, status
from tortoise.expressions import Q
from tortoise.transactions import in_transaction

from teamboard.api.v1.deps import get_current_user, get_rooms
from teamboard.core.errors import NotFoundError, ValidationError
from teamboard.core.permissions import (
    can_edit_task,
    can_manage_project,
    can_view_project,
    require,
)
from teamboard.core.pubsub import RoomEvent, RoomRouter, project_room
from teamboard.core.timeutil import utc_now
from teamboard.models import Project, Task, User
from teamboard.models.project import DEFAULT_PHASE_COLOR, DEFAULT_PHASES
from teamboard.schemas.project import PhaseIn, ProjectCreateIn, ProjectUpdateIn
from teamboard.schemas.task import TaskCommentIn, TaskCreateIn, TaskMoveIn, TaskUpdateIn
from teamboard.services.hydration import load_users, project_out, task_out
from teamboard.services.phase_engine import move_task, seed_history

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/projects", tags=["projects"])

# Request field -> model attribute for task edits (assignedTo is handled separately)
_TASK_FIELDS = {
    "title": "title",
    "description": "description",
    "estimatedHours": "estimated_hours",
    "points": "points",
    "priority": "priority",
    "status": "status",
    "tags": "tags",
    "attachments": "attachments",
}
_TASK_NOT_NULL = {"title", "points", "priority", "status", "tags", "attachments"}


def _normalize_phases(phases: list[PhaseIn] | None) -> list[dict]:
    """
    Build the stored phase list, sorted by order.
    No phases (None or empty) means the default workflow.
    """
    if not phases:
        return copy.deepcopy(DEFAULT_PHASES)
    names = [p.name.strip() for p in phases]
    dupes = sorted({n for n in names if names.count(n) > 1})
    if dupes:
        raise ValidationError([f"Duplicate phase name: {n}" for n in dupes])
    out = [
        {
            "name": name,
            "order": p.order if p.order is not None else i + 1,
            "color": p.color or DEFAULT_PHASE_COLOR,
        }
        for i, (name, p) in enumerate(zip(names, phases))
    ]
    return sorted(out, key=lambda ph: ph["order"])


async def _load_project(project_id: uuid.UUID) -> Project:
    project = await Project.get_or_none(id=project_id)
    if not project:
        raise NotFoundError("Project not found")
    return project


async def _load_readable_project(project_id: uuid.UUID, user: User) -> Project:
    project = await _load_project(project_id)
    member_ids = await project.members.all().values_list("id", flat=True)
    require(can_view_project(user.id, project, member_ids))
    return project


async def _load_task(project: Project, task_id: uuid.UUID) -> Task:
    task = await Task.get_or_none(id=task_id)
    if not task:
        raise NotFoundError("Task not found")
    if str(task.project_id) != str(project.id):
        raise ValidationError("Task does not belong to this project")
    return task


# ==============================================================================
# Projects
# ==============================================================================
@router.get("")
async def list_projects(user: User = Depends(get_current_user)):
    """
    Projects the user created or is a member of, newest first.
    """
    projects = await (
        Project.filter(Q(created_by_id=user.id) | Q(members__id=user.id))
        .distinct()
        .order_by("-created_at")
    )
    data = [await project_out(p) for p in projects]
    return {"success": True, "count": len(data), "data": data}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_project(body: ProjectCreateIn, user: User = Depends(get_current_user)):
    """
    Create a project. The creator is always a member; missing phases get the
    default Backlog -> In Progress -> Review -> Testing -> Done workflow.
    """
    phases = _normalize_phases(body.phases)
    members = await load_users(body.members)
    if all(str(m.id) != str(user.id) for m in members):
        members.append(user)

    async with in_transaction():
        project = await Project.create(
            name=body.name.strip(),
            description=body.description,
            created_by=user,
            phases=phases,
            deadline=body.deadline,
        )
        await project.members.add(*members)
    return {"success": True, "data": await project_out(project)}


@router.get("/{project_id}")
async def get_project(project_id: uuid.UUID, user: User = Depends(get_current_user)):
    project = await _load_readable_project(project_id, user)
    return {"success": True, "data": await project_out(project)}


@router.put("/{project_id}")
async def update_project(project_id: uuid.UUID, body: ProjectUpdateIn, user: User = Depends(get_current_user)):
    """
    Update a project (creator only). Only provided fields change.
    """
    project = await _load_project(project_id)
    require(can_manage_project(user.id, project), "Only project creator can update")

    changes = body.model_dump(exclude_unset=True)
    members = None
    if "members" in changes:
        members = await load_users(changes.pop("members") or [])
        if all(str(m.id) != str(user.id) for m in members):
            members.append(user)
    if "phases" in changes:
        changes.pop("phases")
        project.phases = _normalize_phases(body.phases)

    async with in_transaction():
        for key in ("name", "description", "status", "deadline"):
            if key not in changes:
                continue
            value = changes[key]
            if value is None and key in ("name", "status"):
                continue  # not nullable
            setattr(project, key, value.strip() if key == "name" else value)
        await project.save()
        if members is not None:
            await project.members.clear()
            await project.members.add(*members)
    return {"success": True, "data": await project_out(project)}


@router.delete("/{project_id}")
async def delete_project(project_id: uuid.UUID, user: User = Depends(get_current_user)):
    """
    Delete a project and every task that belongs to it (creator only).
    """
    project = await _load_project(project_id)
    require(can_manage_project(user.id, project), "Only project creator can delete")

    async with in_transaction():
        removed = await Task.filter(project_id=project.id).delete()
        await project.delete()
    logger.info("[projects] project %s deleted with %d task(s)", project_id, removed)
    return {"success": True, "data": {}}


# ==============================================================================
# Tasks
# ==============================================================================
@router.get("/{project_id}/tasks")
async def list_tasks(project_id: uuid.UUID, user: User = Depends(get_current_user)):
    project = await _load_readable_project(project_id, user)
    tasks = await Task.filter(project_id=project.id).order_by("-created_at")
    data = [await task_out(t) for t in tasks]
    return {"success": True, "count": len(data), "data": data}


@router.post("/{project_id}/tasks", status_code=status.HTTP_201_CREATED)
async def create_task(
    project_id: uuid.UUID,
    body: TaskCreateIn,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    rooms: RoomRouter = Depends(get_rooms),
):
    """
    Create a task (project creator only) and announce it to the project room.

    The task starts in `currentPhase` or, when omitted, the project's first phase.
    """
    project = await _load_project(project_id)
    require(can_manage_project(user.id, project), "Only project creator can create tasks")

    phase = (body.currentPhase or "").strip() or next(iter(project.phase_names()), "Backlog")
    assignees = await load_users(body.assignedTo)
    now = utc_now()

    async with in_transaction():
        task = await Task.create(
            project=project,
            title=body.title.strip(),
            description=body.description,
            created_by=user,
            current_phase=phase,
            phase_history=seed_history(phase, user.id, now),
            estimated_hours=body.estimatedHours,
            points=body.points,
            priority=body.priority,
            status=body.status,
            tags=body.tags,
            attachments=body.attachments,
        )
        if assignees:
            await task.assigned_to.add(*assignees)

    data = await task_out(task)
    background_tasks.add_task(rooms.deliver, RoomEvent("taskCreated", data, project_room(project.id)))
    return {"success": True, "data": data}


@router.put("/{project_id}/tasks/{task_id}/move")
async def move_task_phase(
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    body: TaskMoveIn,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    rooms: RoomRouter = Depends(get_rooms),
):
    """
    Move a task to another phase (assigned members only).

    Raises:
        NotFoundError (404): project or task does not exist
        ValidationError (400): task of another project
        AuthorizationError (403): caller is not assigned to the task
        ValidationError (400): empty toPhase (checked after the caller may move)
        ConflictError (409): a concurrent move committed first
    """
    await _load_project(project_id)
    task, event = await move_task(project_id, task_id, user, body.toPhase, body.notes)
    background_tasks.add_task(rooms.deliver, event)
    return {"success": True, "data": event.data["task"]}


@router.put("/{project_id}/tasks/{task_id}")
async def update_task(
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    body: TaskUpdateIn,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    rooms: RoomRouter = Depends(get_rooms),
):
    """
    Edit task fields (task or project creator). Phase changes go through /move.
    """
    project = await _load_project(project_id)
    task = await _load_task(project, task_id)
    require(can_edit_task(user.id, task, project), "Only the task creator can edit this task")

    changes = body.model_dump(exclude_unset=True)
    assignees = await load_users(changes.pop("assignedTo") or []) if "assignedTo" in changes else None

    async with in_transaction():
        for key, value in changes.items():
            if value is None and key in _TASK_NOT_NULL:
                continue
            if key == "title":
                value = value.strip()
            setattr(task, _TASK_FIELDS[key], value)
        await task.save()
        if assignees is not None:
            await task.assigned_to.clear()
            if assignees:
                await task.assigned_to.add(*assignees)

    data = await task_out(task)
    background_tasks.add_task(rooms.deliver, RoomEvent("taskUpdated", data, project_room(project.id)))
    return {"success": True, "data": data}


@router.post("/{project_id}/tasks/{task_id}/comments", status_code=status.HTTP_201_CREATED)
async def add_task_comment(
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    body: TaskCommentIn,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    rooms: RoomRouter = Depends(get_rooms),
):
    """
    Comment on a task. Anyone who can read the project may comment.
    """
    project = await _load_readable_project(project_id, user)
    task = await _load_task(project, task_id)

    task.comments = list(task.comments or []) + [{
        "userId": str(user.id),
        "comment": body.comment.strip(),
        "createdAt": utc_now().isoformat(),
    }]
    await task.save(update_fields=["comments", "updated_at"])

    data = await task_out(task)
    background_tasks.add_task(rooms.deliver, RoomEvent("taskUpdated", data, project_room(project.id)))
    return {"success": True, "data": data}


@router.delete("/{project_id}/tasks/{task_id}")
async def delete_task(
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    rooms: RoomRouter = Depends(get_rooms),
):
    project = await _load_project(project_id)
    task = await _load_task(project, task_id)
    require(can_edit_task(user.id, task, project), "Only the task creator can delete this task")

    await task.delete()
    payload = {"taskId": str(task_id), "projectId": str(project.id)}
    background_tasks.add_task(rooms.deliver, RoomEvent("taskDeleted", payload, project_room(project.id)))
    return {"success": True, "data": {}}
