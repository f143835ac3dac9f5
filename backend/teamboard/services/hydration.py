"""
Read-side hydration of stored records into API payloads.

Resolves user references (creators, members, assignees, history movers) to
`{"id", "username"}` briefs so routers and realtime events share one shape.
"""
from typing import Iterable

from teamboard.core.errors import ValidationError
from teamboard.core.timeutil import iso
from teamboard.models import Message, Project, Task, Team, Todo, User
from teamboard.services.phase_engine import phase_durations


def user_brief(u: User) -> dict:
    return {"id": str(u.id), "username": u.username}


def user_status(u: User) -> dict:
    return {
        "id": str(u.id),
        "username": u.username,
        "isOnline": u.is_online,
        "lastSeen": iso(u.last_seen),
    }


async def user_briefs(ids: Iterable) -> dict[str, dict]:
    """Map user id -> brief; unknown ids are simply absent."""
    wanted = {str(i) for i in ids if i}
    if not wanted:
        return {}
    users = await User.filter(id__in=list(wanted))
    return {str(u.id): user_brief(u) for u in users}


async def load_users(ids: Iterable) -> list[User]:
    """
    Resolve user ids from a request body, deduplicated, order preserved.

    Raises:
        ValidationError: when any id does not name an existing user
    """
    wanted = list(dict.fromkeys(str(i) for i in ids))
    if not wanted:
        return []
    found = {str(u.id): u for u in await User.filter(id__in=wanted)}
    missing = [i for i in wanted if i not in found]
    if missing:
        raise ValidationError([f"Unknown user: {i}" for i in missing])
    return [found[i] for i in wanted]


def _missing_user(user_id) -> dict:
    return {"id": str(user_id) if user_id else None, "username": None}


async def team_out(team: Team) -> dict:
    await team.fetch_related("created_by", "members")
    return {
        "id": str(team.id),
        "name": team.name,
        "description": team.description,
        "createdBy": user_brief(team.created_by),
        "members": [user_brief(m) for m in team.members],
        "createdAt": iso(team.created_at),
    }


async def project_out(project: Project) -> dict:
    await project.fetch_related("created_by", "members")
    return {
        "id": str(project.id),
        "name": project.name,
        "description": project.description,
        "createdBy": user_brief(project.created_by),
        "members": [user_brief(m) for m in project.members],
        "phases": project.phases,
        "status": project.status,
        "startDate": iso(project.start_date),
        "deadline": iso(project.deadline),
        "createdAt": iso(project.created_at),
        "updatedAt": iso(project.updated_at),
    }


async def task_out(task: Task) -> dict:
    await task.fetch_related("created_by", "assigned_to")
    history = task.phase_history or []
    comments = task.comments or []
    users = await user_briefs(
        [e.get("movedBy") for e in history] + [c.get("userId") for c in comments]
    )
    return {
        "id": str(task.id),
        "projectId": str(task.project_id),
        "title": task.title,
        "description": task.description,
        "assignedTo": [user_brief(u) for u in task.assigned_to],
        "createdBy": user_brief(task.created_by),
        "currentPhase": task.current_phase,
        "phaseHistory": [
            {**entry, "movedBy": users.get(str(entry.get("movedBy")), _missing_user(entry.get("movedBy")))}
            for entry in history
        ],
        "phaseDurations": phase_durations(history),
        "estimatedHours": task.estimated_hours,
        "points": task.points,
        "priority": task.priority,
        "status": task.status,
        "tags": task.tags or [],
        "attachments": task.attachments or [],
        "comments": [
            {
                "user": users.get(str(c.get("userId")), _missing_user(c.get("userId"))),
                "comment": c.get("comment"),
                "createdAt": c.get("createdAt"),
            }
            for c in comments
        ],
        "completedAt": iso(task.completed_at),
        "version": task.version,
        "createdAt": iso(task.created_at),
        "updatedAt": iso(task.updated_at),
    }


async def todo_out(todo: Todo) -> dict:
    await todo.fetch_related("created_by", "assigned_to")
    return {
        "id": str(todo.id),
        "title": todo.title,
        "description": todo.description,
        "completed": todo.completed,
        "deadline": iso(todo.deadline),
        "priority": todo.priority,
        "createdBy": user_brief(todo.created_by),
        "assignedTo": [user_brief(u) for u in todo.assigned_to],
        "createdAt": iso(todo.created_at),
        "updatedAt": iso(todo.updated_at),
    }


def message_out(msg: Message, read_by_ids: Iterable = ()) -> dict:
    return {
        "id": str(msg.id),
        "userId": str(msg.user_id),
        "username": msg.username,
        "message": msg.message,
        "teamId": str(msg.team_id) if msg.team_id else None,
        "readBy": [str(i) for i in read_by_ids],
        "createdAt": iso(msg.created_at),
    }
