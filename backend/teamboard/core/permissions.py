# teamboard/core/permissions.py
"""
Authorization predicates.

Pure functions deciding whether a user may read or mutate a resource, based
only on creator/member relationships. Callers load the resource and the ids
of its member/assignee set first; these functions never touch the database.
"""
from typing import Iterable, Optional

from teamboard.core.errors import AuthorizationError


def _same(a, b) -> bool:
    return a is not None and b is not None and str(a) == str(b)


def _among(user_id, ids: Iterable) -> bool:
    return any(_same(user_id, i) for i in ids)


def require(allowed: bool, message: str = "Access denied") -> None:
    """Raise AuthorizationError unless `allowed`."""
    if not allowed:
        raise AuthorizationError(message)


# ---- teams ----
def can_view_team(user_id, team, member_ids: Iterable) -> bool:
    return _same(user_id, team.created_by_id) or _among(user_id, member_ids)


def can_manage_team(user_id, team) -> bool:
    """Add members, delete the team."""
    return _same(user_id, team.created_by_id)


# ---- projects ----
def can_view_project(user_id, project, member_ids: Iterable) -> bool:
    return _same(user_id, project.created_by_id) or _among(user_id, member_ids)


def can_manage_project(user_id, project) -> bool:
    """Update, delete, and create tasks."""
    return _same(user_id, project.created_by_id)


# ---- tasks ----
def can_move_task(user_id, assignee_ids: Iterable) -> bool:
    # Only assignees move tasks; project ownership does not count
    return _among(user_id, assignee_ids)


def can_edit_task(user_id, task, project) -> bool:
    return _same(user_id, task.created_by_id) or _same(user_id, project.created_by_id)


# ---- todos ----
def can_view_todo(user_id, todo, assignee_ids: Iterable) -> bool:
    return _same(user_id, todo.created_by_id) or _among(user_id, assignee_ids)


def can_edit_todo(user_id, todo) -> bool:
    return _same(user_id, todo.created_by_id)


def can_toggle_todo(user_id, todo, assignee_ids: Iterable) -> bool:
    """Assignees may flip `completed` but not edit other fields."""
    return can_view_todo(user_id, todo, assignee_ids)


def can_delete_todo(user_id, todo) -> bool:
    return _same(user_id, todo.created_by_id)


# ---- messages ----
def can_read_channel(user_id, team: Optional[object], member_ids: Iterable = ()) -> bool:
    """General channel (team=None) is open to everyone."""
    if team is None:
        return True
    return can_view_team(user_id, team, member_ids)
