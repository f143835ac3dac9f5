# teamboard/api/v1/routers/todos.py
import uuid

from fastapi import APIRouter, Depends, status
from tortoise.expressions import Q
from tortoise.transactions import in_transaction

from teamboard.api.v1.deps import get_current_user
from teamboard.core.errors import NotFoundError
from teamboard.core.permissions import (
    can_delete_todo,
    can_edit_todo,
    can_toggle_todo,
    can_view_todo,
    require,
)
from teamboard.models import Todo, User
from teamboard.schemas.todo import TodoCreateIn, TodoUpdateIn
from teamboard.services.hydration import load_users, todo_out

router = APIRouter(prefix="/todos", tags=["todos"])

# Request field -> model attribute (assignedTo is handled separately)
_TODO_FIELDS = {
    "title": "title",
    "description": "description",
    "completed": "completed",
    "deadline": "deadline",
    "priority": "priority",
}


async def _load_todo(todo_id: uuid.UUID) -> tuple[Todo, list]:
    todo = await Todo.get_or_none(id=todo_id)
    if not todo:
        raise NotFoundError("Todo not found")
    assignee_ids = await todo.assigned_to.all().values_list("id", flat=True)
    return todo, assignee_ids


@router.get("")
async def list_todos(user: User = Depends(get_current_user)):
    """
    Todos the user created or is assigned to, newest first.
    """
    todos = await (
        Todo.filter(Q(created_by_id=user.id) | Q(assigned_to__id=user.id))
        .distinct()
        .order_by("-created_at")
    )
    data = [await todo_out(t) for t in todos]
    return {"success": True, "count": len(data), "data": data}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_todo(body: TodoCreateIn, user: User = Depends(get_current_user)):
    assignees = await load_users(body.assignedTo)
    async with in_transaction():
        todo = await Todo.create(
            created_by=user,
            title=body.title.strip(),
            description=body.description,
            completed=body.completed,
            deadline=body.deadline,
            priority=body.priority,
        )
        if assignees:
            await todo.assigned_to.add(*assignees)
    return {"success": True, "data": await todo_out(todo)}


@router.get("/{todo_id}")
async def get_todo(todo_id: uuid.UUID, user: User = Depends(get_current_user)):
    todo, assignee_ids = await _load_todo(todo_id)
    require(can_view_todo(user.id, todo, assignee_ids), "Not authorized to access this todo")
    return {"success": True, "data": await todo_out(todo)}


@router.put("/{todo_id}")
async def update_todo(todo_id: uuid.UUID, body: TodoUpdateIn, user: User = Depends(get_current_user)):
    """
    Update a todo.

    The creator may change every field; assignees may only toggle `completed`.
    """
    todo, assignee_ids = await _load_todo(todo_id)
    changes = body.model_dump(exclude_unset=True)
    if not can_edit_todo(user.id, todo):
        require(can_toggle_todo(user.id, todo, assignee_ids), "Not authorized to update this todo")
        require(set(changes) <= {"completed"}, "Assignees can only change completion")

    assignees = await load_users(changes.pop("assignedTo") or []) if "assignedTo" in changes else None
    async with in_transaction():
        for key, value in changes.items():
            if value is None and key in ("title", "completed"):
                continue  # not nullable
            if key == "title":
                value = value.strip()
            setattr(todo, _TODO_FIELDS[key], value)
        if changes:
            await todo.save()
        if assignees is not None:
            await todo.assigned_to.clear()
            if assignees:
                await todo.assigned_to.add(*assignees)
    return {"success": True, "data": await todo_out(todo)}


@router.delete("/{todo_id}")
async def delete_todo(todo_id: uuid.UUID, user: User = Depends(get_current_user)):
    todo, _ = await _load_todo(todo_id)
    require(can_delete_todo(user.id, todo), "Not authorized to delete this todo")
    await todo.delete()
    return {"success": True, "data": {}}
