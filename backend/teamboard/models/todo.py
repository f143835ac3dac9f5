# teamboard/models/todo.py
import uuid
from tortoise import fields, models

class Todo(models.Model):
    """
    Personal todo item, independent of projects.
    Visible to its creator and to everyone assigned to it.
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    created_by = fields.ForeignKeyField("models.User", related_name="todos", on_delete=fields.CASCADE)
    title = fields.CharField(max_length=100)
    description = fields.CharField(max_length=500, null=True)
    completed = fields.BooleanField(default=False)
    deadline = fields.DatetimeField(null=True)
    priority = fields.CharField(max_length=8, null=True)  # low / medium / high
    assigned_to = fields.ManyToManyField("models.User", related_name="assigned_todos", through="todo_assignees")
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "todos"
