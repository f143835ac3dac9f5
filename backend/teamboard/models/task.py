# teamboard/models/task.py
"""
Database model for kanban tasks.
A task sits in exactly one phase of its project and records every move in an
append-only phase history.
"""
import uuid
from tortoise import fields, models

TASK_PRIORITIES = ("low", "medium", "high")
TASK_STATUSES = ("pending", "in-progress", "completed", "blocked")

class Task(models.Model):
    """
    Task database model.

    phase_history entries are JSON objects:
        {"phase", "movedBy", "movedAt", "duration"?, "notes"}
    movedAt is an ISO-8601 UTC timestamp; duration (whole minutes spent in that
    phase) is only filled in when the task leaves the phase.

    version is bumped on every phase move and used as an optimistic lock.
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    project = fields.ForeignKeyField("models.Project", related_name="tasks", on_delete=fields.CASCADE)
    title = fields.CharField(max_length=200)
    description = fields.CharField(max_length=1000, null=True)
    assigned_to = fields.ManyToManyField("models.User", related_name="assigned_tasks", through="task_assignees")
    created_by = fields.ForeignKeyField("models.User", related_name="created_tasks", on_delete=fields.CASCADE)
    current_phase = fields.CharField(max_length=100, default="Backlog")
    phase_history = fields.JSONField(default=list)
    estimated_hours = fields.FloatField(null=True)
    points = fields.IntField(default=0)
    priority = fields.CharField(max_length=8, default="medium")  # low / medium / high
    status = fields.CharField(max_length=16, default="pending")  # pending / in-progress / completed / blocked
    tags = fields.JSONField(default=list)
    attachments = fields.JSONField(default=list)
    comments = fields.JSONField(default=list)  # [{"userId", "comment", "createdAt"}]
    completed_at = fields.DatetimeField(null=True)
    version = fields.IntField(default=0)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "tasks"
