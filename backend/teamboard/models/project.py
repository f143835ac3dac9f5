# teamboard/models/project.py
"""
Database model for projects.
A project owns an ordered list of workflow phases and the tasks moving through them.
"""
import uuid
from tortoise import fields, models

PROJECT_STATUSES = ("active", "completed", "archived", "on-hold")

# Applied when a project is created without phases
DEFAULT_PHASES = [
    {"name": "Backlog", "order": 1, "color": "#6b7280"},
    {"name": "In Progress", "order": 2, "color": "#3b82f6"},
    {"name": "Review", "order": 3, "color": "#f59e0b"},
    {"name": "Testing", "order": 4, "color": "#8b5cf6"},
    {"name": "Done", "order": 5, "color": "#10b981"},
]
DEFAULT_PHASE_COLOR = "#3b82f6"

class Project(models.Model):
    """
    Project database model.

    Relationships:
    - Belongs to its creator (many-to-one)
    - Has many members (many-to-many, creator always included)
    - Has many Tasks (one-to-many, deleted together with the project)

    phases is a JSON list of {"name", "order", "color"} kept sorted by order.
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    name = fields.CharField(max_length=100)
    description = fields.CharField(max_length=500, null=True)
    created_by = fields.ForeignKeyField("models.User", related_name="created_projects", on_delete=fields.CASCADE)
    members = fields.ManyToManyField("models.User", related_name="projects", through="project_members")
    phases = fields.JSONField(default=list)
    status = fields.CharField(max_length=16, default="active")  # active / completed / archived / on-hold
    start_date = fields.DatetimeField(auto_now_add=True)
    deadline = fields.DatetimeField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "projects"

    def phase_names(self) -> list[str]:
        return [p["name"] for p in self.phases or []]
