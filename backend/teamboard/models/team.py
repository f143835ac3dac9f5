# teamboard/models/team.py
import uuid
from tortoise import fields, models

class Team(models.Model):
    """
    A named group of users with its own chat room.
    The creator is always stored as a member; only the creator manages membership.
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    name = fields.CharField(max_length=100)
    description = fields.CharField(max_length=500, null=True)
    created_by = fields.ForeignKeyField("models.User", related_name="created_teams", on_delete=fields.CASCADE)
    members = fields.ManyToManyField("models.User", related_name="teams", through="team_members")
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "teams"
