# teamboard/models/message.py
"""
Database model for chat messages.
"""
import uuid
from tortoise import fields, models

from .user import USERNAME_MAX_LENGTH

MESSAGE_MAX_LENGTH = 500


class Message(models.Model):
    """
    Chat message database model.

    team_id is deliberately a plain UUID column rather than a foreign key:
    - null means the general channel
    - a team that has since been deleted leaves an orphaned reference that
      readers must tolerate
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    user = fields.ForeignKeyField("models.User", related_name="messages", on_delete=fields.CASCADE)
    username = fields.CharField(max_length=USERNAME_MAX_LENGTH)  # Author name at send time
    message = fields.CharField(max_length=MESSAGE_MAX_LENGTH)
    team_id = fields.UUIDField(null=True, index=True)
    read_by = fields.ManyToManyField("models.User", related_name="read_messages", through="message_reads")
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "messages"
