# teamboard/models/user.py
"""
Database model for users.
Represents an account with its credentials and realtime presence state.
"""
import uuid
from tortoise import fields, models

USERNAME_MAX_LENGTH = 64

class User(models.Model):
    """
    User database model.

    Relationships:
    - Member of many Teams and Projects (many-to-many, via related_name="teams"/"projects")
    - Assigned to many Tasks and Todos (many-to-many)

    Presence:
    - is_online / last_seen are maintained by the PresenceTracker
    - socket_id holds the most recently announced realtime connection (null when offline)
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    username = fields.CharField(max_length=USERNAME_MAX_LENGTH, unique=True, index=True)  # Login name (unique, indexed)
    password_hash = fields.CharField(max_length=255)  # Argon2 hash, never plain text
    is_online = fields.BooleanField(default=False)
    last_seen = fields.DatetimeField(null=True)
    socket_id = fields.CharField(max_length=64, null=True, index=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "users"

    def __str__(self) -> str:
        return self.username
