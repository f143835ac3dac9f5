"""
Pydantic schemas for chat endpoints.
"""
import uuid
from typing import List, Optional
from pydantic import BaseModel

class MessageCreateIn(BaseModel):
    message: str = ""
    teamId: Optional[uuid.UUID] = None  # None = general channel

class MarkReadIn(BaseModel):
    """
    Mark messages as read by the caller.
    - messageIds given: exactly those messages
    - otherwise: every message of the channel named by teamId (None = general)
    """
    teamId: Optional[uuid.UUID] = None
    messageIds: Optional[List[uuid.UUID]] = None
