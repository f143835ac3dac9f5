"""
Pydantic schemas for personal todo endpoints.
"""
import datetime as dt
import uuid
from typing import List, Literal, Optional
from pydantic import BaseModel, Field

TodoPriority = Literal["low", "medium", "high"]

class TodoCreateIn(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    completed: bool = False
    deadline: Optional[dt.datetime] = None
    priority: Optional[TodoPriority] = None
    assignedTo: List[uuid.UUID] = []

class TodoUpdateIn(BaseModel):
    """All fields optional. Assignees may only send `completed`."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    completed: Optional[bool] = None
    deadline: Optional[dt.datetime] = None
    priority: Optional[TodoPriority] = None
    assignedTo: Optional[List[uuid.UUID]] = None
