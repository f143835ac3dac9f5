"""
Pydantic schemas for kanban task endpoints.
Phase and history are never accepted here; they change only through a move.
"""
import uuid
from typing import List, Literal, Optional
from pydantic import BaseModel, Field

TaskPriority = Literal["low", "medium", "high"]
TaskStatus = Literal["pending", "in-progress", "completed", "blocked"]

class TaskCreateIn(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    assignedTo: List[uuid.UUID] = []
    currentPhase: Optional[str] = Field(default=None, max_length=100)  # Defaults to the project's first phase
    estimatedHours: Optional[float] = Field(default=None, ge=0)
    points: int = Field(default=0, ge=0)
    priority: TaskPriority = "medium"
    status: TaskStatus = "pending"
    tags: List[str] = []
    attachments: List[str] = []

class TaskUpdateIn(BaseModel):
    """All fields optional - only provided fields are updated."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    assignedTo: Optional[List[uuid.UUID]] = None
    estimatedHours: Optional[float] = Field(default=None, ge=0)
    points: Optional[int] = Field(default=None, ge=0)
    priority: Optional[TaskPriority] = None
    status: Optional[TaskStatus] = None
    tags: Optional[List[str]] = None
    attachments: Optional[List[str]] = None

class TaskMoveIn(BaseModel):
    toPhase: str = ""
    notes: Optional[str] = Field(default=None, max_length=500)

class TaskCommentIn(BaseModel):
    comment: str = Field(min_length=1, max_length=500)
