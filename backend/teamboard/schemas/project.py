"""
Pydantic schemas for project endpoints.
Only the fields declared here are ever written to a project record.
"""
import datetime as dt
import uuid
from typing import List, Literal, Optional
from pydantic import BaseModel, Field

ProjectStatus = Literal["active", "completed", "archived", "on-hold"]

class PhaseIn(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    order: Optional[int] = None  # Defaults to list position (1-based)
    color: Optional[str] = Field(default=None, max_length=16)

class ProjectCreateIn(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    members: List[uuid.UUID] = []
    phases: Optional[List[PhaseIn]] = None  # None or empty -> default phases
    deadline: Optional[dt.datetime] = None

class ProjectUpdateIn(BaseModel):
    """All fields optional - only provided fields are updated."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    members: Optional[List[uuid.UUID]] = None
    phases: Optional[List[PhaseIn]] = None
    status: Optional[ProjectStatus] = None
    deadline: Optional[dt.datetime] = None
