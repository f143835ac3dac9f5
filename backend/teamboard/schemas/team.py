"""
Pydantic schemas for team endpoints.
"""
import uuid
from typing import List, Optional
from pydantic import BaseModel, Field

class TeamCreateIn(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)

class TeamMembersIn(BaseModel):
    """User ids to add; ids already in the team are ignored."""
    members: List[uuid.UUID] = []
