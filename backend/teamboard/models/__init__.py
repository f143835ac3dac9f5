# teamboard/models/__init__.py
"""
Database models module initialization.
Exports all Tortoise ORM models for convenient imports.

Models exported:
- User: Account, credentials and presence state
- Team: Chat team with members
- Project: Project with ordered workflow phases
- Task: Kanban task with phase history (belongs to Project)
- Todo: Personal todo item
- Message: Chat message (general channel or team channel)
"""
from .user import User
from .team import Team
from .project import Project
from .task import Task
from .todo import Todo
from .message import Message
