"""
Services Module

Domain logic shared by the REST routers and the realtime endpoint:
- Phase engine: kanban phase transitions, history and duration accounting
- Hydration: stored records -> API payloads with resolved user references
"""

# Phase engine
from .phase_engine import (
    apply_move,
    move_task,
    phase_durations,
    seed_history,
)

# Hydration
from .hydration import (
    load_users,
    message_out,
    project_out,
    task_out,
    team_out,
    todo_out,
    user_brief,
    user_status,
)

__all__ = [
    # Phase engine
    "apply_move",
    "move_task",
    "phase_durations",
    "seed_history",
    # Hydration
    "load_users",
    "message_out",
    "project_out",
    "task_out",
    "team_out",
    "todo_out",
    "user_brief",
    "user_status",
]
