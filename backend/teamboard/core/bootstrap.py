# teamboard/core/bootstrap.py
"""
Bootstrap module for application initialization.
Handles startup housekeeping that must run before serving requests.
"""
import logging
from teamboard.models.user import User

logger = logging.getLogger("uvicorn.error")

async def reset_presence() -> None:
    """
    Clear presence left behind by a previous process.

    Realtime connections never survive a restart, so any user still flagged
    online (or still holding a connection id) is stale at startup.
    """
    stale = await User.filter(is_online=True).count()
    await User.filter(socket_id__isnull=False).update(socket_id=None)
    if stale:
        await User.filter(is_online=True).update(is_online=False)
        logger.warning("[bootstrap] Reset %d stale online user(s) to offline", stale)
