from __future__ import annotations

import logging
import uuid
from typing import List, Optional

from winesim.constants import NOTIFICATION_LIMIT
from winesim.models import GameState, Notification

log = logging.getLogger(__name__)


def add_message(state: GameState, text: str, origin: str = "", category: str = "general") -> Notification:
    msg = Notification(
        notification_id=f"msg_{uuid.uuid4().hex[:10]}",
        week=int(state.week),
        season=str(state.season),
        year=int(state.year),
        text=str(text),
        origin=str(origin),
        category=str(category),
    )
    state.notifications.append(msg)
    if len(state.notifications) > NOTIFICATION_LIMIT:
        del state.notifications[: len(state.notifications) - NOTIFICATION_LIMIT]
    log.info("[%s] %s", category, text)
    return msg


def list_messages(state: GameState, category: Optional[str] = None, limit: int = 50) -> List[Notification]:
    items = [m for m in state.notifications if category is None or m.category == category]
    return list(reversed(items))[: max(0, int(limit))]


def clear_messages(state: GameState, category: Optional[str] = None) -> int:
    before = len(state.notifications)
    if category is None:
        state.notifications.clear()
    else:
        state.notifications[:] = [m for m in state.notifications if m.category != category]
    return before - len(state.notifications)
