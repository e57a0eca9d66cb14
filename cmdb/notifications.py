import itertools
from collections import deque
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List

MAX_NOTIFICATIONS = 100

# newest entries win; older ones fall off the front
_FEED: Deque[Dict[str, Any]] = deque(maxlen=MAX_NOTIFICATIONS)
_IDS = itertools.count(1)


def add(message: str) -> dict:
    item = {
        "id": next(_IDS),
        "message": message,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    _FEED.append(item)
    return item


def list_all() -> List[dict]:
    return list(_FEED)


def clear() -> None:
    _FEED.clear()
