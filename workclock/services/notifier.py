# workclock/services/notifier.py
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Deque, List

logger = logging.getLogger(__name__)

NoticeListener = Callable[["Notice"], None]


def _utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


@dataclass
class Notice:
    type: str
    message: str
    created_at: datetime = field(default_factory=_utc_now)


class Notifier:
    """
    Fire-and-forget sink for user-visible confirmations ("Settings saved.").

    Notices are logged and kept in a small ring buffer that the API exposes.
    Extra listeners (e.g. a host bridge) can be attached; a failing listener
    never propagates to the caller.
    """

    def __init__(self, max_recent: int = 50) -> None:
        self._recent: Deque[Notice] = deque(maxlen=max_recent)
        self._listeners: List[NoticeListener] = []

    def add_listener(self, listener: NoticeListener) -> None:
        self._listeners.append(listener)

    def notify(self, notice_type: str, message: str) -> Notice:
        notice = Notice(type=notice_type, message=message)
        self._recent.append(notice)

        level = logging.WARNING if notice_type == "error" else logging.INFO
        logger.log(level, "Notice [%s]: %s", notice_type, message)

        for listener in self._listeners:
            try:
                listener(notice)
            except Exception:
                # Notification failures are swallowed, but stay visible in logs.
                logger.exception("Notice listener %r failed", listener)
        return notice

    def recent(self) -> List[Notice]:
        return list(self._recent)
