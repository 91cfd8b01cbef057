"""Operator notice history."""
from collections import deque
from datetime import datetime

from src.dashboard.models import Notice, NoticeLevel


class NoticeBoard:
    """Bounded history of operator notices, most recent first.

    Delivery (toasts, chat messages) is left to whoever reads the board and
    calls ``mark_all_read`` once the operator has seen them.
    """

    def __init__(self, max_notices: int = 50) -> None:
        self._notices: deque[Notice] = deque(maxlen=max_notices)

    @property
    def notices(self) -> list[Notice]:
        return list(self._notices)

    @property
    def unread_count(self) -> int:
        return sum(1 for notice in self._notices if not notice.read)

    def add(
        self,
        level: NoticeLevel,
        title: str,
        message: str,
        scenario_id: int | None = None,
    ) -> Notice:
        notice = Notice(datetime.now(), level, title, message, scenario_id=scenario_id)
        self._notices.appendleft(notice)
        return notice

    def mark_all_read(self) -> int:
        """Mark every notice read and return how many were unread."""
        unread = [notice for notice in self._notices if not notice.read]
        for notice in unread:
            notice.read = True
        return len(unread)
