"""Read-only queue view and operator notices."""

from .models import Notice, NoticeLevel, QueueSummary
from .queue_summary import summarize_queue
from .state import NoticeBoard

__all__ = ["Notice", "NoticeBoard", "NoticeLevel", "QueueSummary", "summarize_queue"]
