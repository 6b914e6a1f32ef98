"""Transient user-facing notices ("toasts").

The row editor and importer report outcomes through a notifier instead of
raising, so every failure ends in a recoverable, visible state.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from seedkeep.core.logging import get_logger

logger = get_logger(__name__)


class NoticeLevel(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    level: NoticeLevel
    message: str


class Notifier(Protocol):
    """Anything that can show a transient notice to the user."""

    def notify(self, level: NoticeLevel, message: str) -> None: ...


class CollectingNotifier:
    """Notifier that buffers notices so an API response can return them."""

    def __init__(self) -> None:
        self.notices: list[Notice] = []

    def notify(self, level: NoticeLevel, message: str) -> None:
        self.notices.append(Notice(NoticeLevel(level), message))
        logger.debug("Notice emitted", level=NoticeLevel(level).value, notice=message)

    def success(self, message: str) -> None:
        self.notify(NoticeLevel.SUCCESS, message)

    def info(self, message: str) -> None:
        self.notify(NoticeLevel.INFO, message)

    def warning(self, message: str) -> None:
        self.notify(NoticeLevel.WARNING, message)

    def error(self, message: str) -> None:
        self.notify(NoticeLevel.ERROR, message)

    def drain(self) -> list[Notice]:
        """Return and forget the buffered notices."""
        notices, self.notices = self.notices, []
        return notices
