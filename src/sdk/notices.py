"""User-facing notifications raised by SDK operations."""

import enum
from dataclasses import dataclass


class NoticeLevel(str, enum.Enum):
    SUCCESS = "success"
    INFO = "info"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    """One toast-style message.

    Attributes:
        level: Severity used for styling.
        message: Text shown to the user.
        redirect_to: Path the user should be sent to, if any.
    """

    level: NoticeLevel
    message: str
    redirect_to: str | None = None


class NoticeBoard:
    """Ordered collection of notices waiting to be shown."""

    def __init__(self) -> None:
        self._notices: list[Notice] = []

    def push(self, notice: Notice) -> None:
        self._notices.append(notice)

    def success(self, message: str) -> None:
        self.push(Notice(NoticeLevel.SUCCESS, message))

    def info(self, message: str) -> None:
        self.push(Notice(NoticeLevel.INFO, message))

    def error(self, message: str, redirect_to: str | None = None) -> None:
        self.push(Notice(NoticeLevel.ERROR, message, redirect_to))

    @property
    def latest(self) -> Notice | None:
        return self._notices[-1] if self._notices else None

    def drain(self) -> list[Notice]:
        """Return and clear every pending notice."""
        notices, self._notices = self._notices, []
        return notices

    def __len__(self) -> int:
        return len(self._notices)
