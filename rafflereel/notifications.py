"""Human-readable raffle events for whoever is running the show."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class NoticeKind(str, Enum):
    PARTICIPANTS_ADDED = "participants_added"
    NO_NEW_PARTICIPANTS = "no_new_participants"
    EMPTY_POOL = "empty_pool"
    DRAW_IN_PROGRESS = "draw_in_progress"
    ROUND_COMPLETE = "round_complete"
    SOURCE_UNAVAILABLE = "source_unavailable"
    IMPORT_FAILED = "import_failed"


@dataclass(frozen=True)
class Notice:
    """A message meant for display, e.g. as a toast.

    Attributes
    ----------
    kind : NoticeKind
        Machine readable category.
    title : str
        Short headline.
    description : str
        One sentence of detail.
    destructive : bool
        ``True`` when the notice reports something that did not happen as
        the operator asked.
    """

    kind: NoticeKind
    title: str
    description: str
    destructive: bool = False


NotificationSink = Callable[[Notice], None]


def participants_added(count: int) -> Notice:
    return Notice(
        NoticeKind.PARTICIPANTS_ADDED,
        "Participants Added",
        f"{count} new participants have been added to the raffle.",
    )


def no_new_participants() -> Notice:
    return Notice(
        NoticeKind.NO_NEW_PARTICIPANTS,
        "No New Participants",
        "The imported participants are already in the raffle.",
        destructive=True,
    )


def empty_pool() -> Notice:
    return Notice(
        NoticeKind.EMPTY_POOL,
        "Raffle is empty!",
        "Please add participants before starting.",
        destructive=True,
    )


def draw_in_progress() -> Notice:
    return Notice(
        NoticeKind.DRAW_IN_PROGRESS,
        "Draw in progress",
        "Finish the current round before starting another draw.",
        destructive=True,
    )


def round_complete(count: int) -> Notice:
    return Notice(
        NoticeKind.ROUND_COMPLETE,
        "Round complete",
        f"Everyone has been drawn. Resetting the pool to all {count} participants.",
    )


def source_unavailable(source: str, reason: str) -> Notice:
    return Notice(
        NoticeKind.SOURCE_UNAVAILABLE,
        "Registration source unavailable",
        f"Could not reach {source}: {reason}",
        destructive=True,
    )


def import_failed(reason: str) -> Notice:
    return Notice(NoticeKind.IMPORT_FAILED, "Import Failed", reason, destructive=True)


class LoggingSink:
    """Sink that writes notices to :mod:`logging`."""

    def __init__(self, log: Optional[logging.Logger] = None) -> None:
        self._log = log or logger

    def __call__(self, notice: Notice) -> None:
        level = logging.WARNING if notice.destructive else logging.INFO
        self._log.log(level, f"{notice.title}: {notice.description}")


class CollectingSink:
    """Sink that keeps notices in memory until a UI drains them."""

    def __init__(self) -> None:
        self.notices: list[Notice] = []

    def __call__(self, notice: Notice) -> None:
        self.notices.append(notice)

    def kinds(self) -> list[NoticeKind]:
        return [n.kind for n in self.notices]

    def drain(self) -> list[Notice]:
        drained, self.notices = self.notices, []
        return drained


__all__ = [
    "CollectingSink",
    "LoggingSink",
    "Notice",
    "NoticeKind",
    "NotificationSink",
    "draw_in_progress",
    "empty_pool",
    "import_failed",
    "no_new_participants",
    "participants_added",
    "round_complete",
    "source_unavailable",
]
