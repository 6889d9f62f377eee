"""Exceptions raised by the raffle engine and its registration sources."""

from __future__ import annotations

from typing import Optional

from .notifications import Notice


class RaffleError(Exception):
    """Base class for raffle errors. None of them leave the engine unusable."""


class DrawRejectedError(RaffleError):
    """An operator action was refused; the draw state did not change."""

    def __init__(self, notice: Notice) -> None:
        super().__init__(notice.description)
        self.notice = notice


class EmptyPoolError(DrawRejectedError):
    """A draw was requested with nobody eligible."""


class DrawInProgressError(DrawRejectedError):
    """A draw was requested before the current round was finished."""


class RegistrationSourceError(RaffleError):
    """A registration source could not be read or written.

    The engine keeps drawing from whatever registry it already holds.
    """

    def __init__(self, source: str, reason: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason
        self.cause = cause


class ParticipantImportError(RaffleError, ValueError):
    """A roster file was unreadable or contained no eligible rows."""


__all__ = [
    "DrawInProgressError",
    "DrawRejectedError",
    "EmptyPoolError",
    "ParticipantImportError",
    "RaffleError",
    "RegistrationSourceError",
]
