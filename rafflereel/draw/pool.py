"""Participant registry and the draw-eligible subset."""

from __future__ import annotations

import logging
import threading
from typing import Iterable, Optional

from .participant import Participant

logger = logging.getLogger(__name__)


class ParticipantPool:
    """Owns the registry (``all``) and the eligible set (``available``).

    One instance lives for the whole raffle session and is handed to the
    components that need it. Both collections are guarded by a single lock
    so a merge or removal updates both or neither, even when registration
    batches arrive from a background feed while a draw is on screen.

    Invariants kept after every mutation:

    * ``available`` holds no duplicate ids.
    * every member of ``available`` is also in ``all``.
    """

    def __init__(self, participants: Optional[Iterable[Participant]] = None) -> None:
        self._lock = threading.RLock()
        self._all: list[Participant] = []
        self._available: list[Participant] = []
        self._ids: set[str] = set()
        self._display_keys: set[str] = set()
        self._pinned: set[str] = set()
        if participants is not None:
            self.merge(participants)

    @property
    def all(self) -> tuple[Participant, ...]:
        """Snapshot of every admitted participant in admission order."""
        with self._lock:
            return tuple(self._all)

    @property
    def available(self) -> tuple[Participant, ...]:
        """Snapshot of participants still eligible in the current super-round."""
        with self._lock:
            return tuple(self._available)

    def __len__(self) -> int:
        with self._lock:
            return len(self._all)

    def __contains__(self, participant_id: object) -> bool:
        with self._lock:
            return participant_id in self._ids

    def is_available(self, participant_id: str) -> bool:
        with self._lock:
            return any(p.id == participant_id for p in self._available)

    def merge(
        self,
        participants: Iterable[Participant],
        *,
        match_display_name: bool = False,
    ) -> int:
        """Admit participants not already in the registry.

        Admitted participants are appended to both ``all`` and
        ``available``; a participant enters the registry at most once, so
        anyone new is always eligible for the current super-round.

        Parameters
        ----------
        participants : Iterable[Participant]
            Candidate batch. Duplicates inside the batch are collapsed too.
        match_display_name : bool, default: False
            Also treat a candidate as a duplicate when its normalized
            display name is already registered. Meant for sources whose
            ids are not stable.

        Returns
        -------
        int
            Number of participants actually admitted. ``0`` means the batch
            held nobody new.
        """

        batch = list(participants)
        admitted: list[Participant] = []
        with self._lock:
            for participant in batch:
                if participant.id in self._ids:
                    continue
                if match_display_name and participant.display_key in self._display_keys:
                    continue
                self._ids.add(participant.id)
                self._display_keys.add(participant.display_key)
                admitted.append(participant)
            self._all.extend(admitted)
            self._available.extend(admitted)
            registered = len(self._all)

        if admitted:
            logger.info(
                f"Admitted {len(admitted)} of {len(batch)} participants "
                f"({registered} registered)"
            )
        else:
            logger.debug(f"Merge of {len(batch)} participants admitted nobody new")
        return len(admitted)

    def remove_from_available(self, participant_id: str) -> bool:
        """Drop ``participant_id`` from the eligible set.

        Removing someone who is not in ``available`` is a no-op, so calling
        this twice for the same id changes the pool only once. A pinned id
        (the winner of a draw still in flight) is refused.

        Returns
        -------
        bool
            ``True`` when a participant was removed.
        """

        with self._lock:
            if participant_id in self._pinned:
                logger.warning(
                    f"Refusing to remove participant {participant_id!r}: draw in progress"
                )
                return False
            return self._remove(participant_id)

    def reset_available(self) -> None:
        """Make every registered participant eligible again."""
        with self._lock:
            self._available = list(self._all)
            count = len(self._available)
        logger.info(f"Available pool reset to {count} participants")

    def pin(self, participant_id: str) -> None:
        """Protect ``participant_id`` from removal until it is committed or released."""
        with self._lock:
            self._pinned.add(participant_id)

    def release(self, participant_id: str) -> None:
        with self._lock:
            self._pinned.discard(participant_id)

    def commit_winner(self, participant_id: str) -> bool:
        """Retire a drawn winner for the rest of the super-round.

        Releases the pin, removes the winner from ``available`` and, when
        that empties the pool while the registry is not empty, resets
        ``available`` to ``all``. All of it happens under one lock.

        Returns
        -------
        bool
            ``True`` when the pool was exhausted and has been reset.
        """

        with self._lock:
            self._pinned.discard(participant_id)
            self._remove(participant_id)
            if self._available or not self._all:
                return False
            self._available = list(self._all)
        logger.info("Round complete: every participant has been drawn, pool reset")
        return True

    def refill_if_exhausted(self) -> bool:
        """Reset ``available`` when it is empty but the registry is not."""
        with self._lock:
            if self._available or not self._all:
                return False
            self._available = list(self._all)
        logger.info("Available pool was exhausted, pool reset")
        return True

    def _remove(self, participant_id: str) -> bool:
        for index, participant in enumerate(self._available):
            if participant.id == participant_id:
                del self._available[index]
                logger.debug(f"Removed participant {participant_id!r} from available pool")
                return True
        return False


__all__ = ["ParticipantPool"]
