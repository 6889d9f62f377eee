"""Polling feeds that deliver registration batches into a participant pool."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..draw.participant import Participant
from ..draw.pool import ParticipantPool
from ..errors import RegistrationSourceError
from ..models import Registration
from ..notifications import (
    LoggingSink,
    NotificationSink,
    participants_added,
    source_unavailable,
)
from .remote import RegistrationClient, participant_from_payload

logger = logging.getLogger(__name__)


class RegistrationFeed:
    """Turns a registration source into upsert batches for a pool.

    Each :meth:`poll` fetches everything past the feed's cursor and merges
    it by id. Delivery may repeat (a feed restarted from zero, or the same
    person arriving through two channels); the pool admits each id once,
    so replays never resurrect anyone already drawn.
    """

    source_name = "registration source"

    def __init__(
        self,
        pool: ParticipantPool,
        *,
        notify: Optional[NotificationSink] = None,
    ) -> None:
        self._pool = pool
        self._notify = notify or LoggingSink()
        self.cursor = 0

    def fetch(self) -> tuple[list[Participant], int]:
        """Return the next batch and the cursor to resume from."""
        raise NotImplementedError

    def poll(self) -> int:
        """Fetch and merge one batch.

        Returns
        -------
        int
            Number of participants admitted into the pool.

        Raises
        ------
        RegistrationSourceError
            If the source could not be read. The pool and cursor are left
            unchanged so the next poll retries the same range.
        """

        try:
            batch, cursor = self.fetch()
        except RegistrationSourceError as exc:
            logger.error(f"Polling {self.source_name} failed: {exc.reason}")
            self._notify(source_unavailable(self.source_name, exc.reason))
            raise

        admitted = self._pool.merge(batch) if batch else 0
        self.cursor = cursor
        if admitted:
            self._notify(participants_added(admitted))
        return admitted


class DatabaseRegistrationFeed(RegistrationFeed):
    """Reads new rows from the ``registrations`` table."""

    source_name = "registration database"

    def __init__(
        self,
        pool: ParticipantPool,
        session_factory: Callable[[], Session],
        *,
        batch_size: int = 500,
        notify: Optional[NotificationSink] = None,
    ) -> None:
        super().__init__(pool, notify=notify)
        self._session_factory = session_factory
        self._batch_size = batch_size

    def fetch(self) -> tuple[list[Participant], int]:
        try:
            with self._session_factory() as session:
                rows = Registration.since(session, self.cursor, limit=self._batch_size)
                batch = [row.to_participant() for row in rows]
                cursor = rows[-1].id if rows else self.cursor
        except SQLAlchemyError as exc:
            raise RegistrationSourceError(self.source_name, str(exc), cause=exc) from exc
        return batch, cursor


class RemoteRegistrationFeed(RegistrationFeed):
    """Reads new registrations from the remote registration service."""

    source_name = "remote registration service"

    def __init__(
        self,
        pool: ParticipantPool,
        client: RegistrationClient,
        *,
        notify: Optional[NotificationSink] = None,
    ) -> None:
        super().__init__(pool, notify=notify)
        self._client = client

    def fetch(self) -> tuple[list[Participant], int]:
        payloads = self._client.list_registrations(since=self.cursor)
        batch = [participant_from_payload(payload) for payload in payloads]
        cursor = self.cursor
        for payload in payloads:
            try:
                cursor = max(cursor, int(payload["id"]))
            except (KeyError, TypeError, ValueError) as exc:
                raise RegistrationSourceError(
                    self.source_name, "registration record without a row id", cause=exc
                ) from exc
        return batch, cursor


class FeedPoller:
    """Polls a feed on a daemon thread until stopped.

    Source failures and unexpected errors are logged and polling carries on,
    so the raffle keeps running on the registry it already has.
    """

    def __init__(self, feed: RegistrationFeed, interval: float = 2.0) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._feed = feed
        self._interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name=f"feed-poller-{self._feed.source_name}", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                self._feed.poll()
            except RegistrationSourceError:
                logger.warning(
                    f"{self._feed.source_name} unavailable, retrying in {self._interval}s"
                )
            except Exception:
                logger.exception(f"Unexpected error while polling {self._feed.source_name}")
            self._stop.wait(self._interval)


__all__ = [
    "DatabaseRegistrationFeed",
    "FeedPoller",
    "RegistrationFeed",
    "RemoteRegistrationFeed",
]
