import logging
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Optional, Union

from sqlalchemy.orm import Session

from .draw.participant import Participant, participant_key
from .errors import ParticipantImportError
from .models import Registration, RegistrationSource
from .notifications import import_failed
from .sources.csv_import import load_roster

if TYPE_CHECKING:
    from .draw.machine import DrawStateMachine

logger = logging.getLogger(__name__)


def register_participant(
    session: Session,
    first_name: str,
    last_name: str,
    *,
    source: Union[str, RegistrationSource] = RegistrationSource.FORM,
) -> Registration:
    """Store a registration from the sign-up desk, once per person.

    The participant id is derived from the full name, so submitting the
    same person twice (a double-tapped form, a retried request) returns the
    existing row instead of creating a second one.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session.
    first_name : str
        Given name, 2 to 50 characters.
    last_name : str
        Family name, 2 to 50 characters.
    source : Union[str, RegistrationSource], default: RegistrationSource.FORM
        Channel the registration came through.

    Returns
    -------
    Registration
        The new or already existing registration, flushed so ``id`` is set.

    Raises
    ------
    ValueError
        If a name fails validation.
    """

    registration = Registration(first_name=first_name, last_name=last_name, source=source)
    existing = Registration.get_by_participant_id(session, registration.participant_id)
    if existing is not None:
        logger.debug(f"Registration for {existing.participant_id!r} already stored")
        return existing

    session.add(registration)
    session.flush()
    logger.info(f"Registered {registration.display_name} via {registration.source}")
    return registration


def store_participants(
    session: Session,
    participants: Iterable[Participant],
    *,
    source: Union[str, RegistrationSource] = RegistrationSource.CSV,
) -> list[Registration]:
    """Persist ``participants`` in the registration store, skipping known ids."""

    stored: list[Registration] = []
    for participant in participants:
        existing = Registration.get_by_participant_id(session, participant.id)
        if existing is not None:
            stored.append(existing)
            continue
        try:
            registration = Registration(
                first_name=participant.first_name,
                last_name=participant.last_name,
                participant_id=participant.id,
                source=source,
            )
        except ValueError as exc:
            logger.warning(f"Not storing {participant.display_name}: {exc}")
            continue
        session.add(registration)
        stored.append(registration)
    session.flush()
    return stored


def import_roster(
    machine: "DrawStateMachine",
    path: Union[str, Path],
    *,
    session: Optional[Session] = None,
) -> int:
    """Load a roster CSV into the running raffle.

    This workflow performs the following steps:

    1. Parse the roster, keeping approved participants only.
    2. Optionally record them in the registration store so other desks
       (and a restarted session) see them.
    3. Merge them into the machine's pool, which reports how many were new.

    Parameters
    ----------
    machine : DrawStateMachine
        State machine owning the session's pool and notification sink.
    path : Union[str, Path]
        Location of the roster file.
    session : Optional[Session], default: None
        When given, participants are also written to the registration store.

    Returns
    -------
    int
        Number of participants admitted into the pool.

    Raises
    ------
    ParticipantImportError
        If the roster could not be read or had no approved rows.
    """

    try:
        participants = load_roster(path)
    except ParticipantImportError as exc:
        logger.warning(f"Roster import from {path} failed: {exc}")
        machine.notify(import_failed(str(exc)))
        raise

    if session is not None:
        store_participants(session, participants, source=RegistrationSource.CSV)
    return machine.merge(participants)


def is_registered(session: Session, first_name: str, last_name: str) -> bool:
    """Return ``True`` if the person already has a stored registration."""

    return (
        Registration.get_by_participant_id(session, participant_key(first_name, last_name))
        is not None
    )


__all__ = [
    "import_roster",
    "is_registered",
    "register_participant",
    "store_participants",
]
