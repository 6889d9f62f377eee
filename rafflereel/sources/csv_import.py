"""Read approved participants out of a roster CSV export."""

from __future__ import annotations

import csv
import io
import logging
from pathlib import Path
from typing import Iterable, Union

from ..draw.participant import Participant
from ..errors import ParticipantImportError

logger = logging.getLogger(__name__)

APPROVED_STATUS = "approved"


def parse_roster_rows(rows: Iterable[list[str]]) -> list[Participant]:
    """Turn roster rows into participants.

    The first row is a header and is skipped. Each remaining row is
    ``name, lastName, status``; only rows whose status is ``approved``
    (any case) and that carry both names are kept. Quotes around values
    are stripped. The same person listed twice yields one participant.
    """

    participants: list[Participant] = []
    seen: set[str] = set()
    iterator = iter(rows)
    next(iterator, None)
    for line_number, row in enumerate(iterator, start=2):
        values = [cell.strip().replace('"', "") for cell in row]
        if not any(values):
            continue
        if len(values) < 3:
            logger.debug(f"Skipping roster line {line_number}: expected 3 columns")
            continue
        first_name, last_name, status = values[:3]
        if status.lower() != APPROVED_STATUS or not first_name or not last_name:
            continue
        participant = Participant.from_names(first_name, last_name)
        if participant.id in seen:
            continue
        seen.add(participant.id)
        participants.append(participant)
    return participants


def parse_roster_text(text: str) -> list[Participant]:
    """Parse roster CSV ``text`` (LF or CRLF line endings).

    Raises
    ------
    ParticipantImportError
        If the text is not valid CSV or has no approved participants.
    """

    try:
        rows = list(csv.reader(io.StringIO(text, newline="")))
    except csv.Error as exc:
        raise ParticipantImportError(
            "Could not read the CSV file. Please ensure it's a valid format."
        ) from exc
    participants = parse_roster_rows(rows)
    if not participants:
        raise ParticipantImportError(
            "No 'approved' participants found in the CSV file. Check file format."
        )
    logger.debug(f"Parsed {len(participants)} approved participants from roster")
    return participants


def load_roster(path: Union[str, Path], encoding: str = "utf-8-sig") -> list[Participant]:
    """Read and parse the roster file at ``path``.

    Raises
    ------
    ParticipantImportError
        If the file cannot be read or holds no approved participants.
    """

    try:
        text = Path(path).read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as exc:
        raise ParticipantImportError(
            "There was an error reading your file."
        ) from exc
    return parse_roster_text(text)


__all__ = ["APPROVED_STATUS", "load_roster", "parse_roster_rows", "parse_roster_text"]
