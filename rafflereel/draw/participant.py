"""Participant value object and identity helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


def _normalize_name(value: str) -> str:
    """Trim ``value`` and collapse internal whitespace.

    Parameters
    ----------
    value : str
        Raw name as typed on a form or read from a roster.
    """

    if value is None:
        raise ValueError("name must not be None")
    if not isinstance(value, str):
        raise TypeError("name must be a string")
    return " ".join(value.split())


def make_display_name(first_name: str, last_name: str) -> str:
    """Return the public label shown on the reel, e.g. ``"Ada L."``."""

    first = _normalize_name(first_name)
    last = _normalize_name(last_name)
    if not first or not last:
        raise ValueError("first and last name must not be empty")
    return f"{first} {last[0]}."


def normalize_display_name(display_name: str) -> str:
    """Return the comparison form of a display name (whitespace-collapsed, casefolded)."""

    return _normalize_name(display_name).casefold()


def participant_key(first_name: str, last_name: str) -> str:
    """Derive a stable participant id from a person's full name.

    Sources that do not assign their own ids (roster files, the
    registration desk) use this key so the same person always maps to the
    same id, regardless of which source delivered them.
    """

    first = _normalize_name(first_name).casefold()
    last = _normalize_name(last_name).casefold()
    if not first or not last:
        raise ValueError("first and last name must not be empty")
    return "-".join(f"{first} {last}".split())


@dataclass(frozen=True)
class Participant:
    """Someone eligible to be drawn.

    Attributes
    ----------
    id : str
        Stable identifier, unique within a pool's registry.
    first_name : str
        Given name.
    last_name : str
        Family name.
    display_name : str
        Label rendered on the reel. Derived from the names when omitted.
    """

    id: str
    first_name: str
    last_name: str
    display_name: str = field(default="")

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("participant id must not be empty")
        if not self.display_name:
            object.__setattr__(
                self, "display_name", make_display_name(self.first_name, self.last_name)
            )

    @classmethod
    def from_names(
        cls,
        first_name: str,
        last_name: str,
        *,
        participant_id: Optional[str] = None,
    ) -> "Participant":
        """Build a participant, deriving the id from the names when not given."""

        first = _normalize_name(first_name)
        last = _normalize_name(last_name)
        return cls(
            id=participant_id or participant_key(first, last),
            first_name=first,
            last_name=last,
        )

    @property
    def display_key(self) -> str:
        return normalize_display_name(self.display_name)


__all__ = [
    "Participant",
    "make_display_name",
    "normalize_display_name",
    "participant_key",
]
