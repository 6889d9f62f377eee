"""Database model for the registration desk's participant store."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from sqlalchemy import DateTime, Integer, String, UniqueConstraint, select
from sqlalchemy.orm import Mapped, Session, mapped_column, validates

from ..db.utils import dt_iso
from ..draw.participant import Participant, make_display_name, participant_key
from .base import Base

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50


class RegistrationSource(str, Enum):
    FORM = "form"
    CSV = "csv"
    REMOTE = "remote"


class Registration(Base):
    """A participant admitted through one of the registration channels."""

    __tablename__ = "registrations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    """Monotonic row id; feeds use it as their polling cursor."""

    participant_id: Mapped[str] = mapped_column(String(128), nullable=False)
    """Stable participant identity, derived from the full name."""

    first_name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), nullable=False)
    last_name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), nullable=False)

    display_name: Mapped[str] = mapped_column(String(64), nullable=False)
    """Label rendered on the reel, e.g. ``"Ada L."``."""

    source: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RegistrationSource.FORM.value
    )
    """Channel the registration arrived through ("form", "csv" or "remote")."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("participant_id", name="uq_registrations_participant_id"),
    )

    def __init__(
        self,
        *,
        first_name: str,
        last_name: str,
        source: str = RegistrationSource.FORM.value,
        participant_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> None:
        """Create a registration, deriving identity and display name from the names.

        Raises
        ------
        ValueError
            If either name is shorter than 2 or longer than 50 characters,
            or ``source`` is not a known channel.
        """

        self.first_name = first_name
        self.last_name = last_name
        self.source = RegistrationSource(source).value
        self.participant_id = participant_id or participant_key(
            self.first_name, self.last_name
        )
        self.display_name = make_display_name(self.first_name, self.last_name)
        if created_at is not None:
            self.created_at = created_at

    @validates("first_name", "last_name")
    def _validate_name(self, key: str, value: str) -> str:
        if not isinstance(value, str):
            raise TypeError(f"{key} must be a string")
        normalized = " ".join(value.split())
        if not NAME_MIN_LENGTH <= len(normalized) <= NAME_MAX_LENGTH:
            raise ValueError(
                f"{key} must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters"
            )
        return normalized

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<Registration(id={id}, participant_id={pid}, source={source})>".format(
            id=self.id,
            pid=self.participant_id,
            source=self.source,
        )

    @classmethod
    def get_by_participant_id(
        cls, session: Session, participant_id: str
    ) -> Optional["Registration"]:
        """Return the registration for ``participant_id`` if it exists."""

        return session.scalar(select(cls).where(cls.participant_id == participant_id))

    @classmethod
    def since(
        cls, session: Session, last_id: int = 0, *, limit: Optional[int] = None
    ) -> list["Registration"]:
        """Return registrations with a row id above ``last_id``, oldest first."""

        stmt = select(cls).where(cls.id > last_id).order_by(cls.id)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(session.scalars(stmt))

    def to_participant(self) -> Participant:
        return Participant(
            id=self.participant_id,
            first_name=self.first_name,
            last_name=self.last_name,
            display_name=self.display_name,
        )

    def to_json(self) -> dict[str, Any]:
        """Return a JSON-serializable dict, the shape the remote API also serves."""

        return {
            "id": self.id,
            "participant_id": self.participant_id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "display_name": self.display_name,
            "source": self.source,
            "created_at": dt_iso(self.created_at),
        }


__all__ = ["Registration", "RegistrationSource"]
