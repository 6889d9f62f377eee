"""Registration channels that feed participants into the raffle."""

from .csv_import import load_roster, parse_roster_text
from .feeds import (
    DatabaseRegistrationFeed,
    FeedPoller,
    RegistrationFeed,
    RemoteRegistrationFeed,
)
from .remote import RegistrationClient, participant_from_payload

__all__ = [
    "DatabaseRegistrationFeed",
    "FeedPoller",
    "RegistrationClient",
    "RegistrationFeed",
    "RemoteRegistrationFeed",
    "load_roster",
    "parse_roster_text",
    "participant_from_payload",
]
