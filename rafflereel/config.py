"""Environment-driven settings for a raffle session."""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Callable, Mapping, Optional, TypeVar

from dotenv import load_dotenv

T = TypeVar("T")

DEFAULT_REPETITIONS = 10
DEFAULT_VIEWPORT_ROWS = 3
DEFAULT_ROW_HEIGHT = 80.0
DEFAULT_SPIN_DURATION = 8.0
DEFAULT_POLL_INTERVAL = 2.0


def _read(env: Mapping[str, str], name: str, cast: Callable[[str], T], default: T) -> T:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError as exc:
        raise ValueError(f"Environment variable {name!r} has an invalid value: {raw!r}") from exc


@dataclass(frozen=True)
class RaffleSettings:
    """Tunable knobs for the reel and the registration feeds.

    Attributes
    ----------
    repetitions : int
        Copies of the shuffled pool that make up the reel.
    viewport_rows : int
        Rows visible in the reel window.
    row_height : float
        Height of one row in renderer units.
    spin_duration : float
        Seconds the reel takes to come to rest.
    poll_interval : float
        Seconds between registration feed polls.
    registration_api_url : Optional[str]
        Base URL of the remote registration service, if any.
    """

    repetitions: int = DEFAULT_REPETITIONS
    viewport_rows: int = DEFAULT_VIEWPORT_ROWS
    row_height: float = DEFAULT_ROW_HEIGHT
    spin_duration: float = DEFAULT_SPIN_DURATION
    poll_interval: float = DEFAULT_POLL_INTERVAL
    registration_api_url: Optional[str] = None

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "RaffleSettings":
        """Read settings from ``env`` (``os.environ`` after loading ``.env`` by default)."""
        if env is None:
            load_dotenv()
            env = os.environ
        return cls(
            repetitions=_read(env, "REEL_REPETITIONS", int, DEFAULT_REPETITIONS),
            viewport_rows=_read(env, "REEL_VIEWPORT_ROWS", int, DEFAULT_VIEWPORT_ROWS),
            row_height=_read(env, "REEL_ROW_HEIGHT", float, DEFAULT_ROW_HEIGHT),
            spin_duration=_read(env, "SPIN_DURATION_SECONDS", float, DEFAULT_SPIN_DURATION),
            poll_interval=_read(env, "REGISTRATION_POLL_SECONDS", float, DEFAULT_POLL_INTERVAL),
            registration_api_url=env.get("REGISTRATION_API_URL") or None,
        )


__all__ = [
    "DEFAULT_POLL_INTERVAL",
    "DEFAULT_REPETITIONS",
    "DEFAULT_ROW_HEIGHT",
    "DEFAULT_SPIN_DURATION",
    "DEFAULT_VIEWPORT_ROWS",
    "RaffleSettings",
]
