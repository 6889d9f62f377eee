"""Build the token sequence and scroll target for a spinning reel."""

from __future__ import annotations

from dataclasses import dataclass
import random
import secrets
from typing import Optional, Sequence

from ..config import (
    DEFAULT_REPETITIONS,
    DEFAULT_ROW_HEIGHT,
    DEFAULT_SPIN_DURATION,
    DEFAULT_VIEWPORT_ROWS,
)
from .participant import Participant

# Control points of the ease-out curve, as in CSS ``cubic-bezier(x1, y1, x2, y2)``.
EASE_OUT_CURVE = (0.25, 0.1, 0.25, 1.0)


def _bezier(t: float, p1: float, p2: float) -> float:
    inv = 1.0 - t
    return 3.0 * inv * inv * t * p1 + 3.0 * inv * t * t * p2 + t * t * t


def ease_out(progress: float, curve: tuple[float, float, float, float] = EASE_OUT_CURVE) -> float:
    """Map linear time ``progress`` in ``[0, 1]`` onto the eased scroll fraction.

    The curve's x coordinate is monotonic for control points in ``[0, 1]``,
    so the parameter is found by bisection.
    """

    if progress <= 0.0:
        return 0.0
    if progress >= 1.0:
        return 1.0
    x1, y1, x2, y2 = curve
    lo, hi = 0.0, 1.0
    for _ in range(60):
        mid = (lo + hi) / 2.0
        if _bezier(mid, x1, x2) < progress:
            lo = mid
        else:
            hi = mid
    return _bezier((lo + hi) / 2.0, y1, y2)


@dataclass(frozen=True)
class ReelPlan:
    """Render instruction for one draw's animation.

    A plan is a snapshot: later changes to the pool never touch it.

    Attributes
    ----------
    sequence : tuple[Participant, ...]
        Tokens from the top of the reel down.
    target_index : int
        Index in ``sequence`` of the winner's row the reel stops on.
    target_offset : float
        Vertical translation that centres ``target_index`` in the viewport.
    row_height : float
        Height of a single row.
    viewport_rows : int
        Number of rows visible at once (odd).
    duration : float
        Spin length in seconds.
    """

    sequence: tuple[Participant, ...]
    target_index: int
    target_offset: float
    row_height: float = DEFAULT_ROW_HEIGHT
    viewport_rows: int = DEFAULT_VIEWPORT_ROWS
    duration: float = DEFAULT_SPIN_DURATION

    @property
    def winner(self) -> Participant:
        return self.sequence[self.target_index]

    def offset_at(self, elapsed: float) -> float:
        """Scroll offset ``elapsed`` seconds into the spin."""
        if self.duration <= 0 or elapsed >= self.duration:
            return self.target_offset
        return self.target_offset * ease_out(elapsed / self.duration)

    def row_at(self, elapsed: float) -> int:
        """Index of the token in the centre row ``elapsed`` seconds into the spin."""
        if self.duration <= 0 or elapsed >= self.duration:
            return self.target_index
        centre = (self.viewport_rows - 1) // 2
        index = round(centre - self.offset_at(elapsed) / self.row_height)
        return max(0, min(len(self.sequence) - 1, index))


def centred_offset(index: int, row_height: float, viewport_rows: int) -> float:
    """Translation that puts row ``index`` in the middle of the viewport."""
    return -(index * row_height) + ((viewport_rows - 1) // 2) * row_height


def find_target_index(sequence: Sequence[Participant], winner: Participant) -> int:
    """Locate the winner's row to stop on.

    Prefers the first occurrence in the second half of ``sequence`` so the
    reel always travels a long way; falls back to the first occurrence.

    Raises
    ------
    ValueError
        If ``winner`` does not appear in ``sequence``.
    """

    halfway = len(sequence) / 2
    first: Optional[int] = None
    for index, participant in enumerate(sequence):
        if participant.id != winner.id:
            continue
        if index >= halfway:
            return index
        if first is None:
            first = index
    if first is None:
        raise ValueError(f"winner {winner.id!r} is not part of the reel")
    return first


def build_reel_plan(
    available: Sequence[Participant],
    winner: Participant,
    *,
    repetitions: int = DEFAULT_REPETITIONS,
    row_height: float = DEFAULT_ROW_HEIGHT,
    viewport_rows: int = DEFAULT_VIEWPORT_ROWS,
    duration: float = DEFAULT_SPIN_DURATION,
    rng: Optional[random.Random] = None,
) -> ReelPlan:
    """Shuffle ``available`` once, repeat it and aim the reel at ``winner``.

    Parameters
    ----------
    available : Sequence[Participant]
        Eligible participants at draw time. Must not be empty.
    winner : Participant
        Participant already chosen by the selector. Must be in ``available``.
    repetitions : int, default: 10
        How many copies of the shuffled base order make up the reel.
    row_height : float, default: 80.0
        Height of one row in renderer units.
    viewport_rows : int, default: 3
        Visible rows; must be odd so there is a single centre row.
    duration : float, default: 8.0
        Spin length in seconds, carried on the plan for renderers.
    rng : Optional[random.Random], default: None
        Shuffle source. A :class:`secrets.SystemRandom` is used when omitted;
        pass a seeded generator to replay a plan.

    Returns
    -------
    ReelPlan
        Sequence of ``repetitions * len(available)`` tokens and its target.

    Raises
    ------
    ValueError
        On an empty pool, a winner outside the pool or invalid geometry.
    """

    if not available:
        raise ValueError("cannot build a reel for an empty pool")
    if repetitions < 1:
        raise ValueError("repetitions must be at least 1")
    if row_height <= 0:
        raise ValueError("row_height must be positive")
    if viewport_rows < 1 or viewport_rows % 2 == 0:
        raise ValueError("viewport_rows must be a positive odd number")

    base = list(available)
    (rng or secrets.SystemRandom()).shuffle(base)
    sequence = tuple(base * repetitions)

    target_index = find_target_index(sequence, winner)
    return ReelPlan(
        sequence=sequence,
        target_index=target_index,
        target_offset=centred_offset(target_index, row_height, viewport_rows),
        row_height=row_height,
        viewport_rows=viewport_rows,
        duration=duration,
    )


__all__ = [
    "EASE_OUT_CURVE",
    "ReelPlan",
    "build_reel_plan",
    "centred_offset",
    "ease_out",
    "find_target_index",
]
