"""State machine that runs one draw at a time: idle, spinning, ended."""

from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum
import logging
import random
import threading
from typing import Callable, Iterable, NoReturn, Optional, Protocol, Type
import uuid

from ..config import RaffleSettings
from ..errors import DrawInProgressError, DrawRejectedError, EmptyPoolError
from ..notifications import (
    LoggingSink,
    Notice,
    NotificationSink,
    draw_in_progress,
    empty_pool,
    no_new_participants,
    participants_added,
    round_complete,
)
from .participant import Participant
from .pool import ParticipantPool
from .reel import ReelPlan, build_reel_plan
from .selector import secure_pick

logger = logging.getLogger(__name__)


class DrawState(str, Enum):
    IDLE = "idle"
    SPINNING = "spinning"
    ENDED = "ended"


@dataclass(frozen=True)
class Spin:
    """A draw in flight.

    Attributes
    ----------
    draw_id : str
        Identifies this draw; completion signals carrying another id are ignored.
    winner : Participant
        Participant the reel will stop on.
    plan : ReelPlan
        Snapshot handed to the renderer.
    finished : Future
        Resolved with ``winner`` when the animation completes, cancelled if
        the session is torn down first.
    """

    draw_id: str
    winner: Participant
    plan: ReelPlan
    finished: "Future[Participant]" = field(default_factory=Future, compare=False, repr=False)


class Renderer(Protocol):
    def render(self, plan: ReelPlan, on_complete: Callable[[], None]) -> None:
        """Animate ``plan`` and call ``on_complete`` once the reel is at rest."""


class DrawStateMachine:
    """Orchestrates the selector, the pool and the reel builder.

    ``Idle --start_draw--> Spinning --animation_complete--> Ended
    --next_round--> Idle``. Only one draw can be in flight; the transition
    guards reject overlapping requests instead of queueing them.
    """

    def __init__(
        self,
        pool: ParticipantPool,
        *,
        settings: Optional[RaffleSettings] = None,
        notify: Optional[NotificationSink] = None,
        renderer: Optional[Renderer] = None,
        picker: Callable[[int], int] = secure_pick,
        rng: Optional[random.Random] = None,
    ) -> None:
        """Create a state machine bound to ``pool``.

        Parameters
        ----------
        pool : ParticipantPool
            Session-wide registry and eligible set.
        settings : Optional[RaffleSettings], default: None
            Reel geometry and timing. Defaults are used when omitted.
        notify : Optional[NotificationSink], default: None
            Receives human-readable notices. Falls back to :class:`LoggingSink`.
        renderer : Optional[Renderer], default: None
            Animates each plan and reports completion. Without one, callers
            signal :meth:`animation_complete` themselves.
        picker : Callable[[int], int], default: secure_pick
            Index selector used to choose the winner.
        rng : Optional[random.Random], default: None
            Shuffle source for the reel, mostly for replaying plans in tests.
        """

        self._pool = pool
        self._settings = settings or RaffleSettings()
        self._notify = notify or LoggingSink()
        self._renderer = renderer
        self._picker = picker
        self._rng = rng
        self._lock = threading.Lock()
        self._state = DrawState.IDLE
        self._spin: Optional[Spin] = None

    @property
    def pool(self) -> ParticipantPool:
        return self._pool

    @property
    def state(self) -> DrawState:
        return self._state

    @property
    def spin(self) -> Optional[Spin]:
        return self._spin

    @property
    def winner(self) -> Optional[Participant]:
        spin = self._spin
        return spin.winner if spin is not None else None

    def notify(self, notice: Notice) -> None:
        """Forward ``notice`` to the session's notification sink."""
        self._notify(notice)

    def merge(
        self,
        participants: Iterable[Participant],
        *,
        match_display_name: bool = False,
    ) -> int:
        """Admit a registration batch and tell the operator what happened.

        Safe while a draw is spinning: the in-flight plan is a snapshot and
        newcomers only ever join the pool.
        """

        admitted = self._pool.merge(participants, match_display_name=match_display_name)
        if admitted:
            self._notify(participants_added(admitted))
        else:
            self._notify(no_new_participants())
        return admitted

    def start_draw(self) -> Spin:
        """Pick a winner and build the reel plan for it.

        If everyone has already been drawn, the pool is refilled first and a
        round-complete notice is emitted.

        Returns
        -------
        Spin
            The draw now in flight.

        Raises
        ------
        DrawInProgressError
            If a draw is spinning or waiting for the next round.
        EmptyPoolError
            If no participant is registered.
        """

        rejection: Optional[tuple[Type[DrawRejectedError], Notice]] = None
        refilled = False
        with self._lock:
            if self._state is not DrawState.IDLE:
                rejection = (DrawInProgressError, draw_in_progress())
            else:
                refilled = self._pool.refill_if_exhausted()
                available = self._pool.available
                if not available:
                    rejection = (EmptyPoolError, empty_pool())
                else:
                    winner = available[self._picker(len(available))]
                    plan = build_reel_plan(
                        available,
                        winner,
                        repetitions=self._settings.repetitions,
                        row_height=self._settings.row_height,
                        viewport_rows=self._settings.viewport_rows,
                        duration=self._settings.spin_duration,
                        rng=self._rng,
                    )
                    self._pool.pin(winner.id)
                    spin = Spin(draw_id=uuid.uuid4().hex, winner=winner, plan=plan)
                    self._spin = spin
                    self._state = DrawState.SPINNING
        if rejection is not None:
            self._reject(*rejection)

        logger.debug(
            f"Draw {spin.draw_id} started: {len(available)} eligible, "
            f"stopping at row {plan.target_index} of {len(plan.sequence)}"
        )
        if refilled:
            self._notify(round_complete(len(self._pool)))
        if self._renderer is not None:
            try:
                self._renderer.render(plan, lambda: self.animation_complete(spin.draw_id))
            except BaseException:
                logger.exception(f"Renderer failed during draw {spin.draw_id}")
                self.abort()
                raise
        return spin

    def animation_complete(self, draw_id: Optional[str] = None) -> bool:
        """Handle the renderer's completion signal.

        Signals that arrive while nothing is spinning, or that name a draw
        other than the current one, are ignored.

        Returns
        -------
        bool
            ``True`` if the signal moved the machine to ``ENDED``.
        """

        with self._lock:
            spin = self._spin
            if self._state is not DrawState.SPINNING or spin is None:
                logger.debug(f"Ignoring completion signal while {self._state.value}")
                return False
            if draw_id is not None and draw_id != spin.draw_id:
                logger.debug(f"Ignoring completion signal for stale draw {draw_id}")
                return False
            self._state = DrawState.ENDED

        logger.info(f"Draw {spin.draw_id} landed on {spin.winner.display_name}")
        spin.finished.set_result(spin.winner)
        return True

    def next_round(self) -> Optional[Participant]:
        """Retire the current winner and return to ``IDLE``.

        Returns
        -------
        Optional[Participant]
            The committed winner, or ``None`` if there was no round to close.

        Raises
        ------
        DrawInProgressError
            If the reel is still spinning.
        """

        refilled = False
        with self._lock:
            spin = self._spin
            if self._state is DrawState.IDLE or spin is None:
                return None
            spinning = self._state is DrawState.SPINNING
            if not spinning:
                refilled = self._pool.commit_winner(spin.winner.id)
                self._spin = None
                self._state = DrawState.IDLE
        if spinning:
            self._reject(DrawInProgressError, draw_in_progress())

        if refilled:
            self._notify(round_complete(len(self._pool)))
        return spin.winner

    def reset_available(self) -> None:
        """Make every registered participant eligible again."""
        self._pool.reset_available()

    def abort(self) -> None:
        """Drop any draw in flight without touching the pool."""
        with self._lock:
            spin = self._spin
            self._spin = None
            self._state = DrawState.IDLE
            if spin is not None:
                self._pool.release(spin.winner.id)
        if spin is not None:
            spin.finished.cancel()
            logger.info(f"Draw {spin.draw_id} aborted")

    def _reject(self, error: Type[DrawRejectedError], notice: Notice) -> NoReturn:
        logger.warning(f"Draw request rejected: {notice.title}")
        self._notify(notice)
        raise error(notice)


__all__ = ["DrawState", "DrawStateMachine", "Renderer", "Spin"]
