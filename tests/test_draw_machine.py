from __future__ import annotations

from typing import Callable
import unittest

from rafflereel.config import RaffleSettings
from rafflereel.draw import (
    DrawState,
    DrawStateMachine,
    Participant,
    ParticipantPool,
    ReelPlan,
)
from rafflereel.errors import DrawInProgressError, EmptyPoolError
from rafflereel.notifications import CollectingSink, Notice, NoticeKind


def make_participants(*ids: str) -> list[Participant]:
    return [Participant(id=pid, first_name=f"First{pid}", last_name=f"Last{pid}") for pid in ids]


class InstantRenderer:
    """Finishes every animation as soon as it is handed a plan."""

    def __init__(self) -> None:
        self.plans: list[ReelPlan] = []

    def render(self, plan: ReelPlan, on_complete: Callable[[], None]) -> None:
        self.plans.append(plan)
        on_complete()


class FlakyRenderer(InstantRenderer):
    """Raises for the first ``failures`` plans, then finishes instantly."""

    def __init__(self, failures: int) -> None:
        super().__init__()
        self.failures = failures

    def render(self, plan: ReelPlan, on_complete: Callable[[], None]) -> None:
        if self.failures:
            self.failures -= 1
            raise RuntimeError("display lost")
        super().render(plan, on_complete)


class DrawStateMachineTests(unittest.TestCase):
    def setUp(self) -> None:
        self.sink = CollectingSink()
        self.pool = ParticipantPool(make_participants("p1", "p2", "p3"))

    def make_machine(self, pool=None, **kwargs) -> DrawStateMachine:
        return DrawStateMachine(
            self.pool if pool is None else pool, notify=self.sink, **kwargs
        )

    def test_empty_registry_rejects_draw(self) -> None:
        machine = self.make_machine(ParticipantPool())
        with self.assertRaises(EmptyPoolError) as ctx:
            machine.start_draw()
        self.assertEqual(ctx.exception.notice.kind, NoticeKind.EMPTY_POOL)
        self.assertIs(machine.state, DrawState.IDLE)
        self.assertIsNone(machine.winner)
        self.assertEqual(self.sink.kinds(), [NoticeKind.EMPTY_POOL])

    def test_merge_reports_admissions(self) -> None:
        machine = self.make_machine(ParticipantPool())
        self.assertEqual(machine.merge(make_participants("p1", "p2")), 2)
        self.assertEqual(len(machine.pool.all), 2)
        self.assertEqual(len(machine.pool.available), 2)
        self.assertEqual(machine.merge(make_participants("p1", "p2")), 0)
        self.assertEqual(
            self.sink.kinds(),
            [NoticeKind.PARTICIPANTS_ADDED, NoticeKind.NO_NEW_PARTICIPANTS],
        )

    def test_start_draw_builds_plan_for_winner(self) -> None:
        machine = self.make_machine()
        spin = machine.start_draw()
        self.assertIs(machine.state, DrawState.SPINNING)
        self.assertIn(spin.winner, self.pool.available)
        self.assertEqual(len(spin.plan.sequence), 30)
        self.assertEqual(spin.plan.sequence[spin.plan.target_index], spin.winner)
        self.assertGreaterEqual(spin.plan.target_index, 15)
        self.assertFalse(spin.finished.done())

    def test_uses_picker_index(self) -> None:
        machine = self.make_machine(picker=lambda n: n - 1)
        self.assertEqual(machine.start_draw().winner.id, "p3")

    def test_full_round_removes_winner_preserving_order(self) -> None:
        machine = self.make_machine(picker=lambda n: 1)
        spin = machine.start_draw()
        self.assertEqual(spin.winner.id, "p2")
        self.assertTrue(machine.animation_complete(spin.draw_id))
        self.assertIs(machine.state, DrawState.ENDED)
        self.assertEqual(spin.finished.result(timeout=0), spin.winner)

        committed = machine.next_round()
        self.assertEqual(committed, spin.winner)
        self.assertEqual([p.id for p in self.pool.available], ["p1", "p3"])
        self.assertIs(machine.state, DrawState.IDLE)
        self.assertIsNone(machine.winner)
        self.assertIsNone(machine.spin)

    def test_last_participant_round_resets_pool(self) -> None:
        pool = ParticipantPool(make_participants("p1"))
        machine = self.make_machine(pool)
        spin = machine.start_draw()
        self.assertEqual(len(pool.all), len(pool.available))
        self.assertEqual(len(spin.plan.sequence), 10)
        machine.animation_complete()
        machine.next_round()
        self.assertEqual(pool.available, pool.all)
        self.assertIn(NoticeKind.ROUND_COMPLETE, self.sink.kinds())

    def test_super_round_draws_everyone_once(self) -> None:
        machine = self.make_machine()
        winners = []
        for _ in range(3):
            spin = machine.start_draw()
            machine.animation_complete(spin.draw_id)
            winners.append(machine.next_round().id)
        self.assertEqual(sorted(winners), ["p1", "p2", "p3"])
        self.assertEqual(self.pool.available, self.pool.all)
        self.assertEqual(self.sink.kinds().count(NoticeKind.ROUND_COMPLETE), 1)

    def test_draw_refills_pool_emptied_elsewhere(self) -> None:
        machine = self.make_machine()
        self.pool.reset_available()
        for participant in self.pool.all:
            self.pool.remove_from_available(participant.id)
        self.assertEqual(self.pool.available, ())

        spin = machine.start_draw()
        self.assertEqual(self.pool.available, self.pool.all)
        self.assertEqual(len(spin.plan.sequence), 30)
        self.assertEqual(self.sink.kinds(), [NoticeKind.ROUND_COMPLETE])

    def test_overlapping_draws_are_rejected(self) -> None:
        machine = self.make_machine()
        spin = machine.start_draw()
        with self.assertRaises(DrawInProgressError):
            machine.start_draw()
        self.assertIs(machine.spin, spin)

        machine.animation_complete()
        with self.assertRaises(DrawInProgressError):
            machine.start_draw()
        self.assertIs(machine.state, DrawState.ENDED)
        self.assertEqual(
            self.sink.kinds(),
            [NoticeKind.DRAW_IN_PROGRESS, NoticeKind.DRAW_IN_PROGRESS],
        )

    def test_next_round_while_spinning_is_rejected(self) -> None:
        machine = self.make_machine()
        spin = machine.start_draw()
        with self.assertRaises(DrawInProgressError):
            machine.next_round()
        self.assertIs(machine.state, DrawState.SPINNING)
        self.assertTrue(self.pool.is_available(spin.winner.id))

    def test_next_round_while_idle_is_noop(self) -> None:
        machine = self.make_machine()
        self.assertIsNone(machine.next_round())
        self.assertEqual(len(self.pool.available), 3)

    def test_stray_completion_signals_are_ignored(self) -> None:
        machine = self.make_machine()
        self.assertFalse(machine.animation_complete())
        self.assertIs(machine.state, DrawState.IDLE)

        spin = machine.start_draw()
        self.assertFalse(machine.animation_complete("some-other-draw"))
        self.assertIs(machine.state, DrawState.SPINNING)
        self.assertTrue(machine.animation_complete(spin.draw_id))
        self.assertFalse(machine.animation_complete(spin.draw_id))
        self.assertIs(machine.state, DrawState.ENDED)

    def test_merge_during_spin_leaves_plan_untouched(self) -> None:
        machine = self.make_machine()
        spin = machine.start_draw()
        sequence = spin.plan.sequence
        machine.merge(make_participants("p4"))
        self.assertEqual(spin.plan.sequence, sequence)
        self.assertNotIn("p4", {p.id for p in spin.plan.sequence})
        self.assertTrue(self.pool.is_available("p4"))

        machine.animation_complete()
        machine.next_round()
        self.assertEqual(len(self.pool.available), 3)
        self.assertTrue(self.pool.is_available("p4"))
        self.assertFalse(self.pool.is_available(spin.winner.id))

    def test_winner_cannot_be_removed_while_in_flight(self) -> None:
        machine = self.make_machine()
        spin = machine.start_draw()
        self.assertFalse(self.pool.remove_from_available(spin.winner.id))
        self.assertTrue(self.pool.is_available(spin.winner.id))

    def test_abort_discards_draw_without_touching_pool(self) -> None:
        machine = self.make_machine()
        spin = machine.start_draw()
        machine.abort()
        self.assertIs(machine.state, DrawState.IDLE)
        self.assertTrue(spin.finished.cancelled())
        self.assertEqual(len(self.pool.available), 3)
        self.assertFalse(machine.animation_complete(spin.draw_id))
        # Pin released: the former winner can be removed again.
        self.assertTrue(self.pool.remove_from_available(spin.winner.id))

    def test_renderer_drives_completion(self) -> None:
        renderer = InstantRenderer()
        machine = self.make_machine(renderer=renderer)
        spin = machine.start_draw()
        self.assertEqual(renderer.plans, [spin.plan])
        self.assertIs(machine.state, DrawState.ENDED)
        self.assertEqual(spin.finished.result(timeout=0), spin.winner)

    def test_renderer_failure_returns_machine_to_idle(self) -> None:
        renderer = FlakyRenderer(failures=1)
        machine = self.make_machine(renderer=renderer, picker=lambda n: 0)
        with self.assertRaises(RuntimeError):
            machine.start_draw()
        self.assertIs(machine.state, DrawState.IDLE)
        self.assertIsNone(machine.spin)
        self.assertEqual(len(self.pool.available), 3)
        # Pin released with the failed draw.
        self.assertTrue(self.pool.remove_from_available("p1"))

        spin = machine.start_draw()
        self.assertIs(machine.state, DrawState.ENDED)
        self.assertEqual(spin.finished.result(timeout=0), spin.winner)

    def test_sink_may_call_back_into_machine(self) -> None:
        committed = []

        def advance_on_rejection(notice: Notice) -> None:
            self.sink(notice)
            if notice.kind is NoticeKind.DRAW_IN_PROGRESS:
                committed.append(machine.next_round())

        machine = DrawStateMachine(self.pool, notify=advance_on_rejection, picker=lambda n: 0)
        spin = machine.start_draw()
        machine.animation_complete(spin.draw_id)
        with self.assertRaises(DrawInProgressError):
            machine.start_draw()
        self.assertEqual(committed, [spin.winner])
        self.assertIs(machine.state, DrawState.IDLE)
        self.assertFalse(self.pool.is_available("p1"))

    def test_settings_shape_the_plan(self) -> None:
        settings = RaffleSettings(repetitions=4, viewport_rows=5, row_height=50, spin_duration=3)
        machine = self.make_machine(settings=settings)
        plan = machine.start_draw().plan
        self.assertEqual(len(plan.sequence), 12)
        self.assertEqual(plan.viewport_rows, 5)
        self.assertEqual(plan.duration, 3)
        self.assertEqual(plan.target_offset, -(plan.target_index * 50) + 100)

    def test_manual_reset_between_rounds(self) -> None:
        machine = self.make_machine(picker=lambda n: 0)
        spin = machine.start_draw()
        machine.animation_complete()
        machine.next_round()
        self.assertFalse(self.pool.is_available(spin.winner.id))
        machine.reset_available()
        self.assertEqual(self.pool.available, self.pool.all)


if __name__ == "__main__":
    unittest.main()
