from __future__ import annotations

import random
import threading
import unittest

from rafflereel.draw import Participant, ParticipantPool


def make_participants(*ids: str) -> list[Participant]:
    return [Participant(id=pid, first_name=f"First{pid}", last_name=f"Last{pid}") for pid in ids]


class ParticipantPoolTests(unittest.TestCase):
    def assert_invariants(self, pool: ParticipantPool) -> None:
        available_ids = [p.id for p in pool.available]
        all_ids = {p.id for p in pool.all}
        self.assertEqual(len(available_ids), len(set(available_ids)))
        self.assertTrue(set(available_ids) <= all_ids)
        self.assertEqual(len(all_ids), len(pool.all))

    def test_merge_admits_into_both_sets(self) -> None:
        pool = ParticipantPool()
        admitted = pool.merge(make_participants("p1", "p2"))
        self.assertEqual(admitted, 2)
        self.assertEqual(len(pool.all), 2)
        self.assertEqual(len(pool.available), 2)

    def test_repeated_merge_admits_nobody(self) -> None:
        pool = ParticipantPool()
        pool.merge(make_participants("p1", "p2"))
        self.assertEqual(pool.merge(make_participants("p1", "p2")), 0)
        self.assertEqual(len(pool.all), 2)
        self.assertEqual(len(pool.available), 2)

    def test_duplicates_within_a_batch_collapse(self) -> None:
        pool = ParticipantPool()
        self.assertEqual(pool.merge(make_participants("p1", "p1", "p2")), 2)
        self.assertEqual([p.id for p in pool.all], ["p1", "p2"])

    def test_merge_preserves_admission_order(self) -> None:
        pool = ParticipantPool(make_participants("p3", "p1"))
        pool.merge(make_participants("p2", "p1"))
        self.assertEqual([p.id for p in pool.all], ["p3", "p1", "p2"])
        self.assertEqual([p.id for p in pool.available], ["p3", "p1", "p2"])

    def test_newcomer_after_draws_is_eligible(self) -> None:
        pool = ParticipantPool(make_participants("p1", "p2"))
        pool.remove_from_available("p1")
        pool.merge(make_participants("p1", "p3"))
        self.assertEqual([p.id for p in pool.available], ["p2", "p3"])

    def test_match_display_name_rejects_same_label(self) -> None:
        pool = ParticipantPool()
        pool.merge([Participant(id="csv-1", first_name="Ada", last_name="Lovelace")])
        other = Participant(id="csv-9", first_name="ada", last_name="lovelace")
        self.assertEqual(pool.merge([other]), 1)
        again = Participant(id="csv-10", first_name="Ada", last_name="Lamarr")
        self.assertEqual(pool.merge([again], match_display_name=True), 0)
        self.assertNotIn("csv-10", pool)

    def test_remove_is_idempotent(self) -> None:
        pool = ParticipantPool(make_participants("p1", "p2", "p3"))
        self.assertTrue(pool.remove_from_available("p2"))
        snapshot = pool.available
        self.assertFalse(pool.remove_from_available("p2"))
        self.assertEqual(pool.available, snapshot)
        self.assertEqual([p.id for p in pool.available], ["p1", "p3"])
        self.assertEqual(len(pool.all), 3)

    def test_remove_unknown_id_is_noop(self) -> None:
        pool = ParticipantPool(make_participants("p1"))
        self.assertFalse(pool.remove_from_available("nobody"))
        self.assertEqual(len(pool.available), 1)

    def test_reset_restores_registry(self) -> None:
        pool = ParticipantPool(make_participants("p1", "p2", "p3"))
        for pid in ("p1", "p2", "p3"):
            pool.remove_from_available(pid)
        self.assertEqual(pool.available, ())
        pool.reset_available()
        self.assertEqual(pool.available, pool.all)

    def test_pinned_participant_cannot_be_removed(self) -> None:
        pool = ParticipantPool(make_participants("p1", "p2"))
        pool.pin("p1")
        self.assertFalse(pool.remove_from_available("p1"))
        self.assertTrue(pool.is_available("p1"))
        pool.release("p1")
        self.assertTrue(pool.remove_from_available("p1"))

    def test_commit_winner_removes_and_unpins(self) -> None:
        pool = ParticipantPool(make_participants("p1", "p2"))
        pool.pin("p2")
        self.assertFalse(pool.commit_winner("p2"))
        self.assertEqual([p.id for p in pool.available], ["p1"])
        pool.reset_available()
        self.assertTrue(pool.remove_from_available("p2"))

    def test_commit_last_winner_resets_pool(self) -> None:
        pool = ParticipantPool(make_participants("p1", "p2"))
        pool.remove_from_available("p1")
        self.assertTrue(pool.commit_winner("p2"))
        self.assertEqual(pool.available, pool.all)

    def test_refill_only_when_exhausted(self) -> None:
        empty = ParticipantPool()
        self.assertFalse(empty.refill_if_exhausted())
        pool = ParticipantPool(make_participants("p1"))
        self.assertFalse(pool.refill_if_exhausted())
        pool.remove_from_available("p1")
        self.assertTrue(pool.refill_if_exhausted())
        self.assertEqual([p.id for p in pool.available], ["p1"])

    def test_snapshots_are_immutable(self) -> None:
        pool = ParticipantPool(make_participants("p1"))
        snapshot = pool.available
        pool.merge(make_participants("p2"))
        self.assertEqual(len(snapshot), 1)
        self.assertIsInstance(pool.all, tuple)

    def test_invariants_hold_under_random_operations(self) -> None:
        rng = random.Random(1234)
        pool = ParticipantPool()
        ids = [f"p{i}" for i in range(12)]
        for _ in range(500):
            op = rng.choice(["merge", "remove", "reset", "commit"])
            if op == "merge":
                pool.merge(make_participants(*rng.sample(ids, rng.randint(1, 4))))
            elif op == "remove":
                pool.remove_from_available(rng.choice(ids))
            elif op == "commit":
                pool.commit_winner(rng.choice(ids))
            else:
                pool.reset_available()
            self.assert_invariants(pool)

    def test_concurrent_merges_admit_each_id_once(self) -> None:
        pool = ParticipantPool()
        batches = [make_participants(*(f"p{i}" for i in range(start, start + 50))) for start in (0, 25, 50, 75)]
        threads = [threading.Thread(target=pool.merge, args=(batch,)) for batch in batches]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        self.assertEqual(len(pool.all), 125)
        self.assert_invariants(pool)


if __name__ == "__main__":
    unittest.main()
