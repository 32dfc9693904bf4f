"""
Unit tests for capacity_accounting module.
"""
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

import unittest
from volunteer_normalizer import normalize_operation, normalize_volunteer
from operation_matching import match_operation
from capacity_accounting import (
    account_all,
    account_for,
    capacity_units,
    over_assigned,
)


def vol(vid, status="assigned", vtype="individual", members=1, **extra):
    raw = {"id": vid, "fullName": f"Volunteer {vid}", "volunteerType": vtype,
           "members": members, "assignmentStatus": status}
    raw.update(extra)
    return normalize_volunteer(raw)


class TestCapacityUnits(unittest.TestCase):
    def test_individual_is_one(self):
        self.assertEqual(capacity_units(vol("a")), 1)

    def test_individual_ignores_members(self):
        # Invariant violation degrades to one unit
        self.assertEqual(capacity_units(vol("a", members=4)), 1)

    def test_team_uses_members(self):
        self.assertEqual(capacity_units(vol("t", vtype="team", members=3)), 3)
        self.assertEqual(capacity_units(vol("t", vtype="team", members=12)), 12)

    def test_team_with_bad_members(self):
        self.assertEqual(capacity_units({"volunteer_type": "team", "members": None}), 1)
        self.assertEqual(capacity_units({"volunteer_type": "team"}), 1)


class TestAccountFor(unittest.TestCase):
    def setUp(self):
        self.op1 = normalize_operation({"id": "op1", "name": "Flood Relief A", "volunteerCountNeeded": 5})
        self.op2 = normalize_operation({"id": "op2", "name": "Landslide Kegalle", "volunteerCountNeeded": 2})
        self.operations = [self.op1, self.op2]

    def test_two_individuals_and_a_team_fill_exactly(self):
        volunteers = [
            vol("a", operationId="op1"),
            vol("b", operationId="op1"),
            vol("t", vtype="team", members=3, operationId="op1"),
        ]
        snapshot = account_for(self.op1, volunteers, self.operations)
        self.assertEqual(snapshot["needed"], 5)
        self.assertEqual(snapshot["filled"], 5)
        self.assertEqual(snapshot["remaining"], 0)
        self.assertEqual(snapshot["operation_id"], "op1")

    def test_name_fallback_counts(self):
        volunteers = [vol("legacy", assignedTo="Flood Relief A")]
        self.assertEqual(account_for(self.op1, volunteers, self.operations)["filled"], 1)

    def test_unassigned_never_count(self):
        volunteers = [vol("a", status="not_assigned", operationId="op1")]
        self.assertEqual(account_for(self.op1, volunteers, self.operations)["filled"], 0)

    def test_unmatched_assigned_excluded(self):
        volunteers = [vol("a", operationId="nope", assignedTo="Nowhere")]
        snapshots, _ = account_all(self.operations, volunteers)
        self.assertEqual([s["filled"] for s in snapshots], [0, 0])

    def test_remaining_not_clamped(self):
        volunteers = [vol("t", vtype="team", members=4, operationId="op2")]
        snapshot = account_for(self.op2, volunteers, self.operations)
        self.assertEqual(snapshot["remaining"], -2)

    def test_missing_need_is_zero(self):
        op = normalize_operation({"id": "op3", "name": "No target"})
        snapshot = account_for(op, [vol("a", operationId="op3")], [op])
        self.assertEqual(snapshot["needed"], 0)
        self.assertEqual(snapshot["remaining"], -1)

    def test_id_match_elsewhere_beats_name(self):
        # Linked to op2 by id, but the free-text target names op1
        volunteers = [vol("a", operationId="op2", assignedTo="Flood Relief A")]
        self.assertEqual(account_for(self.op1, volunteers, self.operations)["filled"], 0)
        self.assertEqual(account_for(self.op2, volunteers, self.operations)["filled"], 1)
        snapshots, _ = account_all(self.operations, volunteers)
        self.assertEqual([s["filled"] for s in snapshots], [0, 1])

    def test_operations_required(self):
        with self.assertRaises(TypeError):
            account_for(self.op1, [vol("a", operationId="op1")])


class TestAccountAll(unittest.TestCase):
    def setUp(self):
        self.operations = [
            normalize_operation({"id": "op1", "name": "Flood Relief A", "volunteerCountNeeded": 5}),
            normalize_operation({"id": "op2", "name": "Landslide Kegalle", "volunteerCountNeeded": 2}),
            normalize_operation({"id": "op3", "name": "Kegalle", "volunteerCountNeeded": 1}),
        ]
        self.volunteers = [
            vol("a", operationId="op1"),
            vol("b", assignedTo="landslide kegalle"),
            vol("t", vtype="team", members=3, operationId="op2"),
            vol("c", status="not_assigned", operationId="op1"),
            vol("d", operationId="stale"),
        ]

    def test_filled_matches_definition(self):
        snapshots, _ = account_all(self.operations, self.volunteers)
        for op, snapshot in zip(self.operations, snapshots):
            expected = sum(
                capacity_units(v) for v in self.volunteers
                if v["assignment_status"] == "assigned" and match_operation(v, self.operations) is op
            )
            self.assertEqual(snapshot["filled"], expected)

    def test_agrees_with_account_for(self):
        snapshots, _ = account_all(self.operations, self.volunteers)
        for op, snapshot in zip(self.operations, snapshots):
            self.assertEqual(account_for(op, self.volunteers, self.operations), snapshot)

    def test_deterministic(self):
        first = account_all(self.operations, self.volunteers)[0]
        second = account_all(self.operations, self.volunteers)[0]
        self.assertEqual(first, second)

    def test_ambiguity_warning_collected(self):
        ops = self.operations + [normalize_operation({"id": "op4", "name": "Flood Relief A"})]
        volunteers = [vol("x", assignedTo="Flood Relief A")]
        snapshots, warnings = account_all(ops, volunteers)
        self.assertEqual(len(warnings), 1)
        self.assertEqual(snapshots[0]["filled"], 1)
        self.assertEqual(snapshots[3]["filled"], 0)

    def test_over_assigned(self):
        volunteers = self.volunteers + [vol("e", operationId="op2")]
        snapshots, _ = account_all(self.operations, volunteers)
        flagged = over_assigned(snapshots)
        self.assertEqual([s["operation_id"] for s in flagged], ["op2"])
        self.assertEqual(flagged[0]["remaining"], -3)

    def test_empty_inputs(self):
        self.assertEqual(account_all([], []), ([], []))


if __name__ == "__main__":
    unittest.main()
