"""
Unit tests for volunteer_normalizer module.
"""
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

import unittest
from datetime import date, datetime
from volunteer_normalizer import (
    normalize_operation,
    normalize_volunteer,
    coerce_available_time,
    to_string_set,
    clean_text,
)


class TestNormalizeOperation(unittest.TestCase):
    def test_name_aliases(self):
        self.assertEqual(normalize_operation({"operationName": "A"})["name"], "A")
        self.assertEqual(normalize_operation({"name": "B"})["name"], "B")
        self.assertEqual(normalize_operation({"title": "C"})["name"], "C")

    def test_alias_precedence(self):
        op = normalize_operation({"operationName": "Primary", "title": "Other"})
        self.assertEqual(op["name"], "Primary")

    def test_id_and_capacity_aliases(self):
        op = normalize_operation({"_id": "op1", "volunteerCount": "5", "status": "Active"})
        self.assertEqual(op["id"], "op1")
        self.assertEqual(op["volunteer_count_needed"], 5)
        self.assertEqual(op["status"], "active")

    def test_missing_fields_default(self):
        op = normalize_operation({})
        self.assertEqual(op["id"], "")
        self.assertEqual(op["name"], "")
        self.assertEqual(op["volunteer_count_needed"], 0)
        self.assertIsNone(op["start_date"])

    def test_invalid_capacity_defaults_to_zero(self):
        self.assertEqual(normalize_operation({"volunteerCountNeeded": "lots"})["volunteer_count_needed"], 0)
        self.assertEqual(normalize_operation({"volunteerCountNeeded": -4})["volunteer_count_needed"], 0)

    def test_numeric_id_becomes_string(self):
        self.assertEqual(normalize_operation({"id": 7.0})["id"], "7")

    def test_non_mapping_raises(self):
        with self.assertRaises(TypeError):
            normalize_operation(None)


class TestNormalizeVolunteer(unittest.TestCase):
    def test_full_record(self):
        v = normalize_volunteer({
            "_id": "v1",
            "fullName": "  Nimal Perera ",
            "phone": "0771234567",
            "volunteerType": "Team",
            "members": "3",
            "roles": ["Medic", " Driver", ""],
            "languages": "Sinhala",
            "date": "2024-06-01",
            "availableTime": "both",
            "operationId": "op1",
            "operationName": "Flood Relief A",
            "assigned": True,
            "assignedDate": "2024-06-02T10:00:00",
            "assignedBy": "Flood Relief A",
        })
        self.assertEqual(v["id"], "v1")
        self.assertEqual(v["full_name"], "Nimal Perera")
        self.assertEqual(v["volunteer_type"], "team")
        self.assertEqual(v["members"], 3)
        self.assertEqual(v["roles"], frozenset({"Medic", "Driver"}))
        self.assertEqual(v["languages"], frozenset({"Sinhala"}))
        self.assertEqual(v["date"], date(2024, 6, 1))
        self.assertEqual(v["available_time"], frozenset({"daytime", "night"}))
        self.assertEqual(v["assignment_status"], "assigned")
        self.assertEqual(v["assigned_date"], datetime(2024, 6, 2, 10, 0))
        self.assertEqual(v["assigned_to"], "Flood Relief A")

    def test_missing_fields_default(self):
        v = normalize_volunteer({})
        self.assertEqual(v["members"], 1)
        self.assertEqual(v["volunteer_type"], "individual")
        self.assertEqual(v["roles"], frozenset())
        self.assertEqual(v["assignment_status"], "not_assigned")
        self.assertIsNone(v["date"])
        self.assertIsNone(v["assigned_date"])
        self.assertEqual(v["operation_id"], "")

    def test_bad_members_default_to_one(self):
        self.assertEqual(normalize_volunteer({"members": "abc"})["members"], 1)
        self.assertEqual(normalize_volunteer({"members": 0})["members"], 1)

    def test_assignment_status_wins_over_flag(self):
        v = normalize_volunteer({"assignmentStatus": "not_assigned", "assigned": True})
        self.assertEqual(v["assignment_status"], "not_assigned")

    def test_assigned_flag_strings(self):
        for value in ["true", "1", "YES", "assigned"]:
            self.assertEqual(normalize_volunteer({"assigned": value})["assignment_status"], "assigned")
        self.assertEqual(normalize_volunteer({"assigned": "no"})["assignment_status"], "not_assigned")

    def test_assigned_to_preferred_over_assigned_by(self):
        v = normalize_volunteer({"assignedTo": "A", "assignedBy": "B"})
        self.assertEqual(v["assigned_to"], "A")

    def test_unparseable_date(self):
        self.assertIsNone(normalize_volunteer({"date": "not a date"})["date"])

    def test_snake_case_keys(self):
        v = normalize_volunteer({"full_name": "Kamal", "assignment_status": "assigned", "operation_id": "op2"})
        self.assertEqual(v["full_name"], "Kamal")
        self.assertEqual(v["assignment_status"], "assigned")
        self.assertEqual(v["operation_id"], "op2")


class TestHelpers(unittest.TestCase):
    def test_available_time_forms(self):
        self.assertEqual(coerce_available_time("day"), frozenset({"daytime"}))
        self.assertEqual(coerce_available_time("night"), frozenset({"night"}))
        self.assertEqual(coerce_available_time("full"), frozenset({"daytime", "night"}))
        self.assertEqual(coerce_available_time("evening"), frozenset({"night"}))
        self.assertEqual(coerce_available_time(["daytime", "night"]), frozenset({"daytime", "night"}))
        self.assertEqual(coerce_available_time("sometimes"), frozenset())
        self.assertEqual(coerce_available_time(None), frozenset())

    def test_string_set(self):
        self.assertEqual(to_string_set("Medic, Driver"), frozenset({"Medic", "Driver"}))
        self.assertEqual(to_string_set(None), frozenset())
        self.assertEqual(to_string_set(("A", "A", " ")), frozenset({"A"}))

    def test_clean_text(self):
        self.assertEqual(clean_text(None), "")
        self.assertEqual(clean_text(float("nan")), "")
        self.assertEqual(clean_text(12.0), "12")
        self.assertEqual(clean_text("  x "), "x")


if __name__ == "__main__":
    unittest.main()
