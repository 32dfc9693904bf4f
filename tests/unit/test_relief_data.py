"""
Unit tests for relief_data module.
"""
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

import unittest
import tempfile
import shutil
import json
import pandas as pd
from relief_data import archive_existing, load_records, load_snapshot, save_volunteers


class TestLoadRecords(unittest.TestCase):
    def setUp(self):
        self.test_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def test_json_wrapped(self):
        path = self.test_dir / "operations.json"
        path.write_text(json.dumps({"items": [{"_id": "op1", "operationName": "A"}]}), encoding="utf-8")
        self.assertEqual(load_records(path), [{"_id": "op1", "operationName": "A"}])

    def test_json_flattened_list_fields(self):
        path = self.test_dir / "volunteers.json"
        path.write_text(json.dumps([{"id": "v1", "roles": "Driver;Medic", "available_time": "daytime;night"}]),
                        encoding="utf-8")
        record = load_records(path)[0]
        self.assertEqual(record["roles"], ["Driver", "Medic"])
        self.assertEqual(record["available_time"], ["daytime", "night"])

    def test_json_not_a_list(self):
        path = self.test_dir / "operations.json"
        path.write_text(json.dumps({"message": "error"}), encoding="utf-8")
        with self.assertRaises(ValueError):
            load_records(path)

    def test_csv_list_columns(self):
        path = self.test_dir / "volunteers.csv"
        pd.DataFrame({
            "id": ["v1"], "fullName": ["Nimal"], "roles": ["Medic;Driver"],
            "languages": ["Sinhala, Tamil"], "notes": [""],
        }).to_csv(path, index=False)
        record = load_records(path)[0]
        self.assertEqual(record["roles"], ["Medic", "Driver"])
        self.assertEqual(record["languages"], ["Sinhala", "Tamil"])
        self.assertEqual(record["notes"], "")

    def test_unsupported(self):
        with self.assertRaises(ValueError):
            load_records(self.test_dir / "volunteers.txt")


class TestSnapshot(unittest.TestCase):
    def setUp(self):
        self.test_dir = Path(tempfile.mkdtemp())
        self.input_dir = self.test_dir / "input"
        self.input_dir.mkdir()
        pd.DataFrame({
            "_id": ["op1"], "operationName": ["Flood Relief A"], "volunteerCount": [5],
        }).to_csv(self.input_dir / "operations.csv", index=False)
        pd.DataFrame({
            "_id": ["v1", "v2"],
            "fullName": ["Nimal Perera", "Anjali Raj"],
            "volunteerType": ["individual", "team"],
            "members": [1, 3],
            "roles": ["Medic", "Driver;Cooking"],
            "availableTime": ["both", "night"],
            "date": ["2024-06-01", ""],
            "operationId": ["op1", ""],
            "assigned": ["true", "false"],
        }).to_csv(self.input_dir / "volunteers.csv", index=False)

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def test_load_snapshot(self):
        operations, volunteers = load_snapshot(self.input_dir)
        self.assertEqual(operations[0]["id"], "op1")
        self.assertEqual(operations[0]["volunteer_count_needed"], 5)
        self.assertEqual(volunteers[0]["assignment_status"], "assigned")
        self.assertEqual(volunteers[1]["members"], 3)
        self.assertEqual(volunteers[1]["roles"], frozenset({"Driver", "Cooking"}))
        self.assertIsNone(volunteers[1]["date"])

    def test_missing_file(self):
        (self.input_dir / "operations.csv").unlink()
        with self.assertRaises(FileNotFoundError):
            load_snapshot(self.input_dir)

    def test_save_roundtrip(self):
        _, volunteers = load_snapshot(self.input_dir)
        save_volunteers(volunteers, self.input_dir / "volunteers.csv")
        _, reloaded = load_snapshot(self.input_dir)
        self.assertEqual(reloaded, volunteers)

    def test_archive(self):
        archived = archive_existing([self.input_dir / "volunteers.csv", self.input_dir / "absent.csv"],
                                    self.test_dir / "archive")
        self.assertEqual(len(archived), 1)
        self.assertTrue(archived[0].exists())
        self.assertTrue(archived[0].name.startswith("volunteers_"))
        self.assertFalse((self.input_dir / "volunteers.csv").exists())


if __name__ == "__main__":
    unittest.main()
