import unittest
from uuid import uuid4

from pydantic import ValidationError

from schoolhub.schemas.records import merge_grade
from schoolhub.schemas.users import merge_profile, parse_profile


class ProfileMergeTests(unittest.TestCase):
    def setUp(self):
        self.stored = {
            "department_id": str(uuid4()),
            "program_id": str(uuid4()),
            "year": 1,
            "phone": "111",
            "address": "X",
            "enrollment_status": "enrolled",
        }

    def test_changed_key_replaced_and_siblings_kept(self):
        merged = merge_profile("student", self.stored, {"phone": "555"})
        self.assertEqual(merged["phone"], "555")
        self.assertEqual(merged["address"], "X")
        self.assertEqual(merged["department_id"], self.stored["department_id"])
        self.assertEqual(merged["year"], 1)

    def test_stored_profile_is_not_mutated(self):
        merge_profile("student", self.stored, {"year": 3})
        self.assertEqual(self.stored["year"], 1)

    def test_merged_result_is_revalidated(self):
        with self.assertRaises(ValidationError):
            merge_profile("student", self.stored, {"enrollment_status": "expelled"})
        with self.assertRaises(ValidationError):
            merge_profile("student", self.stored, {"unknown_key": 1})

    def test_teacher_profile_defaults(self):
        merged = merge_profile("teacher", None, {"contact_phone": "+1 555"})
        self.assertEqual(merged, {"contact_phone": "+1 555", "status": "active"})

    def test_admin_profile_has_no_fields(self):
        self.assertEqual(merge_profile("admin", None, {}), {})
        with self.assertRaises(ValidationError):
            parse_profile("admin", {"phone": "1"})


class GradeMergeTests(unittest.TestCase):
    def test_grade_keys_are_merged(self):
        merged = merge_grade({"midterm": 60.0, "assignments": [{"name": "HW1", "score": 90, "weight": 10}]}, {"final": 75})
        self.assertEqual(merged["midterm"], 60.0)
        self.assertEqual(merged["final"], 75.0)
        self.assertEqual(merged["assignments"], [{"name": "HW1", "score": 90.0, "weight": 10.0}])

    def test_grade_bounds(self):
        with self.assertRaises(ValidationError):
            merge_grade(None, {"total_score": 101})
        with self.assertRaises(ValidationError):
            merge_grade(None, {"letter_grade": "A+"})
