from tests.base import *  # noqa: F401,F403

from schoolhub.core.errors import DuplicateKey
from schoolhub.services.user_ids import calculate_checksum, generate_user_id, role_prefix, validate_user_id


class ChecksumTests(unittest.TestCase):
    def test_known_checksums(self):
        self.assertEqual(calculate_checksum("S000001"), "9")
        self.assertEqual(calculate_checksum("A000001"), "7")
        self.assertEqual(calculate_checksum("T000001"), "8")
        self.assertEqual(calculate_checksum("S000005"), "0")
        self.assertEqual(calculate_checksum("T000010"), "9")

    def test_checksum_is_deterministic(self):
        self.assertEqual(calculate_checksum("S123456"), calculate_checksum("S123456"))

    def test_single_digit_changes_change_the_checksum(self):
        base = "S123456"
        original = calculate_checksum(base)
        for position in range(1, len(base)):
            for digit in "0123456789":
                if digit == base[position]:
                    continue
                mutated = base[:position] + digit + base[position + 1 :]
                self.assertNotEqual(calculate_checksum(mutated), original, mutated)

    def test_validate_user_id(self):
        self.assertTrue(validate_user_id("S0000019"))
        self.assertTrue(validate_user_id("A0000017"))
        self.assertTrue(validate_user_id("T0000018"))
        self.assertFalse(validate_user_id("S0000018"))
        self.assertFalse(validate_user_id("X0000019"))
        self.assertFalse(validate_user_id("S"))
        self.assertFalse(validate_user_id(""))
        self.assertFalse(validate_user_id(None))
        self.assertFalse(validate_user_id("S00a0019"))

    def test_role_prefix_defaults_to_student(self):
        self.assertEqual(role_prefix("admin"), "A")
        self.assertEqual(role_prefix("teacher"), "T")
        self.assertEqual(role_prefix("student"), "S")
        self.assertEqual(role_prefix("guest"), "S")


class GenerateUserIdTests(SchoolhubDbBase):
    def test_first_id_per_prefix(self):
        with self.SessionLocal() as db:
            self.assertEqual(generate_user_id("student", db), "S0000019")
            self.assertEqual(generate_user_id("admin", db), "A0000017")
            self.assertEqual(generate_user_id("teacher", db), "T0000018")

    def test_next_id_follows_highest_existing(self):
        self._user("s1", user_id="S0000019")
        self._user("s2", user_id="S0000027")
        self._user("t1", role="teacher", user_id="T0000018")
        # Same prefix but not prefix + 7 digits: ignored.
        self._user("odd", user_id="SX000001")

        with self.SessionLocal() as db:
            generated = generate_user_id("student", db)
        self.assertEqual(generated, "S0000035")
        self.assertTrue(validate_user_id(generated))

    def test_generated_ids_always_validate(self):
        with self.SessionLocal() as db:
            for role in ("admin", "teacher", "student"):
                self.assertTrue(validate_user_id(generate_user_id(role, db)))

    def test_exhausted_sequence_is_a_conflict(self):
        self._user("last", user_id="S9999997")
        with self.SessionLocal() as db:
            with self.assertRaises(DuplicateKey) as ctx:
                generate_user_id("student", db)
        self.assertEqual(ctx.exception.status_code, 409)
        self.assertEqual(ctx.exception.field, "user_id")
