from tests.base import *  # noqa: F401,F403

from schoolhub.scripts.seed_sample_data import seed
from schoolhub.services.user_ids import validate_user_id


class SeedSampleDataTests(SchoolhubDbBase):
    def test_seed_is_idempotent(self):
        with self.SessionLocal() as db:
            first = seed(db, students=2)
        self.assertEqual(first, {"departments": 2, "programs": 2, "courses": 2, "users": 4})

        with self.SessionLocal() as db:
            second = seed(db, students=2)
            user_ids = sorted(row.user_id for row in db.query(User).all())
        self.assertEqual(second, {"departments": 0, "programs": 0, "courses": 0, "users": 0})
        self.assertEqual(user_ids, ["A0000017", "S0000019", "S0000027", "T0000018"])
        self.assertTrue(all(validate_user_id(value) for value in user_ids))
