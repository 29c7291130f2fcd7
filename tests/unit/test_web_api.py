"""
Web API Testing Suite.

Tests for the FastAPI counting endpoints.
"""

import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient

from web.main import app, get_default_seed

SAMPLE_BALLOTS = [
    ["c", "b", "a"],
    ["c", "b", "a"],
    ["b", "c"],
    ["a", "b"],
    ["c", "b"],
    ["b", "a"],
    ["c", "b", "a"],
    ["d", "a"],
    ["a", "b"],
]

SAMPLE_CSV = "a,b,c,d\nc,b,a\nc,b,a\nb,c\na,b\nc,b\nb,a\nc,b,a\nd,a\na,b\n"


class TestCountAPI(unittest.TestCase):
    """Test the /api/count endpoints."""

    def setUp(self):
        """Set up test fixtures."""
        self.client = TestClient(app)

    def test_health(self):
        response = self.client.get("/api/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})

    def test_count_election(self):
        response = self.client.post(
            "/api/count",
            json={
                "candidates": ["a", "b", "c", "d"],
                "ballots": SAMPLE_BALLOTS,
                "seats": 2,
                "seed": 1,
            },
        )

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["elected"], {"c": 4, "a": 4})
        self.assertEqual(data["eliminated"], {"d": 1, "b": 2})
        self.assertEqual(data["quota"], 4)
        self.assertEqual(data["spoiled_ballots"], 0)
        self.assertEqual(len(data["rounds"]), 4)

    def test_count_reports_spoiled_ballots(self):
        response = self.client.post(
            "/api/count",
            json={
                "candidates": ["a"],
                "ballots": [["a"], ["a"], ["a"], ["z"], ["a"]],
                "seats": 1,
            },
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["elected"], {"a": 3})
        self.assertEqual(response.json()["spoiled_ballots"], 1)

    def test_not_enough_votes(self):
        response = self.client.post(
            "/api/count",
            json={"candidates": ["a", "b"], "ballots": [["a"], ["b"]], "seats": 3},
        )

        self.assertEqual(response.status_code, 400)
        self.assertIn("not enough votes", response.json()["detail"])

    def test_invalid_seats_rejected(self):
        response = self.client.post(
            "/api/count",
            json={"candidates": ["a"], "ballots": [["a"]], "seats": 0},
        )
        self.assertEqual(response.status_code, 422)

    def test_invalid_tiebreak_rejected(self):
        response = self.client.post(
            "/api/count",
            json={
                "candidates": ["a"],
                "ballots": [["a"]],
                "seats": 1,
                "tiebreak": "coin",
            },
        )
        self.assertEqual(response.status_code, 422)

    @patch("web.main.Election")
    def test_unexpected_failure(self, mock_election):
        mock_election.return_value.results.side_effect = KeyError("boom")

        response = self.client.post(
            "/api/count",
            json={"candidates": ["a"], "ballots": [["a"]], "seats": 1},
        )

        self.assertEqual(response.status_code, 500)
        self.assertIn("STV calculation failed", response.json()["detail"])

    def test_count_csv(self):
        response = self.client.post(
            "/api/count/csv",
            params={"seats": 2, "seed": 3},
            content=SAMPLE_CSV,
            headers={"content-type": "text/csv"},
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["elected"], {"c": 4, "a": 4})

    def test_count_csv_empty_body(self):
        response = self.client.post("/api/count/csv", params={"seats": 1}, content="")

        self.assertEqual(response.status_code, 400)
        self.assertIn("No candidate header", response.json()["detail"])

    def test_count_csv_rejects_non_utf8(self):
        response = self.client.post(
            "/api/count/csv",
            params={"seats": 1},
            content=b"a,b\n\xff\xfe,a\n",
            headers={"content-type": "text/csv"},
        )

        self.assertEqual(response.status_code, 400)
        self.assertIn("UTF-8", response.json()["detail"])

    def test_count_csv_spoils_overlong_ballot(self):
        response = self.client.post(
            "/api/count/csv",
            params={"seats": 1},
            content="a,b\na,b,z\nb\nb\n",
            headers={"content-type": "text/csv"},
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["spoiled_ballots"], 1)
        self.assertEqual(response.json()["elected"], {"b": 2})

    def test_count_csv_blank_candidate_name(self):
        response = self.client.post(
            "/api/count/csv", params={"seats": 1}, content="a,b,\na\n"
        )

        self.assertEqual(response.status_code, 400)
        self.assertIn("Blank candidate name", response.json()["detail"])

    def test_count_csv_requires_seats(self):
        response = self.client.post("/api/count/csv", content=SAMPLE_CSV)
        self.assertEqual(response.status_code, 422)


class TestDefaultSeed(unittest.TestCase):
    """Test STV_RANDOM_SEED configuration."""

    @patch.dict("os.environ", {"STV_RANDOM_SEED": "42"})
    def test_seed_from_environment(self):
        self.assertEqual(get_default_seed(), 42)

    @patch.dict("os.environ", {}, clear=True)
    def test_seed_unset(self):
        self.assertIsNone(get_default_seed())

    @patch.dict("os.environ", {"STV_RANDOM_SEED": "not-a-number"})
    def test_seed_invalid(self):
        with self.assertLogs("web.main", level="WARNING"):
            self.assertIsNone(get_default_seed())

    def test_environment_seed_used_by_requests(self):
        client = TestClient(app)
        election = {
            "candidates": ["a", "b", "c"],
            "ballots": [["a", "b"]] * 5 + [["a", "c"]] * 5 + [["b"], ["c"]],
            "seats": 1,
        }

        explicit = client.post("/api/count", json={**election, "seed": 7}).json()
        with patch.dict("os.environ", {"STV_RANDOM_SEED": "7"}):
            from_env = client.post("/api/count", json=election).json()

        self.assertEqual(from_env["rounds"], explicit["rounds"])


if __name__ == "__main__":
    unittest.main()
