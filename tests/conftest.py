"""
Shared pytest configuration and fixtures for stv-count.

This module provides common test fixtures and utilities used across
all test modules.
"""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from counting.observers import CountObserver  # noqa: E402


class RecordingObserver(CountObserver):
    """Collects count events so tests can assert on them."""

    def __init__(self):
        self.events = []

    def spoiled_ballot(self, ballot, unknown_candidate):
        self.events.append(("spoiled_ballot", tuple(ballot), unknown_candidate))

    def spoiled_ballots_purged(self, count):
        self.events.append(("spoiled_ballots_purged", count))

    def candidate_elected(self, candidate, votes):
        self.events.append(("elected", candidate, votes))

    def candidate_eliminated(self, candidate, votes):
        self.events.append(("eliminated", candidate, votes))

    def tie_broken(self, tied, loser):
        self.events.append(("tie_broken", list(tied), loser))

    def votes_transferred(self, from_candidate, transfers, exhausted, surplus):
        self.events.append(
            ("transferred", from_candidate, dict(transfers), exhausted, surplus)
        )

    def of_kind(self, kind):
        return [e for e in self.events if e[0] == kind]


@pytest.fixture
def rng():
    """Seeded generator so surplus sampling is reproducible."""
    return np.random.default_rng(12345)


@pytest.fixture
def observer():
    return RecordingObserver()


@pytest.fixture
def sample_candidates():
    """Provide sample candidate data for testing."""
    return ["a", "b", "c", "d"]


@pytest.fixture
def sample_ballots():
    """
    Nine ballots for a two-seat election.

    Quota is 4: c is elected on first preferences, d then b are eliminated
    and a reaches quota on transfers.
    """
    return [
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


@pytest.fixture
def sample_csv(tmp_path):
    """Write the sample election to a CSV ballot file."""
    path = tmp_path / "ballots.csv"
    path.write_text("a,b,c,d\nc,b,a\nc,b,a\nb,c\na,b\nc,b\nb,a\nc,b,a\nd,a\na,b\n")
    return path


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (files and scripts)",
    )
    config.addinivalue_line(
        "markers",
        "golden: marks tests as golden dataset validation (hand-computed counts)",
    )
    config.addinivalue_line(
        "markers", "invariant: marks tests as counting invariant validation"
    )
    config.addinivalue_line(
        "markers", "smoke: marks tests as smoke tests (basic functionality check)"
    )
