"""
Pytest fixtures for Hanabot tests.
"""

import pytest

from ..game import Game
from .harness import BOB, setup


@pytest.fixture
def blank_game() -> Game:
    """Three players, nothing clued, Alice to move."""
    return setup([
        ["xx", "xx", "xx", "xx", "xx"],
        ["r1", "y4", "g4", "b4", "p4"],
        ["g3", "b3", "y3", "p3", "g2"],
    ])


@pytest.fixture
def fake_finesse_game() -> Game:
    """Level 5 table where green to Alice may be a finesse on Cathy's g1."""
    return setup([
        ["xx", "xx", "xx", "xx", "xx"],
        ["r4", "r4", "g4", "r5", "b4"],
        ["g1", "b3", "r2", "y3", "p3"],
    ], level=5, starting=BOB)


@pytest.fixture
def chop_move_hands() -> list[list[str]]:
    """Bob holds r5 one slot left of chop."""
    return [
        ["xx", "xx", "xx", "xx", "xx"],
        ["r4", "g4", "b3", "r5", "b4"],
        ["g1", "b3", "r2", "y3", "p3"],
    ]
