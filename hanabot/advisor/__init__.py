"""
Clue Advisor - Finding the clues worth giving.

Clues are judged by simulating them with the same interpreter every seat
runs, so a clue is only suggested when the receiver will read it correctly.
"""

from .clue_finder import (
    AdvisorResult,
    advisor_report,
    describe_clue,
    find_5cm,
    find_clues,
    find_save,
    find_tcm,
)
from .determine_clue import ClueResult, clue_safe, determine_clue, evaluate_clue
from .fix_clues import find_fix_clues

__all__ = [
    "AdvisorResult",
    "ClueResult",
    "advisor_report",
    "clue_safe",
    "describe_clue",
    "determine_clue",
    "evaluate_clue",
    "find_5cm",
    "find_clues",
    "find_fix_clues",
    "find_save",
    "find_tcm",
]
