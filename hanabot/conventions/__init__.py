"""
Conventions - H-group clue interpretation.

interpret_clue is the entry point; the other modules are its steps.
"""

from .chop_moves import interpret_5cm, interpret_tcm
from .connecting import find_connecting, find_own_finesses, resolve_layered_finesse
from .focus import FocusResult, determine_focus, find_chop
from .focus_possible import FocusPossibility, find_focus_possible
from .interpret_clue import ClueInterpretation, apply_good_touch, interpret_clue
from .waiting import (
    cancel_seen_finesses, cleanup_waiting_connections, update_ambiguous_finesses, update_waiting_connections,
)

__all__ = [
    "ClueInterpretation",
    "FocusPossibility",
    "FocusResult",
    "apply_good_touch",
    "cancel_seen_finesses",
    "cleanup_waiting_connections",
    "determine_focus",
    "find_chop",
    "find_connecting",
    "find_focus_possible",
    "find_own_finesses",
    "interpret_5cm",
    "interpret_clue",
    "interpret_tcm",
    "resolve_layered_finesse",
    "update_ambiguous_finesses",
    "update_waiting_connections",
]
