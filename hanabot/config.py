"""
Engine Configuration - Convention level and optional hooks.

The convention level is a single ordered value. Each level enables a set of
rules; a level also enables every rule of the levels below it.

Environment:
    HANABOT_LEVEL      Default convention level (1-5)
    HANABOT_LOG_LEVEL  Default logging level for the CLI
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import TYPE_CHECKING, Callable, Optional
import os

if TYPE_CHECKING:
    from .game import Game
    from .schemas import ClueEvent
    from .conventions.focus import FocusResult


# Environment configuration
HANABOT_LEVEL = int(os.getenv("HANABOT_LEVEL", "5"))
HANABOT_LOG_LEVEL = os.getenv("HANABOT_LOG_LEVEL", "WARNING")


class Level(IntEnum):
    """H-group convention levels understood by the engine."""
    BASICS = 1
    DOUBLE_FINESSES = 2
    FIX = 3
    BASIC_CM = 4
    INTERMEDIATE_FINESSES = 5


class Rule(Enum):
    """Convention rules that can be switched on by level."""
    SELF_PROMPT_FINESSE = "self_prompt_finesse"  # Prompt and finesse in the same chain
    DOUBLE_SELF_FINESSE = "double_self_finesse"
    FIX_CLUES = "fix_clues"
    TRASH_CHOP_MOVE = "trash_chop_move"
    FIVE_CHOP_MOVE = "five_chop_move"
    LAYERED_FINESSE = "layered_finesse"
    HIDDEN_FINESSE = "hidden_finesse"


LEVEL_RULES: dict[Level, frozenset[Rule]] = {
    Level.BASICS: frozenset(),
    Level.DOUBLE_FINESSES: frozenset({Rule.SELF_PROMPT_FINESSE, Rule.DOUBLE_SELF_FINESSE}),
    Level.FIX: frozenset({Rule.FIX_CLUES}),
    Level.BASIC_CM: frozenset({Rule.TRASH_CHOP_MOVE, Rule.FIVE_CHOP_MOVE}),
    Level.INTERMEDIATE_FINESSES: frozenset({Rule.LAYERED_FINESSE, Rule.HIDDEN_FINESSE}),
}


def rules_for(level: int) -> frozenset[Rule]:
    """All rules enabled at the given level."""
    enabled: set[Rule] = set()
    for tier, rules in LEVEL_RULES.items():
        if tier <= level:
            enabled |= rules
    return frozenset(enabled)


# (game, clue action, focus) -> True if the clue should be read as a stall
StallPredicate = Callable[["Game", "ClueEvent", "FocusResult"], bool]


@dataclass
class EngineConfig:
    """
    Configuration for one engine instance.

    The stall predicate decides whether the giver had nothing better to do.
    When None, the built-in 5 Stall check is used.
    """
    level: int = Level.INTERMEDIATE_FINESSES
    stall_predicate: Optional[StallPredicate] = None

    def __post_init__(self):
        if not Level.BASICS <= self.level <= max(Level):
            raise ValueError(f"Unsupported convention level: {self.level}")
        self._rules = rules_for(self.level)

    def allows(self, rule: Rule) -> bool:
        return rule in self._rules

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Build a config from HANABOT_LEVEL."""
        return cls(level=HANABOT_LEVEL)
