"""
Engine Core - Card identities, table state and per-observer knowledge.

The core provides:
1. Identities, clues and the variant's suit list
2. GameState for the public table and the cards we can see
3. KnowledgeView with per-card possible/inferred sets
4. Elimination rules run to a fixed point
5. Connection values produced by the convention searches
"""

from .identity import Identity, ClueType, BaseClue, Clue, Variant, NO_VARIANT, MAX_RANK, CARD_COUNT
from .state import Card, Hand, GameState, ProtocolViolation
from .knowledge import CardKnowledge, KnowledgeView, EliminationRecord
from .connection import Connection, ConnectionKind, ConnectionResult, WaitingConnection
from .elimination import card_elim, good_touch_elim, team_elim, restore_elim, sync_views
from .rules import playable_away, is_basic_trash, is_critical, is_saved, is_trash, visible_find

__all__ = [
    "Identity",
    "ClueType",
    "BaseClue",
    "Clue",
    "Variant",
    "NO_VARIANT",
    "MAX_RANK",
    "CARD_COUNT",
    "Card",
    "Hand",
    "GameState",
    "ProtocolViolation",
    "CardKnowledge",
    "KnowledgeView",
    "EliminationRecord",
    "Connection",
    "ConnectionKind",
    "ConnectionResult",
    "WaitingConnection",
    "card_elim",
    "good_touch_elim",
    "team_elim",
    "restore_elim",
    "sync_views",
    "playable_away",
    "is_basic_trash",
    "is_critical",
    "is_saved",
    "is_trash",
    "visible_find",
]
