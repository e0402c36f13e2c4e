"""
Focus - Which touched card a clue is about.

Priority:
1. The chop, if the clue touches it for the first time
2. The leftmost newly clued card
3. The leftmost touched card (a pure re-clue)

The chop is measured as it was before the clue, so cards touched for the
first time by this clue count as unclued.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable

from ..engine_core.knowledge import KnowledgeView
from ..engine_core.state import Hand


@dataclass(frozen=True)
class FocusResult:
    order: int
    chop: bool  # Focus is on the chop


def find_chop(hand: Hand, view: KnowledgeView, after_clue: bool = False) -> int:
    """
    Order of the rightmost unprotected card, or -1.

    With after_clue=True, cards clued for the first time this turn are
    treated as still unclued.
    """
    for card in reversed(hand.cards):
        thought = view.thoughts[card.order]
        clued = thought.clued and not (after_clue and thought.newly_clued)
        if clued or thought.finessed or thought.chop_moved:
            continue
        return card.order
    return -1


def determine_focus(hand: Hand, view: KnowledgeView, touched: Iterable[int]) -> FocusResult:
    """Focused card of a clue that touched the given orders in this hand."""
    touched = set(touched)
    chop = find_chop(hand, view, after_clue=True)

    if chop in touched and view.thoughts[chop].newly_clued:
        return FocusResult(order=chop, chop=True)

    for card in hand:
        if card.order in touched and view.thoughts[card.order].newly_clued:
            return FocusResult(order=card.order, chop=False)

    for card in hand:
        if card.order in touched:
            return FocusResult(order=card.order, chop=False)

    raise ValueError(f"Clue touched no cards in seat {hand.seat}'s hand")
