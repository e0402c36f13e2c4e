"""
Chop Moves - Clues that protect cards without touching them.

Trash chop move: a clue that newly touches only trash, when a play clue
was not possible, moves every unclued card right of it off the chop.

5's chop move: a bare 5 clue one slot left of chop, outside the early
game, moves the chop card.
"""

from __future__ import annotations
from typing import TYPE_CHECKING
import logging

from .focus import find_chop

if TYPE_CHECKING:
    from ..game import Game

logger = logging.getLogger(__name__)


def interpret_tcm(game: Game, target: int) -> list[int]:
    """Chop move the unclued cards right of the rightmost newly clued card."""
    hand = game.state.hands[target]
    common = game.common

    rightmost = max(i for i, card in enumerate(hand) if common.thoughts[card.order].newly_clued)
    moved = []
    for card in hand.cards[rightmost + 1:]:
        thought = common.thoughts[card.order]
        if thought.saved:
            continue
        thought.chop_moved = True
        moved.append(card.order)

    logger.info("trash chop move on %s", ",".join(str(order) for order in moved))
    return moved


def interpret_5cm(game: Game, target: int, focus_order: int) -> bool:
    """
    Chop move the card right of a newly clued 5 if it is the chop.

    Returns False if the 5 was not one slot left of chop.
    """
    hand = game.state.hands[target]
    common = game.common

    index = hand.index_of(focus_order)
    for card in hand.cards[index + 1:]:
        thought = common.thoughts[card.order]
        if thought.clued or thought.finessed:
            continue

        # The first unclued card right of the 5 must be the chop
        if find_chop(hand, common) != card.order:
            return False

        logger.info("5cm, saving card %d", card.order)
        thought.chop_moved = True
        return True

    return False
