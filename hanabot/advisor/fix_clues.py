"""
Fix Clues - Correcting touched cards the table has misread.
"""

from __future__ import annotations
from typing import TYPE_CHECKING
import logging

from ..engine_core.identity import Clue, ClueType
from ..engine_core.rules import is_basic_trash
from .determine_clue import touched_orders

if TYPE_CHECKING:
    from ..game import Game

logger = logging.getLogger(__name__)


def needs_fix(game: Game, order: int) -> bool:
    """A touched card whose true identity is missing from the common inferences."""
    card = game.state.find_card(order)
    thought = game.common.thoughts[order]
    if card is None or card.identity is None or not thought.touched:
        return False
    if card.identity in thought.inferred:
        return False
    # Trash that everyone already treats as trash needs no fix
    return not (is_basic_trash(game.state, card.identity)
                and all(is_basic_trash(game.state, i) for i in thought.inferred))


def fixed_by(game: Game, clue: Clue, order: int) -> bool:
    hypo = game.simulate_clue(clue)
    card = game.state.find_card(order)
    thought = hypo.common.thoughts[order]
    if card.identity in thought.inferred:
        return True
    return thought.reset or all(is_basic_trash(game.state, i) for i in thought.inferred)


def find_fix_clues(game: Game) -> list[list[Clue]]:
    """Per seat, the clues that repair a misread card in that seat's hand."""
    state = game.state
    fix_clues: list[list[Clue]] = [[] for _ in range(state.num_players)]

    for target in range(state.num_players):
        if target == state.our_seat:
            continue

        for card in state.hands[target]:
            if not needs_fix(game, card.order):
                continue

            logger.info("card %d (%s) needs a fix", card.order, state.variant.log_card(card.identity))
            for clue in (Clue(ClueType.COLOUR, card.identity.suit_index, target),
                         Clue(ClueType.RANK, card.identity.rank, target)):
                if card.order not in touched_orders(game, clue):
                    continue
                if fixed_by(game, clue, card.order) and clue not in fix_clues[target]:
                    fix_clues[target].append(clue)

    return fix_clues
