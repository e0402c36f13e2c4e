"""
Determine Clue - Judging a clue by simulating how the table reads it.

Every candidate clue is applied to a deep copy of the game with our own
interpreter. Since every seat runs the same interpreter on the same common
knowledge, the copy's common view is exactly what the receiver will believe.

A clue is correct when every card it touches still has its true identity
among the common inferences. Correct clues are ranked by the cards they make
playable, minus a penalty for each card touched that is trash or a duplicate.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional
import logging

from ..engine_core.identity import Clue, ClueType
from ..engine_core.rules import is_critical, is_trash
from ..engine_core.state import Card
from ..conventions.focus import find_chop

if TYPE_CHECKING:
    from ..game import Game

logger = logging.getLogger(__name__)

BAD_TOUCH_PENALTY = 2


@dataclass
class ClueResult:
    """A simulated clue and what it achieved."""
    clue: Clue
    touched: list[int]
    playables: int = 0
    bad_touch: int = 0
    finesses: int = 0

    @property
    def value(self) -> int:
        return self.playables + self.finesses - BAD_TOUCH_PENALTY * self.bad_touch


def touched_orders(game: Game, clue: Clue) -> list[int]:
    """Orders in the target's hand that the clue would touch."""
    variant = game.state.variant
    return [
        card.order for card in game.state.hands[clue.target]
        if card.identity is not None and variant.touches(card.identity, clue)
    ]


def focus_before_clue(game: Game, target: int, touched: list[int]) -> int:
    """Which touched card would be focused, judged before the clue is given."""
    hand = game.state.hands[target]
    common = game.common
    newly = [order for order in hand.orders() if order in touched and not common.thoughts[order].clued]

    chop = find_chop(hand, common)
    if chop in newly:
        return chop
    if newly:
        return newly[0]
    return next(order for order in hand.orders() if order in touched)


def clue_safe(game: Game, clue: Clue) -> bool:
    """Whether the target's chop after this clue is safe to discard."""
    state = game.state
    common = game.common
    touched = set(touched_orders(game, clue))

    for card in reversed(state.hands[clue.target].cards):
        thought = common.thoughts[card.order]
        if card.order in touched or thought.saved:
            continue
        if card.identity is None:
            return True
        # A critical card that nobody has saved must not land on chop
        return not is_critical(state, card.identity) or any(
            common.thoughts[other.order].saved
            for other in state.hands[clue.target]
            if other.order != card.order and other.identity == card.identity
        )

    return True


def evaluate_clue(game: Game, clue: Clue) -> Optional[ClueResult]:
    """Simulate a clue. Returns None if the table would misread any touched card."""
    state = game.state
    touched = touched_orders(game, clue)
    if not touched:
        return None

    hypo = game.simulate_clue(clue)

    for order in touched:
        card = state.find_card(order)
        thought = hypo.common.thoughts[order]
        if card.identity not in thought.inferred:
            logger.debug("clue %s %d would misread card %d", clue.type.value, clue.value, order)
            return None

    result = ClueResult(clue=clue, touched=touched)

    in_hand = set(state.hand_orders())
    before = game.common.playable_orders & in_hand
    result.playables = len((hypo.common.playable_orders & in_hand) - before)

    seen = set()
    for order in touched:
        card = state.find_card(order)
        thought = game.common.thoughts[order]
        if thought.clued:
            continue
        if card.identity in seen or is_trash(state, game.common, card.identity, order):
            result.bad_touch += 1
        seen.add(card.identity)

    result.finesses = sum(
        1 for order in in_hand
        if hypo.common.thoughts[order].finessed and not game.common.thoughts[order].finessed
    )
    return result


def determine_clue(game: Game, target: int, card: Card) -> Optional[ClueResult]:
    """The best correct clue that focuses the given card, if any."""
    identity = card.identity
    candidates = [
        Clue(ClueType.COLOUR, identity.suit_index, target),
        Clue(ClueType.RANK, identity.rank, target),
    ]

    best: Optional[ClueResult] = None
    for clue in candidates:
        touched = touched_orders(game, clue)
        if focus_before_clue(game, target, touched) != card.order:
            continue

        result = evaluate_clue(game, clue)
        if result is None:
            continue

        logger.debug("clue %s %d to seat %d: playables %d, bad touch %d", clue.type.value, clue.value,
                     target, result.playables, result.bad_touch)
        if best is None or result.value > best.value:
            best = result

    return best
