"""
Table rules - Trash, critical and playability checks shared by every module.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Iterable

from .identity import Identity
from .state import Card, GameState

if TYPE_CHECKING:
    from .knowledge import KnowledgeView


def playable_away(state: GameState, identity: Identity, play_stacks: list[int] | None = None) -> int:
    """How many cards must be played before this one. Negative means already played."""
    stacks = play_stacks if play_stacks is not None else state.play_stacks
    return identity.rank - (stacks[identity.suit_index] + 1)


def is_basic_trash(state: GameState, identity: Identity) -> bool:
    """Already played, or unreachable because a lower rank is gone."""
    return (
        identity.rank <= state.play_stacks[identity.suit_index]
        or identity.rank > state.max_ranks[identity.suit_index]
    )


def is_critical(state: GameState, identity: Identity) -> bool:
    """The last remaining copy of a useful card."""
    if is_basic_trash(state, identity):
        return False
    discarded = state.discard_stacks[identity.suit_index][identity.rank - 1]
    return discarded == state.variant.card_count(identity) - 1


def visible_find(
    state: GameState,
    view: KnowledgeView,
    identity: Identity,
    ignore_seats: Iterable[int] = (),
    infer: bool = False,
) -> list[Card]:
    """Cards in hands that this view knows (or infers) to be the identity."""
    ignore = set(ignore_seats)
    found = []
    for hand in state.hands:
        if hand.seat in ignore:
            continue
        for card in hand:
            if view.thoughts[card.order].identity(infer=infer) == identity:
                found.append(card)
    return found


def is_saved(state: GameState, view: KnowledgeView, identity: Identity, order: int = -1) -> bool:
    """Whether another touched or chop moved card is this identity."""
    return any(
        card.order != order and view.thoughts[card.order].saved
        for card in visible_find(state, view, identity, infer=True)
    )


def is_trash(state: GameState, view: KnowledgeView, identity: Identity, order: int = -1) -> bool:
    """Basic trash, or a duplicate of a card already saved elsewhere."""
    return is_basic_trash(state, identity) or is_saved(state, view, identity, order)
