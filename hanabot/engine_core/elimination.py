"""
Elimination - Shrinking knowledge sets from public evidence.

Two kinds of elimination run on a single view:
- card_elim: an identity whose every copy is accounted for (played,
  discarded, or identified in a hand) cannot be any other card
- good_touch_elim: a touched card is not trash and not a duplicate of
  another touched card

Both iterate to a fixed point and never fail. When a card's inferred set
would become empty it falls back to possible and is flagged reset.

Team elimination pushes a confirmed identity from one clue into the common
view. Every direct removal is recorded so a later contradiction can undo it.
Removals that cascade from a recorded one are not recorded and not undone.
"""

from __future__ import annotations
from typing import TYPE_CHECKING
import logging

from .identity import Identity
from .knowledge import EliminationRecord, KnowledgeView
from .rules import is_basic_trash
from .state import GameState

if TYPE_CHECKING:
    from ..game import Game

logger = logging.getLogger(__name__)


def _record(view: KnowledgeView, order: int, identity: Identity):
    view.elim_records.setdefault(identity, []).append(
        EliminationRecord(order=order, identity=identity, previous=frozenset(view.thoughts[order].inferred))
    )


def card_elim(view: KnowledgeView, state: GameState):
    """Remove identities from possible once every copy has been seen."""
    changed = True
    while changed:
        changed = False
        for identity in state.variant.all_identities():
            total = state.variant.card_count(identity)
            seen = state.base_count(identity)
            if seen >= total:
                holders: list[int] = []
            else:
                holders = [
                    card.order for hand in state.hands for card in hand
                    if view.thoughts[card.order].identity() == identity
                ]
                if seen + len(holders) < total:
                    continue

            for hand in state.hands:
                for card in hand:
                    thought = view.thoughts[card.order]
                    if card.order in holders or thought.identity() is not None:
                        continue
                    if identity in thought.possible and len(thought.possible) > 1:
                        thought.restrict_possible(thought.possible - {identity})
                        # A newly identified card can complete another identity
                        if thought.identity() is not None:
                            changed = True


def good_touch_elim(view: KnowledgeView, state: GameState) -> set[int]:
    """
    Remove trash and duplicates of clued cards from every touched card.

    Returns the orders that were newly reset by the elimination.
    """
    resets: set[int] = set()

    changed = True
    while changed:
        changed = False

        sources: list[tuple[int, Identity]] = []
        for hand in state.hands:
            for card in hand:
                thought = view.thoughts[card.order]
                if not (thought.clued or thought.chop_moved):
                    continue
                identity = thought.identity(infer=True)
                if identity is not None:
                    sources.append((card.order, identity))

        for hand in state.hands:
            for card in hand:
                thought = view.thoughts[card.order]
                if not thought.saved or len(thought.inferred) <= 1:
                    continue

                trash = {i for i in thought.inferred if is_basic_trash(state, i)}
                duplicates = {
                    identity for order, identity in sources
                    if order != card.order and identity in thought.inferred
                }
                if not trash and not duplicates:
                    continue

                new_inferred = thought.inferred - trash - duplicates
                if new_inferred:
                    for identity in sorted(duplicates - trash):
                        _record(view, card.order, identity)
                    thought.inferred = new_inferred
                    changed = True
                elif not thought.reset:
                    logger.warning("card %d lost every inference to good touch, resetting", card.order)
                    thought.reset_inferred()
                    resets.add(card.order)
                    changed = True

    return resets


def team_elim(game: Game, focused_order: int, giver: int, target: int, identity: Identity):
    """
    Remove a confirmed identity from every other touched card in common.

    The giver's hand is skipped. The target's hand is included only when
    the focused card's inference is already unambiguous.
    """
    common = game.common
    focused = common.thoughts[focused_order]

    for hand in game.state.hands:
        if hand.seat == giver:
            continue
        if hand.seat == target and len(focused.inferred) != 1:
            continue

        for card in hand:
            if card.order == focused_order:
                continue
            thought = common.thoughts[card.order]
            if not thought.saved or len(thought.inferred) <= 1 or identity not in thought.inferred:
                continue
            logger.debug("team elim %s from card %d",
                         game.state.variant.log_card(identity), card.order)
            _record(common, card.order, identity)
            thought.subtract({identity})


def restore_elim(view: KnowledgeView, identity: Identity):
    """
    Undo the recorded direct removals of an identity.

    Cards that have left every hand keep their final knowledge.
    """
    records = view.elim_records.pop(identity, [])
    for record in reversed(records):
        thought = view.thoughts.get(record.order)
        if thought is None or len(thought.possible) == 1:
            continue
        restored = set(record.previous) & thought.possible
        thought.inferred = restored if restored else set(thought.possible)
        logger.debug("restored card %d to %d inferences", record.order, len(thought.inferred))


# Flags copied from common knowledge into each seat's view
SYNCED_FLAGS = (
    "clued", "newly_clued", "focused", "finessed", "chop_moved", "reset",
    "hidden", "called_to_discard", "finesse_index", "rewinded",
    "certain_finessed", "superposition",
)

# Flags a seat keeps for itself on a privately cancelled finesse
PRIVATE_FLAGS = ("finessed", "hidden", "finesse_index", "certain_finessed")


def sync_views(game: Game):
    """
    Push common knowledge into every seat's view and re-run its eliminations.

    Cards in a view's cancelled set keep that seat's own inferences and
    finesse flags until common stops treating them as finessed.
    """
    state = game.state
    common = game.common

    for view in game.players:
        for order in state.hand_orders():
            thought = view.thoughts[order]
            cthought = common.thoughts[order]

            if order in view.cancelled and not cthought.finessed:
                view.cancelled.discard(order)
            private = order in view.cancelled

            merged = thought.possible & cthought.possible
            if merged:
                thought.possible = merged
            inferred = (thought.inferred if private else cthought.inferred) & thought.possible
            thought.inferred = inferred if inferred else set(thought.possible)

            thought.old_inferred = set(cthought.old_inferred) if cthought.old_inferred is not None else None
            for flag in SYNCED_FLAGS:
                if private and flag in PRIVATE_FLAGS:
                    continue
                setattr(thought, flag, getattr(cthought, flag))
            thought.reasoning = list(cthought.reasoning)
            thought.reasoning_turn = list(cthought.reasoning_turn)

        view.waiting_connections = list(common.waiting_connections)
        card_elim(view, state)
        good_touch_elim(view, state)
        view.update_hypo_stacks(state)
