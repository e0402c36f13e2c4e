"""
Waiting Connections - Resolving multi-turn inferences as cards are played.

After every play or discard, each waiting connection looks at its next
unplayed connection:
- played with a listed identity: the step is resolved; a confirmed blind
  play also confirms the focused card's inference
- played as something else, or discarded: the inference was wrong
- its reacting seat played or discarded a different card instead of a
  finesse it should have seen: the inference was wrong

A wrong inference is removed from the focused card and the eliminations
and connection assignments it caused are undone.

A seat that clues or discards instead of playing into an ambiguous
self-finesse moves it to the previous blind player. A finesse on our own
card is cancelled in our view alone once another copy is clued.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Optional
import logging

from ..engine_core.connection import Connection, ConnectionKind, WaitingConnection
from ..engine_core.elimination import good_touch_elim, restore_elim, team_elim
from ..engine_core.identity import Identity
from ..engine_core.state import Card

if TYPE_CHECKING:
    from ..game import Game
    from ..schemas import ClueEvent

logger = logging.getLogger(__name__)


def update_waiting_connections(game: Game, actor: int, order: int, identity: Optional[Identity], played: bool):
    """Advance or invalidate waiting connections after a card leaves actor's hand."""
    common = game.common
    remaining: list[WaitingConnection] = []
    invalid: list[WaitingConnection] = []

    for waiting in common.waiting_connections:
        connection = waiting.next_connection
        if connection is None:
            continue

        if connection.order == order:
            if played and identity in connection.identities:
                waiting.resolved += 1
                logger.info("resolved connection on card %d for %s", order,
                            game.state.variant.log_card(waiting.inference))

                if connection.kind == ConnectionKind.FINESSE and not connection.hidden:
                    focused = common.thoughts[waiting.focused_order]
                    focused.intersect({waiting.inference})

                if not waiting.complete:
                    remaining.append(waiting)
            else:
                invalid.append(waiting)
            continue

        if connection.kind == ConnectionKind.FINESSE and not connection.is_self and connection.reacting == actor:
            logger.info("seat %d didn't play into finesse on card %d", actor, connection.order)
            invalid.append(waiting)
            continue

        remaining.append(waiting)

    common.waiting_connections = remaining
    for waiting in invalid:
        invalidate(game, waiting)

    cleanup_waiting_connections(game)


def invalidate(game: Game, waiting: WaitingConnection):
    """Remove a disproven inference and undo what it assigned."""
    state = game.state
    common = game.common
    in_hand = set(state.hand_orders())

    logger.info("connection for %s on card %d is invalid", state.variant.log_card(waiting.inference),
                waiting.focused_order)

    focused = common.thoughts[waiting.focused_order]
    if waiting.focused_order in in_hand:
        remaining = focused.inferred - {waiting.inference}
        if remaining:
            focused.inferred = remaining

    for connection in waiting.connections[waiting.resolved:]:
        if connection.order not in in_hand:
            continue
        thought = common.thoughts[connection.order]
        if thought.old_inferred is not None:
            restored = thought.old_inferred & thought.possible
            thought.inferred = restored if restored else set(thought.possible)
            thought.old_inferred = None
        if connection.kind == ConnectionKind.FINESSE:
            thought.finessed = False
            thought.hidden = False

    restore_elim(common, waiting.inference)

    if waiting.focused_order in in_hand and len(focused.inferred) == 1:
        team_elim(game, waiting.focused_order, waiting.giver, waiting.target, next(iter(focused.inferred)))


def cleanup_waiting_connections(game: Game):
    """Drop waiting connections whose focused card is gone or no longer allows the inference."""
    common = game.common
    in_hand = set(game.state.hand_orders())
    common.waiting_connections = [
        waiting for waiting in common.waiting_connections
        if waiting.focused_order in in_hand
        and waiting.inference in common.thoughts[waiting.focused_order].inferred
    ]


def _finesse_position(game: Game, seat: int, clue_turn: int) -> Optional[Card]:
    """The leftmost unsaved card in the seat's hand that was already there when the clue was given."""
    for card in game.state.hands[seat]:
        if card.drawn_turn > clue_turn or game.common.thoughts[card.order].saved:
            continue
        return card
    return None


def update_ambiguous_finesses(game: Game, actor: int, order: Optional[int] = None):
    """
    Move self-finesses that actor passed on to the previous blind player.

    After one seat plays into a finesse, the next seat of a self-finesse
    chain can't tell whether the chain continues in that seat's hand or its
    own. Cluing or discarding (a card other than order) instead of playing
    tells the table that actor reads it as the other seat's next finesse.
    """
    state = game.state
    common = game.common
    action_index = len(state.action_list) - 1

    for waiting in common.waiting_connections:
        connection = waiting.next_connection
        if connection is None or waiting.resolved == 0 or connection.order == order:
            continue
        if connection.kind != ConnectionKind.FINESSE or not connection.is_self or connection.reacting != actor \
                or len(connection.identities) != 1:
            continue

        previous = waiting.connections[waiting.resolved - 1]
        if previous.kind != ConnectionKind.FINESSE or previous.reacting == actor:
            continue

        identity = connection.identities[0]
        card = _finesse_position(game, previous.reacting, waiting.turn)
        if card is None or identity not in common.thoughts[card.order].inferred:
            continue

        logger.info("seat %d passed on the finesse for %s, moving it to card %d",
                    actor, state.variant.log_card(identity), card.order)

        skipped = common.thoughts[connection.order]
        if skipped.old_inferred is not None:
            restored = skipped.old_inferred & skipped.possible
            skipped.inferred = restored if restored else set(skipped.possible)
            skipped.old_inferred = None
        skipped.finessed = False

        thought = common.thoughts[card.order]
        if thought.old_inferred is None:
            thought.old_inferred = set(thought.inferred)
        thought.set_inferred({identity})
        thought.finessed = True
        thought.record_reasoning(action_index, state.turn_count)

        waiting.connections[waiting.resolved] = Connection(
            ConnectionKind.FINESSE, previous.reacting, card.order, (identity,), is_self=previous.is_self
        )


def cancel_seen_finesses(game: Game, action: ClueEvent):
    """
    Privately drop a pending finesse on our own card once another copy is clued.

    The giver can see our hand, so touching that identity elsewhere means
    they don't expect us to hold it. Common knowledge keeps the finesse,
    since the other seats can't see what we see.
    """
    state = game.state
    if action.target == state.our_seat:
        return

    me = game.me
    clued = {
        state.find_card(order).identity for order in action.touched
        if game.common.thoughts[order].newly_clued and state.find_card(order).identity is not None
    }

    cancelled = False
    for waiting in game.common.waiting_connections:
        for connection in waiting.connections[waiting.resolved:]:
            if connection.kind != ConnectionKind.FINESSE or connection.reacting != state.our_seat \
                    or len(connection.identities) != 1 or connection.identities[0] not in clued:
                continue

            thought = me.thoughts.get(connection.order)
            if thought is None or not thought.finessed:
                continue

            logger.info("%s was clued elsewhere, cancelling our finesse on card %d",
                        state.variant.log_card(connection.identities[0]), connection.order)
            restored = (thought.old_inferred or thought.possible) & thought.possible
            thought.inferred = restored if restored else set(thought.possible)
            thought.finessed = False
            thought.hidden = False
            me.cancelled.add(connection.order)
            cancelled = True

    if cancelled:
        good_touch_elim(me, state)
        me.update_hypo_stacks(state)
