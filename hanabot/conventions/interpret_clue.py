"""
Clue Interpretation - Turning one clue into updated knowledge.

Steps, in order:
1. Apply the clue's direct information and good touch elimination.
   A fix clue or a mistake stops here, as does a clue that contradicts
   everything the focused card could be.
2. Stall check: a clue given because nothing better was available
   carries no further meaning.
3. Chop moves (trash chop move, 5's chop move) at BASIC_CM and above.
4. Focus possibilities: if the focused card can match one, adopt the
   candidates. Otherwise search for finesses and prompts that explain it.
5. Recompute hypo stacks and push common knowledge to every seat.

Nothing in here raises for an odd clue. Anything that cannot be explained
falls back to good touch knowledge and flags the focused card as reset.
"""

from __future__ import annotations
from enum import Enum
from typing import TYPE_CHECKING, Iterable
import logging

from ..config import Rule
from ..engine_core.connection import Connection, ConnectionKind, ConnectionResult, WaitingConnection
from ..engine_core.elimination import card_elim, good_touch_elim, restore_elim, sync_views, team_elim
from ..engine_core.identity import ClueType, Identity
from ..engine_core.rules import is_basic_trash, is_trash, playable_away, visible_find
from .chop_moves import interpret_5cm, interpret_tcm
from .connecting import find_own_finesses
from .focus import FocusResult, determine_focus
from .focus_possible import find_focus_possible

if TYPE_CHECKING:
    from ..game import Game
    from ..schemas import ClueEvent

logger = logging.getLogger(__name__)


class ClueInterpretation(str, Enum):
    """How a clue was read."""
    FIX = "fix"
    MISTAKE = "mistake"
    STALL = "stall"
    CHOP_MOVE = "chop_move"
    FOCUS_MATCHED = "focus_matched"
    FINESSE = "finesse"
    RESET = "reset"


def on_clue(game: Game, action: ClueEvent) -> set[int]:
    """
    Apply positive and negative clue information in every view.

    Returns the orders whose common inferences were emptied by the clue.
    """
    state = game.state
    possibilities = state.variant.clue_possibilities(action.clue.to_base())
    touched = set(action.touched)
    resets: set[int] = set()

    for view in (game.common, *game.players):
        for card in state.hands[action.target]:
            thought = view.thoughts[card.order]
            was_reset = thought.reset

            if card.order in touched:
                thought.restrict_possible(possibilities)
                if not thought.clued:
                    thought.clued = True
                    thought.newly_clued = True
            else:
                thought.restrict_possible(thought.possible - possibilities)

            if view is game.common and thought.reset and not was_reset:
                resets.add(card.order)

    return resets


def apply_good_touch(game: Game, action: ClueEvent) -> bool:
    """
    Apply the clue and good touch elimination. Returns whether it was a fix clue.

    A fix is a retouched card that lost every inference, or a retouched card
    revealed to be trash or a duplicate of a touched card outside the
    giver's hand.
    """
    state = game.state
    common = game.common

    old_identities = {order: common.thoughts[order].identity(infer=True) for order in state.hand_orders()}

    resets = on_clue(game, action)
    card_elim(common, state)
    resets |= good_touch_elim(common, state)

    # Undo what the reset cards' old inferences eliminated elsewhere
    for order in resets:
        old = old_identities.get(order)
        if old is not None:
            restore_elim(common, old)

    retouched = [order for order in action.touched if not common.thoughts[order].newly_clued]

    if any(order in resets for order in retouched):
        return True

    for order in retouched:
        identity = common.thoughts[order].identity()
        if identity is None:
            continue
        if is_basic_trash(state, identity):
            return True
        duplicates = visible_find(state, common, identity, ignore_seats=(action.giver,), infer=True)
        if any(card.order != order and common.thoughts[card.order].touched for card in duplicates):
            return True

    return False


def assign_connections(game: Game, connections: Iterable[Connection], unique: bool):
    """
    Write a chain of connections into common knowledge.

    Finesses and prompts are narrowed to their connecting identity. Known
    and playable cards are only narrowed when the chain is the only reading.
    """
    state = game.state
    common = game.common
    action_index = len(state.action_list) - 1

    for connection in connections:
        thought = common.thoughts[connection.order]

        if connection.kind in (ConnectionKind.FINESSE, ConnectionKind.PROMPT) or unique:
            logger.info("connecting on card %d (%s) type %s", connection.order,
                        state.variant.log_cards(connection.identities), connection.kind.value)

            # Keep the old inferences in case the connection turns out to be fake
            if thought.old_inferred is None:
                thought.old_inferred = set(thought.inferred)
            thought.set_inferred(connection.identities)

            if connection.kind == ConnectionKind.FINESSE:
                thought.finessed = True
                thought.hidden = connection.hidden

        thought.record_reasoning(action_index, state.turn_count)


def _is_stall(game: Game, action: ClueEvent, focus: FocusResult) -> bool:
    predicate = game.config.stall_predicate
    if predicate is not None:
        return predicate(game, action, focus)

    # 5 Stall: a 5 off chop in the early game
    return (
        game.state.early_game
        and action.clue.type == ClueType.RANK
        and action.clue.value == 5
        and not focus.chop
    )


def _register_waiting(game: Game, action: ClueEvent, focus_order: int, identity: Identity,
                      connections: list[Connection]):
    common = game.common
    for waiting in common.waiting_connections:
        if waiting.focused_order == focus_order and waiting.inference == identity:
            return

    logger.info("waiting on %s for card %d", game.state.variant.log_card(identity), focus_order)
    common.waiting_connections.append(WaitingConnection(
        connections=list(connections),
        focused_order=focus_order,
        inference=identity,
        giver=action.giver,
        target=action.target,
        turn=game.state.turn_count,
    ))


def _self_ranks(game: Game, target: int, suit: int) -> list[int]:
    """Ranks of the suit sitting untouched in the target's hand."""
    return [
        card.identity.rank for card in game.state.hands[target]
        if card.identity is not None and card.identity.suit_index == suit
        and not game.common.thoughts[card.order].saved
    ]


def _finish(game: Game, interpretation: ClueInterpretation) -> ClueInterpretation:
    state = game.state
    card_elim(game.common, state)
    good_touch_elim(game.common, state)
    game.common.update_hypo_stacks(state)
    sync_views(game)
    return interpretation


def interpret_clue(game: Game, action: ClueEvent) -> ClueInterpretation:
    """Interpret a clue, updating common knowledge and the waiting connections."""
    state = game.state
    common = game.common
    config = game.config
    giver, target = action.giver, action.target
    variant = state.variant

    fix = apply_good_touch(game, action)

    focus = determine_focus(state.hands[target], common, action.touched)
    focused = common.thoughts[focus.order]
    focused.focused = True
    focused.record_reasoning(len(state.action_list) - 1, state.turn_count)

    logger.debug("pre-inferences %s", variant.log_cards(focused.inferred))

    if (config.allows(Rule.FIX_CLUES) and fix) or action.mistake:
        interpretation = ClueInterpretation.FIX if fix and config.allows(Rule.FIX_CLUES) else ClueInterpretation.MISTAKE
        logger.info("%s clue, not inferring anything else", interpretation.value)
        if len(focused.inferred) == 1:
            team_elim(game, focus.order, giver, target, next(iter(focused.inferred)))
        return _finish(game, interpretation)

    if not focused.possible & variant.clue_possibilities(action.clue.to_base()):
        logger.warning("clue leaves card %d with no possible identities", focus.order)
        return _finish(game, ClueInterpretation.RESET)

    if not action.ignore_stall and _is_stall(game, action, focus):
        logger.info("stalling situation")
        return _finish(game, ClueInterpretation.STALL)

    if config.allows(Rule.TRASH_CHOP_MOVE) and focused.newly_clued \
            and all(is_trash(state, common, i, focus.order) for i in focused.possible) \
            and not all(playable_away(state, i) == 0 for i in focused.inferred):
        interpret_tcm(game, target)
        return _finish(game, ClueInterpretation.CHOP_MOVE)

    if config.allows(Rule.FIVE_CHOP_MOVE) and action.clue.type == ClueType.RANK and action.clue.value == 5 \
            and focused.newly_clued and not state.early_game:
        if interpret_5cm(game, target, focus.order):
            return _finish(game, ClueInterpretation.CHOP_MOVE)

    focus_possible = find_focus_possible(game, action, focus)

    if target == state.our_seat:
        matched = [p for p in focus_possible if p.identity in focused.inferred]
    else:
        actual = state.find_card(focus.order).identity
        matched = [p for p in focus_possible if p.identity == actual]

    if matched:
        focused.intersect(p.identity for p in focus_possible)

        for possibility in matched:
            if possibility.save:
                continue

            assign_connections(game, possibility.connections, unique=len(matched) == 1)
            if len(matched) == 1:
                team_elim(game, focus.order, giver, target, possibility.identity)
            elif possibility.connections:
                _register_waiting(game, action, focus.order, possibility.identity, possibility.connections)

        logger.info("final inference on card %d: %s", focus.order, variant.log_cards(focused.inferred))
        return _finish(game, ClueInterpretation.FOCUS_MATCHED)

    logger.info("card %d doesn't match any inferences %s", focus.order, variant.log_cards(focused.inferred))
    all_connections: list[tuple[Identity, ConnectionResult]] = []

    if target == state.our_seat:
        best: tuple[Identity, ConnectionResult] | None = None
        self_only = True

        for identity in sorted(focused.inferred):
            if is_basic_trash(state, identity):
                continue
            result = find_own_finesses(game, giver, target, identity)
            if not result.feasible:
                continue

            logger.info("%s feasible, blind plays %d", variant.log_card(identity), result.blind_plays)
            if result.connections and result.connections[0].is_self:
                if best is None or result.blind_plays < best[1].blind_plays:
                    best = (identity, result)
            else:
                # A reading without a self component rules out the self readings
                self_only = False
                all_connections.append((identity, result))

        if self_only and best is not None:
            all_connections.append(best)
    else:
        actual = state.find_card(focus.order).identity
        if actual is not None and not is_basic_trash(state, actual):
            result = find_own_finesses(game, giver, target, actual, ignore_seat=target,
                                       self_ranks=_self_ranks(game, target, actual.suit_index))
            if result.feasible:
                all_connections.append((actual, result))

    if not all_connections:
        focused.reset = True
        if target != state.our_seat:
            narrowed = focused.inferred & {p.identity for p in focus_possible}
            if narrowed:
                focused.inferred = narrowed
        logger.info("no inference on card %d, looks like %s", focus.order, variant.log_cards(focused.inferred))
        return _finish(game, ClueInterpretation.RESET)

    focused.set_inferred(identity for identity, _ in all_connections)
    unique = len(all_connections) == 1

    for identity, result in all_connections:
        assign_connections(game, result.connections, unique=unique)
        if unique:
            team_elim(game, focus.order, giver, target, identity)
        # Blind plays are tracked until they happen, even for the only reading
        if not unique or result.blind_plays:
            _register_waiting(game, action, focus.order, identity, result.connections)

    logger.info("final inference on card %d: %s", focus.order, variant.log_cards(focused.inferred))
    return _finish(game, ClueInterpretation.FINESSE)
