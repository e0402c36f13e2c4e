"""
Connecting Cards - Chains of plays that make a focused card playable.

A clue on a card that is not yet playable promises that the missing ranks
will be played first. Each missing rank is bridged by one connection:

- known: a touched card everyone knows is that identity
- playable: a touched card whose every candidate is playable
- prompt: the leftmost touched card that could be that identity
- finesse: the leftmost untouched card, played blind

Searches from our own perspective run on a minimal copy of the game, so
hypothetical plays and eliminations never leak into live knowledge. A chain
that cannot be completed is an ordinary infeasible ConnectionResult.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Iterable, Optional
import logging

from ..config import Rule
from ..engine_core.connection import Connection, ConnectionKind, ConnectionResult
from ..engine_core.elimination import good_touch_elim
from ..engine_core.identity import BaseClue, Identity, MAX_RANK
from ..engine_core.rules import playable_away
from ..engine_core.state import Hand

if TYPE_CHECKING:
    from ..game import Game

logger = logging.getLogger(__name__)


def find_connecting(
    game: Game,
    giver: int,
    target: int,
    identity: Identity,
    ignore_orders: Iterable[int] = (),
    known_only: Iterable[int] = (),
) -> list[Connection]:
    """
    Find a connecting card for the identity that this engine can see.

    Returns an empty list if nothing visible connects. Seats in known_only
    may only contribute known connections.
    """
    state = game.state
    common = game.common
    ignore = set(ignore_orders)
    restricted = set(known_only)
    our_seat = state.our_seat

    for hand in state.hands:
        for card in hand:
            thought = common.thoughts[card.order]
            if card.order in ignore or not thought.touched:
                continue
            if thought.identity(infer=True) == identity:
                return [Connection(ConnectionKind.KNOWN, hand.seat, card.order, (identity,),
                                   is_self=hand.seat == our_seat)]

    for hand in state.hands:
        if hand.seat == giver or hand.seat in restricted:
            continue
        for card in hand:
            if card.order in ignore or card.order not in common.unknown_plays:
                continue
            if hand.seat == our_seat:
                if identity in common.thoughts[card.order].inferred:
                    return [Connection(ConnectionKind.PLAYABLE, our_seat, card.order, (identity,), is_self=True)]
            elif card.identity == identity:
                return [Connection(ConnectionKind.PLAYABLE, hand.seat, card.order, (identity,))]

    prompted: set[int] = set()
    for hand in state.hands:
        if hand.seat in (giver, our_seat) or hand.seat in restricted:
            continue
        prompt = common.find_prompt(hand, identity, ignore)
        if prompt is None:
            continue
        if prompt.identity == identity:
            return [Connection(ConnectionKind.PROMPT, hand.seat, prompt.order, (identity,))]
        # They would play the prompted card, so no finesse in this hand either
        prompted.add(hand.seat)

    for hand in state.hands:
        if hand.seat in (giver, our_seat, target) or hand.seat in restricted or hand.seat in prompted:
            continue
        connections = _find_layered(game, hand, identity, ignore)
        if connections:
            return connections

    return []


def _find_layered(game: Game, hand: Hand, identity: Identity, ignore: set[int]) -> list[Connection]:
    """Finesse in a visible hand, including playable cards layered in front of it."""
    state = game.state
    stacks = list(state.play_stacks)
    skip = set(ignore)
    layers: list[Connection] = []

    while True:
        finesse = game.common.find_finesse(hand, skip)
        if finesse is None or finesse.identity is None:
            return []

        if finesse.identity == identity:
            return layers + [Connection(ConnectionKind.FINESSE, hand.seat, finesse.order, (identity,))]

        if not game.config.allows(Rule.LAYERED_FINESSE):
            return []

        # Only a card that will play cleanly can hide the real finesse
        suit = finesse.identity.suit_index
        if finesse.identity.rank != stacks[suit] + 1:
            return []
        stacks[suit] += 1

        layers.append(Connection(ConnectionKind.FINESSE, hand.seat, finesse.order,
                                 (finesse.identity,), hidden=True))
        skip.add(finesse.order)


def own_prompt(game: Game, finesses: int, prompt_order: int, identity: Identity) -> Optional[ConnectionResult]:
    """
    A prompt on a card in our own hand.

    Returns None if the prompted card cannot be the identity.
    """
    state = game.state
    config = game.config

    if not config.allows(Rule.SELF_PROMPT_FINESSE) and finesses >= 1:
        return ConnectionResult.infeasible(f"Blocked prompt + finesse at level {config.level}")

    thought = game.me.thoughts[prompt_order]
    actual = thought.identity()
    reacting = state.our_seat

    if thought.rewinded and actual is not None and actual.suit_index != identity.suit_index \
            and playable_away(state, actual) == 0:
        if not config.allows(Rule.HIDDEN_FINESSE):
            return ConnectionResult.infeasible(f"Blocked hidden finesse at level {config.level}")
        return ConnectionResult.found([
            Connection(ConnectionKind.KNOWN, reacting, prompt_order, (actual,), is_self=True, hidden=True)
        ])

    if thought.matches(identity, assume=True):
        return ConnectionResult.found([
            Connection(ConnectionKind.PROMPT, reacting, prompt_order, (identity,), is_self=True)
        ])

    return None


def find_self_finesse(game: Game, identity: Identity, ignore_orders: list[int], finesses: int) -> ConnectionResult:
    """A blind play from the leftmost unclued card in our own hand."""
    state = game.state
    config = game.config
    our_hand = state.our_hand

    finesse = game.common.find_finesse(our_hand, ignore_orders)
    if finesse is None:
        return ConnectionResult.infeasible("No finesse slot")

    logger.debug("finesse in slot %d", our_hand.index_of(finesse.order) + 1)

    thought = game.me.thoughts[finesse.order]
    actual = thought.identity()
    reacting = state.our_seat

    if thought.rewinded and actual is not None and actual.suit_index != identity.suit_index \
            and playable_away(state, actual) == 0:
        if not config.allows(Rule.LAYERED_FINESSE):
            return ConnectionResult.infeasible(f"Blocked layered finesse at level {config.level}")
        return ConnectionResult.found([
            Connection(ConnectionKind.FINESSE, reacting, finesse.order, (actual,), is_self=True, hidden=True)
        ])

    if identity in thought.inferred and thought.matches(identity, assume=True):
        if not config.allows(Rule.DOUBLE_SELF_FINESSE) and ignore_orders:
            kind = "double finesse" if finesses >= 1 else "prompt + finesse"
            return ConnectionResult.infeasible(f"Blocked {kind} at level {config.level}")

        if game.next_finesse:
            return resolve_layered_finesse(game, identity, ignore_orders)

        return ConnectionResult.found([
            Connection(ConnectionKind.FINESSE, reacting, finesse.order, (identity,), is_self=True)
        ])

    return ConnectionResult.infeasible("Self-finesse not found")


def resolve_layered_finesse(game: Game, identity: Identity, ignore_orders: list[int]) -> ConnectionResult:
    """
    Narrow a self-finesse using clues given later in the same round.

    A later clue that touches a card matching the identity means every
    untouched card before it is a layer; a later clue that does not match
    means every touched card before it is a layer. Layers are hidden plays
    of whatever is currently playable.
    """
    state = game.state
    variant = state.variant
    our_hand = state.our_hand
    connections: list[Connection] = []

    for action in game.next_finesse:
        finesse = game.common.find_finesse(our_hand, ignore_orders)
        if finesse is None:
            return ConnectionResult.infeasible("Blocked layered finesse with no start")

        clue = action.clue.to_base()
        matching = variant.touches(identity, clue)
        touched = set(action.touched)

        index = our_hand.index_of(finesse.order)
        while True:
            if index >= len(our_hand):
                return ConnectionResult.infeasible("Blocked layered finesse with no end")

            card = our_hand[index]
            if game.common.thoughts[card.order].saved:
                index += 1
                continue
            if matching == (card.order in touched):
                break

            identities = _layer_identities(game, identity, None if matching else clue)
            connections.append(Connection(ConnectionKind.FINESSE, state.our_seat, card.order,
                                          tuple(identities), is_self=True, hidden=True))
            game.common.thoughts[card.order].intersect(identities)
            ignore_orders.append(card.order)
            index += 1

    finesse = game.common.find_finesse(our_hand, ignore_orders)
    if finesse is None:
        return ConnectionResult.infeasible("Couldn't find a valid finesse target after layers")

    connections.append(Connection(ConnectionKind.FINESSE, state.our_seat, finesse.order, (identity,), is_self=True))
    return ConnectionResult.found(connections)


def _layer_identities(game: Game, identity: Identity, clue: Optional[BaseClue]) -> list[Identity]:
    """Currently playable identities, restricted to suits the later clue could mean."""
    identities = [
        Identity(suit, rank + 1)
        for suit, rank in enumerate(game.common.hypo_stacks)
        if rank < MAX_RANK
    ]
    if clue is None:
        return identities

    variant = game.state.variant
    return [i for i in identities if variant.touches(Identity(i.suit_index, identity.rank), clue)]


def connect(
    game: Game,
    giver: int,
    target: int,
    identity: Identity,
    ignore_orders: list[int],
    ignore_seat: Optional[int],
    self_ranks: Iterable[int],
    finesses: int,
) -> ConnectionResult:
    """Bridge one missing rank: visible cards first, then our own hand, then ignore_seat's hand."""
    state = game.state
    config = game.config
    our_seat = state.our_seat
    our_hand = state.our_hand
    self_ranks = set(self_ranks)

    known_only = (ignore_seat,) if ignore_seat is not None else ()
    others = find_connecting(game, giver, target, identity, ignore_orders, known_only)
    if others:
        return ConnectionResult.found(others)

    if giver != our_seat:
        prompt = game.common.find_prompt(our_hand, identity, ignore_orders)
        logger.debug("prompt in slot %d", our_hand.index_of(prompt.order) + 1 if prompt else -1)

        if prompt is not None:
            result = own_prompt(game, finesses, prompt.order, identity)
            if result is not None:
                return result
        elif identity.rank not in self_ranks:
            result = find_self_finesse(game, identity, list(ignore_orders), finesses)
            if result.feasible:
                return result
            logger.warning(result.reason)

    if ignore_seat is not None:
        their_hand = state.hands[ignore_seat]
        prompt = game.common.find_prompt(their_hand, identity, ignore_orders)

        if prompt is not None:
            if not config.allows(Rule.SELF_PROMPT_FINESSE) and finesses >= 1:
                return ConnectionResult.infeasible(f"Blocked double finesse at level {config.level}")

            if game.common.thoughts[prompt.order].matches(identity, assume=True):
                return ConnectionResult.found([
                    Connection(ConnectionKind.PROMPT, ignore_seat, prompt.order, (identity,), is_self=True)
                ])
        else:
            finesse = game.common.find_finesse(their_hand, ignore_orders)
            if finesse is not None:
                thought = game.common.thoughts[finesse.order]
                if identity in thought.inferred and thought.matches(identity, assume=True) \
                        and finesse.identity in (None, identity):
                    if not config.allows(Rule.DOUBLE_SELF_FINESSE) and ignore_orders:
                        return ConnectionResult.infeasible(f"Blocked double finesse at level {config.level}")
                    return ConnectionResult.found([
                        Connection(ConnectionKind.FINESSE, ignore_seat, finesse.order, (identity,), is_self=True)
                    ])

        # Our own finesse, skipped above in favour of ignore_seat's hand
        if giver != our_seat and identity.rank in self_ranks:
            result = find_self_finesse(game, identity, list(ignore_orders), finesses)
            if result.feasible:
                return result
            logger.warning(result.reason)

    return ConnectionResult.infeasible(f"No connecting cards found for {state.variant.log_card(identity)}")


def find_own_finesses(
    game: Game,
    giver: int,
    target: int,
    identity: Identity,
    ignore_seat: Optional[int] = None,
    self_ranks: Iterable[int] = (),
) -> ConnectionResult:
    """
    Search for a full chain of connections up to the identity.

    Runs on a minimal copy of the game where each connecting card is
    assumed to be its connecting identity, so later ranks see those
    eliminations. Hidden connections advance the stacks and the same rank
    is searched again.
    """
    state = game.state
    if giver == state.our_seat and ignore_seat is None:
        return ConnectionResult.infeasible("Cannot finesse ourselves")

    hypo = game.minimal_copy()
    suit = identity.suit_index
    connections: list[Connection] = []
    ignore_orders: list[int] = []
    finesses = 0

    next_rank = hypo.state.play_stacks[suit] + 1
    while next_rank < identity.rank:
        next_identity = Identity(suit, next_rank)
        result = connect(hypo, giver, target, next_identity, ignore_orders, ignore_seat, self_ranks, finesses)

        if not result.feasible:
            logger.warning("%s infeasible: %s", state.variant.log_card(identity), result.reason)
            return result

        all_hidden = True
        for connection in result.connections:
            connections.append(connection)
            if connection.kind == ConnectionKind.FINESSE:
                finesses += 1

            if connection.hidden:
                if len(connection.identities) == 1:
                    played = connection.identities[0]
                    hypo.state.play_stacks[played.suit_index] += 1
                    hypo.common.hypo_stacks[played.suit_index] += 1
            else:
                all_hidden = False
                hypo.common.thoughts[connection.order].intersect({next_identity})
                good_touch_elim(hypo.common, hypo.state)

            ignore_orders.append(connection.order)

        # A hidden connection doesn't fill this rank, so look for it again
        if not all_hidden:
            next_rank += 1
        next_rank = max(next_rank, hypo.state.play_stacks[suit] + 1)

    return ConnectionResult.found(connections)
