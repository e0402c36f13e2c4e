"""
Focus Possibilities - What the focused card could be, given what the giver sees.

Colour clues walk the suit upward from the next playable rank through
visible connecting cards. The first rank without a connection is the focus.
A rank reached through an unclued finesse is also kept, since the clue might
be a direct play clue on that rank instead.

Rank clues walk every suit up to the clued rank and keep each suit that
connects all the way.

Chop focus adds save candidates: critical cards, 2 saves and 5 saves.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
import logging

from ..engine_core.connection import Connection, ConnectionKind
from ..engine_core.identity import ClueType, Identity
from ..engine_core.rules import is_basic_trash, is_critical
from .connecting import find_connecting
from .focus import FocusResult

if TYPE_CHECKING:
    from ..game import Game
    from ..schemas import ClueEvent

logger = logging.getLogger(__name__)


@dataclass
class FocusPossibility:
    identity: Identity
    connections: list[Connection] = field(default_factory=list)
    save: bool = False


def find_focus_possible(game: Game, action: ClueEvent, focus: FocusResult) -> list[FocusPossibility]:
    state = game.state
    clue = action.clue
    possibilities: list[FocusPossibility] = []

    if focus.chop:
        possibilities.extend(_save_possibilities(game, action))

    if clue.type == ClueType.COLOUR:
        possibilities.extend(_colour_possibilities(game, action, focus, clue.value))
    else:
        for suit in range(len(state.variant.suits)):
            possibility = _rank_possibility(game, action, focus, suit, clue.value)
            if possibility is not None:
                possibilities.append(possibility)

    # Keep the first (save) entry for any identity listed twice
    unique: dict[Identity, FocusPossibility] = {}
    for possibility in possibilities:
        unique.setdefault(possibility.identity, possibility)

    logger.info("focus possible %s", state.variant.log_cards(unique))
    return list(unique.values())


def _save_possibilities(game: Game, action: ClueEvent) -> list[FocusPossibility]:
    state = game.state
    base = action.clue.to_base()
    saves = []

    for identity in state.variant.clue_possibilities(base):
        if is_basic_trash(state, identity):
            continue
        if base.type == ClueType.RANK and base.value in (2, 5):
            saves.append(FocusPossibility(identity, save=True))
        elif is_critical(state, identity):
            saves.append(FocusPossibility(identity, save=True))

    return sorted(saves, key=lambda p: p.identity)


def _colour_possibilities(game: Game, action: ClueEvent, focus: FocusResult, suit: int) -> list[FocusPossibility]:
    state = game.state
    possibilities = []
    connections: list[Connection] = []
    ignore = [focus.order]

    next_rank = state.play_stacks[suit] + 1
    while next_rank <= state.max_ranks[suit]:
        identity = Identity(suit, next_rank)
        found = find_connecting(game, action.giver, action.target, identity, ignore)
        if not found:
            possibilities.append(FocusPossibility(identity, list(connections)))
            break

        last = found[-1]
        if last.kind == ConnectionKind.FINESSE and not last.hidden:
            # Could also be a direct play clue on this rank
            possibilities.append(FocusPossibility(identity, list(connections)))

        connections.extend(found)
        ignore.extend(c.order for c in found)
        next_rank += 1

    return possibilities


def _rank_possibility(game: Game, action: ClueEvent, focus: FocusResult, suit: int, rank: int):
    state = game.state
    identity = Identity(suit, rank)
    if is_basic_trash(state, identity):
        return None

    connections: list[Connection] = []
    ignore = [focus.order]

    for next_rank in range(state.play_stacks[suit] + 1, rank):
        found = find_connecting(game, action.giver, action.target, Identity(suit, next_rank), ignore)
        if not found:
            return None
        connections.extend(found)
        ignore.extend(c.order for c in found)

    return FocusPossibility(identity, connections)
