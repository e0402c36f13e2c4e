"""
Clue Finder - Every useful clue we could give this turn.

For each other seat, cards are scanned from chop to slot 1:
- the chop card gets a save clue if it needs one
- the rightmost unclued trash card off chop may allow a trash chop move
- the rightmost unclued 5 one slot left of chop may allow a 5's chop move
- everything else is tried as a play clue via determine_clue

Cards that are finessed, already touched elsewhere, or part of a pending
waiting connection are skipped. Fix clues are searched separately.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Union
import logging

from ..engine_core.identity import Clue, ClueType
from ..engine_core.rules import is_basic_trash, is_critical, is_saved, is_trash, visible_find
from ..engine_core.state import Card
from ..conventions.focus import find_chop
from ..schemas import AdvisorReport, ClueReport
from .determine_clue import ClueResult, clue_safe, determine_clue, focus_before_clue, touched_orders
from .fix_clues import find_fix_clues

if TYPE_CHECKING:
    from ..game import Game

logger = logging.getLogger(__name__)

SaveClue = Union[Clue, ClueResult]


@dataclass
class AdvisorResult:
    """Clues found for each seat, indexed by seat."""
    play_clues: list[list[ClueResult]] = field(default_factory=list)
    save_clues: list[Optional[SaveClue]] = field(default_factory=list)
    fix_clues: list[list[Clue]] = field(default_factory=list)


def find_save(game: Game, target: int, card: Card) -> Optional[SaveClue]:
    """A clue that saves the chop card, or None if it doesn't need one."""
    state = game.state
    identity = card.identity

    if is_basic_trash(state, identity):
        return None

    if is_critical(state, identity):
        logger.info("saving critical card %s", state.variant.log_card(identity))
        if identity.rank == 5:
            return Clue(ClueType.RANK, 5, target)
        # On chop, so any clue touching it focuses it
        return determine_clue(game, target, card)

    if identity.rank == 2:
        clue = Clue(ClueType.RANK, 2, target)
        save2 = (
            state.play_stacks[identity.suit_index] == 0
            and len(visible_find(state, game.me, identity)) == 1
            and not any(game.me.thoughts[c.order].matches(identity, infer=True) for c in state.our_hand)
            and clue_safe(game, clue)
        )
        if save2:
            return clue

    return None


def find_tcm(game: Game, target: int, saved_cards: list[Card], trash_card: Card) -> Optional[Clue]:
    """A trash chop move on trash_card, saving every card right of it. Unseen cards can't be judged."""
    state = game.state
    common = game.common
    variant = state.variant
    chop = saved_cards[-1]
    if trash_card.identity is None or any(c.identity is None for c in saved_cards):
        return None

    logger.info("saved cards %s, trash card %s", ",".join(variant.log_card(c.identity) for c in saved_cards),
                variant.log_card(trash_card.identity))

    # A direct save is preferred over a trash chop move
    if is_critical(state, chop.identity) and (
        all(c.identity.suit_index == chop.identity.suit_index for c in saved_cards)
        or all(c.identity.rank == chop.identity.rank for c in saved_cards)
    ):
        logger.info("prefer direct save")
        return None

    saved_trash = sum(1 for c in saved_cards if is_trash(state, common, c.identity, c.order))

    # At most one trash card saved, and more useful cards than trash
    if saved_trash > 1 or len(saved_cards) - saved_trash <= saved_trash:
        return None

    suit, rank = trash_card.identity.suit_index, trash_card.identity.rank

    colour_clue = Clue(ClueType.COLOUR, suit, target)
    colour_correct = (
        state.play_stacks[suit] == state.max_ranks[suit]
        and focus_before_clue(game, target, touched_orders(game, colour_clue)) == trash_card.order
    )

    rank_clue = Clue(ClueType.RANK, rank, target)
    rank_correct = (
        all(state.play_stacks[i] >= rank or state.max_ranks[i] < rank for i in range(len(variant.suits)))
        and focus_before_clue(game, target, touched_orders(game, rank_clue)) == trash_card.order
    )

    logger.info("colour correct %s, rank correct %s", colour_correct, rank_correct)
    if rank_correct:
        return rank_clue
    if colour_correct:
        return colour_clue
    return None


def find_5cm(game: Game, target: int, chop: Card) -> Optional[Clue]:
    """A 5's chop move, if the chop card is seen, useful and not saved elsewhere."""
    state = game.state
    identity = chop.identity
    if identity is None:
        return None
    suit = identity.suit_index

    if game.common.hypo_stacks[suit] < identity.rank <= state.max_ranks[suit] \
            and not is_saved(state, game.me, identity, chop.order):
        return Clue(ClueType.RANK, 5, target)
    return None


def _valid_5cm(game: Game, target: int, index: int, chop_index: int) -> bool:
    hand = game.state.hands[target]
    for j in range(index + 1, chop_index + 1):
        thought = game.common.thoughts[hand[j].order]
        if thought.clued or thought.finessed:
            continue
        # Only the first unclued card right of the 5 counts
        return j == chop_index
    return False


def find_clues(game: Game, ignore_seat: Optional[int] = None, ignore_cm: bool = False) -> AdvisorResult:
    """Find play, save and fix clues for every other seat."""
    state = game.state
    common = game.common
    num_players = state.num_players

    result = AdvisorResult(
        play_clues=[[] for _ in range(num_players)],
        save_clues=[None] * num_players,
    )
    logger.info("play/hypo/max stacks in clue finder: %s %s %s",
                state.play_stacks, common.hypo_stacks, state.max_ranks)

    for target in range(num_players):
        if target in (state.our_seat, ignore_seat):
            continue

        hand = state.hands[target]
        chop_order = find_chop(hand, common)
        chop_index = hand.index_of(chop_order)
        found_tcm = tried_5cm = False

        for index in range(len(hand) - 1, -1, -1):
            card = hand[index]
            identity = card.identity
            thought = common.thoughts[card.order]
            if identity is None:
                continue

            duplicates = visible_find(state, game.me, identity)
            if thought.finessed \
                    or any(c.order != card.order and common.thoughts[c.order].touched for c in duplicates) \
                    or any(w.inference.suit_index == identity.suit_index and identity.rank <= w.inference.rank
                           for w in common.waiting_connections):
                continue

            if index == chop_index:
                result.save_clues[target] = find_save(game, target, card)

            if is_basic_trash(state, identity):
                if not ignore_cm and not (thought.clued or thought.chop_moved) and index != chop_index \
                        and chop_index != -1 and not found_tcm:
                    logger.info("looking for tcm on %s", state.variant.log_card(identity))
                    saved_cards = [c for c in hand.cards[index + 1:]
                                   if not (common.thoughts[c.order].clued or common.thoughts[c.order].chop_moved)]
                    result.save_clues[target] = find_tcm(game, target, saved_cards, card) or result.save_clues[target]
                    found_tcm = True
                continue

            if not ignore_cm and index != chop_index and chop_index != -1 and not tried_5cm \
                    and not (thought.clued or thought.chop_moved) and identity.rank == 5 and not state.early_game:
                logger.info("trying 5cm")
                tried_5cm = True
                if _valid_5cm(game, target, index, chop_index):
                    result.save_clues[target] = find_5cm(game, target, hand[chop_index]) or result.save_clues[target]
                    continue

            clue = determine_clue(game, target, card)
            if clue is None:
                continue

            if clue.playables == 0:
                if index != chop_index:
                    logger.info("found clue %s that wasn't a save/tcm/5cm/play", describe_clue(game, clue.clue))
                continue

            result.play_clues[target].append(clue)

            # A playable chop card with no visible duplicate is saved by its play clue
            if index == chop_index and len(duplicates) == 1:
                result.save_clues[target] = clue

    result.fix_clues = find_fix_clues(game)

    logger.info("found play clues %s", [[describe_clue(game, c.clue) for c in clues] for clues in result.play_clues])
    logger.info("found save clues %s", [describe_clue(game, _as_clue(c)) if c else None for c in result.save_clues])
    logger.debug("found fix clues %s", [[describe_clue(game, c) for c in clues] for clues in result.fix_clues])
    return result


def _as_clue(save: SaveClue) -> Clue:
    return save.clue if isinstance(save, ClueResult) else save


def describe_clue(game: Game, clue: Clue) -> str:
    """Readable clue text, e.g. 'red to Bob' or '3 to Cathy'."""
    state = game.state
    value = state.variant.suits[clue.value].lower() if clue.type == ClueType.COLOUR else str(clue.value)
    return f"{value} to {state.player_names[clue.target]}"


def _clue_report(game: Game, clue: Clue) -> ClueReport:
    return ClueReport(
        target=game.state.player_names[clue.target],
        type=clue.type,
        value=clue.value,
        text=describe_clue(game, clue),
    )


def advisor_report(game: Game, result: AdvisorResult) -> AdvisorReport:
    """Advisor output keyed by player name, for callers outside the engine."""
    state = game.state
    report = AdvisorReport()

    for seat, name in enumerate(state.player_names):
        if seat == state.our_seat:
            continue
        report.play_clues[name] = [_clue_report(game, c.clue) for c in result.play_clues[seat]]
        save = result.save_clues[seat]
        report.save_clues[name] = _clue_report(game, _as_clue(save)) if save is not None else None
        report.fix_clues[name] = [_clue_report(game, c) for c in result.fix_clues[seat]]

    return report
