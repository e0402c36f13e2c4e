"""
Test harness - Build games from short card strings and drive them with sentences.

    game = setup([["xx"] * 5, ["r4", "r4", "g4", "r5", "b4"], ...], level=5)
    take_turn(game, "Bob clues green to Alice (slot 2)")
    take_turn(game, "Cathy discards p3", "r1")

We always sit in seat 0 (Alice). Hands are written slot 1 first.
"""

from typing import Optional

from ..config import EngineConfig
from ..engine_core.elimination import card_elim
from ..engine_core.identity import ClueType, Clue, NO_VARIANT, Identity
from ..game import Game
from ..schemas import ClueEvent, ClueSpec, DiscardEvent, DrawEvent, PlayEvent, TurnEvent


NAMES = ["Alice", "Bob", "Cathy", "Donald", "Emily"]

ALICE, BOB, CATHY, DONALD, EMILY = range(5)


def setup(
    hands: list[list[str]],
    level: int = 1,
    starting: int = ALICE,
    play_stacks: Optional[list[int]] = None,
    discarded: tuple[str, ...] = (),
    clue_tokens: int = 8,
) -> Game:
    """Deal the given hands and set up the table."""
    variant = NO_VARIANT
    game = Game(ALICE, NAMES[:len(hands)], variant, EngineConfig(level=level))
    state = game.state

    order = 0
    for seat, hand in enumerate(hands):
        for short in reversed(hand):
            identity = variant.parse_card(short)
            game.handle_event(DrawEvent(
                order=order,
                seat=seat,
                suit_index=identity.suit_index if identity else -1,
                rank=identity.rank if identity else -1,
            ))
            order += 1

    if play_stacks is not None:
        state.play_stacks = list(play_stacks)
        for view in game.views():
            view.hypo_stacks = list(play_stacks)

    for short in discarded:
        identity = variant.parse_card(short)
        suit, rank = identity.suit_index, identity.rank
        state.discard_stacks[suit][rank - 1] += 1
        if state.discard_stacks[suit][rank - 1] == variant.card_count(identity) and state.max_ranks[suit] > rank - 1:
            state.max_ranks[suit] = rank - 1

    for view in game.views():
        card_elim(view, state)

    state.current_seat = starting
    state.clue_tokens = clue_tokens
    return game


def _parse_slots(text: str) -> list[int]:
    """'(slot 2)' or '(slots 2,4)' -> [2] or [2, 4]."""
    inner = text[text.index("(") + 1:text.index(")")]
    return [int(slot) for slot in inner.split(" ", 1)[1].split(",")]


def _find_in_hand(game: Game, seat: int, identity: Identity, rest: str) -> int:
    hand = game.state.hands[seat]
    if seat == game.state.our_seat or "(" in rest:
        return hand[_parse_slots(rest)[0] - 1].order

    for card in hand:
        if card.identity == identity:
            return card.order
    raise ValueError(f"Unable to find {game.state.variant.log_card(identity)} in seat {seat}'s hand")


def parse_action(game: Game, raw: str):
    """Parse a sentence like 'Bob clues 2 to Alice (slot 3)' into an event."""
    state = game.state
    variant = state.variant
    parts = raw.split(" ")
    seat = state.player_names.index(parts[0])
    verb = parts[1]

    if verb == "clues":
        value = parts[2]
        if value.isdigit():
            clue = ClueSpec(type=ClueType.RANK, value=int(value))
        else:
            clue = ClueSpec(type=ClueType.COLOUR, value=variant.suit_index(value))

        target = state.player_names.index(parts[4])
        if target == state.our_seat:
            touched = [state.hands[target][slot - 1].order for slot in _parse_slots(raw)]
        else:
            full = Clue(clue.type, clue.value, target)
            touched = [c.order for c in state.hands[target] if variant.touches(c.identity, full)]
        return ClueEvent(giver=seat, target=target, clue=clue, touched=touched)

    identity = variant.parse_card(parts[2])
    rest = " ".join(parts[3:])
    order = _find_in_hand(game, seat, identity, rest)

    if verb == "plays":
        return PlayEvent(seat=seat, order=order, suit_index=identity.suit_index, rank=identity.rank)
    if verb in ("discards", "bombs"):
        return DiscardEvent(seat=seat, order=order, suit_index=identity.suit_index, rank=identity.rank,
                            failed=verb == "bombs")

    raise ValueError(f"Unable to parse action {raw!r}")


def take_turn(game: Game, raw: str, draw: str = "xx"):
    """Apply an action, the replacement draw, and pass the turn. Returns the clue interpretation."""
    state = game.state
    event = parse_action(game, raw)
    interpretation = game.handle_event(event)

    if isinstance(event, (PlayEvent, DiscardEvent)):
        if draw == "xx" and state.current_seat != state.our_seat:
            raise ValueError(f"Missing draw for {state.player_names[state.current_seat]}'s action ({raw})")
        identity = state.variant.parse_card(draw)
        game.handle_event(DrawEvent(
            order=state.card_order + 1,
            seat=state.current_seat,
            suit_index=identity.suit_index if identity else -1,
            rank=identity.rank if identity else -1,
        ))

    game.handle_event(TurnEvent(
        next_seat=(state.current_seat + 1) % state.num_players,
        turn_number=state.turn_count + 1,
    ))
    return interpretation


def inferences(game: Game, seat: int, slot: int, view=None) -> list[str]:
    """Short forms of a card's inferred identities, sorted."""
    view = view or game.common
    order = game.state.hands[seat][slot - 1].order
    return sorted(game.state.variant.log_card(i) for i in view.thoughts[order].inferred)


def thought(game: Game, seat: int, slot: int, view=None):
    view = view or game.common
    return view.thoughts[game.state.hands[seat][slot - 1].order]
