"""
Game - Applies turn events to the table and every knowledge view.

Game is the single point of mutation for live state. Events are validated
before anything changes; a malformed feed raises ProtocolViolation and
leaves the turn unprocessed. Each turn allows one clue, play or discard,
and turn numbers must count up by one.

Design principles:
- One KnowledgeView for common knowledge plus one per seat
- Each event is processed completely before the next is accepted
- Searches work on minimal_copy() and never touch live knowledge
- Replaying the same events from an empty game gives the same knowledge
"""

from __future__ import annotations
from copy import copy, deepcopy
from typing import Any, Iterable, Optional, Union
import logging

from .config import EngineConfig
from .conventions.interpret_clue import ClueInterpretation, interpret_clue
from .conventions.waiting import (
    cancel_seen_finesses, cleanup_waiting_connections, update_ambiguous_finesses, update_waiting_connections,
)
from .engine_core.elimination import card_elim, good_touch_elim, sync_views
from .engine_core.identity import Clue, ClueType, MAX_RANK, NO_VARIANT, Variant
from .engine_core.knowledge import CardKnowledge, KnowledgeView
from .engine_core.state import Card, GameState, ProtocolViolation
from .schemas import (
    CardReport, ClueEvent, ClueSpec, DiscardEvent, DrawEvent, GameReport, GameSetup,
    PlayEvent, TurnEvent, ViewReport, WaitingReport, parse_event,
)

logger = logging.getLogger(__name__)

MAX_CLUE_TOKENS = 8

Event = Union[DrawEvent, ClueEvent, PlayEvent, DiscardEvent, TurnEvent]


def card_note(variant: Variant, thought: CardKnowledge) -> str:
    """Note text for a card, e.g. '[f] t3: r1,r2'."""
    if not thought.reasoning_turn:
        return ""
    note = f"t{thought.reasoning_turn[-1]}: {variant.log_cards(thought.inferred)}"
    return f"[f] {note}" if thought.finessed else note


class Game:
    """
    One player's view of a game in progress.

    state holds the public table plus the cards we can see. common holds
    common knowledge and players[seat] holds what each seat knows.
    next_finesse can be filled by the caller with clues given later in the
    same round, which refine layered finesses.
    """

    def __init__(
        self,
        our_seat: int,
        player_names: list[str],
        variant: Variant = NO_VARIANT,
        config: Optional[EngineConfig] = None,
    ):
        if not 0 <= our_seat < len(player_names):
            raise ValueError(f"Seat {our_seat} is not at a {len(player_names)} player table")

        self.config = config or EngineConfig.from_env()
        self.state = GameState.create(player_names, our_seat, variant)

        num_suits = len(variant.suits)
        self.common = KnowledgeView(seat=None, hypo_stacks=[0] * num_suits)
        self.players = [KnowledgeView(seat=i, hypo_stacks=[0] * num_suits) for i in range(len(player_names))]
        self.next_finesse: list[ClueEvent] = []

    @property
    def me(self) -> KnowledgeView:
        return self.players[self.state.our_seat]

    @property
    def level(self) -> int:
        return self.config.level

    def views(self) -> list[KnowledgeView]:
        return [self.common, *self.players]

    # =========================================================================
    # Event handling
    # =========================================================================

    def handle_event(self, event: Union[Event, dict[str, Any], str]) -> Optional[ClueInterpretation]:
        """
        Apply one turn event.

        Returns the interpretation for clue events and None otherwise.
        Raises ProtocolViolation if the event doesn't fit the current state.
        """
        if isinstance(event, (dict, str)):
            event = parse_event(event)

        error = self._validate_event(event)
        if error:
            raise ProtocolViolation(error)

        handler = self._get_handler(event)
        self.state.action_list.append(event)
        return handler(event)

    def _validate_event(self, event: Event) -> Optional[str]:
        """Returns an error message if the event is invalid, None if valid."""
        state = self.state
        num_suits = len(state.variant.suits)

        seats = {
            DrawEvent: lambda e: [e.seat],
            ClueEvent: lambda e: [e.giver, e.target],
            PlayEvent: lambda e: [e.seat],
            DiscardEvent: lambda e: [e.seat],
            TurnEvent: lambda e: [e.next_seat],
        }[type(event)](event)
        for seat in seats:
            if not 0 <= seat < state.num_players:
                return f"Seat {seat} does not exist"

        if isinstance(event, DrawEvent):
            if event.order <= state.card_order:
                return f"Draw order {event.order} is not after {state.card_order}"
            if event.identity is not None and event.identity.suit_index >= num_suits:
                return f"Suit {event.suit_index} does not exist"

        elif isinstance(event, ClueEvent):
            if event.giver != state.current_seat:
                return f"Not seat {event.giver}'s turn"
            if state.acted:
                return f"Seat {event.giver} already acted on turn {state.turn_count}"
            if event.giver == event.target:
                return "Players cannot clue themselves"
            if state.clue_tokens <= 0:
                return "No clue tokens left"
            if event.clue.type == ClueType.COLOUR and event.clue.value >= num_suits:
                return f"Colour {event.clue.value} does not exist"
            if event.clue.type == ClueType.RANK and not 1 <= event.clue.value <= MAX_RANK:
                return f"Rank {event.clue.value} does not exist"
            hand_orders = set(state.hands[event.target].orders())
            for order in event.touched:
                if order not in hand_orders:
                    return f"Card {order} is not in seat {event.target}'s hand"

        elif isinstance(event, (PlayEvent, DiscardEvent)):
            if event.seat != state.current_seat:
                return f"Not seat {event.seat}'s turn"
            if state.acted:
                return f"Seat {event.seat} already acted on turn {state.turn_count}"
            if state.hands[event.seat].find_order(event.order) is None:
                return f"Card {event.order} is not in seat {event.seat}'s hand"
            if event.suit_index >= num_suits:
                return f"Suit {event.suit_index} does not exist"
            if isinstance(event, PlayEvent) and event.rank != state.play_stacks[event.suit_index] + 1:
                return f"{state.variant.log_card(event.identity)} does not play on stack {state.play_stacks[event.suit_index]}"

        elif isinstance(event, TurnEvent):
            if event.turn_number != state.turn_count + 1:
                return f"Turn {event.turn_number} does not follow turn {state.turn_count}"

        return None

    def _get_handler(self, event: Event):
        handlers = {
            DrawEvent: self._handle_draw,
            ClueEvent: self._handle_clue,
            PlayEvent: self._handle_play,
            DiscardEvent: self._handle_discard,
            TurnEvent: self._handle_turn,
        }
        return handlers[type(event)]

    def _handle_draw(self, event: DrawEvent) -> None:
        state = self.state
        card = Card(order=event.order, identity=event.identity, drawn_turn=state.turn_count)
        state.hands[event.seat].draw(card)
        state.card_order = event.order

        self.common.add_card(card, state.variant, visible=False)
        for view in self.players:
            view.add_card(card, state.variant, visible=view.can_see(state, card.order) and card.identity is not None)

        for view in self.views():
            card_elim(view, state)

    def _handle_clue(self, event: ClueEvent) -> ClueInterpretation:
        state = self.state
        state.clue_tokens -= 1
        state.acted = True

        base = event.clue.to_base()
        for order in event.touched:
            state.find_card(order).clues.append(base)

        # Cluing instead of playing is a pass on any ambiguous finesse
        update_ambiguous_finesses(self, event.giver)
        interpretation = interpret_clue(self, event)
        cleanup_waiting_connections(self)
        cancel_seen_finesses(self, event)
        logger.info("%s clued %s: %s", state.player_names[event.giver], state.player_names[event.target],
                    interpretation.value)
        return interpretation

    def _handle_play(self, event: PlayEvent) -> None:
        state = self.state
        identity = event.identity
        state.acted = True

        self._reveal(event.seat, event.order, event)
        state.play_stacks[identity.suit_index] = identity.rank
        if identity.rank == MAX_RANK and state.clue_tokens < MAX_CLUE_TOKENS:
            state.clue_tokens += 1

        update_waiting_connections(self, event.seat, event.order, identity, played=True)
        self._refresh()

    def _handle_discard(self, event: DiscardEvent) -> None:
        state = self.state
        identity = event.identity
        suit, rank = identity.suit_index, identity.rank
        state.acted = True

        if not event.failed:
            update_ambiguous_finesses(self, event.seat, event.order)
        self._reveal(event.seat, event.order, event)
        state.discard_stacks[suit][rank - 1] += 1

        # Every copy gone: nothing above this rank can be played
        if state.discard_stacks[suit][rank - 1] == state.variant.card_count(identity) and state.max_ranks[suit] > rank - 1:
            state.max_ranks[suit] = rank - 1

        if event.failed:
            state.strikes += 1
        elif state.clue_tokens < MAX_CLUE_TOKENS:
            state.clue_tokens += 1
        state.early_game = False

        update_waiting_connections(self, event.seat, event.order, identity, played=False)
        self._refresh()

    def _handle_turn(self, event: TurnEvent) -> None:
        self.state.current_seat = event.next_seat
        self.state.turn_count = event.turn_number
        self.state.acted = False
        for view in self.views():
            for thought in view.thoughts.values():
                thought.newly_clued = False

    def _reveal(self, seat: int, order: int, event: Union[PlayEvent, DiscardEvent]):
        card = self.state.hands[seat].remove(order)
        card.identity = event.identity
        for view in self.views():
            view.reveal(order, event.identity)

    def _refresh(self):
        state = self.state
        card_elim(self.common, state)
        good_touch_elim(self.common, state)
        self.common.update_hypo_stacks(state)
        sync_views(self)

    # =========================================================================
    # Copies
    # =========================================================================

    def minimal_copy(self) -> Game:
        """
        A scratch game for hypothetical searches.

        Play stacks and common knowledge are copied. Hands, seat views and
        the history are shared and must be treated as read-only.
        """
        hypo = copy(self)
        hypo.state = copy(self.state)
        hypo.state.play_stacks = list(self.state.play_stacks)
        hypo.common = self.common.copy()
        return hypo

    def simulate_clue(self, clue: Clue) -> Game:
        """A deep copy of the game after we give the clue."""
        touched = [
            card.order for card in self.state.hands[clue.target]
            if card.identity is not None and self.state.variant.touches(card.identity, clue)
        ]
        event = ClueEvent(
            giver=self.state.our_seat,
            target=clue.target,
            clue=ClueSpec(type=clue.type, value=clue.value),
            touched=touched,
        )

        sim = deepcopy(self)
        sim.state.action_list.append(event)
        sim.state.clue_tokens = max(sim.state.clue_tokens - 1, 0)
        interpret_clue(sim, event)
        return sim

    @classmethod
    def replay(cls, setup: GameSetup, events: Iterable[Union[Event, dict[str, Any], str]],
               config: Optional[EngineConfig] = None) -> Game:
        """Build a game from its setup and full event history."""
        variant = Variant(name="custom", suits=list(setup.suits))
        game = cls(setup.our_seat, setup.players, variant, config or EngineConfig(level=setup.level))
        game.state.current_seat = setup.starting_seat
        for event in events:
            game.handle_event(event)
        return game

    # =========================================================================
    # Reports
    # =========================================================================

    def report(self) -> GameReport:
        state = self.state
        return GameReport(
            turn=state.turn_count,
            current_seat=state.current_seat,
            play_stacks=list(state.play_stacks),
            clue_tokens=state.clue_tokens,
            strikes=state.strikes,
            common=self._view_report(self.common, "common"),
            players=[self._view_report(view, state.player_names[view.seat]) for view in self.players],
            waiting_connections=[
                WaitingReport(
                    focused_order=waiting.focused_order,
                    inference=state.variant.log_card(waiting.inference),
                    giver=waiting.giver,
                    target=waiting.target,
                    turn=waiting.turn,
                    connections=[
                        f"{c.kind.value}:{state.player_names[c.reacting]}:{c.order}"
                        for c in waiting.connections
                    ],
                    resolved=waiting.resolved,
                )
                for waiting in self.common.waiting_connections
            ],
        )

    def _view_report(self, view: KnowledgeView, observer: str) -> ViewReport:
        state = self.state
        variant = state.variant
        hands: dict[str, list[CardReport]] = {}

        for hand in state.hands:
            cards = []
            for slot, card in enumerate(hand, start=1):
                thought = view.thoughts[card.order]
                cards.append(CardReport(
                    order=card.order,
                    slot=slot,
                    identity=variant.log_card(card.identity) if card.identity is not None else None,
                    possible=[variant.log_card(i) for i in sorted(thought.possible)],
                    inferred=[variant.log_card(i) for i in sorted(thought.inferred)],
                    clued=thought.clued,
                    finessed=thought.finessed,
                    chop_moved=thought.chop_moved,
                    reset=thought.reset,
                    note=card_note(variant, thought),
                ))
            hands[state.player_names[hand.seat]] = cards

        return ViewReport(observer=observer, hypo_stacks=list(view.hypo_stacks), hands=hands)
