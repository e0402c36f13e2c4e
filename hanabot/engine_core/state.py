"""
Game State - The public table plus the cards this engine can see.

Design principles:
- Cards are keyed by a global draw order that is never reused
- Hands list cards left to right; slot 1 is the newest card
- The true identity of a card is stored only when this engine can see it
- Knowledge about cards lives in KnowledgeView, not here
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Iterator

from .identity import BaseClue, Identity, Variant, MAX_RANK


class ProtocolViolation(Exception):
    """Raised when the event feed references unknown seats/cards or arrives out of order."""


@dataclass
class Card:
    """
    A physical card in a hand.

    identity is None for cards in our own hand until they are revealed.
    """
    order: int
    identity: Identity | None = None
    drawn_turn: int = 0
    clues: list[BaseClue] = field(default_factory=list)


@dataclass
class Hand:
    """A seat's hand, ordered from slot 1 (left, newest) to the chop side."""
    seat: int
    cards: list[Card] = field(default_factory=list)

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards)

    def __len__(self) -> int:
        return len(self.cards)

    def __getitem__(self, index: int) -> Card:
        return self.cards[index]

    def orders(self) -> list[int]:
        return [c.order for c in self.cards]

    def find_order(self, order: int) -> Card | None:
        for card in self.cards:
            if card.order == order:
                return card
        return None

    def index_of(self, order: int) -> int:
        for i, card in enumerate(self.cards):
            if card.order == order:
                return i
        return -1

    def draw(self, card: Card):
        """New cards go to slot 1."""
        self.cards.insert(0, card)

    def remove(self, order: int) -> Card:
        card = self.find_order(order)
        if card is None:
            raise ProtocolViolation(f"Card {order} is not in seat {self.seat}'s hand")
        self.cards = [c for c in self.cards if c.order != order]
        return card


@dataclass
class GameState:
    """
    Complete public state at a point in time.

    Stacks are indexed by suit. play_stacks holds the highest played rank,
    discard_stacks[suit][rank - 1] counts discarded copies and max_ranks
    drops when every copy of a rank is gone.
    """
    variant: Variant
    player_names: list[str]
    our_seat: int
    hands: list[Hand] = field(default_factory=list)

    play_stacks: list[int] = field(default_factory=list)
    discard_stacks: list[list[int]] = field(default_factory=list)
    max_ranks: list[int] = field(default_factory=list)

    clue_tokens: int = 8
    strikes: int = 0
    turn_count: int = 1
    current_seat: int = 0
    early_game: bool = True
    card_order: int = -1  # Highest order drawn so far
    acted: bool = False  # The seat on turn has already clued, played or discarded

    # Every handled event, in order
    action_list: list[Any] = field(default_factory=list)

    @classmethod
    def create(cls, player_names: list[str], our_seat: int, variant: Variant) -> GameState:
        num_suits = len(variant.suits)
        return cls(
            variant=variant,
            player_names=list(player_names),
            our_seat=our_seat,
            hands=[Hand(seat=i) for i in range(len(player_names))],
            play_stacks=[0] * num_suits,
            discard_stacks=[[0] * MAX_RANK for _ in range(num_suits)],
            max_ranks=[MAX_RANK] * num_suits,
        )

    @property
    def num_players(self) -> int:
        return len(self.player_names)

    @property
    def our_hand(self) -> Hand:
        return self.hands[self.our_seat]

    def seat_of(self, order: int) -> int | None:
        for hand in self.hands:
            if hand.find_order(order) is not None:
                return hand.seat
        return None

    def find_card(self, order: int) -> Card | None:
        for hand in self.hands:
            card = hand.find_order(order)
            if card is not None:
                return card
        return None

    def hand_orders(self) -> list[int]:
        return [c.order for hand in self.hands for c in hand]

    def base_count(self, identity: Identity) -> int:
        """Copies of an identity that are played or discarded."""
        played = 1 if self.play_stacks[identity.suit_index] >= identity.rank else 0
        return played + self.discard_stacks[identity.suit_index][identity.rank - 1]
