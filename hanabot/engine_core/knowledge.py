"""
Card Knowledge - What each observer believes about each card.

There is one KnowledgeView for common (public) knowledge and one per seat.
Views are independent dicts keyed by card order; they never point at each
other. A seat view follows common except for finesses on its own cards that
the seat has privately cancelled.

Invariants kept by CardKnowledge:
- inferred is a subset of possible
- if possible is non-empty, inferred is non-empty (falls back to possible)
- possible only shrinks
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable
from copy import deepcopy
import logging

from .identity import Identity, Variant
from .state import Card, GameState, Hand
from .connection import WaitingConnection

logger = logging.getLogger(__name__)


@dataclass
class CardKnowledge:
    """
    One view's beliefs about one card.

    known is the true identity when the view can see the card.
    """
    order: int
    possible: set[Identity]
    inferred: set[Identity]
    known: Identity | None = None

    clued: bool = False
    newly_clued: bool = False
    finessed: bool = False
    chop_moved: bool = False
    reset: bool = False
    rewinded: bool = False
    hidden: bool = False
    focused: bool = False
    called_to_discard: bool = False
    superposition: bool = False
    certain_finessed: bool = False
    finesse_index: int = -1

    old_inferred: set[Identity] | None = None

    # Audit log: action index and turn of every convention inference
    reasoning: list[int] = field(default_factory=list)
    reasoning_turn: list[int] = field(default_factory=list)

    @property
    def touched(self) -> bool:
        return self.clued or self.finessed

    @property
    def saved(self) -> bool:
        return self.clued or self.finessed or self.chop_moved

    def identity(self, infer: bool = False) -> Identity | None:
        """The identity if seen or deduced (or inferred, with infer=True)."""
        if self.known is not None:
            return self.known
        if len(self.possible) == 1:
            return next(iter(self.possible))
        if infer and len(self.inferred) == 1:
            return next(iter(self.inferred))
        return None

    def matches(self, identity: Identity, assume: bool = False, infer: bool = False) -> bool:
        """
        Whether the card is the identity.

        With assume=True an unidentified card matches anything still possible.
        """
        own = self.identity(infer=infer)
        if own is not None:
            return own == identity
        return assume and identity in self.possible

    def set_inferred(self, identities: Iterable[Identity]) -> bool:
        """
        Replace inferred, keeping the invariants.

        Returns True if the new set was empty and inferred fell back to possible.
        """
        new_inferred = set(identities) & self.possible
        if not new_inferred and self.possible:
            logger.debug("card %d lost all inferences, resetting to possible", self.order)
            self.inferred = set(self.possible)
            self.reset = True
            return True
        self.inferred = new_inferred
        return False

    def intersect(self, identities: Iterable[Identity]) -> bool:
        return self.set_inferred(self.inferred & set(identities))

    def subtract(self, identities: Iterable[Identity]) -> bool:
        return self.set_inferred(self.inferred - set(identities))

    def restrict_possible(self, identities: Iterable[Identity]) -> bool:
        """
        Narrow possible (never widen, never empty).

        Returns False when the restriction would leave nothing possible. The
        card is then inconsistent: inferred falls back to possible and the
        card is flagged reset.
        """
        new_possible = self.possible & set(identities)
        if not new_possible:
            logger.warning("card %d would have no possible identities, resetting to %d",
                           self.order, len(self.possible))
            self.reset_inferred()
            return False
        self.possible = new_possible
        self.set_inferred(self.inferred)
        return True

    def reset_inferred(self):
        self.inferred = set(self.possible)
        self.reset = True

    def record_reasoning(self, action_index: int, turn: int):
        if not self.reasoning or self.reasoning[-1] != action_index:
            self.reasoning.append(action_index)
            self.reasoning_turn.append(turn)


@dataclass
class EliminationRecord:
    """One direct elimination, kept so it can be undone."""
    order: int
    identity: Identity
    previous: frozenset[Identity]


@dataclass
class KnowledgeView:
    """
    Beliefs of one observer.

    seat is None for common knowledge.
    """
    seat: int | None
    thoughts: dict[int, CardKnowledge] = field(default_factory=dict)
    hypo_stacks: list[int] = field(default_factory=list)
    unknown_plays: set[int] = field(default_factory=set)
    playable_orders: set[int] = field(default_factory=set)
    waiting_connections: list[WaitingConnection] = field(default_factory=list)
    elim_records: dict[Identity, list[EliminationRecord]] = field(default_factory=dict)

    # Finesses this seat has ruled out on its own cards while common still expects them
    cancelled: set[int] = field(default_factory=set)

    @property
    def is_common(self) -> bool:
        return self.seat is None

    def can_see(self, state: GameState, order: int) -> bool:
        """Whether this observer sees the card's face (and this engine does too)."""
        if self.is_common:
            return False
        holder = state.seat_of(order)
        return holder is not None and holder != self.seat and holder != state.our_seat

    def add_card(self, card: Card, variant: Variant, visible: bool):
        everything = set(variant.all_identities())
        self.thoughts[card.order] = CardKnowledge(
            order=card.order,
            possible=set(everything),
            inferred=set(everything),
            known=card.identity if visible else None,
        )

    def reveal(self, order: int, identity: Identity):
        """A card's identity became public (played or discarded)."""
        thought = self.thoughts[order]
        thought.known = identity
        if identity in thought.possible:
            thought.possible = {identity}
        else:
            logger.warning("revealed identity for card %d was not thought possible", order)
            thought.possible = {identity}
        thought.inferred = {identity}

    def find_prompt(self, hand: Hand, identity: Identity, ignore_orders: Iterable[int] = ()) -> Card | None:
        """The leftmost touched card that could still be the identity."""
        ignore = set(ignore_orders)
        for card in hand:
            thought = self.thoughts[card.order]
            if card.order in ignore or not thought.clued:
                continue
            # Cards known to be something else are not prompted
            if thought.identity(infer=True) not in (None, identity):
                continue
            if identity in thought.possible and identity in thought.inferred:
                return card
        return None

    def find_finesse(self, hand: Hand, ignore_orders: Iterable[int] = ()) -> Card | None:
        """The leftmost card that is not touched, chop moved or ignored."""
        ignore = set(ignore_orders)
        for card in hand:
            thought = self.thoughts[card.order]
            if card.order in ignore or thought.saved:
                continue
            return card
        return None

    def update_hypo_stacks(self, state: GameState):
        """
        Recompute the stacks as they will be once every known play happens.

        A touched card whose identity this view knows advances its suit when
        it is next. A touched card whose every candidate is playable is an
        unknown play: it will play but advances nothing.
        """
        hypo = list(state.play_stacks)
        unknown_plays: set[int] = set()
        playables: set[int] = set()

        found_new = True
        while found_new:
            found_new = False
            for hand in state.hands:
                for card in hand:
                    thought = self.thoughts[card.order]
                    if card.order in playables or not thought.touched:
                        continue

                    identity = thought.identity(infer=True)
                    # A visible card only plays if its holder could think it is that
                    if identity is not None and thought.known is not None and len(thought.possible) > 1:
                        if identity not in thought.inferred:
                            identity = None

                    if identity is not None:
                        suit = identity.suit_index
                        if identity.rank == hypo[suit] + 1 and identity.rank <= state.max_ranks[suit]:
                            hypo[suit] += 1
                            playables.add(card.order)
                            found_new = True
                    elif thought.inferred and all(i.rank == hypo[i.suit_index] + 1 for i in thought.inferred):
                        unknown_plays.add(card.order)
                        playables.add(card.order)

        self.hypo_stacks = hypo
        self.unknown_plays = unknown_plays
        self.playable_orders = playables

    def copy(self) -> KnowledgeView:
        return deepcopy(self)
