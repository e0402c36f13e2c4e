"""
Identities and Variants - What a card could be.

An identity is a (suit, rank) pair. Suits are indices into the variant's
suit list and ranks run 1..5. Identities are immutable and compared by
value, so they live in sets and work as dict keys.

The variant only knows the standard colour behaviour: a colour clue touches
its own suit and a rank clue touches its own rank.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable


MAX_RANK = 5
CARD_COUNT = (3, 2, 2, 2, 1)  # Copies of ranks 1..5 in each suit


@dataclass(frozen=True, order=True)
class Identity:
    """A (suit, rank) pair."""
    suit_index: int
    rank: int


class ClueType(str, Enum):
    """The two kinds of clue."""
    COLOUR = "colour"
    RANK = "rank"


@dataclass(frozen=True)
class BaseClue:
    """A clue without a target: colour/rank and its value."""
    type: ClueType
    value: int


@dataclass(frozen=True)
class Clue(BaseClue):
    """A clue aimed at one seat."""
    target: int = -1


@dataclass
class Variant:
    """
    The suit list for a game.

    Loading variant tables is outside the engine; callers pass the suit names.
    """
    name: str
    suits: list[str] = field(default_factory=list)

    @property
    def short_forms(self) -> list[str]:
        """One-letter abbreviations, unique within the variant."""
        forms: list[str] = []
        for suit in self.suits:
            letters = suit.lower()
            abbreviation = letters[0]
            if abbreviation in forms:
                abbreviation = next((c for c in letters if c not in forms), abbreviation)
            forms.append(abbreviation)
        return forms

    def card_count(self, identity: Identity) -> int:
        return CARD_COUNT[identity.rank - 1]

    def all_identities(self) -> list[Identity]:
        return [
            Identity(suit_index, rank)
            for suit_index in range(len(self.suits))
            for rank in range(1, MAX_RANK + 1)
        ]

    def touches(self, identity: Identity, clue: BaseClue) -> bool:
        """Whether a clue touches a card of this identity."""
        if clue.type == ClueType.COLOUR:
            return identity.suit_index == clue.value
        return identity.rank == clue.value

    def clue_possibilities(self, clue: BaseClue) -> set[Identity]:
        """Every identity a clue could touch."""
        return {i for i in self.all_identities() if self.touches(i, clue)}

    def suit_index(self, name: str) -> int:
        """Index of a suit by (case-insensitive) name, or -1."""
        lowered = [s.lower() for s in self.suits]
        return lowered.index(name.lower()) if name.lower() in lowered else -1

    def log_card(self, identity: Identity | None) -> str:
        if identity is None:
            return "xx"
        return f"{self.short_forms[identity.suit_index]}{identity.rank}"

    def log_cards(self, identities: Iterable[Identity]) -> str:
        return ",".join(self.log_card(i) for i in sorted(identities))

    def parse_card(self, short: str) -> Identity | None:
        """Parse a short form like 'r3'. 'xx' is an unknown card."""
        if short == "xx":
            return None
        forms = self.short_forms
        if len(short) != 2 or short[0] not in forms or not short[1].isdigit():
            raise ValueError(f"Unable to parse card {short!r}")
        rank = int(short[1])
        if not 1 <= rank <= MAX_RANK:
            raise ValueError(f"Rank out of range in {short!r}")
        return Identity(forms.index(short[0]), rank)


NO_VARIANT = Variant(name="No Variant", suits=["Red", "Yellow", "Green", "Blue", "Purple"])
