"""
Pydantic Schemas - Turn events in, knowledge reports out.

Events define the contract with the transport layer that feeds the engine.
They arrive exactly once, in chronological order. Reports are read-only
snapshots for move selection and note writing.

Event types (discriminated on "type"):
- draw: a card enters a hand (identity unknown for our own cards)
- clue: a colour or rank clue and the orders it touched
- play / discard: a card leaves a hand and its identity becomes public
- turn: the next seat to act
"""

from typing import Annotated, Any, Literal, Optional, Union
from pydantic import BaseModel, Field, TypeAdapter

from .config import HANABOT_LEVEL
from .engine_core.identity import BaseClue, ClueType, Identity, MAX_RANK


# =============================================================================
# Turn Events
# =============================================================================

class ClueSpec(BaseModel):
    """What was clued: a suit index or a rank."""
    type: ClueType
    value: int = Field(ge=0)

    model_config = {"frozen": True}

    def to_base(self) -> BaseClue:
        return BaseClue(self.type, self.value)


class DrawEvent(BaseModel):
    """A card is drawn. suit_index/rank are -1 when the card is hidden from us."""
    type: Literal["draw"] = "draw"
    order: int = Field(ge=0)
    seat: int = Field(ge=0)
    suit_index: int = Field(-1, ge=-1)
    rank: int = Field(-1, ge=-1, le=MAX_RANK)

    @property
    def identity(self) -> Optional[Identity]:
        if self.suit_index < 0 or self.rank < 1:
            return None
        return Identity(self.suit_index, self.rank)


class ClueEvent(BaseModel):
    """A clue from giver to target, touching the listed card orders."""
    type: Literal["clue"] = "clue"
    giver: int = Field(ge=0)
    target: int = Field(ge=0)
    clue: ClueSpec
    touched: list[int] = Field(min_length=1)
    mistake: bool = Field(False, description="Flagged by the table as a mistaken clue")
    ignore_stall: bool = Field(False, description="Skip the stall check for this clue")


class PlayEvent(BaseModel):
    """A card is played successfully."""
    type: Literal["play"] = "play"
    seat: int = Field(ge=0)
    order: int = Field(ge=0)
    suit_index: int = Field(ge=0)
    rank: int = Field(ge=1, le=MAX_RANK)

    @property
    def identity(self) -> Identity:
        return Identity(self.suit_index, self.rank)


class DiscardEvent(BaseModel):
    """A card is discarded. failed=True is a misplay (strike)."""
    type: Literal["discard"] = "discard"
    seat: int = Field(ge=0)
    order: int = Field(ge=0)
    suit_index: int = Field(ge=0)
    rank: int = Field(ge=1, le=MAX_RANK)
    failed: bool = False

    @property
    def identity(self) -> Identity:
        return Identity(self.suit_index, self.rank)


class TurnEvent(BaseModel):
    """The turn passes to next_seat; turn_number is the new turn."""
    type: Literal["turn"] = "turn"
    next_seat: int = Field(ge=0)
    turn_number: int = Field(ge=1)


TurnEventType = Annotated[
    Union[DrawEvent, ClueEvent, PlayEvent, DiscardEvent, TurnEvent],
    Field(discriminator="type"),
]

_event_adapter: TypeAdapter = TypeAdapter(TurnEventType)


def parse_event(raw: Union[str, bytes, dict[str, Any]]):
    """
    Validate one raw event (JSON text or dict).

    Raises pydantic.ValidationError for malformed events.
    """
    if isinstance(raw, (str, bytes)):
        return _event_adapter.validate_json(raw)
    return _event_adapter.validate_python(raw)


class GameSetup(BaseModel):
    """Table setup that precedes the event stream."""
    players: list[str] = Field(min_length=2, max_length=6)
    our_seat: int = Field(0, ge=0)
    suits: list[str] = Field(
        default_factory=lambda: ["Red", "Yellow", "Green", "Blue", "Purple"],
        min_length=1,
    )
    level: int = Field(HANABOT_LEVEL, ge=1, le=5, description="Convention level")
    starting_seat: int = Field(0, ge=0)


# =============================================================================
# Reports
# =============================================================================

class CardReport(BaseModel):
    """One card as seen by one view."""
    order: int
    slot: int
    identity: Optional[str] = Field(None, description="True identity, if visible to us")
    possible: list[str] = Field(default_factory=list)
    inferred: list[str] = Field(default_factory=list)
    clued: bool = False
    finessed: bool = False
    chop_moved: bool = False
    reset: bool = False
    note: str = ""


class ViewReport(BaseModel):
    """All hands as one observer believes them."""
    observer: str = Field(description="'common' or a player name")
    hypo_stacks: list[int] = Field(default_factory=list)
    hands: dict[str, list[CardReport]] = Field(default_factory=dict)


class WaitingReport(BaseModel):
    """An unresolved multi-turn inference."""
    focused_order: int
    inference: str
    giver: int
    target: int
    turn: int
    connections: list[str] = Field(default_factory=list)
    resolved: int = 0


class GameReport(BaseModel):
    """Snapshot of the table and every view."""
    turn: int
    current_seat: int
    play_stacks: list[int]
    clue_tokens: int
    strikes: int
    common: ViewReport
    players: list[ViewReport] = Field(default_factory=list)
    waiting_connections: list[WaitingReport] = Field(default_factory=list)


class ClueReport(BaseModel):
    """A suggested clue."""
    target: str
    type: ClueType
    value: int
    text: str


class AdvisorReport(BaseModel):
    """Advisor output keyed by player name."""
    play_clues: dict[str, list[ClueReport]] = Field(default_factory=dict)
    save_clues: dict[str, Optional[ClueReport]] = Field(default_factory=dict)
    fix_clues: dict[str, list[ClueReport]] = Field(default_factory=dict)
