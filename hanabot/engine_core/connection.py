"""
Connections - Inferential steps that explain a clue.

A connection is one card that must play before the focused card becomes
playable. Searches return a ConnectionResult instead of raising: an
infeasible chain is an ordinary outcome.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum

from .identity import Identity


class ConnectionKind(str, Enum):
    """How the reacting seat knows to play the connecting card."""
    KNOWN = "known"  # The card's identity is common knowledge
    PLAYABLE = "playable"  # Touched, and every candidate is playable
    PROMPT = "prompt"  # Leftmost touched card that could be the identity
    FINESSE = "finesse"  # Leftmost untouched card, played blind


@dataclass(frozen=True)
class Connection:
    """One step of a connection chain."""
    kind: ConnectionKind
    reacting: int
    order: int
    identities: tuple[Identity, ...]
    is_self: bool = False  # Played blind from the reacting seat's own hand
    hidden: bool = False


@dataclass
class ConnectionResult:
    """
    Outcome of a connection search.

    feasible=False carries the reason (for logging); connections is empty.
    """
    feasible: bool
    connections: list[Connection] = field(default_factory=list)
    reason: str = ""

    @classmethod
    def found(cls, connections: list[Connection]) -> ConnectionResult:
        return cls(feasible=True, connections=connections)

    @classmethod
    def infeasible(cls, reason: str) -> ConnectionResult:
        return cls(feasible=False, reason=reason)

    @property
    def blind_plays(self) -> int:
        return sum(1 for c in self.connections if c.kind == ConnectionKind.FINESSE)


@dataclass
class WaitingConnection:
    """
    A provisionally accepted inference on a focused card.

    Lives until every connection has played (resolved) or one is
    contradicted (invalidated).
    """
    connections: list[Connection]
    focused_order: int
    inference: Identity
    giver: int
    target: int
    turn: int
    resolved: int = 0  # Connections already played

    @property
    def next_connection(self) -> Connection | None:
        if self.resolved < len(self.connections):
            return self.connections[self.resolved]
        return None

    @property
    def complete(self) -> bool:
        return self.resolved >= len(self.connections)
