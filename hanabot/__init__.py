"""
Hanabot - H-group conventions engine for Hanabi.

A deterministic engine that follows the public history of a Hanabi game and
provides:
- Per-seat card knowledge (possible and inferred identities)
- Good touch elimination and team elimination
- Clue interpretation (focus, finesses, prompts, chop moves)
- Waiting connections resolved over later turns
- A symmetric clue advisor for outgoing clues
"""

__version__ = "0.1.0"
