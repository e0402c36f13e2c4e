"""
Tests for the event reducer.

Tests:
- Plays, discards and clues update the table
- Protocol violations are rejected before anything changes
- Replays from raw events
- Knowledge reports and card notes
"""

import pytest

from ..config import EngineConfig
from ..engine_core.identity import Identity
from ..engine_core.state import ProtocolViolation
from ..game import Game
from ..schemas import ClueEvent, ClueSpec, DiscardEvent, DrawEvent, GameSetup, PlayEvent, TurnEvent
from .harness import ALICE, BOB, CATHY, setup, take_turn, thought


class TestTableUpdates:
    """Tests for the public effects of each event."""

    def test_play_advances_stack(self, blank_game):
        """Bob playing r1 puts it on the red stack."""
        take_turn(blank_game, "Alice clues red to Bob")
        take_turn(blank_game, "Bob plays r1", "y1")

        assert blank_game.state.play_stacks[0] == 1
        assert blank_game.state.hands[BOB][0].identity == Identity(1, 1)
        assert blank_game.state.clue_tokens == 7

    def test_clue_uses_token(self, blank_game):
        """Clues cost a token and are recorded on the cards."""
        take_turn(blank_game, "Alice clues red to Bob")

        assert blank_game.state.clue_tokens == 7
        assert len(blank_game.state.hands[BOB][0].clues) == 1

    def test_discard_regains_token(self):
        """Discarding returns a clue token and ends the early game."""
        game = setup([
            ["xx", "xx", "xx", "xx", "xx"],
            ["r1", "y4", "g4", "b4", "p4"],
        ], starting=BOB, clue_tokens=5)
        take_turn(game, "Bob discards p4", "r2")

        assert game.state.clue_tokens == 6
        assert game.state.discard_stacks[4][3] == 1
        assert not game.state.early_game

    def test_bomb_adds_strike(self):
        """A failed play is a strike and returns no token."""
        game = setup([
            ["xx", "xx", "xx", "xx", "xx"],
            ["r1", "y4", "g4", "b4", "p4"],
        ], starting=BOB, clue_tokens=5)
        take_turn(game, "Bob bombs y4", "r2")

        assert game.state.strikes == 1
        assert game.state.clue_tokens == 5

    def test_discarding_last_copy_lowers_max_rank(self):
        """With both b4s gone, blue stops at 3."""
        game = setup([
            ["xx", "xx", "xx", "xx", "xx"],
            ["r1", "y4", "g4", "b4", "p4"],
        ], starting=BOB, discarded=("b4",))
        take_turn(game, "Bob discards b4", "r2")

        assert game.state.max_ranks[3] == 3

    def test_turn_clears_newly_clued(self, blank_game):
        """Newly clued lasts until the turn passes."""
        event = ClueEvent(giver=ALICE, target=BOB, clue=ClueSpec(type="colour", value=0),
                          touched=[blank_game.state.hands[BOB][0].order])
        blank_game.handle_event(event)
        assert thought(blank_game, BOB, 1).newly_clued

        blank_game.handle_event(TurnEvent(next_seat=BOB, turn_number=2))
        assert not thought(blank_game, BOB, 1).newly_clued
        assert blank_game.state.current_seat == BOB


class TestProtocolViolations:
    """Tests for malformed event feeds."""

    def test_unknown_seat(self, blank_game):
        """Events for seats that don't exist are rejected."""
        with pytest.raises(ProtocolViolation):
            blank_game.handle_event(TurnEvent(next_seat=7, turn_number=2))

    def test_draw_order_must_increase(self, blank_game):
        """Card orders are never reused."""
        with pytest.raises(ProtocolViolation):
            blank_game.handle_event(DrawEvent(order=3, seat=BOB))

    def test_wrong_turn(self, blank_game):
        """Only the seat on turn may act."""
        card = blank_game.state.hands[BOB][0]
        with pytest.raises(ProtocolViolation, match="turn"):
            blank_game.handle_event(PlayEvent(seat=BOB, order=card.order, suit_index=0, rank=1))

    def test_unknown_card(self, blank_game):
        """Playing a card that isn't in the hand is rejected."""
        with pytest.raises(ProtocolViolation):
            blank_game.handle_event(DiscardEvent(seat=ALICE, order=99, suit_index=0, rank=1))

    def test_unplayable_play(self, blank_game):
        """A play must continue its stack."""
        order = blank_game.state.hands[ALICE][0].order
        with pytest.raises(ProtocolViolation):
            blank_game.handle_event(PlayEvent(seat=ALICE, order=order, suit_index=0, rank=3))

    def test_no_clue_tokens(self):
        """Clues need a token."""
        game = setup([["xx"] * 5, ["r1", "y4", "g4", "b4", "p4"]], clue_tokens=0)
        with pytest.raises(ProtocolViolation, match="token"):
            take_turn(game, "Alice clues red to Bob")

    def test_clue_touching_other_hand(self, blank_game):
        """Touched cards must be in the target's hand."""
        order = blank_game.state.hands[CATHY][0].order
        with pytest.raises(ProtocolViolation):
            blank_game.handle_event(ClueEvent(giver=ALICE, target=BOB, clue=ClueSpec(type="rank", value=3),
                                              touched=[order]))

    def test_turn_numbers_count_up(self, blank_game):
        """A turn that goes backwards or skips ahead is out of order."""
        take_turn(blank_game, "Alice clues red to Bob")
        take_turn(blank_game, "Bob plays r1", "y1")

        with pytest.raises(ProtocolViolation, match="does not follow"):
            blank_game.handle_event(TurnEvent(next_seat=ALICE, turn_number=1))
        with pytest.raises(ProtocolViolation, match="does not follow"):
            blank_game.handle_event(TurnEvent(next_seat=ALICE, turn_number=5))
        assert blank_game.state.turn_count == 3
        assert blank_game.state.current_seat == CATHY

    def test_one_action_per_turn(self, blank_game):
        """A second clue or play before the turn passes is rejected."""
        bob_r1 = blank_game.state.hands[BOB][0].order
        blank_game.handle_event(ClueEvent(giver=ALICE, target=BOB, clue=ClueSpec(type="colour", value=0),
                                          touched=[bob_r1]))

        with pytest.raises(ProtocolViolation, match="already acted"):
            blank_game.handle_event(ClueEvent(giver=ALICE, target=BOB, clue=ClueSpec(type="colour", value=0),
                                              touched=[bob_r1]))
        with pytest.raises(ProtocolViolation, match="already acted"):
            blank_game.handle_event(DiscardEvent(seat=ALICE, order=blank_game.state.hands[ALICE][4].order,
                                                 suit_index=0, rank=2))
        assert blank_game.state.clue_tokens == 7

        blank_game.handle_event(TurnEvent(next_seat=BOB, turn_number=2))
        blank_game.handle_event(PlayEvent(seat=BOB, order=bob_r1, suit_index=0, rank=1))
        assert blank_game.state.play_stacks[0] == 1

    def test_rejected_event_changes_nothing(self, blank_game):
        """A violation leaves the state as it was."""
        actions = len(blank_game.state.action_list)
        with pytest.raises(ProtocolViolation):
            blank_game.handle_event(TurnEvent(next_seat=9, turn_number=2))

        assert len(blank_game.state.action_list) == actions
        assert blank_game.state.current_seat == ALICE


class TestReplay:
    """Tests for building a game from a raw event log."""

    def events(self):
        events = []
        order = 0
        for seat, hand in enumerate([[None] * 4, [(0, 1), (1, 4), (2, 4), (3, 4)]]):
            for identity in reversed(hand):
                suit, rank = identity if identity else (-1, -1)
                events.append({"type": "draw", "order": order, "seat": seat, "suit_index": suit, "rank": rank})
                order += 1
        events.append({"type": "clue", "giver": 0, "target": 1, "clue": {"type": "colour", "value": 0},
                       "touched": [7]})
        events.append('{"type": "turn", "next_seat": 1, "turn_number": 2}')
        return events

    def test_replay(self):
        """Replaying raw events builds the same knowledge."""
        setup_ = GameSetup(players=["Alice", "Bob"], level=1)
        game = Game.replay(setup_, self.events())

        assert game.state.turn_count == 2
        assert game.state.current_seat == BOB
        assert game.common.thoughts[7].inferred == {Identity(0, 1)}

    def test_replay_is_deterministic(self):
        """The same history always gives the same knowledge."""
        setup_ = GameSetup(players=["Alice", "Bob"], level=5)
        first = Game.replay(setup_, self.events()).report()
        second = Game.replay(setup_, self.events()).report()

        assert first.model_dump() == second.model_dump()

    def test_replay_uses_setup_level(self):
        """The setup's level is used unless a config is given."""
        setup_ = GameSetup(players=["Alice", "Bob"], level=3)

        assert Game.replay(setup_, []).level == 3
        assert Game.replay(setup_, [], config=EngineConfig(level=5)).level == 5


class TestMinimalCopy:
    """Tests for scratch copies used by searches."""

    def test_copy_does_not_alias_knowledge(self, blank_game):
        """Changes to a minimal copy stay there."""
        hypo = blank_game.minimal_copy()
        hypo.state.play_stacks[0] = 3
        hypo.common.thoughts[0].inferred = {Identity(0, 1)}

        assert blank_game.state.play_stacks[0] == 0
        assert len(blank_game.common.thoughts[0].inferred) > 1

    def test_simulate_clue_leaves_game_untouched(self, blank_game):
        """Simulating a clue works on a deep copy."""
        from ..engine_core.identity import Clue, ClueType

        sim = blank_game.simulate_clue(Clue(ClueType.COLOUR, 0, BOB))

        assert thought(sim, BOB, 1).clued
        assert not thought(blank_game, BOB, 1).clued
        assert blank_game.state.clue_tokens == 8


class TestReport:
    """Tests for knowledge reports."""

    def test_report_notes(self, fake_finesse_game):
        """Clued and finessed cards carry notes."""
        take_turn(fake_finesse_game, "Bob clues green to Alice (slot 2)")
        report = fake_finesse_game.report()

        alice = report.common.hands["Alice"]
        cathy = report.common.hands["Cathy"]
        assert alice[1].note == "t1: g1,g2"
        assert alice[1].clued
        assert cathy[0].note.startswith("[f] t1:")
        assert cathy[0].identity == "g1"

    def test_report_lists_every_view(self, blank_game):
        """The report has common plus one view per seat."""
        report = blank_game.report()

        assert report.common.observer == "common"
        assert [view.observer for view in report.players] == ["Alice", "Bob", "Cathy"]
        assert report.clue_tokens == 8
