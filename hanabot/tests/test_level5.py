"""
Tests for ambiguous clues at the intermediate finesse level.

Each test plays a short game from our seat and checks the common
inferences on the clued card as later turns confirm or refute finesses.
"""

from ..conventions.interpret_clue import ClueInterpretation
from .harness import ALICE, BOB, CATHY, inferences, setup, take_turn, thought


class TestFakeFinesse:
    """Tests for a finesse that turns out to be a direct play clue."""

    def test_possible_finesse_keeps_both_readings(self, fake_finesse_game):
        """Green to Alice could be g1, or g2 through Cathy's g1."""
        game = fake_finesse_game
        take_turn(game, "Bob clues green to Alice (slot 2)")

        assert inferences(game, ALICE, 2) == ["g1", "g2"]
        assert len(thought(game, CATHY, 1).reasoning) == 1

    def test_waiting_connection_registered(self, fake_finesse_game):
        """The g2 reading waits on Cathy's finesse."""
        game = fake_finesse_game
        take_turn(game, "Bob clues green to Alice (slot 2)")

        waiting = [w for w in game.common.waiting_connections if w.inference.rank == 2]
        assert len(waiting) == 1
        assert waiting[0].connections[0].reacting == CATHY

    def test_missed_finesse_disproves_it(self, fake_finesse_game):
        """Cathy not playing into the finesse leaves only g1."""
        game = fake_finesse_game
        take_turn(game, "Bob clues green to Alice (slot 2)")
        take_turn(game, "Cathy discards p3", "r1")

        assert inferences(game, ALICE, 2) == ["g1"]
        assert game.common.waiting_connections == []

    def test_seat_views_follow_common(self, fake_finesse_game):
        """Our own view of our card matches common knowledge."""
        game = fake_finesse_game
        take_turn(game, "Bob clues green to Alice (slot 2)")

        assert inferences(game, ALICE, 2, game.me) == ["g1", "g2"]


class TestSelfConnecting:
    """Tests for a play clue that connects through our own clued card."""

    def test_self_connecting_play_clue(self):
        """After playing g1, the 2 is known to be g2."""
        game = setup([
            ["xx", "xx", "xx", "xx", "xx"],
            ["r4", "r4", "g4", "r5", "b4"],
            ["g3", "b3", "r2", "y3", "p3"],
        ], level=5, starting=BOB)

        take_turn(game, "Bob clues 1 to Alice (slot 4)")
        take_turn(game, "Cathy clues 2 to Alice (slot 3)")
        take_turn(game, "Alice plays g1 (slot 4)")

        assert inferences(game, ALICE, 4) == ["g2"]


class TestDelayedFinesse:
    """Tests for finesses that resolve over several turns."""

    HANDS = [
        ["xx", "xx", "xx", "xx", "xx"],
        ["p4", "r4", "g4", "r5", "b4"],
    ]

    def test_delayed_finesse(self):
        """A prompt then a finesse narrow the red card to r4."""
        game = setup(self.HANDS + [["r3", "b3", "r2", "y3", "p3"]], level=5, play_stacks=[1, 0, 1, 1, 0])

        take_turn(game, "Alice clues 2 to Cathy")
        take_turn(game, "Bob clues red to Alice (slot 3)")
        assert inferences(game, ALICE, 3) == ["r3", "r4"]

        take_turn(game, "Cathy plays r2", "y1")
        # Still r3 in case of a hidden finesse
        assert inferences(game, ALICE, 3) == ["r3", "r4"]

        take_turn(game, "Alice discards b1 (slot 5)")
        take_turn(game, "Bob discards b4", "r1")
        take_turn(game, "Cathy plays r3", "g1")

        assert inferences(game, ALICE, 4) == ["r4"]

    def test_fake_delayed_finesse(self):
        """Cathy not playing the finesse leaves the red card as r2."""
        game = setup(self.HANDS + [["r2", "b3", "r1", "y3", "p3"]], level=5)

        take_turn(game, "Alice clues 1 to Cathy")
        take_turn(game, "Bob clues red to Alice (slot 3)")
        take_turn(game, "Cathy plays r1", "y1")

        take_turn(game, "Alice discards b1 (slot 5)")
        take_turn(game, "Bob discards b4", "r1")
        take_turn(game, "Cathy discards p3", "g1")

        assert inferences(game, ALICE, 4) == ["r2"]


class TestMistakeRecovery:
    """Tests for a self-finesse that turns out to be in another hand."""

    HANDS = [
        ["xx", "xx", "xx", "xx", "xx"],
        ["g3", "g2", "y1", "r5", "p4"],
        ["r3", "r1", "g4", "b1", "y2"],
    ]

    def pass_on_g2(self):
        game = setup(self.HANDS, level=2, starting=CATHY)
        take_turn(game, "Cathy clues 3 to Bob")
        take_turn(game, "Alice plays g1 (slot 1)")
        take_turn(game, "Bob clues 5 to Alice (slot 5)")
        return game

    def test_pass_moves_finesse_to_us(self):
        """Bob cluing instead of playing g2 says our next finesse slot is g2."""
        game = self.pass_on_g2()

        assert inferences(game, ALICE, 2) == ["g2"]
        assert thought(game, ALICE, 2).finessed
        assert not thought(game, BOB, 2).finessed
        assert [c.order for c in game.common.waiting_connections[0].connections] == [
            4, game.state.hands[ALICE][1].order,
        ]

    def test_clued_copy_cancels_our_finesse(self):
        """Once Bob's g2 is clued, we stop expecting g2 in our own view."""
        game = self.pass_on_g2()
        take_turn(game, "Cathy clues 2 to Bob")
        ours = thought(game, ALICE, 2, game.me)

        assert not ours.finessed
        assert len(ours.inferred) > 1
        assert game.state.hands[ALICE][1].order in game.me.cancelled


class TestInterpretationResults:
    """Tests for the value returned from a clue."""

    def test_direct_play_clue(self, fake_finesse_game):
        """A clue whose focus matches a candidate is focus matched."""
        game = fake_finesse_game
        result = take_turn(game, "Bob clues green to Alice (slot 2)")

        assert result == ClueInterpretation.FOCUS_MATCHED

    def test_reasoning_is_recorded(self, fake_finesse_game):
        """The focused card logs the clue's action index and turn."""
        game = fake_finesse_game
        take_turn(game, "Bob clues green to Alice (slot 2)")
        focused = thought(game, ALICE, 2)

        assert focused.focused
        assert focused.reasoning == [len(game.state.action_list) - 2]
        assert focused.reasoning_turn == [1]
