"""
Tests for chop and focus determination.
"""

import pytest

from ..conventions.focus import FocusResult, determine_focus, find_chop
from .harness import ALICE


def mark(game, orders, newly=True):
    for order in orders:
        card = game.common.thoughts[order]
        card.clued = True
        card.newly_clued = newly


class TestFindChop:
    """Tests for locating the chop."""

    def test_rightmost_card(self, blank_game):
        """With nothing saved, chop is slot 5."""
        hand = blank_game.state.hands[ALICE]
        assert find_chop(hand, blank_game.common) == hand[4].order

    def test_skips_saved_cards(self, blank_game):
        """Clued, chop moved and finessed cards are not chop."""
        hand = blank_game.state.hands[ALICE]
        common = blank_game.common
        common.thoughts[hand[4].order].clued = True
        common.thoughts[hand[3].order].chop_moved = True
        common.thoughts[hand[2].order].finessed = True

        assert find_chop(hand, common) == hand[1].order

    def test_no_chop(self, blank_game):
        """A fully saved hand has no chop."""
        hand = blank_game.state.hands[ALICE]
        mark(blank_game, hand.orders(), newly=False)

        assert find_chop(hand, blank_game.common) == -1

    def test_after_clue_ignores_new_clues(self, blank_game):
        """A card clued this turn still counts as chop."""
        hand = blank_game.state.hands[ALICE]
        mark(blank_game, [hand[4].order])

        assert find_chop(hand, blank_game.common) == hand[3].order
        assert find_chop(hand, blank_game.common, after_clue=True) == hand[4].order


class TestDetermineFocus:
    """Tests for the focus priority."""

    def test_chop_focus(self, blank_game):
        """A newly clued chop is the focus."""
        hand = blank_game.state.hands[ALICE]
        touched = [hand[2].order, hand[4].order]
        mark(blank_game, touched)

        assert determine_focus(hand, blank_game.common, touched) == FocusResult(order=hand[4].order, chop=True)

    def test_leftmost_new_card(self, blank_game):
        """Off chop, the leftmost newly clued card is the focus."""
        hand = blank_game.state.hands[ALICE]
        mark(blank_game, [hand[1].order], newly=False)
        mark(blank_game, [hand[2].order, hand[3].order])
        touched = [hand[1].order, hand[2].order, hand[3].order]

        assert determine_focus(hand, blank_game.common, touched) == FocusResult(order=hand[2].order, chop=False)

    def test_retouch_focuses_leftmost(self, blank_game):
        """A clue touching only old cards focuses the leftmost."""
        hand = blank_game.state.hands[ALICE]
        touched = [hand[1].order, hand[3].order]
        mark(blank_game, touched, newly=False)

        assert determine_focus(hand, blank_game.common, touched).order == hand[1].order

    def test_nothing_touched(self, blank_game):
        """A clue must touch something."""
        with pytest.raises(ValueError):
            determine_focus(blank_game.state.hands[ALICE], blank_game.common, [])
