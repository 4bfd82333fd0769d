"""
Pure, stateless hand evaluation for blackjack.

Every function takes a sequence of cards and never mutates it. Hands, the
dealer policy and the round controller all score cards through this module so
there is exactly one definition of a hand's value.
"""

from typing import Sequence

from tablejack.blackjack.constants import (
    BLACKJACK,
    SOFT_ACE_ADJUSTMENT,
    TEN_VALUE_RANKS,
    get_blackjack_value,
)
from tablejack.common.card import Card, Rank


def card_value(card: Card) -> int:
    """Point value of a single card, Ace counted as 11."""
    return get_blackjack_value(card.rank)


def soft_value(cards: Sequence[Card]) -> int:
    """Sum of point values with every Ace counted as 11, unadjusted."""
    return sum(card_value(card) for card in cards)


def hand_value(cards: Sequence[Card]) -> int:
    """
    Best total of the hand.

    Aces start at 11 and are demoted to 1 one at a time while the total is over
    21. The result is the best total <= 21, or the minimum total if the hand is
    busted even with every Ace counted as 1.
    """
    value = soft_value(cards)
    aces = sum(1 for card in cards if card.rank is Rank.ACE)

    while value > BLACKJACK and aces > 0:
        value -= SOFT_ACE_ADJUSTMENT
        aces -= 1

    return value


def is_soft(cards: Sequence[Card]) -> bool:
    """True if an Ace is still counted as 11 in the hand's best total."""
    value = hand_value(cards)
    min_value = sum(1 if card.rank is Rank.ACE else card_value(card) for card in cards)
    return value <= BLACKJACK and value > min_value


def is_blackjack(cards: Sequence[Card]) -> bool:
    """Exactly two cards: one Ace and one ten-value card."""
    if len(cards) != 2:
        return False
    has_ace = any(card.rank is Rank.ACE for card in cards)
    has_ten_value = any(card.rank in TEN_VALUE_RANKS for card in cards)
    return has_ace and has_ten_value


def is_busted(cards: Sequence[Card]) -> bool:
    return hand_value(cards) > BLACKJACK


def can_split(cards: Sequence[Card]) -> bool:
    """
    Two cards of equal point value.

    Eligibility is by value, not rank, so King + Ten splits. Houses that only
    split identical ranks would compare ``card.rank`` instead.
    """
    if len(cards) != 2:
        return False
    return card_value(cards[0]) == card_value(cards[1])


def can_double_down(cards: Sequence[Card]) -> bool:
    return len(cards) == 2


def dealer_shows_ace(dealer_cards: Sequence[Card]) -> bool:
    """
    True if the dealer's face-up card is an Ace.

    The face-up card is the second card dealt to the dealer (index 1); the hole
    card at index 0 is never looked at.
    """
    if len(dealer_cards) < 2:
        return False
    return dealer_cards[1].rank is Rank.ACE
