"""Blackjack-specific constants, value mappings and the fixed house rules."""

from tablejack.common.card import Rank

BLACKJACK_VALUES = {
    Rank.ACE: 11,  # Default ace value in blackjack
    Rank.TWO: 2,
    Rank.THREE: 3,
    Rank.FOUR: 4,
    Rank.FIVE: 5,
    Rank.SIX: 6,
    Rank.SEVEN: 7,
    Rank.EIGHT: 8,
    Rank.NINE: 9,
    Rank.TEN: 10,
    Rank.JACK: 10,
    Rank.QUEEN: 10,
    Rank.KING: 10,
}

TEN_VALUE_RANKS = frozenset(rank for rank, value in BLACKJACK_VALUES.items() if value == 10)

BLACKJACK = 21
DEALER_STAND_VALUE = 17
SOFT_ACE_ADJUSTMENT = 10

# Shoe composition
NUM_DECKS = 4
CARDS_PER_DECK = 52
RESHUFFLE_THRESHOLD = 52  # ~25% of a 208-card shoe

# Table
MIN_BET = 5
TABLE_MINIMUMS = (10, 15, 25, 50, 100, 250)
TABLE_MAX_MULTIPLIER = 10

# Payout multipliers on the hand's stake (stake included)
WIN_MULTIPLIER = 2
BLACKJACK_MULTIPLIER = 2.5  # 3:2, floored
INSURANCE_MULTIPLIER = 3  # 2:1 plus the stake


def get_blackjack_value(rank: Rank) -> int:
    """Get the blackjack value for a given rank, with Ace counted as 11."""
    return BLACKJACK_VALUES[rank]
