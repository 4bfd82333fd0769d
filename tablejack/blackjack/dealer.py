"""
Dealer policy: the house's fixed hit/stand decision and the automated dealer turn.

The dealer hits 16 or less, hits a soft 17 (an Ace still counted as 11, e.g.
Ace + 6), and stands on hard 17 or more. A busted hand never draws again.
"""

from typing import Callable, List, Optional, Sequence

from tablejack.blackjack import evaluator
from tablejack.blackjack.constants import BLACKJACK, DEALER_STAND_VALUE
from tablejack.common.card import Card


def should_hit(dealer_cards: Sequence[Card]) -> bool:
    """Decide whether the dealer draws another card."""
    value = evaluator.hand_value(dealer_cards)

    if value > BLACKJACK:
        return False

    if value < DEALER_STAND_VALUE:
        return True

    # Soft 17 only: an Ace must still be counting as 11
    if value == DEALER_STAND_VALUE:
        return evaluator.is_soft(dealer_cards)

    return False


def play_turn(
    initial_cards: Sequence[Card], draw: Callable[[], Optional[Card]]
) -> List[Card]:
    """
    Play the dealer's hand to completion.

    :param initial_cards: The dealer's cards so far; not modified.
    :param draw: Card source; returning None stops the turn early.
    :return: The dealer's final cards.
    """
    cards = list(initial_cards)

    while should_hit(cards):
        card = draw()
        if card is None:
            break
        cards.append(card)

    return cards
