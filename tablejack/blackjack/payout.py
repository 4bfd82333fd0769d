"""
Settlement of player hands and the insurance side bet against the dealer's final hand.

Payouts are what gets credited back to the balance, stake included: a win
returns 2x the hand's bet, a natural returns floor(2.5x), a push returns the
bet and a loss returns nothing. Stakes were already debited when placed.
"""

import math

from tablejack.blackjack.constants import (
    BLACKJACK_MULTIPLIER,
    INSURANCE_MULTIPLIER,
    WIN_MULTIPLIER,
)
from tablejack.blackjack.hand import BlackjackHand
from tablejack.blackjack.state import HandResult, HandSlot, Outcome


def blackjack_payout(bet: float) -> int:
    """3:2 on a natural, floored to a whole amount."""
    return math.floor(bet * BLACKJACK_MULTIPLIER)


def win_payout(bet: float) -> float:
    return bet * WIN_MULTIPLIER


def insurance_payout(stake: float, dealer_hand: BlackjackHand) -> float:
    """Insurance returns the stake plus 2:1 if the dealer has blackjack, else nothing."""
    if dealer_hand.is_blackjack:
        return stake * INSURANCE_MULTIPLIER
    return 0


def settle_hand(
    slot: HandSlot,
    hand: BlackjackHand,
    dealer_hand: BlackjackHand,
    insurance_taken: bool = False,
) -> HandResult:
    """
    Compare one player hand against the dealer's final hand.

    Surrendered and busted hands have already lost. A dealer blackjack beats
    every remaining hand, a player natural included, unless insurance was taken,
    in which case each remaining hand pushes.
    """
    bet = hand.bet

    if hand.is_surrendered:
        return HandResult(slot, Outcome.SURRENDER, 0, "Surrendered")

    if hand.is_busted:
        return HandResult(slot, Outcome.BUST, 0, "Bust")

    if dealer_hand.is_blackjack:
        if insurance_taken:
            return HandResult(slot, Outcome.PUSH, bet, "Push")
        return HandResult(slot, Outcome.LOSE, 0, "Dealer wins")

    if dealer_hand.is_busted:
        if hand.is_blackjack:
            return HandResult(
                slot, Outcome.BLACKJACK, blackjack_payout(bet), "Blackjack! You win!"
            )
        return HandResult(slot, Outcome.WIN, win_payout(bet), "You win!")

    hand_value = hand.value()
    dealer_value = dealer_hand.value()

    if hand.is_blackjack:
        return HandResult(
            slot, Outcome.BLACKJACK, blackjack_payout(bet), "Blackjack! You win!"
        )
    if hand_value > dealer_value:
        return HandResult(slot, Outcome.WIN, win_payout(bet), "You win!")
    if hand_value < dealer_value:
        return HandResult(slot, Outcome.LOSE, 0, "Dealer wins")
    return HandResult(slot, Outcome.PUSH, bet, "Push")
