"""
BlackjackHand: a player's or dealer's cards plus the wager and status flags.
"""

from typing import Optional

from tablejack.blackjack import evaluator
from tablejack.common.card import Card
from tablejack.common.hand import Hand


class BlackjackHand(Hand):
    """
    A hand in the game of blackjack.

    `is_busted` and `is_blackjack` are derived from the cards and recomputed
    every time the card sequence changes; they cannot be set directly.
    """

    __slots__ = (
        "_cards",
        "bet",
        "is_split",
        "is_double_down",
        "is_surrendered",
        "insurance_bet",
        "_is_busted",
        "_is_blackjack",
    )

    def __init__(self, bet: float = 0, is_split: bool = False):
        super().__init__()
        if bet < 0:
            raise ValueError("Bet must be non-negative")
        self.bet = bet
        self.is_split = is_split
        self.is_double_down = False
        self.is_surrendered = False
        self.insurance_bet: Optional[float] = None
        self._is_busted = False
        self._is_blackjack = False

    def _update_status(self) -> None:
        self._is_busted = evaluator.is_busted(self._cards)
        self._is_blackjack = evaluator.is_blackjack(self._cards)

    def add_card(self, card: Card) -> None:
        """Add a card and recompute the derived flags."""
        super().add_card(card)
        self._update_status()

    def pop_card(self) -> Card:
        """Remove the last card (used when splitting) and recompute the derived flags."""
        card = super().pop_card()
        self._update_status()
        return card

    @property
    def is_busted(self) -> bool:
        return self._is_busted

    @property
    def is_blackjack(self) -> bool:
        return self._is_blackjack

    def value(self) -> int:
        """Best total of the hand, see `evaluator.hand_value`."""
        return evaluator.hand_value(self._cards)

    def soft_value(self) -> int:
        return evaluator.soft_value(self._cards)

    @property
    def is_soft(self) -> bool:
        return evaluator.is_soft(self._cards)

    @property
    def can_split(self) -> bool:
        return evaluator.can_split(self._cards)

    @property
    def can_double(self) -> bool:
        return evaluator.can_double_down(self._cards)

    def double_down(self, card: Card) -> None:
        """Double the wager and take exactly one more card."""
        self.bet *= 2
        self.is_double_down = True
        self.add_card(card)

    def surrender(self) -> None:
        self.is_surrendered = True

    def set_insurance_bet(self, amount: float) -> None:
        self.insurance_bet = amount

    def __repr__(self) -> str:
        return f"BlackjackHand({self._cards!r}, bet={self.bet})"
