"""
This module contains the Deck class, which represents one standard 52-card deck.

A shoe is composed by concatenating several of these decks.

>>> deck = Deck()
>>> deck.size
52
>>> deck.deal()
Card(Suit.SPADES, Rank.KING)
>>> deck.size
51
"""

import random
from typing import List, Optional, Union

from tablejack.common.card import Card, Rank, Suit


class Deck:
    """
    A class representing a deck of cards.
    """

    # Precompute the default deck
    _default_deck = [Card(suit, rank) for suit in Suit for rank in Rank]

    def __init__(self, cards: Union[List[Card], None] = None):
        """
        Initialize a Deck instance.

        :param cards: A list of Card instances to populate the deck (optional).
                      If not provided, a default deck will be constructed.
        """
        if cards is None:
            self.cards: List[Card] = self.initialize_default_deck()
        else:
            self.cards = cards.copy()

    def initialize_default_deck(self) -> List[Card]:
        """
        Construct a default deck with all possible combinations of suits and ranks.

        :return: A list of Card instances representing the default deck.
        """
        return self._default_deck.copy()

    def shuffle(self, rng: Optional[random.Random] = None):
        """
        Shuffle the cards in the deck in place.

        :param rng: Optional random source; the module-level generator is used otherwise.
        """
        (rng or random).shuffle(self.cards)
        return self

    def deal(self) -> Card:
        """
        Pop one card from the deck.

        :raises IndexError: If the deck is empty.
        """
        return self.cards.pop()

    @property
    def size(self) -> int:
        """Return the number of remaining cards in the deck."""
        return len(self.cards)

    def is_empty(self) -> bool:
        return len(self.cards) == 0

    def __repr__(self) -> str:
        return f"Deck({[repr(card) for card in self.cards]})"

    def __str__(self) -> str:
        return f"Deck of {len(self.cards)} cards"
