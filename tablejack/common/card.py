"""
This module defines the `Suit`, `Rank`, and `Card` classes, which are used to represent playing cards.

- `Suit`: An enum representing the four suits of a standard deck of playing
cards: Hearts, Diamonds, Clubs, and Spades.

- `Rank`: An enum representing the thirteen ranks of a standard deck of playing
cards: Ace, Two through Ten, Jack, Queen, and King. Each rank knows its
blackjack point value (Ace counts 11 until a hand evaluator says otherwise).

- `Card`: An immutable playing card. A card has a suit, a rank and the point
value derived from that rank.

This module is part of the `tablejack` package, a single-table blackjack round engine.
"""

from dataclasses import dataclass, field
from enum import Enum, unique


@unique
class Suit(Enum):
    """
    Enum for suits in a card deck.
    """

    HEARTS = "♥"
    DIAMONDS = "♦"
    CLUBS = "♣"
    SPADES = "♠"

    def __str__(self) -> str:
        return self.value


_SUIT_LETTERS = {"h": Suit.HEARTS, "d": Suit.DIAMONDS, "c": Suit.CLUBS, "s": Suit.SPADES}


@unique
class Rank(Enum):
    """
    Enum for ranks in a card deck.
    """

    ACE = "A"
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"

    @property
    def rank_value(self) -> int:
        """The blackjack point value of the rank, with Ace counted as 11."""
        if self is Rank.ACE:
            return 11
        if self in (Rank.JACK, Rank.QUEEN, Rank.KING):
            return 10
        return int(self.value)

    @property
    def rank_str(self) -> str:
        """A string representation of the rank."""
        return self.value

    def __str__(self) -> str:
        return self.rank_str


@dataclass(frozen=True)
class Card:
    """
    Class representing a playing card. Cards are immutable values.

    >>> card = Card(Suit.HEARTS, Rank.TWO)
    >>> print(card)
    2 of ♥
    >>> Card(Suit.SPADES, Rank.KING).point_value
    10
    """

    suit: Suit
    rank: Rank
    point_value: int = field(init=False, compare=False)

    def __post_init__(self):
        if not isinstance(self.suit, Suit):
            raise TypeError(f"Invalid suit: {self.suit}")
        if not isinstance(self.rank, Rank):
            raise TypeError(f"Invalid rank: {self.rank}")
        object.__setattr__(self, "point_value", self.rank.rank_value)

    @property
    def is_ace(self) -> bool:
        return self.rank is Rank.ACE

    @classmethod
    def from_string(cls, text: str) -> "Card":
        """
        Parse a card from short text such as ``"A♠"``, ``"10h"`` or ``"Kd"``.

        :param text: Rank symbol followed by a suit symbol or suit letter.
        :return: The parsed Card.
        :raises ValueError: If the text does not name a card.
        """
        text = text.strip()
        if len(text) < 2:
            raise ValueError(f"Cannot parse card from {text!r}")

        rank_part, suit_part = text[:-1].upper(), text[-1]
        suit = _SUIT_LETTERS.get(suit_part.lower())
        if suit is None:
            try:
                suit = Suit(suit_part)
            except ValueError as exc:
                raise ValueError(f"Unknown suit in {text!r}") from exc
        try:
            rank = Rank(rank_part)
        except ValueError as exc:
            raise ValueError(f"Unknown rank in {text!r}") from exc
        return cls(suit, rank)

    def __repr__(self) -> str:
        """
        Provide a machine-readable representation of the card.

        :return: A string representation of the card.
        """
        return f"Card(Suit.{self.suit.name}, Rank.{self.rank.name})"

    def __str__(self) -> str:
        """
        Provide a human-readable representation of the card.

        :return: A string representation of the card.
        """
        return f"{self.rank.rank_str} of {self.suit}"
