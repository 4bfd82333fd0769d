import logging
import random
from typing import List, Optional

from tablejack.blackjack.constants import CARDS_PER_DECK, NUM_DECKS, RESHUFFLE_THRESHOLD
from tablejack.common.card import Card
from tablejack.common.deck import Deck
from tablejack.events import EngineEventType, EventBus, EventEmitter

logger = logging.getLogger("tablejack.shoe")


class Shoe:
    def __init__(
        self,
        num_decks: int = NUM_DECKS,
        reshuffle_threshold: int = RESHUFFLE_THRESHOLD,
        rng: Optional[random.Random] = None,
        event_emitter: Optional[EventEmitter] = None,
    ):
        """
        Initialize a Shoe instance.

        :param num_decks: Number of standard decks combined in the shoe (default is 4)
        :param reshuffle_threshold: When fewer cards than this remain, the next draw
                                    recomposes and reshuffles the full shoe first (default is 52)
        :param rng: Optional random source, for reproducible shuffles
        :param event_emitter: Where SHUFFLE events go; the global event bus by default
        """
        if num_decks < 1:
            raise ValueError("Number of decks must be at least 1")
        if not 0 <= reshuffle_threshold <= num_decks * CARDS_PER_DECK:
            raise ValueError("Reshuffle threshold must be between 0 and the shoe size")

        self.num_decks = num_decks
        self.reshuffle_threshold = reshuffle_threshold
        self.total_cards = num_decks * CARDS_PER_DECK
        self.shuffle_count = 0
        self.cards: List[Card] = []
        self._rng = rng or random.Random()
        self._event_emitter = event_emitter

        self.initialize_shoe()

    @property
    def event_emitter(self) -> EventEmitter:
        return self._event_emitter or EventBus.get_instance()

    def initialize_shoe(self):
        """Recompose the shoe from full decks and shuffle it."""
        self.cards = []
        for _ in range(self.num_decks):
            self.cards.extend(Deck().cards)
        self.shuffle()

    def shuffle(self):
        """Shuffle the undealt cards with a uniform (Fisher-Yates) permutation."""
        self._rng.shuffle(self.cards)
        self.shuffle_count += 1
        logger.debug("Shoe shuffled (%d cards, shuffle #%d)", len(self.cards), self.shuffle_count)
        self.event_emitter.emit(
            EngineEventType.SHUFFLE,
            {"cards_remaining": len(self.cards), "shuffle_count": self.shuffle_count},
        )

    def draw(self) -> Optional[Card]:
        """
        Draw one card from the end of the shoe.

        If fewer cards than the reshuffle threshold remain, the shoe is rebuilt
        and reshuffled before the draw. Returns None only for a shoe that is
        already empty, which the reshuffle threshold normally prevents.
        """
        if not self.cards:
            logger.error("Draw requested from an empty shoe")
            return None

        if len(self.cards) < self.reshuffle_threshold:
            logger.info(
                "Reshuffling: %d cards left, threshold is %d",
                len(self.cards),
                self.reshuffle_threshold,
            )
            self.initialize_shoe()

        return self.cards.pop()

    def reset(self):
        """Recompose and reshuffle unconditionally, for a new session."""
        self.initialize_shoe()

    @property
    def cards_remaining(self) -> int:
        """Return the number of cards remaining in the shoe."""
        return len(self.cards)

    def __len__(self) -> int:
        return len(self.cards)

    def __str__(self) -> str:
        return f"Shoe with {self.cards_remaining} cards remaining"

    def __repr__(self) -> str:
        return f"Shoe(num_decks={self.num_decks}, reshuffle_threshold={self.reshuffle_threshold})"
