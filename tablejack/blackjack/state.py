"""
Game state for the blackjack round engine.

`GameState` is the single mutable aggregate owned by a `GameController`. Front
ends never see it directly: `GameState.snapshot()` builds a frozen
`GameSnapshot`, a deep and disconnected copy whose hands are `HandSnapshot`
values.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from tablejack.blackjack.hand import BlackjackHand
from tablejack.common.card import Card


class GamePhase(Enum):
    """Phases of the round state machine."""

    IDLE = "idle"
    BETTING = "betting"
    DEALING = "dealing"
    PLAYER_TURN = "player_turn"
    DEALER_TURN = "dealer_turn"
    RESULT = "result"
    GAME_OVER = "game_over"

    def __str__(self) -> str:
        return self.value


class HandSlot(Enum):
    """Which of the player's hands an action applies to."""

    MAIN = "main"
    SPLIT = "split"

    @property
    def label(self) -> str:
        return "First hand" if self is HandSlot.MAIN else "Second hand"


class Outcome(Enum):
    """How a single player hand finished against the dealer."""

    WIN = "win"
    BLACKJACK = "blackjack"
    PUSH = "push"
    LOSE = "lose"
    BUST = "bust"
    SURRENDER = "surrender"


@dataclass(frozen=True)
class HandResult:
    """Settlement of one player hand."""

    slot: HandSlot
    outcome: Outcome
    payout: float
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "slot": self.slot.value,
            "outcome": self.outcome.value,
            "payout": self.payout,
            "message": self.message,
        }


@dataclass(frozen=True)
class HandSnapshot:
    """
    Immutable view of a hand.

    Attributes:
        cards: The cards in the hand, in the order they were received
        bet: The wager riding on the hand
        value: Best total of the hand
        soft_value: Total with every Ace counted as 11
    """

    cards: Tuple[Card, ...] = ()
    bet: float = 0
    value: int = 0
    soft_value: int = 0
    is_split: bool = False
    is_double_down: bool = False
    is_busted: bool = False
    is_blackjack: bool = False
    is_surrendered: bool = False
    insurance_bet: Optional[float] = None

    @classmethod
    def of(cls, hand: BlackjackHand) -> "HandSnapshot":
        return cls(
            cards=tuple(hand.cards),
            bet=hand.bet,
            value=hand.value(),
            soft_value=hand.soft_value(),
            is_split=hand.is_split,
            is_double_down=hand.is_double_down,
            is_busted=hand.is_busted,
            is_blackjack=hand.is_blackjack,
            is_surrendered=hand.is_surrendered,
            insurance_bet=hand.insurance_bet,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cards": [str(card) for card in self.cards],
            "bet": self.bet,
            "value": self.value,
            "soft_value": self.soft_value,
            "is_split": self.is_split,
            "is_double_down": self.is_double_down,
            "is_busted": self.is_busted,
            "is_blackjack": self.is_blackjack,
            "is_surrendered": self.is_surrendered,
            "insurance_bet": self.insurance_bet,
        }


@dataclass(frozen=True)
class GameSnapshot:
    """Read-only copy of the complete game state, the only thing a front-end renders."""

    phase: GamePhase
    player_hand: HandSnapshot
    dealer_hand: HandSnapshot
    player_split_hand: Optional[HandSnapshot]
    current_bet: float
    player_balance: float
    starting_balance: float
    min_table_limit: int
    max_table_limit: int
    message: str
    insurance_offered: bool
    insurance_taken: bool
    active_hand: HandSlot
    main_hand_complete: bool
    results: Tuple[HandResult, ...]
    last_payout: float

    @property
    def hole_card_hidden(self) -> bool:
        """The dealer's hole card stays face down until the dealer plays."""
        return self.phase in (GamePhase.DEALING, GamePhase.PLAYER_TURN)

    @property
    def dealer_visible_cards(self) -> Tuple[Card, ...]:
        if self.hole_card_hidden:
            return self.dealer_hand.cards[1:]
        return self.dealer_hand.cards

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase.value,
            "player_hand": self.player_hand.to_dict(),
            "dealer_hand": self.dealer_hand.to_dict(),
            "player_split_hand": (
                self.player_split_hand.to_dict() if self.player_split_hand else None
            ),
            "current_bet": self.current_bet,
            "player_balance": self.player_balance,
            "starting_balance": self.starting_balance,
            "min_table_limit": self.min_table_limit,
            "max_table_limit": self.max_table_limit,
            "message": self.message,
            "insurance_offered": self.insurance_offered,
            "insurance_taken": self.insurance_taken,
            "active_hand": self.active_hand.value,
            "main_hand_complete": self.main_hand_complete,
            "results": [result.to_dict() for result in self.results],
            "last_payout": self.last_payout,
        }


@dataclass
class GameState:
    """
    Mutable state of one table. Only the owning controller writes to it.

    Every field is explicit; `GameState.initial` builds the IDLE state a
    controller starts from and returns to on reset.
    """

    phase: GamePhase
    player_hand: BlackjackHand
    dealer_hand: BlackjackHand
    player_split_hand: Optional[BlackjackHand]
    current_bet: float
    player_balance: float
    starting_balance: float
    min_table_limit: int
    max_table_limit: int
    message: str
    insurance_offered: bool
    insurance_taken: bool
    active_hand: HandSlot
    main_hand_complete: bool
    results: List[HandResult] = field(default_factory=list)
    last_payout: float = 0

    @classmethod
    def initial(cls, starting_balance: float, message: str) -> "GameState":
        return cls(
            phase=GamePhase.IDLE,
            player_hand=BlackjackHand(),
            dealer_hand=BlackjackHand(),
            player_split_hand=None,
            current_bet=0,
            player_balance=starting_balance,
            starting_balance=starting_balance,
            min_table_limit=0,
            max_table_limit=0,
            message=message,
            insurance_offered=False,
            insurance_taken=False,
            active_hand=HandSlot.MAIN,
            main_hand_complete=False,
            results=[],
            last_payout=0,
        )

    @property
    def table_limits_set(self) -> bool:
        return self.min_table_limit > 0 and self.max_table_limit > 0

    def hand_for(self, slot: HandSlot) -> Optional[BlackjackHand]:
        if slot is HandSlot.SPLIT:
            return self.player_split_hand
        return self.player_hand

    @property
    def active(self) -> BlackjackHand:
        """The hand player actions currently apply to."""
        if self.active_hand is HandSlot.SPLIT and self.player_split_hand is not None:
            return self.player_split_hand
        return self.player_hand

    def player_hands(self) -> List[Tuple[HandSlot, BlackjackHand]]:
        """The player's hands in play order: main first, then split if present."""
        hands = [(HandSlot.MAIN, self.player_hand)]
        if self.player_split_hand is not None:
            hands.append((HandSlot.SPLIT, self.player_split_hand))
        return hands

    def snapshot(self) -> GameSnapshot:
        return GameSnapshot(
            phase=self.phase,
            player_hand=HandSnapshot.of(self.player_hand),
            dealer_hand=HandSnapshot.of(self.dealer_hand),
            player_split_hand=(
                HandSnapshot.of(self.player_split_hand)
                if self.player_split_hand is not None
                else None
            ),
            current_bet=self.current_bet,
            player_balance=self.player_balance,
            starting_balance=self.starting_balance,
            min_table_limit=self.min_table_limit,
            max_table_limit=self.max_table_limit,
            message=self.message,
            insurance_offered=self.insurance_offered,
            insurance_taken=self.insurance_taken,
            active_hand=self.active_hand,
            main_hand_complete=self.main_hand_complete,
            results=tuple(self.results),
            last_payout=self.last_payout,
        )
