"""
The blackjack round controller: a phase state machine for one player at one table.

IDLE -> BETTING -> DEALING -> PLAYER_TURN -> DEALER_TURN -> RESULT -> BETTING | GAME_OVER

The controller exclusively owns the `GameState` and the `Shoe`. Front ends read
`get_state()` snapshots and call the action methods. Invalid requests (wrong
phase, insufficient balance, ineligible hand) never raise: the method returns
False and, where the player needs an explanation, `message` says why.
"""

import functools
import logging
import random
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from tablejack.blackjack import dealer, evaluator, payout
from tablejack.blackjack.action import Action
from tablejack.blackjack.constants import MIN_BET, TABLE_MAX_MULTIPLIER, TABLE_MINIMUMS
from tablejack.blackjack.decision_logger import ActionRecord, DecisionLogger
from tablejack.blackjack.hand import BlackjackHand
from tablejack.blackjack.state import (
    GamePhase,
    GameSnapshot,
    GameState,
    HandResult,
    HandSlot,
    Outcome,
)
from tablejack.common.card import Card
from tablejack.common.shoe import Shoe
from tablejack.events import EngineEventType, EventBus, EventEmitter

logger = logging.getLogger("tablejack.controller")

NEW_GAME_MESSAGE = "Set your starting balance and table limits to begin"
GAME_OVER_MESSAGE = "Game Over! Insufficient balance to continue."
DEAL_ERROR_MESSAGE = "Error: Unable to deal cards"
DRAW_ERROR_MESSAGE = "Error: Unable to deal card"

# Player, dealer hole card (face down), player, dealer up-card
DEAL_ORDER = (
    ("player", False),
    ("dealer", True),
    ("player", False),
    ("dealer", False),
)

CONFIGURABLE_PHASES = (
    GamePhase.IDLE,
    GamePhase.BETTING,
    GamePhase.RESULT,
    GamePhase.GAME_OVER,
)

ROUND_OVER_PHASES = (GamePhase.RESULT, GamePhase.GAME_OVER)

StateObserver = Callable[[GameSnapshot], None]


def recorded(action: str):
    """Record every call of a controller action in the decision log."""

    def decorator(method):
        @functools.wraps(method)
        def wrapper(self, *args, **kwargs):
            phase = self._state.phase
            slot = self._state.active_hand if phase is GamePhase.PLAYER_TURN else None
            accepted = method(self, *args, **kwargs)
            hand = self._state.hand_for(slot) if slot is not None else None
            self.decisions.log_action(
                ActionRecord(
                    timestamp=datetime.now(),
                    action=action,
                    phase=phase.value,
                    slot=slot.value if slot is not None else None,
                    hand_cards=hand.cards if hand is not None else [],
                    hand_value=hand.value() if hand is not None else 0,
                    accepted=accepted,
                    message=self._state.message,
                )
            )
            if self._round_outcomes is not None:
                self.decisions.log_round_end(self._round_outcomes)
                self._round_outcomes = None
            return accepted

        return wrapper

    return decorator


class GameController:
    """
    Drives a single-player blackjack table.

    Args:
        starting_balance: Bankroll to start with. If omitted the balance must be
            set with `set_starting_balance` before the table opens.
        config: Optional collaborators: ``shoe`` (a prepared `Shoe`), ``seed``
            (seeds the shoe's shuffles), ``event_emitter`` (defaults to the
            global `EventBus`) and ``decision_logger`` (a fresh `DecisionLogger`
            for this table by default).
    """

    def __init__(
        self,
        starting_balance: Optional[float] = None,
        config: Optional[Dict[str, Any]] = None,
    ):
        self.config = config or {}
        self.event_bus: EventEmitter = (
            self.config.get("event_emitter") or EventBus.get_instance()
        )
        self.decisions: DecisionLogger = (
            self.config.get("decision_logger") or DecisionLogger()
        )

        shoe = self.config.get("shoe")
        if shoe is None:
            seed = self.config.get("seed")
            rng = random.Random(seed) if seed is not None else None
            shoe = Shoe(rng=rng, event_emitter=self.event_bus)
        self.shoe: Shoe = shoe

        self._state = GameState.initial(0, NEW_GAME_MESSAGE)
        self._round_outcomes: Optional[Dict[str, str]] = None
        if starting_balance is not None:
            self._apply_starting_balance(starting_balance)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def get_state(self) -> GameSnapshot:
        """A deep, disconnected copy of the current state."""
        return self._state.snapshot()

    @property
    def phase(self) -> GamePhase:
        return self._state.phase

    def available_actions(self) -> List[Action]:
        """The player actions the controller would accept right now."""
        s = self._state
        if s.phase is not GamePhase.PLAYER_TURN:
            return []

        if s.insurance_offered:
            actions = []
            if s.current_bet / 2 <= s.player_balance:
                actions.append(Action.INSURANCE)
            actions.append(Action.DECLINE_INSURANCE)
            return actions

        hand = s.active
        actions = [Action.HIT, Action.STAND]
        if hand.can_double and hand.bet <= s.player_balance:
            actions.append(Action.DOUBLE)
        if self._split_allowed() and s.current_bet <= s.player_balance:
            actions.append(Action.SPLIT)
        if self._surrender_allowed():
            actions.append(Action.SURRENDER)
        return actions

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @recorded("set_starting_balance")
    def set_starting_balance(self, amount: float) -> bool:
        if self._state.phase not in CONFIGURABLE_PHASES:
            return False
        return self._apply_starting_balance(amount)

    def _apply_starting_balance(self, amount: float) -> bool:
        s = self._state
        if amount < MIN_BET:
            s.message = f"Starting balance must be at least ${MIN_BET}"
            return False

        s.starting_balance = amount
        s.player_balance = amount
        logger.info("Starting balance set to %s", amount)

        if s.table_limits_set:
            self._open_betting()
        else:
            s.message = "Select table limits to continue"
        return True

    @recorded("set_table_limits")
    def set_table_limits(self, minimum: int) -> bool:
        s = self._state
        if s.phase not in CONFIGURABLE_PHASES:
            return False
        if minimum not in TABLE_MINIMUMS:
            s.message = "Invalid table limit selected"
            return False

        s.min_table_limit = minimum
        s.max_table_limit = minimum * TABLE_MAX_MULTIPLIER
        logger.info("Table limits set to %s-%s", s.min_table_limit, s.max_table_limit)

        if s.starting_balance > 0:
            self._open_betting()
        else:
            s.message = "Set your starting balance to continue"
        return True

    def _open_betting(self) -> None:
        s = self._state
        if s.player_balance < s.min_table_limit:
            s.message = f"Balance must be at least ${s.min_table_limit} for this table"
            # A finished round keeps its result on screen
            if s.phase is GamePhase.BETTING:
                self._set_phase(GamePhase.IDLE)
            return
        if s.phase is not GamePhase.BETTING:
            self._set_phase(GamePhase.BETTING)
        s.message = "Place your bet"

    # ------------------------------------------------------------------
    # Betting and dealing
    # ------------------------------------------------------------------

    @recorded("set_bet")
    def set_bet(self, amount: float, on_card: Optional[StateObserver] = None) -> bool:
        """Place a bet and deal the round."""
        if self._state.phase not in (GamePhase.IDLE, GamePhase.BETTING):
            return False
        if not self._validate_bet(amount):
            return False
        return self._place_bet_and_deal(amount, on_card)

    @recorded("bet_again")
    def bet_again(self) -> bool:
        """Return to BETTING with the previous bet pre-filled, without dealing."""
        s = self._state
        if s.phase not in ROUND_OVER_PHASES:
            return False
        if not self._can_continue():
            return False

        previous_bet = s.current_bet or self._minimum_bet
        s.current_bet = min(previous_bet, s.player_balance)
        self._set_phase(GamePhase.BETTING)
        s.message = "Adjust your bet if needed, then deal"
        return True

    @recorded("bet_and_deal_again")
    def bet_and_deal_again(
        self, amount: Optional[float] = None, on_card: Optional[StateObserver] = None
    ) -> bool:
        """Bet again (the previous amount unless one is given) and deal immediately."""
        s = self._state
        if s.phase not in ROUND_OVER_PHASES:
            return False
        if not self._can_continue():
            return False

        bet = amount or s.current_bet
        if not self._validate_bet(bet):
            return False
        return self._place_bet_and_deal(bet, on_card)

    @property
    def _minimum_bet(self) -> float:
        return self._state.min_table_limit or MIN_BET

    def _can_continue(self) -> bool:
        s = self._state
        if s.player_balance < self._minimum_bet:
            if s.phase is not GamePhase.GAME_OVER:
                self._set_phase(GamePhase.GAME_OVER)
            s.message = GAME_OVER_MESSAGE
            return False
        return True

    def _validate_bet(self, amount: float) -> bool:
        s = self._state
        if not s.table_limits_set:
            s.message = "Table limits must be set before betting"
            return False
        if amount < s.min_table_limit:
            s.message = f"Minimum bet is ${s.min_table_limit}"
            return False
        if amount > s.max_table_limit:
            s.message = f"Maximum bet is ${s.max_table_limit}"
            return False
        if amount > s.player_balance:
            s.message = "Insufficient balance"
            return False
        return True

    def _place_bet_and_deal(
        self, amount: float, on_card: Optional[StateObserver]
    ) -> bool:
        s = self._state
        s.current_bet = amount
        s.player_balance -= amount
        self.event_bus.emit(
            EngineEventType.BET_PLACED,
            {"amount": amount, "balance": s.player_balance},
        )
        self._set_phase(GamePhase.DEALING)
        return self._deal(on_card)

    def _deal(self, on_card: Optional[StateObserver]) -> bool:
        s = self._state
        s.player_hand = BlackjackHand(bet=s.current_bet)
        s.dealer_hand = BlackjackHand()
        s.player_split_hand = None
        s.insurance_offered = False
        s.insurance_taken = False
        s.active_hand = HandSlot.MAIN
        s.main_hand_complete = False
        s.results = []
        s.last_payout = 0

        for target, face_down in DEAL_ORDER:
            if target == "player":
                card = self._deal_to(s.player_hand, target, HandSlot.MAIN, face_down)
            else:
                card = self._deal_to(s.dealer_hand, target, None, face_down)
            if card is None:
                self._fail(DEAL_ERROR_MESSAGE)
                return False
            self._notify(on_card)

        self._set_phase(GamePhase.PLAYER_TURN)
        if evaluator.dealer_shows_ace(s.dealer_hand.cards):
            s.insurance_offered = True
            s.message = "Dealer shows Ace. Would you like insurance?"
            self.event_bus.emit(
                EngineEventType.INSURANCE_OFFERED,
                {"cost": s.current_bet / 2, "balance": s.player_balance},
            )
        else:
            self._check_for_blackjack()
        return True

    def _check_for_blackjack(self, prefix: str = "") -> None:
        # The dealer's hole card is only checked when the round is settled
        if self._state.player_hand.is_blackjack:
            self._state.message = f"{prefix}Blackjack! Continue playing."
        else:
            self._state.message = f"{prefix}Your turn"

    def _notify(self, on_card: Optional[StateObserver]) -> None:
        if on_card is None:
            return
        try:
            on_card(self.get_state())
        except Exception as e:
            logger.error(f"Error in deal observer: {e}", exc_info=True)

    # ------------------------------------------------------------------
    # Insurance
    # ------------------------------------------------------------------

    @recorded("take_insurance")
    def take_insurance(self) -> bool:
        s = self._state
        if s.phase is not GamePhase.PLAYER_TURN:
            return False
        if not s.insurance_offered or s.insurance_taken:
            return False

        amount = s.current_bet / 2
        if amount > s.player_balance:
            s.message = "Insufficient balance for insurance"
            return False

        s.player_balance -= amount
        s.player_hand.set_insurance_bet(amount)
        s.insurance_taken = True
        s.insurance_offered = False
        self.event_bus.emit(
            EngineEventType.INSURANCE_DECISION, {"taken": True, "amount": amount}
        )
        self._check_for_blackjack("Insurance taken. ")
        return True

    @recorded("decline_insurance")
    def decline_insurance(self) -> bool:
        s = self._state
        if s.phase is not GamePhase.PLAYER_TURN or not s.insurance_offered:
            return False

        s.insurance_offered = False
        self.event_bus.emit(
            EngineEventType.INSURANCE_DECISION, {"taken": False, "amount": 0}
        )
        self._check_for_blackjack()
        return True

    # ------------------------------------------------------------------
    # Player actions
    # ------------------------------------------------------------------

    def _player_can_act(self) -> bool:
        s = self._state
        return s.phase is GamePhase.PLAYER_TURN and not s.insurance_offered

    def _split_allowed(self) -> bool:
        s = self._state
        return (
            s.player_split_hand is None
            and s.active_hand is HandSlot.MAIN
            and s.player_hand.can_split
        )

    def _surrender_allowed(self) -> bool:
        s = self._state
        return s.player_split_hand is None and len(s.player_hand) == 2

    @recorded("hit")
    def hit(self) -> bool:
        if not self._player_can_act():
            return False

        s = self._state
        hand = s.active
        self._announce(Action.HIT)
        card = self._deal_to(hand, "player", s.active_hand)
        if card is None:
            self._fail(DRAW_ERROR_MESSAGE)
            return False

        if hand.is_busted:
            self._hand_busted(hand)
            self._complete_active_hand("busted")
        elif s.active_hand is HandSlot.SPLIT:
            s.message = "Playing second hand"
        else:
            s.message = "Your turn"
        return True

    @recorded("stand")
    def stand(self) -> bool:
        if not self._player_can_act():
            return False
        self._announce(Action.STAND)
        self._complete_active_hand("complete")
        return True

    @recorded("double_down")
    def double_down(self) -> bool:
        if not self._player_can_act():
            return False

        s = self._state
        hand = s.active
        if not hand.can_double:
            s.message = "You can only double down on two cards"
            return False

        additional_bet = hand.bet
        if additional_bet > s.player_balance:
            s.message = "Insufficient balance to double down"
            return False

        self._announce(Action.DOUBLE)
        card = self.shoe.draw()
        if card is None:
            self._fail(DRAW_ERROR_MESSAGE)
            return False

        s.player_balance -= additional_bet
        hand.double_down(card)
        self._emit_card(card, "player", s.active_hand, False)

        if hand.is_busted:
            self._hand_busted(hand)
            self._complete_active_hand("busted")
        else:
            self._complete_active_hand("doubled")
        return True

    @recorded("split")
    def split(self) -> bool:
        if not self._player_can_act():
            return False

        s = self._state
        if not self._split_allowed():
            if s.player_split_hand is None:
                s.message = "Only two cards of equal value can be split"
            return False

        additional_bet = s.current_bet
        if additional_bet > s.player_balance:
            s.message = "Insufficient balance to split"
            return False

        self._announce(Action.SPLIT)
        first_card = self.shoe.draw()
        second_card = self.shoe.draw()
        if first_card is None or second_card is None:
            self._fail(DEAL_ERROR_MESSAGE)
            return False

        s.player_balance -= additional_bet
        split_card = s.player_hand.pop_card()
        s.player_hand.is_split = True
        s.player_split_hand = BlackjackHand(bet=additional_bet, is_split=True)
        s.player_split_hand.add_card(split_card)
        self.event_bus.emit(
            EngineEventType.HAND_SPLIT,
            {"card": str(split_card), "bet": additional_bet},
        )

        s.player_hand.add_card(first_card)
        self._emit_card(first_card, "player", HandSlot.MAIN, False)
        s.player_split_hand.add_card(second_card)
        self._emit_card(second_card, "player", HandSlot.SPLIT, False)

        s.active_hand = HandSlot.MAIN
        s.main_hand_complete = False
        s.message = "Playing first hand"
        return True

    @recorded("surrender")
    def surrender(self) -> bool:
        if not self._player_can_act():
            return False

        s = self._state
        if not self._surrender_allowed():
            s.message = "You can only surrender your first two cards"
            return False

        self._announce(Action.SURRENDER)
        refund = s.player_hand.bet / 2
        s.player_balance += refund
        s.player_hand.surrender()
        s.main_hand_complete = True
        s.results = [HandResult(HandSlot.MAIN, Outcome.SURRENDER, 0, "Surrendered")]
        s.last_payout = 0
        s.message = "Hand surrendered. You lose half your bet."
        self._set_phase(GamePhase.RESULT)
        self._end_round()
        return True

    def _announce(self, action: Action) -> None:
        self.event_bus.emit(
            EngineEventType.PLAYER_ACTION,
            {"action": action.value, "slot": self._state.active_hand.value},
        )

    def _hand_busted(self, hand: BlackjackHand) -> None:
        self.event_bus.emit(
            EngineEventType.HAND_BUSTED,
            {"slot": self._state.active_hand.value, "value": hand.value()},
        )

    def _complete_active_hand(self, how: str) -> None:
        """Finish the active hand: move on to the split hand or end the player's turn."""
        s = self._state
        if s.active_hand is HandSlot.MAIN:
            s.main_hand_complete = True
            if s.player_split_hand is not None:
                s.active_hand = HandSlot.SPLIT
                s.message = f"First hand {how}. Playing second hand."
                return
        self._finish_player_turn()

    def _finish_player_turn(self) -> None:
        s = self._state
        live_hands = [
            hand
            for _, hand in s.player_hands()
            if not hand.is_busted and not hand.is_surrendered
        ]
        if live_hands:
            self._set_phase(GamePhase.DEALER_TURN)
            self._play_dealer_turn()
            return

        # Every hand busted: the dealer has nothing to play against
        self._settle_round(all_busted=True)

    # ------------------------------------------------------------------
    # Dealer turn and settlement
    # ------------------------------------------------------------------

    def _play_dealer_turn(self) -> None:
        s = self._state
        hole_card = s.dealer_hand.cards[0]
        self.event_bus.emit(
            EngineEventType.DEALER_ACTION, {"action": "reveal", "card": str(hole_card)}
        )
        logger.debug("Dealer reveals %s", hole_card)

        initial = s.dealer_hand.cards
        final_cards = dealer.play_turn(initial, self.shoe.draw)

        s.dealer_hand = BlackjackHand()
        for card in final_cards:
            s.dealer_hand.add_card(card)
        for card in final_cards[len(initial):]:
            self.event_bus.emit(EngineEventType.DEALER_ACTION, {"action": "hit"})
            self._emit_card(card, "dealer", None, False)

        self.event_bus.emit(
            EngineEventType.DEALER_ACTION,
            {"action": "stand", "value": s.dealer_hand.value()},
        )
        self._settle_round()

    def _settle_round(self, all_busted: bool = False) -> None:
        s = self._state
        insurance_credit = 0
        if s.insurance_taken and s.player_hand.insurance_bet:
            insurance_credit = payout.insurance_payout(
                s.player_hand.insurance_bet, s.dealer_hand
            )

        results = [
            payout.settle_hand(slot, hand, s.dealer_hand, s.insurance_taken)
            for slot, hand in s.player_hands()
        ]
        total = sum(result.payout for result in results) + insurance_credit

        s.player_balance += total
        s.results = results
        s.last_payout = total

        for result in results:
            self.event_bus.emit(EngineEventType.HAND_RESULT, result.to_dict())

        if s.dealer_hand.is_blackjack:
            if s.insurance_taken:
                s.message = "Dealer has blackjack. Insurance pays! Original bets returned."
            else:
                s.message = "Dealer has blackjack. Dealer wins."
        elif all_busted and s.player_split_hand is None:
            s.message = "Bust! You lose."
        else:
            s.message = " | ".join(
                f"{result.slot.label}: {result.message}" for result in results
            )

        self._set_phase(GamePhase.RESULT)
        self._end_round()

    def _end_round(self) -> None:
        s = self._state
        self.event_bus.emit(
            EngineEventType.ROUND_ENDED,
            {
                "results": [result.to_dict() for result in s.results],
                "payout": s.last_payout,
                "balance": s.player_balance,
            },
        )
        self._round_outcomes = {
            result.slot.value: result.outcome.value for result in s.results
        }

        if s.player_balance < self._minimum_bet:
            self._set_phase(GamePhase.GAME_OVER)
            s.message = GAME_OVER_MESSAGE
            self.event_bus.emit(
                EngineEventType.GAME_OVER, {"balance": s.player_balance}
            )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @recorded("reset_game")
    def reset_game(self, starting_balance: Optional[float] = None) -> bool:
        """Start a new session: fresh shoe and state, back to IDLE."""
        balance = starting_balance or self._state.starting_balance
        self.shoe.reset()
        self._state = GameState.initial(balance, NEW_GAME_MESSAGE)
        if balance > 0:
            self._state.message = "Select table limits to continue"
        self.event_bus.emit(EngineEventType.GAME_RESET, {"starting_balance": balance})
        logger.info("Game reset with starting balance %s", balance)
        return True

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _set_phase(self, phase: GamePhase) -> None:
        previous = self._state.phase
        self._state.phase = phase
        logger.debug("Phase %s -> %s", previous, phase)
        self.decisions.log_phase_transition(previous.value, phase.value)
        self.event_bus.emit(
            EngineEventType.PHASE_CHANGED,
            {"from": previous.value, "to": phase.value},
        )

    def _deal_to(
        self,
        hand: BlackjackHand,
        target: str,
        slot: Optional[HandSlot],
        face_down: bool = False,
    ) -> Optional[Card]:
        card = self.shoe.draw()
        if card is None:
            return None
        hand.add_card(card)
        self._emit_card(card, target, slot, face_down)
        return card

    def _emit_card(
        self, card: Card, target: str, slot: Optional[HandSlot], face_down: bool
    ) -> None:
        self.event_bus.emit(
            EngineEventType.CARD_DEALT,
            {
                "target": target,
                "slot": slot.value if slot is not None else None,
                "card": None if face_down else str(card),
                "face_down": face_down,
            },
        )

    def _fail(self, message: str) -> None:
        self._state.message = message
        logger.error("%s (phase %s, %d cards in shoe)", message, self._state.phase, len(self.shoe))
        self.event_bus.emit(EngineEventType.ERROR, {"message": message})
