"""
Tests for the blackjack round controller.

Rounds are scripted with the `make_controller` fixture: cards are given in the
order they are drawn, starting with the initial deal (player, dealer hole card,
player, dealer up-card).
"""

import dataclasses
import random

import pytest
from unittest.mock import MagicMock

from tablejack.blackjack.action import Action
from tablejack.blackjack.controller import GameController
from tablejack.blackjack.state import GamePhase, HandSlot, Outcome
from tablejack.common.card import Card
from tablejack.common.shoe import Shoe
from tablejack.events import EngineEventType


def recorder(emitter):
    events = []
    emitter.on_any(events.append)
    return events


def names(events):
    return [name for name, _ in events]


class TestConfiguration:
    def test_initial_state(self, emitter):
        controller = GameController(config={"event_emitter": emitter})
        state = controller.get_state()
        assert state.phase is GamePhase.IDLE
        assert state.player_balance == 0
        assert state.message == "Set your starting balance and table limits to begin"
        assert controller.available_actions() == []

    def test_starting_balance_minimum(self, emitter):
        controller = GameController(config={"event_emitter": emitter})
        assert not controller.set_starting_balance(3)
        assert controller.get_state().message == "Starting balance must be at least $5"
        assert controller.get_state().starting_balance == 0

    def test_balance_then_limits(self, emitter):
        controller = GameController(config={"event_emitter": emitter})
        assert controller.set_starting_balance(100)
        assert controller.phase is GamePhase.IDLE
        assert controller.get_state().message == "Select table limits to continue"

        assert controller.set_table_limits(25)
        state = controller.get_state()
        assert state.phase is GamePhase.BETTING
        assert state.min_table_limit == 25
        assert state.max_table_limit == 250
        assert state.message == "Place your bet"

    def test_limits_then_balance(self, emitter):
        controller = GameController(config={"event_emitter": emitter})
        assert controller.set_table_limits(10)
        assert controller.phase is GamePhase.IDLE
        assert controller.set_starting_balance(100)
        assert controller.phase is GamePhase.BETTING

    @pytest.mark.parametrize("minimum", [0, 5, 20, 1000])
    def test_invalid_table_limit(self, emitter, minimum):
        controller = GameController(100, {"event_emitter": emitter})
        assert not controller.set_table_limits(minimum)
        assert controller.get_state().message == "Invalid table limit selected"
        assert controller.phase is GamePhase.IDLE

    def test_balance_below_table_minimum(self, emitter):
        controller = GameController(20, {"event_emitter": emitter})
        controller.set_table_limits(25)
        assert controller.phase is GamePhase.IDLE
        assert "at least $25" in controller.get_state().message

    def test_raising_table_minimum_above_balance_closes_betting(self, make_controller):
        controller = make_controller(balance=100)
        assert controller.phase is GamePhase.BETTING

        assert controller.set_table_limits(250)
        state = controller.get_state()
        assert state.phase is GamePhase.IDLE
        assert "at least $250" in state.message
        assert not controller.set_bet(250)
        assert controller.get_state().player_balance == 100

        assert controller.set_table_limits(10)
        assert controller.phase is GamePhase.BETTING
        assert controller.get_state().message == "Place your bet"

    def test_configuration_rejected_mid_round(self, make_controller):
        controller = make_controller("10♠", "9♥", "7♣", "8♦")
        controller.set_bet(10)
        assert not controller.set_table_limits(100)
        assert not controller.set_starting_balance(500)
        assert controller.get_state().min_table_limit == 10


class TestBetting:
    def test_bet_requires_table_limits(self, emitter):
        controller = GameController(100, {"event_emitter": emitter})
        assert not controller.set_bet(10)
        assert controller.get_state().message == "Table limits must be set before betting"
        assert controller.get_state().player_balance == 100

    @pytest.mark.parametrize(
        "amount,message",
        [
            (5, "Minimum bet is $10"),
            (150, "Maximum bet is $100"),
            (60, "Insufficient balance"),
        ],
    )
    def test_bet_validation(self, make_controller, amount, message):
        controller = make_controller(balance=50)
        assert not controller.set_bet(amount)
        state = controller.get_state()
        assert state.message == message
        assert state.phase is GamePhase.BETTING
        assert state.player_balance == 50

    def test_bet_debits_and_deals(self, make_controller):
        controller = make_controller("10♠", "9♥", "7♣", "8♦")
        assert controller.set_bet(10)

        state = controller.get_state()
        assert state.phase is GamePhase.PLAYER_TURN
        assert state.player_balance == 990
        assert state.current_bet == 10
        assert state.player_hand.bet == 10
        assert state.player_hand.cards == (Card.from_string("10♠"), Card.from_string("7♣"))
        assert state.dealer_hand.cards == (Card.from_string("9♥"), Card.from_string("8♦"))
        assert state.message == "Your turn"

    def test_card_events_in_deal_order(self, make_controller, emitter):
        controller = make_controller("10♠", "9♥", "7♣", "8♦")
        dealt = []
        emitter.on(EngineEventType.CARD_DEALT, dealt.append)

        controller.set_bet(10)

        assert [(e["target"], e["face_down"]) for e in dealt] == [
            ("player", False),
            ("dealer", True),
            ("player", False),
            ("dealer", False),
        ]
        assert dealt[1]["card"] is None
        assert dealt[3]["card"] == "8 of ♦"

    def test_on_card_sees_each_card(self, make_controller):
        controller = make_controller("10♠", "9♥", "7♣", "8♦")
        on_card = MagicMock()

        controller.set_bet(10, on_card=on_card)

        assert on_card.call_count == 4
        counts = [
            len(call.args[0].player_hand.cards) + len(call.args[0].dealer_hand.cards)
            for call in on_card.call_args_list
        ]
        assert counts == [1, 2, 3, 4]

    def test_failing_observer_does_not_stop_the_deal(self, make_controller):
        controller = make_controller("10♠", "9♥", "7♣", "8♦")
        assert controller.set_bet(10, on_card=MagicMock(side_effect=RuntimeError))
        assert controller.phase is GamePhase.PLAYER_TURN

    def test_hole_card_hidden_until_dealer_turn(self, make_controller):
        controller = make_controller("10♠", "9♥", "7♣", "8♦")
        controller.set_bet(10)

        state = controller.get_state()
        assert state.hole_card_hidden
        assert state.dealer_visible_cards == (Card.from_string("8♦"),)

        controller.stand()
        state = controller.get_state()
        assert not state.hole_card_hidden
        assert len(state.dealer_visible_cards) == 2

    def test_natural_is_announced_without_ending_turn(self, make_controller):
        controller = make_controller("A♠", "7♥", "K♣", "10♦")
        controller.set_bet(10)
        state = controller.get_state()
        assert state.message == "Blackjack! Continue playing."
        assert state.phase is GamePhase.PLAYER_TURN


class TestScenarios:
    def test_push_returns_bet(self, make_controller):
        controller = make_controller("10♠", "9♥", "7♣", "8♦")
        controller.set_bet(10)
        controller.stand()

        state = controller.get_state()
        assert state.phase is GamePhase.RESULT
        assert state.player_balance == 1000
        assert len(state.dealer_hand.cards) == 2
        assert [r.outcome for r in state.results] == [Outcome.PUSH]
        assert state.last_payout == 10
        assert state.message == "First hand: Push"

    def test_blackjack_pays_three_to_two(self, make_controller):
        controller = make_controller("A♠", "7♥", "K♣", "10♦")
        controller.set_bet(10)
        assert controller.available_actions()[:2] == [Action.HIT, Action.STAND]
        controller.stand()

        state = controller.get_state()
        assert state.player_balance == 1015
        assert state.results[0].outcome is Outcome.BLACKJACK
        assert state.message == "First hand: Blackjack! You win!"

    def test_split_then_bust_main_moves_to_split(self, make_controller):
        controller = make_controller(
            "8♠", "10♥", "8♣", "7♦",  # initial deal
            "10♣", "5♦",  # one card to each split hand
            "K♠",  # main hand busts
        )
        controller.set_bet(10)
        assert Action.SPLIT in controller.available_actions()
        assert controller.split()

        state = controller.get_state()
        assert state.player_balance == 980
        assert state.player_hand.cards == (Card.from_string("8♠"), Card.from_string("10♣"))
        assert state.player_split_hand.cards == (Card.from_string("8♣"), Card.from_string("5♦"))
        assert state.player_split_hand.bet == 10
        assert state.active_hand is HandSlot.MAIN
        assert state.message == "Playing first hand"

        controller.hit()
        state = controller.get_state()
        assert state.player_hand.is_busted
        assert state.phase is GamePhase.PLAYER_TURN
        assert state.active_hand is HandSlot.SPLIT
        assert state.main_hand_complete
        assert state.message == "First hand busted. Playing second hand."

        controller.stand()
        state = controller.get_state()
        assert state.phase is GamePhase.RESULT
        assert [r.outcome for r in state.results] == [Outcome.BUST, Outcome.LOSE]
        assert state.player_balance == 980
        assert state.message == "First hand: Bust | Second hand: Dealer wins"

    def test_insurance_pays_on_dealer_blackjack(self, make_controller):
        controller = make_controller("10♠", "K♥", "9♣", "A♦")
        controller.set_bet(10)

        state = controller.get_state()
        assert state.insurance_offered
        assert state.message == "Dealer shows Ace. Would you like insurance?"
        assert controller.available_actions() == [Action.INSURANCE, Action.DECLINE_INSURANCE]

        assert controller.take_insurance()
        state = controller.get_state()
        assert state.player_balance == 985
        assert state.insurance_taken
        assert not state.insurance_offered
        assert state.player_hand.insurance_bet == 5
        assert state.message == "Insurance taken. Your turn"

        controller.stand()
        state = controller.get_state()
        assert state.player_balance == 1010
        assert state.last_payout == 25
        assert state.results[0].outcome is Outcome.PUSH
        assert state.message == "Dealer has blackjack. Insurance pays! Original bets returned."


class TestInsurance:
    def test_insurance_window_blocks_play(self, make_controller):
        controller = make_controller("10♠", "K♥", "9♣", "A♦")
        controller.set_bet(10)

        for action in (controller.hit, controller.stand, controller.double_down,
                       controller.surrender):
            assert not action()
        assert len(controller.get_state().player_hand.cards) == 2

        assert controller.decline_insurance()
        assert controller.get_state().message == "Your turn"
        assert not controller.decline_insurance()
        assert not controller.take_insurance()
        assert Action.HIT in controller.available_actions()

    def test_insurance_lost_when_dealer_has_no_blackjack(self, make_controller):
        controller = make_controller("10♠", "7♥", "9♣", "A♦")
        controller.set_bet(10)
        controller.take_insurance()
        controller.stand()

        state = controller.get_state()
        # Dealer stands on soft 18, player 19 wins, insurance stake forfeited
        assert state.player_balance == 1005
        assert state.message == "First hand: You win!"

    def test_insufficient_balance_keeps_offer_open(self, make_controller):
        controller = make_controller("10♠", "K♥", "9♣", "A♦", balance=100)
        controller.set_bet(100)

        assert not controller.take_insurance()
        state = controller.get_state()
        assert state.message == "Insufficient balance for insurance"
        assert state.insurance_offered
        assert controller.available_actions() == [Action.DECLINE_INSURANCE]

    def test_dealer_blackjack_beats_player_blackjack(self, make_controller):
        controller = make_controller("A♠", "K♥", "K♣", "A♦")
        controller.set_bet(10)
        controller.decline_insurance()
        assert controller.get_state().message == "Blackjack! Continue playing."

        controller.stand()
        state = controller.get_state()
        assert state.player_balance == 990
        assert state.results[0].outcome is Outcome.LOSE
        assert state.message == "Dealer has blackjack. Dealer wins."

    def test_dealer_blackjack_beats_three_card_twenty_one(self, make_controller):
        controller = make_controller("7♠", "Q♦", "7♥", "A♣", "7♦")
        controller.set_bet(10)
        controller.decline_insurance()
        controller.hit()
        assert controller.get_state().player_hand.value == 21

        controller.stand()
        state = controller.get_state()
        assert state.player_balance == 990
        assert state.last_payout == 0
        assert state.results[0].outcome is Outcome.LOSE
        assert state.message == "Dealer has blackjack. Dealer wins."

    def test_no_offer_when_ace_is_the_hole_card(self, make_controller):
        controller = make_controller("10♠", "A♥", "9♣", "K♦")
        controller.set_bet(10)
        assert not controller.get_state().insurance_offered

        controller.stand()
        assert controller.get_state().message == "Dealer has blackjack. Dealer wins."
        assert controller.get_state().player_balance == 990


class TestPlayerActions:
    def test_actions_outside_player_turn_are_no_ops(self, make_controller):
        controller = make_controller()
        before = controller.get_state()
        for action in (controller.hit, controller.stand, controller.double_down,
                       controller.split, controller.surrender,
                       controller.take_insurance, controller.decline_insurance):
            assert not action()
        assert controller.get_state() == before

    def test_available_actions_on_opening_hand(self, make_controller):
        controller = make_controller("10♠", "9♥", "7♣", "8♦")
        controller.set_bet(10)
        assert controller.available_actions() == [
            Action.HIT, Action.STAND, Action.DOUBLE, Action.SURRENDER
        ]

    def test_hit_to_bust_ends_round_without_dealer_draw(self, make_controller, emitter):
        controller = make_controller("10♠", "10♥", "6♣", "6♦", "K♠")
        busted = MagicMock()
        emitter.on(EngineEventType.HAND_BUSTED, busted)
        controller.set_bet(10)
        controller.hit()

        state = controller.get_state()
        assert state.phase is GamePhase.RESULT
        assert state.message == "Bust! You lose."
        assert len(state.dealer_hand.cards) == 2
        assert state.results[0].outcome is Outcome.BUST
        assert state.player_balance == 990
        busted.assert_called_once()

    def test_hit_keeps_turn(self, make_controller):
        controller = make_controller("2♠", "10♥", "3♣", "7♦", "4♠")
        controller.set_bet(10)
        assert controller.hit()
        state = controller.get_state()
        assert state.phase is GamePhase.PLAYER_TURN
        assert state.player_hand.value == 9
        assert Action.DOUBLE not in controller.available_actions()
        assert Action.SURRENDER not in controller.available_actions()

    def test_dealer_draws_to_seventeen(self, make_controller):
        controller = make_controller("10♠", "10♥", "9♣", "2♦", "3♠", "K♣")
        controller.set_bet(10)
        controller.stand()

        state = controller.get_state()
        assert state.dealer_hand.value == 15 + 10
        assert state.dealer_hand.is_busted
        assert state.player_balance == 1010

    def test_double_down(self, make_controller):
        controller = make_controller("5♠", "10♥", "6♣", "7♦", "K♠")
        controller.set_bet(10)
        assert controller.double_down()

        state = controller.get_state()
        assert state.phase is GamePhase.RESULT
        assert state.player_hand.is_double_down
        assert state.player_hand.bet == 20
        assert len(state.player_hand.cards) == 3
        assert state.player_balance == 1020

    def test_double_down_requires_balance(self, make_controller):
        controller = make_controller("5♠", "10♥", "6♣", "7♦", balance=15)
        controller.set_bet(10)
        assert Action.DOUBLE not in controller.available_actions()
        assert not controller.double_down()
        assert controller.get_state().message == "Insufficient balance to double down"
        assert controller.get_state().player_balance == 5

    def test_double_down_only_on_two_cards(self, make_controller):
        controller = make_controller("2♠", "10♥", "3♣", "7♦", "2♦")
        controller.set_bet(10)
        controller.hit()
        assert not controller.double_down()
        assert controller.get_state().player_hand.bet == 10

    def test_surrender(self, make_controller):
        controller = make_controller("10♠", "10♥", "6♣", "7♦")
        controller.set_bet(10)
        assert controller.surrender()

        state = controller.get_state()
        assert state.phase is GamePhase.RESULT
        assert state.player_balance == 995
        assert state.player_hand.is_surrendered
        assert state.results[0].outcome is Outcome.SURRENDER
        assert state.message == "Hand surrendered. You lose half your bet."
        assert len(state.dealer_hand.cards) == 2

    def test_surrender_after_hit_rejected(self, make_controller):
        controller = make_controller("2♠", "10♥", "3♣", "7♦", "2♦")
        controller.set_bet(10)
        controller.hit()
        assert not controller.surrender()
        assert controller.phase is GamePhase.PLAYER_TURN


class TestSplit:
    def test_split_requires_equal_values(self, make_controller):
        controller = make_controller("8♠", "10♥", "9♣", "7♦")
        controller.set_bet(10)
        assert Action.SPLIT not in controller.available_actions()
        assert not controller.split()
        assert controller.get_state().player_split_hand is None

    def test_split_by_value(self, make_controller):
        controller = make_controller("K♠", "10♥", "10♣", "7♦", "2♣", "3♦")
        controller.set_bet(10)
        assert controller.split()

    def test_split_requires_balance(self, make_controller):
        controller = make_controller("8♠", "10♥", "8♣", "7♦", balance=15)
        controller.set_bet(10)
        assert not controller.split()
        assert controller.get_state().message == "Insufficient balance to split"

    def test_no_resplit_or_surrender_after_split(self, make_controller):
        controller = make_controller("8♠", "10♥", "8♣", "7♦", "8♦", "2♣")
        controller.set_bet(10)
        controller.split()
        assert Action.SPLIT not in controller.available_actions()
        assert Action.SURRENDER not in controller.available_actions()
        assert not controller.split()
        assert not controller.surrender()

    def test_doubled_split_hand_settles_on_its_own_bet(self, make_controller):
        controller = make_controller(
            "8♠", "10♥", "8♣", "7♦", "3♣", "10♦", "K♠"
        )
        controller.set_bet(10)
        controller.split()
        controller.double_down()

        state = controller.get_state()
        assert state.active_hand is HandSlot.SPLIT
        assert state.message == "First hand doubled. Playing second hand."

        controller.stand()
        state = controller.get_state()
        assert [r.payout for r in state.results] == [40, 20]
        assert state.player_balance == 1030

    def test_split_aces_with_tens_pay_as_blackjack(self, make_controller):
        controller = make_controller("A♠", "10♥", "A♣", "7♦", "K♠", "K♦")
        controller.set_bet(10)
        controller.split()
        controller.stand()
        assert controller.get_state().message == "First hand complete. Playing second hand."
        controller.stand()

        state = controller.get_state()
        assert [r.outcome for r in state.results] == [Outcome.BLACKJACK, Outcome.BLACKJACK]
        assert state.player_balance == 1030

    def test_all_hands_bust_skips_dealer(self, make_controller):
        controller = make_controller(
            "8♠", "10♥", "8♣", "6♦", "10♣", "9♦", "K♠", "K♥"
        )
        controller.set_bet(10)
        controller.split()
        controller.hit()
        controller.hit()

        state = controller.get_state()
        assert state.phase is GamePhase.RESULT
        assert len(state.dealer_hand.cards) == 2
        assert [r.outcome for r in state.results] == [Outcome.BUST, Outcome.BUST]
        assert state.player_balance == 980

    def test_split_hand_bust_still_plays_dealer(self, make_controller):
        controller = make_controller(
            "8♠", "10♥", "8♣", "6♦", "10♣", "9♦", "K♥", "A♠"
        )
        controller.set_bet(10)
        controller.split()
        controller.stand()
        controller.hit()

        state = controller.get_state()
        assert state.phase is GamePhase.RESULT
        assert state.dealer_hand.cards[-1] == Card.from_string("A♠")
        assert [r.outcome for r in state.results] == [Outcome.WIN, Outcome.BUST]
        assert state.player_balance == 1000


class TestRoundLifecycle:
    def test_phase_events(self, make_controller, emitter):
        controller = make_controller("10♠", "9♥", "7♣", "8♦")
        events = recorder(emitter)
        controller.set_bet(10)
        controller.stand()

        phases = [data["to"] for name, data in events if name == "PHASE_CHANGED"]
        assert phases == ["dealing", "player_turn", "dealer_turn", "result"]
        assert "PLAYER_ACTION" in names(events)
        assert names(events)[-1] == "ROUND_ENDED"

    def test_game_over_when_broke(self, make_controller, emitter):
        controller = make_controller("10♠", "10♥", "7♣", "8♦", balance=10)
        game_over = MagicMock()
        emitter.on(EngineEventType.GAME_OVER, game_over)
        controller.set_bet(10)
        controller.stand()

        state = controller.get_state()
        assert state.phase is GamePhase.GAME_OVER
        assert state.message == "Game Over! Insufficient balance to continue."
        game_over.assert_called_once()
        assert not controller.bet_again()
        assert not controller.bet_and_deal_again()

    def test_reconfigure_after_game_over(self, make_controller):
        controller = make_controller("10♠", "10♥", "7♣", "8♦", balance=10)
        controller.set_bet(10)
        controller.stand()

        assert controller.set_starting_balance(200)
        state = controller.get_state()
        assert state.phase is GamePhase.BETTING
        assert state.player_balance == 200

    def test_bet_again_prefills_previous_bet(self, make_controller):
        controller = make_controller("10♠", "9♥", "7♣", "8♦")
        controller.set_bet(25)
        controller.stand()

        assert controller.bet_again()
        state = controller.get_state()
        assert state.phase is GamePhase.BETTING
        assert state.current_bet == 25
        assert state.message == "Adjust your bet if needed, then deal"

    def test_bet_again_clamps_to_balance(self, make_controller):
        controller = make_controller("10♠", "10♥", "6♣", "7♦", "K♠", balance=150)
        controller.set_bet(100)
        controller.hit()

        assert controller.bet_again()
        assert controller.get_state().current_bet == 50

    def test_bet_again_only_after_round(self, make_controller):
        controller = make_controller("10♠", "9♥", "7♣", "8♦")
        assert not controller.bet_again()
        controller.set_bet(10)
        assert not controller.bet_again()

    def test_bet_and_deal_again(self, make_controller):
        controller = make_controller(
            "10♠", "9♥", "7♣", "8♦",
            "2♠", "9♦", "3♣", "8♣",
        )
        controller.set_bet(10)
        controller.stand()

        assert controller.bet_and_deal_again(20)
        state = controller.get_state()
        assert state.phase is GamePhase.PLAYER_TURN
        assert state.current_bet == 20
        assert state.player_balance == 980
        assert state.player_hand.cards == (Card.from_string("2♠"), Card.from_string("3♣"))
        assert state.results == ()

    def test_bet_and_deal_again_reuses_bet(self, make_controller):
        controller = make_controller(
            "10♠", "9♥", "7♣", "8♦",
            "2♠", "9♦", "3♣", "8♣",
        )
        controller.set_bet(15)
        controller.stand()
        assert controller.bet_and_deal_again()
        assert controller.get_state().current_bet == 15

    def test_bet_and_deal_again_validates(self, make_controller):
        controller = make_controller("10♠", "9♥", "7♣", "8♦")
        controller.set_bet(10)
        controller.stand()
        assert not controller.bet_and_deal_again(500)
        state = controller.get_state()
        assert state.phase is GamePhase.RESULT
        assert state.message == "Maximum bet is $100"

    def test_reset_game(self, make_controller, emitter):
        controller = make_controller("10♠", "9♥", "7♣", "8♦")
        reset = MagicMock()
        emitter.on(EngineEventType.GAME_RESET, reset)
        controller.set_bet(10)

        controller.reset_game(500)
        state = controller.get_state()
        assert state.phase is GamePhase.IDLE
        assert state.player_balance == 500
        assert state.min_table_limit == 0
        assert len(state.player_hand.cards) == 0
        assert controller.shoe.cards_remaining == 208
        reset.assert_called_once_with({"starting_balance": 500})

        assert controller.set_table_limits(10)
        assert controller.phase is GamePhase.BETTING

    def test_reset_keeps_balance_by_default(self, make_controller):
        controller = make_controller(balance=300)
        controller.reset_game()
        assert controller.get_state().player_balance == 300


class TestSnapshots:
    def test_snapshot_is_disconnected(self, make_controller):
        controller = make_controller("2♠", "10♥", "3♣", "7♦", "4♠")
        controller.set_bet(10)
        before = controller.get_state()
        controller.hit()
        assert len(before.player_hand.cards) == 2
        assert len(controller.get_state().player_hand.cards) == 3

    def test_snapshot_is_frozen(self, make_controller):
        state = make_controller().get_state()
        with pytest.raises(dataclasses.FrozenInstanceError):
            state.player_balance = 1_000_000

    def test_to_dict(self, make_controller):
        controller = make_controller("10♠", "9♥", "7♣", "8♦")
        controller.set_bet(10)
        data = controller.get_state().to_dict()
        assert data["phase"] == "player_turn"
        assert data["player_hand"]["cards"] == ["10 of ♠", "7 of ♣"]
        assert data["player_split_hand"] is None


class TestShoeExhaustion:
    def test_empty_shoe_aborts_deal(self, emitter):
        shoe = Shoe(num_decks=1, reshuffle_threshold=0, event_emitter=emitter)
        shoe.cards = []
        errors = MagicMock()
        emitter.on(EngineEventType.ERROR, errors)
        controller = GameController(100, {"shoe": shoe, "event_emitter": emitter})
        controller.set_table_limits(10)

        assert not controller.set_bet(10)
        state = controller.get_state()
        assert state.message == "Error: Unable to deal cards"
        assert state.phase is GamePhase.DEALING
        assert state.current_bet == 10
        assert state.player_balance == 90
        errors.assert_called_once()

    def test_empty_shoe_aborts_hit(self, emitter):
        shoe = Shoe(num_decks=1, reshuffle_threshold=0, event_emitter=emitter)
        shoe.cards = [Card.from_string(t) for t in reversed(["2♠", "10♥", "3♣", "7♦"])]
        controller = GameController(100, {"shoe": shoe, "event_emitter": emitter})
        controller.set_table_limits(10)
        controller.set_bet(10)

        assert not controller.hit()
        state = controller.get_state()
        assert state.message == "Error: Unable to deal card"
        assert state.phase is GamePhase.PLAYER_TURN
        assert len(state.player_hand.cards) == 2


def test_balance_is_conserved_over_random_play(emitter, decisions):
    rng = random.Random(11)
    controller = GameController(
        2000, {"seed": 3, "event_emitter": emitter, "decision_logger": decisions}
    )
    controller.set_table_limits(10)

    for _ in range(150):
        if controller.phase is GamePhase.GAME_OVER:
            break
        before = controller.get_state().player_balance
        assert controller.set_bet(10)

        while controller.phase is GamePhase.PLAYER_TURN:
            action = rng.choice(controller.available_actions())
            {
                Action.HIT: controller.hit,
                Action.STAND: controller.stand,
                Action.DOUBLE: controller.double_down,
                Action.SPLIT: controller.split,
                Action.SURRENDER: controller.surrender,
                Action.INSURANCE: controller.take_insurance,
                Action.DECLINE_INSURANCE: controller.decline_insurance,
            }[action]()

        state = controller.get_state()
        stakes = state.player_hand.bet + (state.player_hand.insurance_bet or 0)
        if state.player_split_hand is not None:
            stakes += state.player_split_hand.bet
        refund = state.player_hand.bet / 2 if state.player_hand.is_surrendered else 0

        assert state.player_balance == pytest.approx(
            before - stakes + state.last_payout + refund
        )
        controller.bet_again()


def test_rejected_and_accepted_actions_are_logged(make_controller, decisions):
    controller = make_controller("10♠", "9♥", "7♣", "8♦")
    controller.hit()
    controller.set_bet(10)
    controller.stand()

    history = decisions.decision_history
    assert [(d.action, d.accepted) for d in history] == [
        ("set_table_limits", True),
        ("hit", False),
        ("set_bet", True),
        ("stand", True),
    ]
    assert history[-1].slot == "main"
    assert history[-1].hand_value == 17
    assert decisions.current_round_decisions == []


def test_each_controller_keeps_its_own_decision_log(emitter):
    first = GameController(100, {"event_emitter": emitter})
    second = GameController(100, {"event_emitter": emitter})
    first.set_table_limits(10)

    assert first.decisions is not second.decisions
    assert [d.action for d in first.decisions.current_round_decisions] == [
        "set_table_limits"
    ]
    assert second.decisions.current_round_decisions == []
