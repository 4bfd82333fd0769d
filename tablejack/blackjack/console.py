"""
A text front end for the blackjack round engine.

The table only reads `get_state()` snapshots and calls controller actions; all
rules live in the controller. Run it with:

    tablejack --balance 500 --table-min 25
    python -m tablejack --seed 7 --log-file game.log
"""

import argparse
import asyncio
import logging
from typing import Callable, Dict, Optional

from tablejack.blackjack.action import Action
from tablejack.blackjack.constants import TABLE_MINIMUMS
from tablejack.blackjack.controller import GameController
from tablejack.blackjack.state import GamePhase, GameSnapshot, HandSnapshot, HandSlot
from tablejack.common.io_interface import (
    MAX_ATTEMPTS,
    ConsoleIOInterface,
    IOInterface,
    LoggingIOInterface,
)

logger = logging.getLogger("tablejack.console")


def format_hand(hand: HandSnapshot, hide_first: bool = False) -> str:
    if hide_first and hand.cards:
        shown = ["??"] + [str(card) for card in hand.cards[1:]]
        return ", ".join(shown)
    return f"{', '.join(str(card) for card in hand.cards)} ({hand.value})"


class ConsoleTable:
    """Runs the configure, bet, play and result loop over an IO interface."""

    def __init__(self, controller: GameController, io_interface: IOInterface):
        self.controller = controller
        self.io_interface = io_interface
        self.actions: Dict[Action, Callable[[], bool]] = {
            Action.HIT: controller.hit,
            Action.STAND: controller.stand,
            Action.DOUBLE: controller.double_down,
            Action.SPLIT: controller.split,
            Action.SURRENDER: controller.surrender,
            Action.INSURANCE: controller.take_insurance,
            Action.DECLINE_INSURANCE: controller.decline_insurance,
        }

    def render(self, state: Optional[GameSnapshot] = None) -> None:
        """Print the table as the player is allowed to see it."""
        state = state or self.controller.get_state()
        out = self.io_interface.output

        if state.dealer_hand.cards:
            out(f"Dealer: {format_hand(state.dealer_hand, state.hole_card_hidden)}")
        if state.player_hand.cards:
            marker = (
                "> "
                if state.player_split_hand and state.active_hand is HandSlot.MAIN
                else ""
            )
            out(f"{marker}You: {format_hand(state.player_hand)} bet ${state.player_hand.bet}")
        if state.player_split_hand is not None:
            marker = "> " if state.active_hand is HandSlot.SPLIT else ""
            out(
                f"{marker}Split: {format_hand(state.player_split_hand)} "
                f"bet ${state.player_split_hand.bet}"
            )
        out(f"Balance: ${state.player_balance}")
        if state.message:
            out(state.message)

    def configure(self, table_min: Optional[int] = None) -> bool:
        """Ask for whatever configuration is still missing until betting opens."""
        for _ in range(MAX_ATTEMPTS * 2):
            state = self.controller.get_state()
            if state.phase is GamePhase.BETTING:
                return True

            if state.starting_balance <= 0:
                amount = self.io_interface.check_numeric_response("Starting balance: $")
                if not self.controller.set_starting_balance(amount):
                    self.io_interface.output(self.controller.get_state().message)
                continue

            if table_min is None:
                choices = ", ".join(str(m) for m in TABLE_MINIMUMS)
                table_min = self.io_interface.check_numeric_response(
                    f"Table minimum ({choices}): $"
                )
            if not self.controller.set_table_limits(table_min):
                self.io_interface.output(self.controller.get_state().message)
            table_min = None

        return self.controller.get_state().phase is GamePhase.BETTING

    def place_bet(self) -> bool:
        """Ask for a bet and deal. Returns False if the player wants to leave."""
        state = self.controller.get_state()
        default = state.current_bet or state.min_table_limit
        response = self.io_interface.input(
            f"Bet ${state.min_table_limit}-${state.max_table_limit} "
            f"[{default}, q to leave]: "
        ).strip()
        if response.lower().startswith("q"):
            return False

        try:
            amount = int(response) if response else default
        except ValueError:
            self.io_interface.output("Invalid response, please enter a number.")
            return True

        if not self.controller.set_bet(amount, on_card=self._on_card):
            self.io_interface.output(self.controller.get_state().message)
        return True

    def _on_card(self, state: GameSnapshot) -> None:
        logger.debug(
            "Dealt: player %d cards, dealer %d cards",
            len(state.player_hand.cards),
            len(state.dealer_hand.cards),
        )

    def play_hand(self) -> None:
        """Prompt for actions until the player's turn is over."""
        while self.controller.phase is GamePhase.PLAYER_TURN:
            self.render()
            valid_actions = self.controller.available_actions()
            action = self.io_interface.get_player_action(valid_actions)
            if not self.actions[action]():
                self.io_interface.output(self.controller.get_state().message)

    def run(self, table_min: Optional[int] = None) -> GameSnapshot:
        """Play rounds until the player leaves or the bankroll runs out."""
        if not self.configure(table_min):
            self.io_interface.output("Unable to open the table.")
            return self.controller.get_state()

        while True:
            phase = self.controller.phase
            if phase is GamePhase.BETTING:
                if not self.place_bet():
                    break
                continue

            if phase is GamePhase.PLAYER_TURN:
                self.play_hand()
                continue

            if phase is GamePhase.DEALING:
                # The shoe ran out mid-deal
                self.render()
                break

            self.render()
            if phase is GamePhase.GAME_OVER:
                break

            again = self.io_interface.input("Play again? [Y/n] ").strip().lower()
            if again.startswith("n"):
                break
            self.controller.bet_again()

        state = self.controller.get_state()
        net = state.player_balance - state.starting_balance
        self.io_interface.output(
            f"Leaving the table with ${state.player_balance} ({net:+})"
        )
        return state


def create_io_interface(args) -> IOInterface:
    io_interface: IOInterface = ConsoleIOInterface()
    if args.log_file:
        io_interface = LoggingIOInterface(args.log_file, io_interface)
    return io_interface


def main(argv=None):
    """
    Main function to start the game.
    """
    parser = argparse.ArgumentParser(description="Play blackjack at the console.")
    parser.add_argument(
        "--balance", type=int, default=None, help="Starting balance (asked if omitted)"
    )
    parser.add_argument(
        "--table-min",
        type=int,
        choices=TABLE_MINIMUMS,
        default=None,
        help="Table minimum bet; the maximum is ten times this",
    )
    parser.add_argument(
        "--seed", type=int, default=None, help="Seed the shoe for a reproducible game"
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Also write the game transcript to the specified file.",
    )
    parser.add_argument(
        "--decisions-file",
        type=str,
        default=None,
        help="Export every action request of the session to this JSON file on exit.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level for engine diagnostics",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    controller = GameController(args.balance, {"seed": args.seed})
    table = ConsoleTable(controller, create_io_interface(args))
    table.run(args.table_min)

    if args.decisions_file:
        asyncio.run(controller.decisions.export_decisions_async(args.decisions_file))


if __name__ == "__main__":
    main()
