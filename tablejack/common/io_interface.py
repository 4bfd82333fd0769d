"""
This module contains the IOInterface abstract base class and its implementations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from tablejack.blackjack.action import Action

MAX_ATTEMPTS = 3


class IOInterface(ABC):
    """
    Abstract base class for an IO interface.

    This class defines the interface a front end uses to show the table to the
    player and to read their bets and actions.
    """

    @abstractmethod
    def output(self, message: str) -> None:
        """Output a message to the interface."""
        pass

    @abstractmethod
    def input(self, prompt: str) -> str:
        """Get input from the user with a prompt."""
        pass

    @abstractmethod
    def get_player_action(self, valid_actions: List[Action]) -> Action:
        """Retrieve one of the valid actions from the player."""
        pass

    @abstractmethod
    def check_numeric_response(self, ctx: str) -> int:
        """Check if a response is numeric and return the integer value."""
        pass


def parse_action(text: str, valid_actions: List[Action]) -> Optional[Action]:
    """Match typed text against an action's name or value, e.g. "double" or "d"."""
    text = text.strip().lower()
    if not text:
        return None
    for action in valid_actions:
        if text in (action.name.lower(), action.value):
            return action
    matches = [a for a in valid_actions if a.value.startswith(text)]
    if len(matches) == 1:
        return matches[0]
    return None


class TestIOInterface(IOInterface):
    """
    A test IO interface for testing purposes. Collects output messages and simulates input actions.

    Methods
    -------
    def output(self, message):
        Collect an output message.

    def input(self, prompt):
        Return the next queued input response.

    def add_player_action(self, action):
        Add a player action to the queue.

    def get_player_action(self, valid_actions):
        Retrieve the next queued action.
    """

    __test__ = False

    def __init__(self):
        self.sent_messages = []
        self.player_actions = []
        self.input_responses = []

    def output(self, message: str) -> None:
        self.sent_messages.append(message)

    def input(self, prompt: str) -> str:
        if self.input_responses:
            return self.input_responses.pop(0)
        return ""

    def add_player_action(self, action: Action):
        """Add a player action to the queue."""
        self.player_actions.append(action)

    def get_player_action(self, valid_actions: List[Action]) -> Action:
        if self.player_actions:
            return self.player_actions.pop(0)
        raise ValueError("No more actions left in TestIOInterface queue.")

    def check_numeric_response(self, ctx: str) -> int:
        response = self.input(ctx)
        return int(response) if response else 0


class ConsoleIOInterface(IOInterface):
    """
    A console IO interface for interactive play.

    Methods
    -------
    def output(self, message: str):
        Output a message to the console.

    def input(self, prompt: str):
        Get input from the console.

    def get_player_action(self, valid_actions):
        Read an action from the console and check that it's valid.

    def check_numeric_response(self, ctx):
        Read a number from the console.
    """

    def output(self, message: str) -> None:
        print(message)

    def input(self, prompt: str) -> str:
        return input(prompt)

    def get_player_action(self, valid_actions: List[Action]) -> Action:
        attempts = 0
        while attempts < MAX_ATTEMPTS:
            choices = ", ".join(a.value for a in valid_actions)
            action = parse_action(input(f"Your action ({choices})? "), valid_actions)
            if action is not None:
                return action

            print(f"Invalid action, valid actions are: {choices}")
            attempts += 1

        raise ValueError("Too many invalid attempts. Game aborted.")

    def check_numeric_response(self, ctx: str) -> int:
        attempts = 0
        while attempts < MAX_ATTEMPTS:
            response = input(ctx)
            try:
                return int(response)
            except ValueError:
                print("Invalid response, please enter a number.")
                attempts += 1
        raise ValueError("Too many invalid responses. Operation aborted.")


class LoggingIOInterface(IOInterface):
    """
    Wraps another IO interface and appends everything shown to the player to a
    transcript file.
    """

    def __init__(self, log_file_path: str, io_interface: IOInterface):
        self.log_file_path = log_file_path
        self.io_interface = io_interface

    def output(self, message: str) -> None:
        """Show the message and write it to the transcript."""
        self.io_interface.output(message)
        with open(self.log_file_path, "a", encoding="utf-8") as log_file:
            log_file.write(message + "\n")

    def input(self, prompt: str) -> str:
        response = self.io_interface.input(prompt)
        self._record(f"[INPUT] {prompt}{response}")
        return response

    def get_player_action(self, valid_actions: List[Action]) -> Action:
        action = self.io_interface.get_player_action(valid_actions)
        self._record(f"[ACTION] {action.value}")
        return action

    def check_numeric_response(self, ctx: str) -> int:
        value = self.io_interface.check_numeric_response(ctx)
        self._record(f"[INPUT] {ctx}{value}")
        return value

    def _record(self, line: str) -> None:
        with open(self.log_file_path, "a", encoding="utf-8") as log_file:
            log_file.write(line + "\n")
