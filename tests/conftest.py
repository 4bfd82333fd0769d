"""
Pytest configuration for tests at the root level.

This module contains pytest fixtures shared by the engine and front-end tests.
"""

import random

import pytest

from tablejack.blackjack.controller import GameController
from tablejack.blackjack.decision_logger import DecisionLogger
from tablejack.common.card import Card
from tablejack.common.shoe import Shoe
from tablejack.events import EventBus, EventEmitter


# Reset event bus before each test
@pytest.fixture(scope="function", autouse=True)
def reset_event_bus():
    """Reset the event bus singleton before each test."""
    EventBus._instance = None
    yield
    EventBus._instance = None


@pytest.fixture
def emitter():
    """A private emitter so tests can count events without touching the bus."""
    return EventEmitter()


@pytest.fixture
def decisions():
    return DecisionLogger()


@pytest.fixture
def stack_shoe(emitter):
    """
    Build a full shoe whose next draws are the given cards, in deal order.

    Cards may be `Card` instances or short text such as ``"A♠"`` or ``"10h"``.
    The initial deal order is player, dealer hole card, player, dealer up-card.
    """

    def _stack(*cards):
        scripted = [c if isinstance(c, Card) else Card.from_string(c) for c in cards]
        shoe = Shoe(rng=random.Random(1), event_emitter=emitter)
        keep = shoe.total_cards - len(scripted)
        shoe.cards = shoe.cards[:keep] + list(reversed(scripted))
        return shoe

    return _stack


@pytest.fixture
def make_controller(stack_shoe, emitter, decisions):
    """A controller at a $10 table with a scripted shoe, ready to bet."""
    def _make(*cards, balance=1000, table_min=10):
        controller = GameController(
            balance,
            {
                "shoe": stack_shoe(*cards),
                "event_emitter": emitter,
                "decision_logger": decisions,
            },
        )
        controller.set_table_limits(table_min)
        return controller

    return _make
