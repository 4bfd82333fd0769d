"""
Event system for the tablejack engine.

The engine publishes what happens during a round (cards dealt, phase changes,
settlements) through an emitter so front-ends can redraw incrementally. Events
carry no game-rule effect: a round is complete as soon as the controller call
returns, whatever the listeners do with the notifications.
"""

import logging
import threading
from collections import defaultdict
from enum import Enum
from typing import Any, Callable, Dict, List, Tuple, Union

logger = logging.getLogger("tablejack.events")

EventName = Union[str, Enum]
Listener = Callable[[Any], None]


def _event_name(event_type: EventName) -> str:
    return event_type.name if isinstance(event_type, Enum) else event_type


class EventEmitter:
    """
    Delivers engine notifications to subscribed listeners.

    Listeners for one event receive the event's data dict; listeners registered
    with `on_any` receive a ``(name, data)`` tuple. Listeners run in
    subscription order on the emitting thread.
    """

    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)
        self._any_listeners: List[Listener] = []
        self._lock = threading.RLock()

    def on(self, event_type: EventName, callback: Listener) -> Callable[[], None]:
        """Subscribe to one event type. Returns a function that unsubscribes."""
        name = _event_name(event_type)
        with self._lock:
            self._listeners[name].append(callback)
        return lambda: self._discard(self._listeners[name], callback)

    def on_any(self, callback: Listener) -> Callable[[], None]:
        """Subscribe to every event. Returns a function that unsubscribes."""
        with self._lock:
            self._any_listeners.append(callback)
        return lambda: self._discard(self._any_listeners, callback)

    def _discard(self, listeners: List[Listener], callback: Listener) -> None:
        with self._lock:
            if callback in listeners:
                listeners.remove(callback)

    def emit(self, event_type: EventName, data: Dict[str, Any]) -> None:
        """
        Deliver an event to its listeners, then to the catch-all listeners.

        A listener that raises is logged and skipped, so a faulty front end
        can never interrupt the round that emitted the event.
        """
        name = _event_name(event_type)
        with self._lock:
            calls: List[Tuple[Listener, Any]] = [
                (callback, data) for callback in self._listeners.get(name, [])
            ]
            calls.extend((callback, (name, data)) for callback in self._any_listeners)

        for callback, payload in calls:
            try:
                callback(payload)
            except Exception:
                logger.exception("Listener for %s failed", name)


class EventBus:
    """Process-wide emitter used by controllers and shoes that are not given one."""

    _instance = None
    _lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> EventEmitter:
        with cls._lock:
            if cls._instance is None:
                cls._instance = EventEmitter()
            return cls._instance


class EngineEventType(Enum):
    """
    Event types published by the blackjack round engine.
    """

    # Session lifecycle
    GAME_RESET = "game_reset"
    PHASE_CHANGED = "phase_changed"
    ROUND_ENDED = "round_ended"
    GAME_OVER = "game_over"

    # Money
    BET_PLACED = "bet_placed"

    # Cards
    CARD_DEALT = "card_dealt"
    SHUFFLE = "shuffle"

    # Insurance
    INSURANCE_OFFERED = "insurance_offered"
    INSURANCE_DECISION = "insurance_decision"

    # Player and hands
    PLAYER_ACTION = "player_action"
    HAND_SPLIT = "hand_split"
    HAND_BUSTED = "hand_busted"
    HAND_RESULT = "hand_result"

    # Dealer
    DEALER_ACTION = "dealer_action"

    # Faults
    ERROR = "error"
