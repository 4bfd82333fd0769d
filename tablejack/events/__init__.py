"""
Event system for the tablejack engine.

This package provides the emitter the round engine publishes its per-card,
per-phase and settlement notifications through.
"""

from tablejack.events.emitter import (
    EventEmitter,
    EventBus,
    EngineEventType,
)

__all__ = ["EventEmitter", "EventBus", "EngineEventType"]
