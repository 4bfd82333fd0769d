"""
Structured logging of every action requested from the round engine.

Each request is recorded whether the engine accepted it or rejected it, along
with the hand it applied to and the message the player saw. Records for the
round in progress are archived into the history when the round ends.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

import aiofiles

from tablejack.common.card import Card


@dataclass
class ActionRecord:
    """One action request and how the engine answered it."""

    timestamp: datetime
    action: str
    phase: str
    slot: Optional[str]
    hand_cards: List[Card] = field(default_factory=list)
    hand_value: int = 0
    accepted: bool = True
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "action": self.action,
            "phase": self.phase,
            "slot": self.slot,
            "cards": [str(c) for c in self.hand_cards],
            "value": self.hand_value,
            "accepted": self.accepted,
            "message": self.message,
        }


class DecisionLogger:
    """Logs all action requests made against a blackjack table."""

    def __init__(self, log_level=logging.INFO):
        self.logger = logging.getLogger("tablejack.decisions")
        if os.environ.get("TABLEJACK_DISABLE_LOGGING", "").lower() in (
            "1",
            "true",
            "yes",
        ):
            self.logger.setLevel(logging.ERROR)
        else:
            self.logger.setLevel(log_level)

        self.decision_history: List[ActionRecord] = []
        self.current_round_decisions: List[ActionRecord] = []

    def set_level(self, level):
        """Set the logging level."""
        self.logger.setLevel(level)

    def log_action(self, record: ActionRecord) -> None:
        """Record an action request."""
        self.current_round_decisions.append(record)
        if record.accepted:
            if self.logger.isEnabledFor(logging.INFO):
                self.logger.info(
                    f"{record.action} on {record.slot or 'table'} "
                    f"{[str(c) for c in record.hand_cards]} (value={record.hand_value}): "
                    f"{record.message}"
                )
        elif self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(
                f"{record.action} rejected in {record.phase}: {record.message}"
            )

    def log_phase_transition(self, from_phase: str, to_phase: str) -> None:
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(f"Phase {from_phase} -> {to_phase}")

    def log_round_end(self, outcomes: Dict[str, Any]) -> None:
        """Log the end of a round with outcomes and archive its records."""
        if self.logger.isEnabledFor(logging.INFO):
            self.logger.info("=== Round ended ===")
            for slot, outcome in outcomes.items():
                self.logger.info(f"{slot}: {outcome}")

        self.decision_history.extend(self.current_round_decisions)
        self.current_round_decisions = []

    def clear(self) -> None:
        self.decision_history = []
        self.current_round_decisions = []

    def get_decision_summary(self) -> Dict[str, Any]:
        """Get a summary of all archived action requests."""
        summary: Dict[str, Any] = {
            "total_decisions": len(self.decision_history),
            "rejected": 0,
            "by_action": {},
        }

        for decision in self.decision_history:
            summary["by_action"][decision.action] = (
                summary["by_action"].get(decision.action, 0) + 1
            )
            if not decision.accepted:
                summary["rejected"] += 1

        return summary

    def _export_payload(self) -> Dict[str, Any]:
        return {
            "decisions": [d.to_dict() for d in self.decision_history],
            "summary": self.get_decision_summary(),
        }

    def export_decisions(self, filepath: str) -> None:
        """Export decision history to a JSON file."""
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(self._export_payload(), f, indent=2)

        self.logger.info(
            f"Exported {len(self.decision_history)} decisions to {filepath}"
        )

    async def export_decisions_async(self, filepath: str) -> None:
        """Async version of export_decisions, for callers running an event loop."""
        async with aiofiles.open(filepath, mode="w", encoding="utf-8") as f:
            await f.write(json.dumps(self._export_payload(), indent=2))

        self.logger.info(
            f"Exported {len(self.decision_history)} decisions to {filepath}"
        )
