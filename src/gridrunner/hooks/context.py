"""Scenario-scoped message slot shared between step logic and teardown."""
from typing import Dict, Optional


class ScenarioLocalContext:
    """
    Holds at most one auxiliary message per worker.

    Step logic stores the page message it saw (login success or error
    text); the orchestrator reads it at teardown and clears it so the next
    scenario on the same worker starts empty.
    """

    def __init__(self):
        """Initialize empty context."""
        self._messages: Dict[str, str] = {}

    def set_message(self, worker_id: str, message: Optional[str]) -> None:
        """
        Store the worker's message, replacing any previous one.

        Blank messages clear the slot.

        Args:
            worker_id: Worker identifier
            message: Message text
        """
        if message:
            self._messages[worker_id] = message
        else:
            self._messages.pop(worker_id, None)

    def get_message(self, worker_id: str) -> Optional[str]:
        """
        Get the worker's message.

        Args:
            worker_id: Worker identifier

        Returns:
            Optional[str]: Message or None when absent
        """
        return self._messages.get(worker_id)

    def has_message(self, worker_id: str) -> bool:
        """Check if the worker has a stored message."""
        return worker_id in self._messages

    def clear(self, worker_id: str) -> None:
        """Remove the worker's message, if any."""
        self._messages.pop(worker_id, None)
