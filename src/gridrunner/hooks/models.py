"""Scenario descriptors handed to the orchestrator."""
from dataclasses import dataclass, field, replace
from typing import FrozenSet


@dataclass(frozen=True)
class ScenarioDescriptor:
    """
    What the orchestrator needs to know about a scenario.

    ``source_uri`` is the feature file location, e.g.
    ``file:///suite/features/Scenario1_LoginTest.feature``.
    """

    name: str
    source_uri: str = ""
    tags: FrozenSet[str] = field(default_factory=frozenset)
    is_failed: bool = False

    def mark_failed(self) -> "ScenarioDescriptor":
        """Return a copy flagged as failed."""
        return replace(self, is_failed=True)
