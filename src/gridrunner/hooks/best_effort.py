"""Ordered execution of independent, fault-isolated steps."""
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Tuple
from gridrunner.observability.metrics import record_teardown_step_failure

logger = logging.getLogger(__name__)


@dataclass
class StepFailure:
    """A step that raised, with the exception it raised."""

    name: str
    error: Exception


@dataclass
class BestEffortRunner:
    """
    Runs named steps in order, isolating each one.

    A step that raises is logged and recorded; the next step runs anyway.
    Steps share state through whatever object their closures capture.

    Example:
        >>> runner = BestEffortRunner("teardown")
        >>> runner.add("capture", capture)
        >>> runner.add("release", release)
        >>> failures = runner.run()
    """

    scope: str
    steps: List[Tuple[str, Callable[[], None]]] = field(default_factory=list)

    def add(self, name: str, action: Callable[[], None]) -> "BestEffortRunner":
        """
        Append a step.

        Args:
            name: Step name used in logs and metrics
            action: Zero-argument callable

        Returns:
            BestEffortRunner: self, for chaining
        """
        self.steps.append((name, action))
        return self

    def run(self) -> List[StepFailure]:
        """
        Execute every step in insertion order.

        Returns:
            List[StepFailure]: Steps that raised, in order
        """
        failures: List[StepFailure] = []
        for name, action in self.steps:
            try:
                action()
            except Exception as e:
                logger.error(f"{self.scope}: step '{name}' failed: {e}", exc_info=True)
                record_teardown_step_failure(name)
                failures.append(StepFailure(name=name, error=e))
        return failures
