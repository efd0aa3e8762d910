"""Worker data models and result classes."""
from dataclasses import dataclass
from typing import Callable, Optional
from gridrunner.core.enums import ScenarioStatus
from gridrunner.hooks.models import ScenarioDescriptor
from gridrunner.reporting.models import ScenarioOutcome


@dataclass
class ScenarioJob:
    """
    A scenario queued for a worker.

    ``steps`` receives the worker's ``WorkerScope`` and signals failure by
    raising. A job with ``skip_reason`` set is reported as skipped without
    running its steps.
    """

    scenario: ScenarioDescriptor
    steps: Callable[..., None]
    skip_reason: Optional[str] = None


@dataclass
class ExecutionResult:
    """
    Result of running one scenario on a worker.

    Tracks the final status and the outcome that was reported, if any.
    """

    worker_id: str
    scenario: ScenarioDescriptor
    status: ScenarioStatus
    outcome: Optional[ScenarioOutcome] = None
    error_message: Optional[str] = None
