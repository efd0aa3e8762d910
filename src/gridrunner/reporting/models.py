"""Scenario outcome records and their Elasticsearch document form."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Optional
from gridrunner.core.enums import ScenarioStatus

FAILED_SENTINEL = "Scenario failed"
SKIPPED_SENTINEL = "Scenario skipped"


@dataclass(frozen=True)
class ScenarioMetadata:
    """Run context attached to every outcome."""

    tags: FrozenSet[str]
    worker_id: str
    browser: str
    endpoint: str
    feature_name: str


@dataclass(frozen=True)
class ScenarioOutcome:
    """
    Result of one scenario, built once at teardown.

    Immutable; consumed by the result sink and then discarded.
    """

    name: str
    status: ScenarioStatus
    tags: FrozenSet[str]
    worker_id: str
    browser: str
    endpoint: str
    feature_name: str
    message: Optional[str] = None
    diagnostic_path: Optional[str] = None
    error_message: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_metadata(
        cls,
        name: str,
        status: ScenarioStatus,
        metadata: ScenarioMetadata,
        message: Optional[str] = None,
        diagnostic_path: Optional[str] = None,
    ) -> "ScenarioOutcome":
        """
        Build an outcome, deriving the error message from the status.

        Args:
            name: Scenario name
            status: Final status
            metadata: Run context
            message: Auxiliary page message (success or error text)
            diagnostic_path: Screenshot path, if one was captured

        Returns:
            ScenarioOutcome: The outcome
        """
        if status == ScenarioStatus.FAILED:
            error_message = FAILED_SENTINEL
        elif status == ScenarioStatus.SKIPPED:
            error_message = SKIPPED_SENTINEL
        else:
            error_message = None

        return cls(
            name=name,
            status=status,
            tags=metadata.tags,
            worker_id=metadata.worker_id,
            browser=metadata.browser,
            endpoint=metadata.endpoint,
            feature_name=metadata.feature_name,
            message=message,
            diagnostic_path=diagnostic_path,
            error_message=error_message,
        )


def build_document(outcome: ScenarioOutcome) -> Dict[str, Any]:
    """
    Flatten an outcome into the indexed document shape.

    The feature name appears twice: ``featurename`` for grouping and
    ``testCaseName`` for dashboards keyed on test case.

    Args:
        outcome: Scenario outcome

    Returns:
        Dict[str, Any]: Document without the screenshot payload
    """
    return {
        "scenario": outcome.name,
        "status": outcome.status.value,
        "timestamp": outcome.timestamp.isoformat(),
        "screenshotPath": outcome.diagnostic_path,
        "errorMessage": outcome.error_message,
        "screenshotBase64": None,
        "tags": sorted(outcome.tags),
        "thread": outcome.worker_id,
        "browser": outcome.browser,
        "gridUrl": outcome.endpoint,
        "featurename": outcome.feature_name,
        "testCaseName": outcome.feature_name,
        "loginMessage": outcome.message,
    }
