"""Core enumerations for the Gridrunner scenario harness."""
from enum import Enum


class ScenarioStatus(str, Enum):
    """
    Final status of a scenario as reported to Elasticsearch.

    Every scenario resolves to exactly one of these values at teardown.
    """

    PASSED = "PASSED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"

    def __str__(self) -> str:
        """Return string representation of the enum value."""
        return self.value


class BrowserKind(str, Enum):
    """
    Browsers the grid can be asked for.

    Unknown names fall back to CHROME when options are built.
    """

    CHROME = "chrome"
    FIREFOX = "firefox"
    EDGE = "edge"

    def __str__(self) -> str:
        """Return string representation of the enum value."""
        return self.value


class SessionState(str, Enum):
    """
    Lifecycle of a worker's browser session.

    State flow:
        UNINITIALIZED → ACTIVE → CLOSED

    CLOSED is terminal; a released worker gets a fresh session on the
    next acquire.
    """

    UNINITIALIZED = "UNINITIALIZED"
    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"

    def __str__(self) -> str:
        """Return string representation of the enum value."""
        return self.value
