"""Best-effort screenshots of a worker's browser session."""
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from gridrunner.config import Settings, get_settings
from gridrunner.core.exceptions import DiagnosticCaptureError
from gridrunner.driver.session_manager import SessionManager

logger = logging.getLogger(__name__)

SCREENSHOT_EXTENSION = ".png"
TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"

_ILLEGAL_CHARS = re.compile(r'[\\/:*?"<>|]')
_WHITESPACE = re.compile(r"\s+")


def to_safe_file_name(name: Optional[str]) -> str:
    """
    Make a scenario name usable as a file name.

    Path-illegal characters and whitespace runs become underscores.

    Args:
        name: Scenario name

    Returns:
        str: Sanitized name, or "scenario" for blank input
    """
    if name is None or not name.strip():
        return "scenario"
    safe = _ILLEGAL_CHARS.sub("_", name.strip())
    return _WHITESPACE.sub("_", safe)


class DiagnosticCapture:
    """
    Takes screenshots from the worker's current session.

    Never creates a session and never raises: a missing session or any
    I/O or driver error yields None.
    """

    def __init__(self, sessions: SessionManager, settings: Optional[Settings] = None):
        """
        Initialize diagnostic capture.

        Args:
            sessions: Session manager to read current sessions from
            settings: Run settings (defaults to cached settings)
        """
        self.sessions = sessions
        self.settings = settings or get_settings()

    @property
    def output_dir(self) -> Path:
        """Directory screenshots are written to."""
        return Path(self.settings.REPORT_SCREENSHOT_PATH)

    def capture(self, worker_id: str, label: str) -> Optional[str]:
        """
        Save a screenshot of the worker's session.

        Args:
            worker_id: Worker identifier
            label: File name prefix, already filesystem safe

        Returns:
            Optional[str]: Absolute path of the PNG, or None
        """
        driver = self.sessions.current(worker_id)
        if driver is None:
            logger.warning(f"No active WebDriver for worker {worker_id}, cannot capture screenshot")
            return None

        try:
            return str(self._write(driver.get_screenshot_as_png(), label))
        except Exception as e:
            logger.error(f"Error capturing screenshot for worker {worker_id}: {e}", exc_info=True)
            return None

    def _write(self, png: bytes, label: str) -> Path:
        """
        Write screenshot bytes under a timestamped name.

        Raises:
            DiagnosticCaptureError: If the driver returned no image data
        """
        if not png:
            raise DiagnosticCaptureError("WebDriver returned an empty screenshot")

        self.output_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now(timezone.utc).strftime(TIMESTAMP_FORMAT)
        destination = (self.output_dir / f"{label}_{timestamp}{SCREENSHOT_EXTENSION}").resolve()
        destination.write_bytes(png)
        logger.info(f"Screenshot captured: {destination}")
        return destination
