"""Per-worker browser session ownership on a Selenium Grid."""
import logging
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional
from urllib.parse import urlparse
from selenium import webdriver
from selenium.webdriver.remote.webdriver import WebDriver
from gridrunner.config import Settings, get_settings
from gridrunner.core.enums import SessionState
from gridrunner.core.exceptions import SessionExpiredError, SessionInitError
from gridrunner.driver.capabilities import build_options
from gridrunner.observability.metrics import sessions_active, session_init_failures_total

logger = logging.getLogger(__name__)


@dataclass
class WorkerSession:
    """
    A live grid session owned by exactly one worker.

    Never shared between workers; once CLOSED the instance is discarded.
    """

    worker_id: str
    driver: Optional[WebDriver] = None
    state: SessionState = SessionState.UNINITIALIZED

    def activate(self, driver: WebDriver) -> None:
        """Attach a connected driver and mark the session ACTIVE."""
        if self.state != SessionState.UNINITIALIZED:
            raise ValueError(f"Cannot activate session in state {self.state}")
        self.driver = driver
        self.state = SessionState.ACTIVE

    def close(self) -> None:
        """
        Quit the underlying driver and mark the session CLOSED.

        The state becomes CLOSED even when quit raises; the error is
        re-raised for the caller to log.
        """
        driver, self.driver = self.driver, None
        self.state = SessionState.CLOSED
        if driver is not None:
            driver.quit()


class SessionManager:
    """
    Owns one Selenium Remote session per worker.

    Sessions are created lazily on the first acquire for a worker, reused
    until released, and always unregistered on release even if the grid
    fails to quit them.

    Every release starts a new lease for the worker. Callers that pass the
    lease they were handed are refused once it has ended, so step logic
    still running after its scenario was torn down cannot open or reuse a
    session that belongs to the next scenario.
    """

    def __init__(self, settings: Optional[Settings] = None):
        """
        Initialize session manager.

        Args:
            settings: Run settings (defaults to cached settings)
        """
        self.settings = settings or get_settings()
        self._sessions: Dict[str, WorkerSession] = {}
        self._leases: Dict[str, int] = {}
        self._lock = threading.Lock()

    def lease(self, worker_id: str) -> int:
        """
        Get the worker's current lease number.

        Args:
            worker_id: Worker identifier

        Returns:
            int: Lease number, advanced by every release
        """
        return self._leases.get(worker_id, 0)

    def check_lease(self, worker_id: str, lease: Optional[int]) -> None:
        """
        Verify a lease is still current.

        Args:
            worker_id: Worker identifier
            lease: Lease handed out earlier (None skips the check)

        Raises:
            SessionExpiredError: If the worker was released since
        """
        if not self._is_current(worker_id, lease):
            raise SessionExpiredError(
                f"Scenario on worker {worker_id} was already torn down (lease {lease})"
            )

    def acquire(self, worker_id: str, lease: Optional[int] = None) -> WebDriver:
        """
        Get the worker's session, connecting to the grid on first use.

        Args:
            worker_id: Worker identifier
            lease: Lease the caller was handed (None skips the check)

        Returns:
            WebDriver: The worker's driver (same instance until released)

        Raises:
            SessionInitError: If the grid URL is malformed or unreachable
            SessionExpiredError: If the lease ended before or while connecting
        """
        with self._lock:
            self.check_lease(worker_id, lease)
            session = self._sessions.get(worker_id)
            if session is not None and session.state == SessionState.ACTIVE:
                return session.driver

        driver = self._connect()

        with self._lock:
            expired = not self._is_current(worker_id, lease)
            if not expired:
                session = WorkerSession(worker_id=worker_id)
                session.activate(driver)
                self._sessions[worker_id] = session
                sessions_active.inc()

        if expired:
            logger.warning(f"Discarding session opened for expired lease on worker {worker_id}")
            self._quit_quietly(driver)
            raise SessionExpiredError(
                f"Scenario on worker {worker_id} was torn down while connecting"
            )

        logger.info(
            f"WebDriver initialized for worker {worker_id} "
            f"(browser: {self.settings.BROWSER})"
        )
        return driver

    def current(self, worker_id: str) -> Optional[WebDriver]:
        """
        Get the worker's session without creating one.

        Args:
            worker_id: Worker identifier

        Returns:
            Optional[WebDriver]: Active driver or None
        """
        session = self._sessions.get(worker_id)
        if session is None or session.state != SessionState.ACTIVE:
            return None
        return session.driver

    def release(self, worker_id: str) -> None:
        """
        Quit and unregister the worker's session and end its lease.

        Quit errors are logged and swallowed. Safe to call repeatedly.

        Args:
            worker_id: Worker identifier
        """
        with self._lock:
            self._leases[worker_id] = self.lease(worker_id) + 1
            session = self._sessions.pop(worker_id, None)
        if session is None:
            return

        sessions_active.dec()
        try:
            session.close()
            logger.info(f"WebDriver quit for worker {worker_id}")
        except Exception as e:
            logger.error(f"Error quitting WebDriver for worker {worker_id}: {e}", exc_info=True)

    def active_workers(self) -> List[str]:
        """
        List workers holding an active session.

        Returns:
            List[str]: Worker identifiers
        """
        return [
            worker_id
            for worker_id, session in list(self._sessions.items())
            if session.state == SessionState.ACTIVE
        ]

    def release_all(self) -> None:
        """Release every registered session, e.g. at the end of a run."""
        for worker_id in list(self._sessions):
            self.release(worker_id)

    def _connect(self) -> WebDriver:
        """
        Open a remote session and apply the timeout policy.

        Returns:
            WebDriver: Connected driver

        Raises:
            SessionInitError: If the session cannot be created
        """
        grid_url = self.settings.GRID_URL
        parsed = urlparse(grid_url or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            session_init_failures_total.inc()
            raise SessionInitError(f"Malformed grid URL: {grid_url!r}")

        try:
            driver = webdriver.Remote(
                command_executor=grid_url,
                options=build_options(self.settings),
            )
        except Exception as e:
            session_init_failures_total.inc()
            logger.error(f"Error initializing WebDriver: {e}", exc_info=True)
            raise SessionInitError(f"Failed to initialize WebDriver at {grid_url}") from e

        try:
            driver.implicitly_wait(self.settings.IMPLICIT_WAIT)
            driver.set_page_load_timeout(self.settings.PAGE_LOAD_TIMEOUT)
            driver.set_script_timeout(self.settings.SCRIPT_TIMEOUT)
        except Exception as e:
            session_init_failures_total.inc()
            self._quit_quietly(driver)
            raise SessionInitError("Failed to apply WebDriver timeouts") from e

        try:
            driver.maximize_window()
        except Exception as e:
            logger.warning(f"Could not maximize window: {e}")

        return driver

    def _is_current(self, worker_id: str, lease: Optional[int]) -> bool:
        return lease is None or lease == self.lease(worker_id)

    @staticmethod
    def _quit_quietly(driver: WebDriver) -> None:
        try:
            driver.quit()
        except Exception as e:
            logger.warning(f"Error quitting unregistered WebDriver: {e}")
