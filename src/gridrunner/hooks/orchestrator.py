"""Setup and teardown run around every scenario."""
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol
from selenium.webdriver.remote.webdriver import WebDriver
from gridrunner.config import Settings, get_settings
from gridrunner.core.enums import ScenarioStatus
from gridrunner.core.exceptions import MetadataExtractionError
from gridrunner.diagnostics.capture import DiagnosticCapture, to_safe_file_name
from gridrunner.driver.session_manager import SessionManager
from gridrunner.hooks.best_effort import BestEffortRunner
from gridrunner.hooks.context import ScenarioLocalContext
from gridrunner.hooks.models import ScenarioDescriptor
from gridrunner.observability.metrics import record_scenario_finished
from gridrunner.pages.login_page import LoginPage
from gridrunner.reporting.models import ScenarioMetadata, ScenarioOutcome
from gridrunner.reporting.result_sink import ResultSink

logger = logging.getLogger(__name__)

UNKNOWN_FEATURE = "Unknown"
FEATURE_SUFFIX = ".feature"


class MessageReader(Protocol):
    """Reads the page's success or error indicator."""

    def success_message(self) -> Optional[str]: ...

    def error_message(self) -> Optional[str]: ...


ReaderFactory = Callable[[WebDriver], MessageReader]


def extract_feature_name(uri: Optional[str]) -> str:
    """
    Derive the feature name from a feature file URI.

    ``file:///path/Scenario1_LoginTest.feature`` gives
    ``Scenario1_LoginTest``. Both ``/`` and ``\\`` separate segments.

    Args:
        uri: Feature file URI or path

    Returns:
        str: Feature name, or "Unknown" if none can be derived
    """
    try:
        return _feature_name(uri)
    except (MetadataExtractionError, AttributeError, TypeError) as e:
        logger.warning(f"Error extracting feature name from URI {uri!r}: {e}")
        return UNKNOWN_FEATURE


def _feature_name(uri: Optional[str]) -> str:
    if not uri or not uri.strip():
        raise MetadataExtractionError("empty URI")
    file_name = uri.strip().rsplit("/", 1)[-1].rsplit("\\", 1)[-1]
    if file_name.endswith(FEATURE_SUFFIX):
        file_name = file_name[: -len(FEATURE_SUFFIX)]
    if not file_name:
        raise MetadataExtractionError("URI has no file segment")
    return file_name


@dataclass
class _Teardown:
    """Values passed between teardown steps."""

    # Conservative default; replaced as soon as the status step runs
    status: ScenarioStatus = ScenarioStatus.FAILED
    diagnostic_path: Optional[str] = None
    feature_name: str = UNKNOWN_FEATURE
    metadata: Optional[ScenarioMetadata] = None
    message: Optional[str] = None
    outcome: Optional[ScenarioOutcome] = None


class ScenarioOrchestrator:
    """
    Composes sessions, capture, reporting and context around a scenario.

    ``before`` primes the result sink. ``after`` runs the teardown as a
    fixed sequence of best-effort steps, so the session is always released
    and the sink client always closed whatever fails earlier.
    """

    def __init__(
        self,
        sessions: SessionManager,
        capture: DiagnosticCapture,
        sink: ResultSink,
        context: ScenarioLocalContext,
        settings: Optional[Settings] = None,
        reader_factory: Optional[ReaderFactory] = None,
    ):
        """
        Initialize orchestrator.

        Args:
            sessions: Per-worker session manager
            capture: Screenshot capture
            sink: Elasticsearch result sink
            context: Scenario-local message store
            settings: Run settings (defaults to cached settings)
            reader_factory: Builds a message reader for a driver
                (defaults to LoginPage with a short wait)
        """
        self.sessions = sessions
        self.capture = capture
        self.sink = sink
        self.context = context
        self.settings = settings or get_settings()
        self.reader_factory = reader_factory or self._login_page_reader
        self._started: Dict[str, float] = {}

    def before(self, worker_id: str, scenario: ScenarioDescriptor) -> None:
        """
        Prepare a worker for a scenario.

        Args:
            worker_id: Worker identifier
            scenario: Scenario about to run
        """
        logger.info(f"Starting scenario: {scenario.name} (worker={worker_id})")
        self._started[worker_id] = time.monotonic()

        if self.context.has_message(worker_id):
            logger.debug(f"Clearing stale scenario message for worker {worker_id}")
            self.context.clear(worker_id)

        try:
            self.sink.initialize(worker_id)
        except Exception as e:
            logger.error(f"Could not prime result sink for worker {worker_id}: {e}", exc_info=True)

    def after(self, worker_id: str, scenario: ScenarioDescriptor) -> Optional[ScenarioOutcome]:
        """
        Report a finished scenario and clean up the worker.

        Args:
            worker_id: Worker identifier
            scenario: Finished scenario, with its failure flag set

        Returns:
            Optional[ScenarioOutcome]: The reported outcome, or None if it
            could not be built
        """
        state = _Teardown()

        def determine_status() -> None:
            state.status = ScenarioStatus.FAILED if scenario.is_failed else ScenarioStatus.PASSED
            logger.info(f"Scenario '{scenario.name}' finished with status: {state.status}")

        def capture_diagnostic() -> None:
            label = f"{to_safe_file_name(scenario.name)}_{state.status}"
            state.diagnostic_path = self.capture.capture(worker_id, label)

        def resolve_feature() -> None:
            state.feature_name = extract_feature_name(scenario.source_uri)

        def assemble_metadata() -> None:
            state.metadata = self._metadata(worker_id, scenario, state.feature_name)

        def resolve_message() -> None:
            state.message = self._resolve_message(worker_id)

        def build_outcome() -> None:
            state.outcome = ScenarioOutcome.from_metadata(
                name=scenario.name,
                status=state.status,
                metadata=state.metadata or self._metadata(worker_id, scenario, state.feature_name),
                message=state.message,
                diagnostic_path=state.diagnostic_path,
            )

        runner = BestEffortRunner(scope=f"teardown[{worker_id}]")
        runner.add("determine_status", determine_status)
        runner.add("capture_diagnostic", capture_diagnostic)
        runner.add("resolve_feature", resolve_feature)
        runner.add("assemble_metadata", assemble_metadata)
        runner.add("resolve_message", resolve_message)
        runner.add("build_outcome", build_outcome)
        runner.add("dispatch", lambda: self._dispatch(state.outcome))
        runner.add("record_metrics", lambda: self._record(worker_id, state.status))
        self._add_cleanup(runner, worker_id)
        runner.run()

        return state.outcome

    def after_skipped(
        self, worker_id: str, scenario: ScenarioDescriptor
    ) -> Optional[ScenarioOutcome]:
        """
        Report a skipped scenario and clean up the worker.

        No screenshot is taken and the page is not read.

        Args:
            worker_id: Worker identifier
            scenario: Skipped scenario

        Returns:
            Optional[ScenarioOutcome]: The reported outcome, or None if it
            could not be built
        """
        state = _Teardown(status=ScenarioStatus.SKIPPED)

        def build_outcome() -> None:
            feature_name = extract_feature_name(scenario.source_uri)
            state.outcome = ScenarioOutcome.from_metadata(
                name=scenario.name,
                status=ScenarioStatus.SKIPPED,
                metadata=self._metadata(worker_id, scenario, feature_name),
            )
            logger.warning(f"Scenario skipped: {scenario.name}")

        runner = BestEffortRunner(scope=f"skip-teardown[{worker_id}]")
        runner.add("build_outcome", build_outcome)
        runner.add("dispatch", lambda: self._dispatch(state.outcome))
        runner.add("record_metrics", lambda: self._record(worker_id, state.status))
        self._add_cleanup(runner, worker_id)
        runner.run()

        return state.outcome

    def _add_cleanup(self, runner: BestEffortRunner, worker_id: str) -> None:
        """Append the context, session and sink cleanup steps."""
        runner.add("clear_context", lambda: self.context.clear(worker_id))
        runner.add("release_session", lambda: self.sessions.release(worker_id))
        runner.add("close_sink", lambda: self.sink.close(worker_id))

    def _metadata(
        self, worker_id: str, scenario: ScenarioDescriptor, feature_name: str
    ) -> ScenarioMetadata:
        return ScenarioMetadata(
            tags=frozenset(scenario.tags),
            worker_id=worker_id,
            browser=self.settings.BROWSER,
            endpoint=self.settings.GRID_URL,
            feature_name=feature_name,
        )

    def _record(self, worker_id: str, status: ScenarioStatus) -> None:
        started = self._started.pop(worker_id, None)
        duration = time.monotonic() - started if started is not None else 0.0
        record_scenario_finished(status.value, duration)

    def _dispatch(self, outcome: Optional[ScenarioOutcome]) -> None:
        if outcome is None:
            logger.warning("No outcome was built, nothing to report")
            return
        self.sink.send(outcome)

    def _resolve_message(self, worker_id: str) -> Optional[str]:
        """
        Find the message to report for the scenario.

        The value stored by step logic wins. Otherwise the worker's current
        page is read for a success, then an error indicator. Reading never
        opens a session and any failure leaves the message unset.
        """
        message = self.context.get_message(worker_id)
        if message:
            return message

        driver = self.sessions.current(worker_id)
        if driver is None:
            return None

        try:
            reader = self.reader_factory(driver)
        except Exception as e:
            logger.debug(f"Could not access page to capture message: {e}")
            return None

        for read in (reader.success_message, reader.error_message):
            try:
                message = read()
            except Exception as e:
                logger.debug(f"Could not capture message from page: {e}")
                continue
            if message:
                logger.info(f"Captured message in teardown: {message}")
                return message
        return None

    def _login_page_reader(self, driver: WebDriver) -> MessageReader:
        return LoginPage(driver, timeout=self.settings.MESSAGE_READ_TIMEOUT)
