"""Integration tests for a scenario's setup and teardown with real components."""
import base64
import json
import pytest
import httpx
from pathlib import Path
from gridrunner.core.enums import ScenarioStatus
from gridrunner.harness import Harness
from gridrunner.hooks.models import ScenarioDescriptor
from gridrunner.reporting.result_sink import ResultSink
from tests.conftest import PNG_BYTES, RecordingTransport

pytestmark = pytest.mark.integration

FEATURE_URI = "file:///work/features/login.feature"


class StubReader:
    """Page reader returning fixed indicator texts."""

    def __init__(self, success=None, error=None):
        self.success = success
        self.error = error

    def success_message(self):
        return self.success

    def error_message(self):
        return self.error


def documents(transport):
    return [json.loads(request.content) for request in transport.requests]


@pytest.fixture
def scenario():
    return ScenarioDescriptor(
        name="Login_Valid",
        source_uri=FEATURE_URI,
        tags=frozenset({"@smoke", "@login"}),
    )


@pytest.fixture
def harness(es_settings, transport):
    return Harness(
        es_settings,
        sink=ResultSink(es_settings, transport=transport),
        reader_factory=lambda driver: StubReader(error="Your username is invalid!"),
    )


class TestFailedScenario:
    """Tests for a scenario whose steps failed after opening a browser."""

    def test_failed_document(self, harness, scenario, remote, transport):
        """Test the indexed document describes the failure fully."""
        harness.orchestrator.before("worker-1", scenario)
        harness.scope("worker-1").driver()

        outcome = harness.orchestrator.after("worker-1", scenario.mark_failed())

        assert outcome.status == ScenarioStatus.FAILED
        [doc] = documents(transport)
        assert transport.requests[0].url.path == "/test-results/_doc"
        assert doc["scenario"] == "Login_Valid"
        assert doc["status"] == "FAILED"
        assert doc["errorMessage"] == "Scenario failed"
        assert doc["featurename"] == "login"
        assert doc["testCaseName"] == "login"
        assert doc["tags"] == ["@login", "@smoke"]
        assert doc["thread"] == "worker-1"
        assert doc["browser"] == "chrome"
        assert doc["gridUrl"] == "http://grid.local:4444/wd/hub"
        assert doc["loginMessage"] == "Your username is invalid!"
        assert Path(doc["screenshotPath"]).name.startswith("Login_Valid_FAILED_")
        assert base64.b64decode(doc["screenshotBase64"]) == PNG_BYTES

    def test_worker_cleaned_up(self, harness, scenario, remote):
        """Test the session, client and context are gone after teardown."""
        harness.orchestrator.before("worker-1", scenario)
        scope = harness.scope("worker-1")
        scope.driver()
        scope.set_message("leftover")

        harness.orchestrator.after("worker-1", scenario.mark_failed())

        remote.drivers[0].quit.assert_called_once()
        assert harness.sessions.current("worker-1") is None
        assert harness.sink.has_client("worker-1") is False
        assert harness.context.get_message("worker-1") is None


class TestPassedScenario:
    """Tests for a scenario that passed."""

    def test_step_message_wins(self, harness, scenario, remote, transport):
        """Test the message stored by step logic is reported as-is."""
        harness.orchestrator.before("worker-1", scenario)
        scope = harness.scope("worker-1")
        scope.driver()
        scope.set_message("Logged In Successfully")

        outcome = harness.orchestrator.after("worker-1", scenario)

        assert outcome.status == ScenarioStatus.PASSED
        [doc] = documents(transport)
        assert doc["status"] == "PASSED"
        assert doc["errorMessage"] is None
        assert doc["loginMessage"] == "Logged In Successfully"
        assert Path(doc["screenshotPath"]).name.startswith("Login_Valid_PASSED_")

    def test_no_browser_opened(self, harness, scenario, remote, transport):
        """Test a scenario that never opened a browser reports without one."""
        harness.orchestrator.before("worker-1", scenario)

        harness.orchestrator.after("worker-1", scenario)

        [doc] = documents(transport)
        assert doc["screenshotPath"] is None
        assert doc["screenshotBase64"] is None
        assert doc["loginMessage"] is None
        remote.assert_not_called()


class TestSkippedScenario:
    """Tests for a skipped scenario."""

    def test_skipped_document(self, harness, scenario, remote, transport):
        """Test a skipped scenario is reported without probing the page."""
        harness.orchestrator.before("worker-1", scenario)

        outcome = harness.orchestrator.after_skipped("worker-1", scenario)

        assert outcome.status == ScenarioStatus.SKIPPED
        [doc] = documents(transport)
        assert doc["status"] == "SKIPPED"
        assert doc["errorMessage"] == "Scenario skipped"
        assert doc["loginMessage"] is None
        assert doc["screenshotPath"] is None
        assert harness.sink.has_client("worker-1") is False


class TestSinkFaults:
    """Tests for teardown when reporting is off or broken."""

    def test_sink_disabled(self, settings, scenario, remote):
        """Test teardown completes without any reporting."""
        harness = Harness(settings, reader_factory=lambda driver: StubReader())
        harness.orchestrator.before("worker-1", scenario)
        harness.scope("worker-1").driver()

        outcome = harness.orchestrator.after("worker-1", scenario.mark_failed())

        assert outcome.status == ScenarioStatus.FAILED
        assert Path(outcome.diagnostic_path).exists()
        remote.drivers[0].quit.assert_called_once()

    def test_sink_unreachable(self, es_settings, scenario, remote):
        """Test an unreachable Elasticsearch does not stop cleanup."""
        transport = RecordingTransport(error=httpx.ConnectError("connection refused"))
        harness = Harness(
            es_settings,
            sink=ResultSink(es_settings, transport=transport),
            reader_factory=lambda driver: StubReader(),
        )
        harness.orchestrator.before("worker-1", scenario)
        harness.scope("worker-1").driver()

        outcome = harness.orchestrator.after("worker-1", scenario.mark_failed())

        assert outcome.status == ScenarioStatus.FAILED
        assert len(transport.requests) == 1
        remote.drivers[0].quit.assert_called_once()
        assert harness.sink.has_client("worker-1") is False

    def test_index_rejects_document(self, es_settings, scenario, remote):
        """Test a rejected document is absorbed by teardown."""
        transport = RecordingTransport(status_code=400)
        harness = Harness(
            es_settings,
            sink=ResultSink(es_settings, transport=transport),
            reader_factory=lambda driver: StubReader(),
        )
        harness.orchestrator.before("worker-1", scenario)

        outcome = harness.orchestrator.after("worker-1", scenario)

        assert outcome.status == ScenarioStatus.PASSED
        assert len(transport.requests) == 1


class TestWorkerIsolation:
    """Tests that workers never see each other's state."""

    def test_messages_and_sessions_isolated(self, harness, scenario, remote, transport):
        """Test two workers keep separate sessions, messages and documents."""
        for worker_id in ("worker-1", "worker-2"):
            harness.orchestrator.before(worker_id, scenario)
            harness.scope(worker_id).driver()
        harness.scope("worker-1").set_message("from one")

        harness.orchestrator.after("worker-2", scenario)

        assert harness.sessions.current("worker-1") is remote.drivers[0]
        assert harness.context.get_message("worker-1") == "from one"
        [doc] = documents(transport)
        assert doc["thread"] == "worker-2"
        assert doc["loginMessage"] == "Your username is invalid!"

        harness.orchestrator.after("worker-1", scenario)

        assert documents(transport)[1]["loginMessage"] == "from one"
