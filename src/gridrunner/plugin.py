"""pytest-bdd integration.

Load with ``-p gridrunner.plugin`` or ``pytest_plugins = ["gridrunner.plugin"]``.
Every pytest-bdd scenario then runs inside the orchestrator's before/after
hooks, step definitions can request the ``worker_scope`` fixture, and the
run ends with the report summary banner.

Teardown is driven by pytest's own test reports rather than pytest-bdd's
step hooks, so the reported status always matches what pytest printed:
a failed call (failing step, missing or invalid step definition) is
FAILED, a skipped call (``pytest.skip`` in a step) is SKIPPED, and a
scenario skipped or errored during setup is reported without running.

Under pytest-xdist each xdist worker process is one worker; without xdist
the whole session is the single worker ``main``.
"""
import importlib
import logging
from pathlib import Path
from typing import Any, Generator, Optional
import pytest
from gridrunner.harness import Harness, WorkerScope
from gridrunner.hooks.models import ScenarioDescriptor
from gridrunner.observability.metrics import init_system_info
from gridrunner.reporting.summary import RunSummary, render_summary

logger = logging.getLogger(__name__)

MAIN_WORKER = "main"

harness_key = pytest.StashKey[Harness]()
scenario_key = pytest.StashKey[ScenarioDescriptor]()


def worker_id_for(config: Any) -> str:
    """
    Get the worker identity of this pytest process.

    Args:
        config: pytest config

    Returns:
        str: xdist worker id (e.g. "gw0") or "main"
    """
    workerinput = getattr(config, "workerinput", None)
    if workerinput:
        return workerinput.get("workerid", MAIN_WORKER)
    return MAIN_WORKER


def descriptor_for(feature: Any, scenario: Any, is_failed: bool = False) -> ScenarioDescriptor:
    """
    Build a scenario descriptor from pytest-bdd feature and scenario objects.

    Args:
        feature: pytest-bdd Feature
        scenario: pytest-bdd Scenario or ScenarioTemplate
        is_failed: Whether a step failed

    Returns:
        ScenarioDescriptor: Descriptor for the orchestrator
    """
    filename = getattr(feature, "filename", None) or ""
    path = Path(filename)
    source_uri = path.as_uri() if path.is_absolute() else filename
    return ScenarioDescriptor(
        name=getattr(scenario, "name", "") or "",
        source_uri=source_uri,
        tags=frozenset(getattr(scenario, "tags", None) or ()),
        is_failed=is_failed,
    )


def scenario_template_for(item: Any) -> Optional[Any]:
    """
    Find the pytest-bdd scenario template behind a collected test.

    pytest-bdd 7 attaches it to the test function as ``__scenario__``;
    later releases keep it in a registry keyed by the test function.

    Args:
        item: Collected pytest item

    Returns:
        Optional[Any]: ScenarioTemplate, or None for plain tests
    """
    function = getattr(item, "obj", None)
    if function is None:
        return None

    template = getattr(function, "__scenario__", None)
    if template is not None:
        return template

    scenario_module = importlib.import_module("pytest_bdd.scenario")
    registry = getattr(scenario_module, "scenario_wrapper_template_registry", None)
    if registry is None:
        return None
    try:
        return registry.get(function)
    except TypeError:
        return None


def get_harness(config: Any) -> Harness:
    """Get the session's harness."""
    return config.stash[harness_key]


def pytest_configure(config: pytest.Config) -> None:
    """Build the run's harness."""
    harness = Harness()
    config.stash[harness_key] = harness
    init_system_info(harness.settings.APP_VERSION, harness.settings.BROWSER)


def pytest_unconfigure(config: pytest.Config) -> None:
    """Release what is left and write this process's metrics."""
    harness: Optional[Harness] = config.stash.get(harness_key, None)
    if harness is not None:
        harness.shutdown(worker_id_for(config))


def pytest_bdd_before_scenario(request: pytest.FixtureRequest, feature: Any, scenario: Any) -> None:
    """Prepare the worker and remember the scenario for teardown."""
    descriptor = descriptor_for(feature, scenario)
    request.node.stash[scenario_key] = descriptor
    get_harness(request.config).orchestrator.before(worker_id_for(request.config), descriptor)


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item: pytest.Item, call: pytest.CallInfo) -> Generator[None, Any, None]:
    """
    Tear the scenario down once pytest has decided its outcome.

    The call-phase report covers scenarios whose steps ran; the
    setup-phase report covers scenarios skipped or broken before any
    step ran.
    """
    outcome = yield
    report = outcome.get_result()

    if call.when == "call":
        _finish_started(item, report)
    elif call.when == "setup" and (report.skipped or report.failed):
        _finish_unstarted(item, report)


def _finish_started(item: pytest.Item, report: pytest.TestReport) -> None:
    scenario = item.stash.get(scenario_key, None)
    if scenario is None:
        return
    del item.stash[scenario_key]

    harness = get_harness(item.config)
    worker_id = worker_id_for(item.config)
    if report.skipped:
        harness.orchestrator.after_skipped(worker_id, scenario)
    elif report.failed:
        harness.orchestrator.after(worker_id, scenario.mark_failed())
    else:
        harness.orchestrator.after(worker_id, scenario)


def _finish_unstarted(item: pytest.Item, report: pytest.TestReport) -> None:
    template = scenario_template_for(item)
    if template is None:
        return

    harness = get_harness(item.config)
    worker_id = worker_id_for(item.config)
    scenario = descriptor_for(getattr(template, "feature", None), template)
    harness.orchestrator.before(worker_id, scenario)
    if report.skipped:
        harness.orchestrator.after_skipped(worker_id, scenario)
    else:
        harness.orchestrator.after(worker_id, scenario.mark_failed())


@pytest.fixture
def worker_scope(request: pytest.FixtureRequest) -> WorkerScope:
    """Step-logic view of the harness for the current worker."""
    return get_harness(request.config).scope(worker_id_for(request.config))


def pytest_terminal_summary(terminalreporter: Any, exitstatus: int, config: pytest.Config) -> None:
    """Print the report locations and statistics banner."""
    stats = terminalreporter.stats
    # setup and teardown phases also log passing reports
    passed = [r for r in stats.get("passed", []) if getattr(r, "when", "call") == "call"]
    summary = RunSummary(
        passed=len(passed),
        failed=len(stats.get("failed", [])) + len(stats.get("error", [])),
        skipped=len(stats.get("skipped", [])),
    )
    for line in render_summary(summary, get_harness(config).settings).splitlines():
        terminalreporter.write_line(line)
