"""Prometheus metrics for Gridrunner."""
import logging
from pathlib import Path
from prometheus_client import Counter, Gauge, Histogram, Info, REGISTRY, write_to_textfile

logger = logging.getLogger(__name__)


# Scenario metrics
scenarios_finished_total = Counter(
    'gridrunner_scenarios_finished_total',
    'Total number of scenarios torn down',
    ['status']
)

scenario_duration_seconds = Histogram(
    'gridrunner_scenario_duration_seconds',
    'Scenario duration from setup to end of teardown in seconds',
    ['status'],
    buckets=[1.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, 600.0]
)

teardown_step_failures_total = Counter(
    'gridrunner_teardown_step_failures_total',
    'Total number of teardown steps that raised and were skipped over',
    ['step']
)

# Session metrics
sessions_active = Gauge(
    'gridrunner_sessions_active',
    'Number of browser sessions currently held by workers'
)

session_init_failures_total = Counter(
    'gridrunner_session_init_failures_total',
    'Total number of failed grid session initializations'
)

# Reporting metrics
result_documents_total = Counter(
    'gridrunner_result_documents_total',
    'Result documents by delivery outcome',
    ['outcome']
)

# System info
system_info = Info(
    'gridrunner_system',
    'Gridrunner system information'
)


def record_scenario_finished(status: str, duration: float) -> None:
    """Record a finished scenario and its duration."""
    scenarios_finished_total.labels(status=status).inc()
    scenario_duration_seconds.labels(status=status).observe(duration)


def record_teardown_step_failure(step: str) -> None:
    """Record a teardown step that raised."""
    teardown_step_failures_total.labels(step=step).inc()


def record_result_document(outcome: str) -> None:
    """Record a result document as sent, failed or skipped."""
    result_documents_total.labels(outcome=outcome).inc()


def init_system_info(version: str, browser: str) -> None:
    """
    Initialize system information metric.

    Args:
        version: Application version
        browser: Configured browser name
    """
    system_info.info({
        'version': version,
        'name': 'Gridrunner',
        'browser': browser,
    })


def write_metrics(path: Path) -> bool:
    """
    Write the default registry to a Prometheus textfile.

    Args:
        path: Destination file (parent directories are created)

    Returns:
        bool: True if the file was written
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        write_to_textfile(str(path), REGISTRY)
        logger.info(f"Metrics written to {path}")
        return True
    except Exception as e:
        logger.warning(f"Could not write metrics to {path}: {e}")
        return False
