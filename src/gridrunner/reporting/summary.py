"""End-of-run summary banner."""
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List
from gridrunner.config import Settings
from gridrunner.core.enums import ScenarioStatus

RULE = "=" * 81


@dataclass
class RunSummary:
    """Scenario counts for a finished run."""

    passed: int = 0
    failed: int = 0
    skipped: int = 0

    @property
    def total(self) -> int:
        return self.passed + self.failed + self.skipped

    @property
    def has_failures(self) -> bool:
        return self.failed > 0

    @classmethod
    def from_statuses(cls, statuses: Iterable[ScenarioStatus]) -> "RunSummary":
        """Count statuses into a summary."""
        summary = cls()
        for status in statuses:
            if status == ScenarioStatus.PASSED:
                summary.passed += 1
            elif status == ScenarioStatus.FAILED:
                summary.failed += 1
            else:
                summary.skipped += 1
        return summary


def render_summary(summary: RunSummary, settings: Settings) -> str:
    """
    Render the report locations and statistics banner.

    Args:
        summary: Scenario counts
        settings: Run settings (report path, Elasticsearch and Kibana URLs)

    Returns:
        str: Multi-line banner
    """
    lines: List[str] = ["", RULE]
    if summary.has_failures:
        lines += [
            "TEST FAILURE".center(81),
            RULE,
            "",
            "One or more tests have failed. Please review the test results below.",
            "",
        ]
    else:
        lines.append("TEST EXECUTION SUMMARY - REPORT LOCATIONS".center(81))
    lines += [RULE, ""]

    lines += _statistics(summary)
    lines += _report_location(settings)
    lines += _elasticsearch_info(settings)

    lines.append(RULE)
    if summary.has_failures:
        lines.append("TEST FAILURE".center(81))
    lines += [RULE, ""]
    return "\n".join(lines)


def _statistics(summary: RunSummary) -> List[str]:
    lines = [
        "TEST EXECUTION STATISTICS:",
        f"  Total Tests:  {summary.total}",
        f"  Passed:       {summary.passed}",
        f"  Failed:       {summary.failed}",
        f"  Skipped:      {summary.skipped}",
        "",
    ]
    if summary.has_failures:
        lines.append(f"STATUS: TEST FAILURE - {summary.failed} test(s) failed")
    else:
        lines.append("STATUS: ALL TESTS PASSED")
    lines.append("")
    return lines


def _report_location(settings: Settings) -> List[str]:
    report = (Path(settings.REPORT_OUTPUT_PATH) / settings.REPORT_FILE_NAME).resolve()
    lines = [
        "HTML TEST REPORT:",
        f"  File Name:   {settings.REPORT_FILE_NAME}",
        f"  Full Path:   {report}",
    ]
    if report.exists():
        lines.append(f"  Open in Browser: {report.as_uri()}")
    else:
        lines.append("  Status:      Will be generated after test completion")
    lines.append("")
    return lines


def _elasticsearch_info(settings: Settings) -> List[str]:
    url = settings.elasticsearch_url
    enabled = settings.ELASTICSEARCH_ENABLED
    lines = [
        "ELASTICSEARCH CONFIGURATION:",
        f"  Status:     {'ENABLED' if enabled else 'DISABLED'}",
        f"  Host:       {settings.ELASTICSEARCH_HOST}",
        f"  Port:       {settings.ELASTICSEARCH_PORT}",
        f"  Index:      {settings.ELASTICSEARCH_INDEX}",
    ]
    if enabled:
        lines += [
            f"  URL:        {url}",
            f"  Health Check: {url}/_cluster/health",
        ]
    else:
        lines += [
            f"  URL:        {url} (when enabled)",
            "  Note:       Set ELASTICSEARCH_ENABLED=true to enable",
        ]
    lines += ["", "KIBANA CONFIGURATION:"]
    if enabled:
        lines.append(f"  URL:        {settings.KIBANA_URL}")
    else:
        lines += [
            "  Status:     NOT ACCESSIBLE (Elasticsearch is disabled)",
            f"  URL:        {settings.KIBANA_URL} (when Elasticsearch is enabled)",
        ]
    lines.append("")
    return lines
