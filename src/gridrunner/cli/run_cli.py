"""CLI entry point for running scenario suites."""
import logging
import sys
from typing import List, Optional
import pytest
from gridrunner.config import get_settings

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

PLUGIN = "gridrunner.plugin"


def build_pytest_args(argv: List[str]) -> List[str]:
    """
    Build pytest arguments with the gridrunner plugin loaded.

    Args:
        argv: Arguments passed through to pytest

    Returns:
        List[str]: Full pytest argument list
    """
    args = list(argv)
    if PLUGIN not in args:
        args = ["-p", PLUGIN] + args
    return args


def run(argv: Optional[List[str]] = None) -> int:
    """
    Run pytest-bdd suites with the gridrunner hooks.

    Args:
        argv: pytest arguments (defaults to sys.argv[1:])

    Returns:
        int: pytest exit code
    """
    settings = get_settings()
    logger.info(
        f"Starting {settings.APP_NAME} {settings.APP_VERSION} "
        f"(browser: {settings.BROWSER}, grid: {settings.GRID_URL})"
    )
    args = build_pytest_args(sys.argv[1:] if argv is None else argv)
    return int(pytest.main(args))


def main():
    """Main entry point."""
    try:
        sys.exit(run())
    except KeyboardInterrupt:
        logger.info("Run interrupted")
        sys.exit(130)


if __name__ == "__main__":
    main()
