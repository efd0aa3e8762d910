"""Browser option builders keyed by browser kind."""
import logging
from typing import Callable, Dict, Tuple
from selenium import webdriver
from selenium.webdriver.common.options import ArgOptions
from gridrunner.config import Settings
from gridrunner.core.enums import BrowserKind

logger = logging.getLogger(__name__)

OptionsBuilder = Callable[[Settings], ArgOptions]


def chrome_options(settings: Settings) -> ArgOptions:
    """
    Build Chrome options for a grid session.

    Args:
        settings: Run settings

    Returns:
        ArgOptions: Configured ChromeOptions
    """
    options = webdriver.ChromeOptions()
    for argument in (
        "--start-maximized",
        "--disable-notifications",
        "--no-sandbox",
        "--disable-dev-shm-usage",
        "--disable-gpu",
        "--disable-software-rasterizer",
        "--disable-extensions",
        "--remote-allow-origins=*",
        f"--window-size={settings.WINDOW_WIDTH},{settings.WINDOW_HEIGHT}",
    ):
        options.add_argument(argument)
    if settings.HEADLESS:
        options.add_argument("--headless=new")
    options.page_load_strategy = settings.PAGE_LOAD_STRATEGY
    return options


def firefox_options(settings: Settings) -> ArgOptions:
    """
    Build Firefox options for a grid session.

    Args:
        settings: Run settings

    Returns:
        ArgOptions: Configured FirefoxOptions
    """
    options = webdriver.FirefoxOptions()
    options.add_argument(f"--width={settings.WINDOW_WIDTH}")
    options.add_argument(f"--height={settings.WINDOW_HEIGHT}")
    if settings.HEADLESS:
        options.add_argument("--headless")
    options.page_load_strategy = settings.PAGE_LOAD_STRATEGY
    return options


def edge_options(settings: Settings) -> ArgOptions:
    """
    Build Edge options for a grid session.

    Args:
        settings: Run settings

    Returns:
        ArgOptions: Configured EdgeOptions
    """
    options = webdriver.EdgeOptions()
    options.add_argument("--start-maximized")
    options.add_argument("--disable-dev-shm-usage")
    options.add_argument(f"--window-size={settings.WINDOW_WIDTH},{settings.WINDOW_HEIGHT}")
    if settings.HEADLESS:
        options.add_argument("--headless=new")
    options.page_load_strategy = settings.PAGE_LOAD_STRATEGY
    return options


def fallback_options(settings: Settings) -> ArgOptions:
    """Minimal Chrome options used for unrecognised browser names."""
    options = webdriver.ChromeOptions()
    options.add_argument("--start-maximized")
    options.add_argument("--no-sandbox")
    options.add_argument("--disable-dev-shm-usage")
    if settings.HEADLESS:
        options.add_argument("--headless=new")
    options.page_load_strategy = settings.PAGE_LOAD_STRATEGY
    return options


OPTION_BUILDERS: Dict[BrowserKind, OptionsBuilder] = {
    BrowserKind.CHROME: chrome_options,
    BrowserKind.FIREFOX: firefox_options,
    BrowserKind.EDGE: edge_options,
}


def resolve_browser(name: str) -> Tuple[BrowserKind, OptionsBuilder]:
    """
    Map a configured browser name to its kind and options builder.

    Args:
        name: Browser name from settings (case and whitespace insensitive)

    Returns:
        Tuple[BrowserKind, OptionsBuilder]: Kind and builder; unknown names
        resolve to Chrome with the fallback builder
    """
    try:
        kind = BrowserKind((name or "").strip().lower())
    except ValueError:
        logger.warning(f"Unknown browser: {name}. Defaulting to Chrome")
        return BrowserKind.CHROME, fallback_options
    return kind, OPTION_BUILDERS[kind]


def build_options(settings: Settings) -> ArgOptions:
    """
    Build the capability set for the configured browser.

    Args:
        settings: Run settings

    Returns:
        ArgOptions: Options ready to hand to webdriver.Remote
    """
    _, builder = resolve_browser(settings.BROWSER)
    return builder(settings)
