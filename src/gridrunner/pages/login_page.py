"""Login page accessors."""
import logging
from typing import Optional
from selenium.common.exceptions import TimeoutException
from selenium.webdriver.common.by import By
from selenium.webdriver.remote.webdriver import WebDriver
from selenium.webdriver.remote.webelement import WebElement
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait

logger = logging.getLogger(__name__)

USERNAME = (By.ID, "username")
PASSWORD = (By.ID, "password")
SUBMIT = (By.ID, "submit")
SUCCESS_MESSAGE = (By.CLASS_NAME, "post-title")
ERROR_MESSAGE = (By.ID, "error")
LOGOUT_LINK = (By.LINK_TEXT, "Log out")


class LoginPage:
    """
    Login page object with one accessor per element.

    Also serves as the teardown message reader: ``success_message`` and
    ``error_message`` return None instead of raising when the element is
    not shown within the wait.
    """

    def __init__(self, driver: WebDriver, timeout: float = 30):
        """
        Initialize login page.

        Args:
            driver: Worker's WebDriver
            timeout: Seconds to wait for elements
        """
        self.driver = driver
        self.wait = WebDriverWait(driver, timeout)

    def username_field(self) -> WebElement:
        return self.wait.until(EC.visibility_of_element_located(USERNAME))

    def password_field(self) -> WebElement:
        return self.wait.until(EC.visibility_of_element_located(PASSWORD))

    def submit_button(self) -> WebElement:
        return self.wait.until(EC.element_to_be_clickable(SUBMIT))

    def logout_link(self) -> WebElement:
        return self.wait.until(EC.element_to_be_clickable(LOGOUT_LINK))

    def open(self, url: str) -> None:
        """Navigate to the login page."""
        logger.info(f"Navigating to login page: {url}")
        self.driver.get(url)

    def enter_username(self, username: str) -> None:
        field = self.username_field()
        field.clear()
        field.send_keys(username)
        logger.info(f"Username entered: {username}")

    def enter_password(self, password: str) -> None:
        field = self.password_field()
        field.clear()
        field.send_keys(password)
        logger.info("Password entered")

    def click_submit(self) -> None:
        self.submit_button().click()
        logger.info("Submit button clicked")

    def login(self, username: str, password: str) -> None:
        """Fill in credentials and submit."""
        self.enter_username(username)
        self.enter_password(password)
        self.click_submit()

    def logout(self) -> None:
        self.logout_link().click()
        logger.info("Logout performed")

    def is_logged_in(self) -> bool:
        """Check if the post-login heading is shown."""
        return self.success_message() is not None

    def success_message(self) -> Optional[str]:
        """
        Get the post-login heading text.

        Returns:
            Optional[str]: Text, or None if not shown or empty
        """
        return self._visible_text(SUCCESS_MESSAGE)

    def error_message(self) -> Optional[str]:
        """
        Get the login error banner text.

        Returns:
            Optional[str]: Text, or None if not shown or empty
        """
        return self._visible_text(ERROR_MESSAGE)

    def _visible_text(self, locator) -> Optional[str]:
        try:
            element = self.wait.until(EC.visibility_of_element_located(locator))
        except TimeoutException:
            logger.debug(f"Element {locator} not visible")
            return None
        return element.text or None
