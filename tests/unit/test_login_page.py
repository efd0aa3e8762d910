"""Unit tests for LoginPage accessors."""
import pytest
from unittest.mock import MagicMock
from selenium.common.exceptions import NoSuchElementException
from selenium.webdriver.common.by import By
from gridrunner.pages.login_page import LoginPage


def element(text="", displayed=True):
    el = MagicMock(name="WebElement")
    el.text = text
    el.is_displayed.return_value = displayed
    el.is_enabled.return_value = True
    return el


@pytest.fixture
def driver():
    return MagicMock(name="WebDriver")


class TestMessages:
    """Tests for the success and error indicators."""

    def test_success_message(self, driver):
        """Test the post-login heading text is returned."""
        driver.find_element.return_value = element("Logged In Successfully")

        page = LoginPage(driver, timeout=0)

        assert page.success_message() == "Logged In Successfully"
        driver.find_element.assert_called_with(By.CLASS_NAME, "post-title")

    def test_error_message(self, driver):
        """Test the error banner text is returned."""
        driver.find_element.return_value = element("Your username is invalid!")

        page = LoginPage(driver, timeout=0)

        assert page.error_message() == "Your username is invalid!"
        driver.find_element.assert_called_with(By.ID, "error")

    def test_missing_element_returns_none(self, driver):
        """Test an element that never appears yields None, not an exception."""
        driver.find_element.side_effect = NoSuchElementException("no such element")

        page = LoginPage(driver, timeout=0)

        assert page.success_message() is None
        assert page.is_logged_in() is False

    def test_empty_text_returns_none(self, driver):
        """Test a visible but empty element yields None."""
        driver.find_element.return_value = element("")

        assert LoginPage(driver, timeout=0).error_message() is None


class TestInteractions:
    """Tests for form interactions."""

    def test_login_fills_form_and_submits(self, driver):
        """Test login types both credentials and clicks submit."""
        fields = {
            (By.ID, "username"): element(),
            (By.ID, "password"): element(),
            (By.ID, "submit"): element(),
        }
        driver.find_element.side_effect = lambda by, value: fields[(by, value)]

        LoginPage(driver, timeout=0).login("student", "Password123")

        fields[(By.ID, "username")].send_keys.assert_called_once_with("student")
        fields[(By.ID, "password")].send_keys.assert_called_once_with("Password123")
        fields[(By.ID, "submit")].click.assert_called_once()

    def test_open_navigates(self, driver):
        """Test open loads the given URL."""
        LoginPage(driver).open("https://example.test/login")

        driver.get.assert_called_once_with("https://example.test/login")
