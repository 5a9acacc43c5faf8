"""Login page object for authentication flows."""

from __future__ import annotations

import re

from playwright.sync_api import Locator, expect

from e2e_kit.pages.base_page import BasePage


class LoginPage(BasePage):
    """
    Page object for the login page.

    Provides methods for:
    - Entering credentials and submitting the login form
    - Asserting the logged-in / rejected outcome
    - Logging out again
    """

    URL_PATH = "/login"
    LOGGED_IN_TEXT = "Logged in as"
    LOGIN_ERROR_TEXT = "Your email or password is incorrect!"

    @property
    def email_input(self) -> Locator:
        return self.get_by_qa("login-email")

    @property
    def password_input(self) -> Locator:
        return self.get_by_qa("login-password")

    @property
    def submit_button(self) -> Locator:
        return self.get_by_qa("login-button")

    @property
    def error_message(self) -> Locator:
        return self.page.get_by_text(self.LOGIN_ERROR_TEXT)

    @property
    def logged_in_marker(self) -> Locator:
        return self.page.get_by_text(self.LOGGED_IN_TEXT)

    @property
    def logout_link(self) -> Locator:
        return self.page.locator('a[href="/logout"]')

    def navigate(self) -> "LoginPage":
        """
        Open the login page and check the form is usable.

        Returns:
            Self for method chaining.
        """
        self.navigate_to(self.URL_PATH)
        self.logger.info("Validating login fields are visible...")
        expect(self.email_input).to_be_visible(timeout=5000)
        expect(self.password_input).to_be_visible(timeout=5000)
        expect(self.submit_button).to_be_visible(timeout=5000)
        self.logger.success("Login page loaded successfully.")
        return self

    def login(self, email: str, password: str) -> None:
        """
        Fill credentials and submit the login form.

        Args:
            email: Account email.
            password: Account password.
        """
        self.logger.info("Filling in username: %s", email)
        self.email_input.fill(email)
        self.logger.info("Filling in password.")
        self.password_input.fill(password)
        self.logger.info("Clicking on Login button...")
        self.submit_button.click()
        self.page.wait_for_load_state("domcontentloaded")
        self.logger.success("Login form submitted.")

    def assert_login_success(self, timeout: int = 5000) -> None:
        self.logger.info("Asserting successful login...")
        expect(self.logged_in_marker).to_be_visible(timeout=timeout)
        self.logger.success("Login was successful.")

    def assert_login_failure(self, timeout: int = 5000) -> None:
        self.logger.info("Asserting failed login...")
        expect(self.error_message).to_be_visible(timeout=timeout)
        self.logger.warn("Login failed as expected.")

    def logout(self) -> None:
        """Click the logout link and check the login form is back."""
        self.logger.info("Attempting to logout...")
        expect(self.logout_link).to_be_visible(timeout=5000)
        self.logout_link.click()

        self.logger.info("Validating logout success...")
        expect(self.page).to_have_url(re.compile(r".*login.*"))
        expect(self.email_input).to_be_visible(timeout=5000)
        self.logger.success("Logout successful. Back on login page.")
