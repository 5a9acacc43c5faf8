"""Signup page object: new-user form and the account-details form."""

from __future__ import annotations

from collections.abc import Mapping

from playwright.sync_api import Locator, expect

from e2e_kit.pages.base_page import BasePage


class SignUpPage(BasePage):
    """
    Page object for the signup flow.

    The first step (name + email) lives on the login page; a new email
    leads to the account-details form, an existing one to an error.
    """

    URL_PATH = "/login"
    DUPLICATE_EMAIL_TEXT = "Email Address already exist!"
    ACCOUNT_CREATED_TEXT = "Account Created!"

    @property
    def name_input(self) -> Locator:
        return self.get_by_qa("signup-name")

    @property
    def email_input(self) -> Locator:
        return self.get_by_qa("signup-email")

    @property
    def signup_button(self) -> Locator:
        return self.get_by_qa("signup-button")

    @property
    def signup_heading(self) -> Locator:
        return self.page.get_by_role("heading", name="New User Signup!")

    @property
    def login_heading(self) -> Locator:
        return self.page.get_by_role("heading", name="Login to your account")

    def navigate(self) -> "SignUpPage":
        """
        Open the signup form and check both forms are visible.

        Returns:
            Self for method chaining.
        """
        self.logger.info("Navigating to signup page...")
        self.navigate_to(self.URL_PATH)
        expect(self.signup_heading).to_be_visible(timeout=5000)
        expect(self.login_heading).to_be_visible(timeout=5000)
        expect(self.name_input).to_be_visible(timeout=5000)
        expect(self.email_input).to_be_visible(timeout=5000)
        expect(self.signup_button).to_be_visible(timeout=5000)
        self.logger.success("Signup page verified successfully")
        return self

    def signup(self, name: str, email: str) -> None:
        """Submit the first signup step."""
        self.logger.info("Signing up with name: %s and email: %s", name, email)
        self.name_input.fill(name)
        self.email_input.fill(email)
        self.signup_button.click()
        self.page.wait_for_load_state("domcontentloaded")
        self.logger.success("Signup form submitted")

    def fill_signup_form(self, data: Mapping[str, str]) -> None:
        """
        Complete the account-details form and create the account.

        Args:
            data: Signup payload as produced by
                :func:`e2e_kit.test_data.generate_signup_data`.
        """
        self.logger.info("Filling account details for %s", data.get("email", ""))
        self.get_by_qa("password").fill(data["password"])
        self.get_by_qa("days").select_option(data["day"])
        self.get_by_qa("months").select_option(data["month"])
        self.get_by_qa("years").select_option(data["year"])
        for field in (
            "first_name",
            "last_name",
            "company",
            "address",
            "address2",
            "state",
            "city",
            "zipcode",
            "mobile_number",
        ):
            self.get_by_qa(field.replace("_", "-")).fill(data[field])
        self.get_by_qa("country").select_option(data["country"])
        self.get_by_qa("create-account").click()
        self.page.wait_for_load_state("domcontentloaded")

    def assert_account_created(self, timeout: int = 5000) -> None:
        expect(self.page.get_by_text(self.ACCOUNT_CREATED_TEXT)).to_be_visible(timeout=timeout)
        self.logger.success("Account created")

    def assert_duplicate_email_error(self, timeout: int = 5000) -> None:
        self.logger.info("Checking for duplicate email error")
        expect(self.page.get_by_text(self.DUPLICATE_EMAIL_TEXT)).to_be_visible(timeout=timeout)
        self.logger.warn("Duplicate email error message is visible")
