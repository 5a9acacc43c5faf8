"""
Page Object Model (POM) classes.

Page objects encapsulate page-specific locators and interactions so
tests read as user journeys and selector changes stay in one place.
"""

from e2e_kit.pages.base_page import BasePage
from e2e_kit.pages.login_page import LoginPage
from e2e_kit.pages.signup_page import SignUpPage

__all__ = ["BasePage", "LoginPage", "SignUpPage"]
