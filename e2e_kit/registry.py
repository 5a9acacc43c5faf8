"""
The framework's stock fixtures, defined on a :class:`FixtureRegistry`.

``page``, ``context``, ``browser`` and ``playwright`` are not defined
here: they belong to the test runner (pytest-playwright) and are passed
in as provided values::

    registry = build_registry(config)
    with registry.resolve(["login_page"], provided={"page": page}) as fx:
        fx["login_page"].login(email, password)

Dependency graph::

    config ─┬─ outcome_store
            ├─ test_data
            ├─ api_helper ──────────────┐
            ├─ login_page      <- page  ├─ authenticated_user <- page
            ├─ signup_page     <- page  ├─ admin_user         <- page
            ├─ browser_helper  <- page  │
            ├─ file_operations <- page  │
            ├─ screenshot      <- page  │
            └─ mobile_device   <- browser, playwright
    network_mocker      <- page         │
    error_tracker       <- page         │
    performance_monitor <- page         │
    test_data ──────────────────────────┘
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

from e2e_kit.api_helper import ApiHelper
from e2e_kit.browser_helper import (
    BrowserHelper,
    ErrorTracker,
    FileOperations,
    NetworkMocker,
    PerformanceMonitor,
)
from e2e_kit.config import RunConfig
from e2e_kit.errors import ApiError
from e2e_kit.fixtures import FixtureRegistry
from e2e_kit.outcome_store import OutcomeStore
from e2e_kit.pages.login_page import LoginPage
from e2e_kit.pages.signup_page import SignUpPage
from e2e_kit.test_data import TestDataManager

logger = logging.getLogger(__name__)


def _authenticated_user(page, api_helper: ApiHelper, test_data: TestDataManager, config: RunConfig):
    """
    Log the first valid user in, preferring the API over the UI.

    The API login sets the bearer token on ``api_helper`` and copies the
    token into the browser as an ``auth_token`` cookie.  When the API
    path fails the user is logged in through the login form instead.
    """
    user = test_data.get_user("valid", 0)
    try:
        response = api_helper.post(
            "/auth/login", {"email": user["email"], "password": user["password"]}
        )
    except ApiError as exc:
        logger.warning("API login unavailable (%s); falling back to UI login", exc)
        response = None

    token = None
    if response is not None and response.success and isinstance(response.data, dict):
        token = api_helper.value_at(response.data, "data.token") or response.data.get("token")

    if token:
        api_helper.set_bearer_token(token)
        page.context.add_cookies([{"name": "auth_token", "value": token, "url": config.base_url}])
        logger.info("Authenticated user via API: %s", user["email"])
        return {"user": user, "token": token}

    logger.info("Authenticating user via UI: %s", user["email"])
    login_page = LoginPage(page, config.base_url)
    login_page.navigate()
    login_page.login(user["email"], user["password"])
    login_page.assert_login_success()
    return {"user": user, "token": None}


def _admin_user(page, api_helper: ApiHelper, test_data: TestDataManager, config: RunConfig):
    """
    Log the second valid user in through the API only.

    Raises:
        ApiError: The login request could not be sent.
        RuntimeError: The API answered without a token.
    """
    user = test_data.get_user("valid", 1)
    response = api_helper.post("/auth/login", {"email": user["email"], "password": user["password"]})

    token = None
    if response.success and isinstance(response.data, dict):
        token = api_helper.value_at(response.data, "data.token") or response.data.get("token")
    if not token:
        raise RuntimeError(f"Admin login failed for {user['email']} (status {response.status})")

    api_helper.set_bearer_token(token)
    page.context.add_cookies([{"name": "auth_token", "value": token, "url": config.base_url}])
    logger.info("Authenticated admin user via API: %s", user["email"])
    return {"user": user, "token": token}


# Emulated handset for ``mobile_device``; any name in ``playwright.devices``.
MOBILE_DEVICE = "iPhone 12"


def build_registry(config: RunConfig) -> FixtureRegistry:
    """Return a registry holding every stock fixture bound to ``config``."""
    registry = FixtureRegistry()

    registry.define("config", lambda: config)
    registry.define("outcome_store", OutcomeStore.from_config)
    registry.define("test_data", lambda config: TestDataManager(config.test_data_dir))
    registry.define(
        "api_helper",
        lambda config: ApiHelper(config.api_base_url),
        teardown=lambda api: api.close(),
    )

    @registry.fixture()
    def login_page(page, config: RunConfig) -> LoginPage:
        return LoginPage(page, config.base_url, config.screenshots_dir).navigate()

    @registry.fixture()
    def signup_page(page, config: RunConfig) -> SignUpPage:
        return SignUpPage(page, config.base_url, config.screenshots_dir).navigate()

    registry.define(
        "browser_helper",
        lambda page, config: BrowserHelper(page, screenshot_dir=config.screenshots_dir),
    )
    registry.define("authenticated_user", _authenticated_user)
    registry.define("admin_user", _admin_user)
    registry.define("performance_monitor", lambda page: PerformanceMonitor(page).start())

    @registry.fixture()
    def mobile_device(browser, playwright, config: RunConfig) -> Iterator[dict[str, Any]]:
        """A page in its own context emulating :data:`MOBILE_DEVICE`."""
        device = {
            key: value
            for key, value in playwright.devices[MOBILE_DEVICE].items()
            if key != "default_browser_type"
        }
        context = browser.new_context(
            **device,
            locale="en-US",
            timezone_id="America/New_York",
            base_url=config.base_url,
        )
        logger.info("Opened %s context", MOBILE_DEVICE)
        yield {"page": context.new_page(), "context": context, "device": MOBILE_DEVICE}
        context.close()

    @registry.fixture()
    def network_mocker(page) -> Iterator[NetworkMocker]:
        mocker = NetworkMocker(page)
        yield mocker
        mocker.clear_mocks()

    @registry.fixture()
    def error_tracker(page) -> Iterator[ErrorTracker]:
        tracker = ErrorTracker(page).attach()
        yield tracker
        tracker.detach()

    @registry.fixture()
    def file_operations(page, config: RunConfig) -> Iterator[FileOperations]:
        files = FileOperations(page, config.downloads_dir, config.uploads_dir)
        files.ensure_directories()
        yield files
        files.cleanup()

    @registry.fixture()
    def screenshot(browser_helper: BrowserHelper) -> Any:
        return browser_helper.take_full_page_screenshot

    return registry
