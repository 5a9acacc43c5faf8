"""
Base Page class for the Page Object Model.

Every page object inherits from :class:`BasePage`, which wraps the raw
Playwright ``Page`` with logged actions so that a failing test leaves a
readable step trail behind it.

Key Concepts Demonstrated:
- Base class pattern for code reuse
- Logged navigation, interaction, wait and assertion helpers
- Assertions through ``playwright.sync_api.expect`` (auto-waiting)
- Bounded retry for flaky interactions
"""

from __future__ import annotations

import re
from collections.abc import Callable
from pathlib import Path
from typing import Any

from playwright.sync_api import Locator, Page, expect

from e2e_kit.logger import get_step_logger
from e2e_kit.retry import retry


class BasePage:
    """
    Base class for all page objects.

    Attributes:
        page: Playwright page instance.
        base_url: Base URL of the application.
        screenshot_dir: Where :meth:`screenshot` writes files.
    """

    URL_PATH = "/"

    def __init__(
        self,
        page: Page,
        base_url: str = "",
        screenshot_dir: str | Path = "test-results/screenshots",
    ):
        """
        Initialize the base page.

        Args:
            page: Playwright page instance.
            base_url: Base URL of the application.  Empty means paths are
                resolved against the context's ``base_url``.
            screenshot_dir: Directory for screenshots.
        """
        self.page = page
        self.base_url = base_url.rstrip("/")
        self.screenshot_dir = Path(screenshot_dir)
        self.logger = get_step_logger(f"e2e_kit.pages.{type(self).__name__}")

    # -------------------------------------------------------------------------
    # Navigation Methods
    # -------------------------------------------------------------------------

    def url_for(self, path: str = "") -> str:
        """Absolute URL for a path relative to the base URL."""
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}{path}"

    def navigate_to(self, path: str = "", wait_until: str = "domcontentloaded") -> None:
        """
        Navigate to a path relative to the base URL.

        Args:
            path: URL path relative to base URL (or an absolute URL).
            wait_until: Load event that completes the navigation.
        """
        url = self.url_for(path)
        self.logger.info("Navigating to: %s", url)
        self.page.goto(url, wait_until=wait_until)

    def navigate(self) -> "BasePage":
        """Navigate to this page's ``URL_PATH``."""
        self.navigate_to(self.URL_PATH)
        return self

    @property
    def current_url(self) -> str:
        return self.page.url

    @property
    def title(self) -> str:
        return self.page.title()

    def reload(self) -> None:
        self.logger.info("Reloading page")
        self.page.reload()

    def go_back(self) -> None:
        self.logger.info("Going back")
        self.page.go_back()

    def go_forward(self) -> None:
        self.logger.info("Going forward")
        self.page.go_forward()

    # -------------------------------------------------------------------------
    # Interaction Methods
    # -------------------------------------------------------------------------

    def locator(self, selector: str) -> Locator:
        return self.page.locator(selector)

    def get_by_test_id(self, test_id: str) -> Locator:
        """Locator for a ``data-testid`` attribute."""
        return self.page.get_by_test_id(test_id)

    def get_by_qa(self, qa: str) -> Locator:
        """Locator for a ``data-qa`` attribute, the convention of the target site."""
        return self.page.locator(f'[data-qa="{qa}"]')

    def click(self, selector: str, **options: Any) -> None:
        self.logger.info("Clicking element: %s", selector)
        self.page.locator(selector).first.click(**options)

    def double_click(self, selector: str) -> None:
        self.logger.info("Double clicking element: %s", selector)
        self.page.locator(selector).first.dblclick()

    def right_click(self, selector: str) -> None:
        self.logger.info("Right clicking element: %s", selector)
        self.page.locator(selector).first.click(button="right")

    def fill(self, selector: str, text: str) -> None:
        self.logger.info("Filling element %s", selector)
        self.page.locator(selector).first.fill(text)

    def clear(self, selector: str) -> None:
        self.logger.info("Clearing element: %s", selector)
        self.page.locator(selector).first.fill("")

    def select_option(self, selector: str, value: str) -> None:
        self.logger.info("Selecting option %s in: %s", value, selector)
        self.page.locator(selector).first.select_option(value)

    def check(self, selector: str) -> None:
        self.logger.info("Checking checkbox: %s", selector)
        self.page.locator(selector).first.check()

    def uncheck(self, selector: str) -> None:
        self.logger.info("Unchecking checkbox: %s", selector)
        self.page.locator(selector).first.uncheck()

    def hover(self, selector: str) -> None:
        self.logger.info("Hovering over element: %s", selector)
        self.page.locator(selector).first.hover()

    def upload_file(self, selector: str, file_path: str | Path) -> None:
        self.logger.info("Uploading file %s to: %s", file_path, selector)
        self.page.locator(selector).first.set_input_files(str(file_path))

    def handle_dialog(self, accept: bool = True, prompt_text: str = "") -> None:
        """
        Answer every dialog the page opens from now on.

        Args:
            accept: Accept (``True``) or dismiss dialogs.
            prompt_text: Text entered into prompt dialogs before accepting.
        """
        self.logger.info("Setting up dialog handler - accept: %s", accept)

        def _answer(dialog) -> None:
            if prompt_text:
                dialog.accept(prompt_text)
            elif accept:
                dialog.accept()
            else:
                dialog.dismiss()

        self.page.on("dialog", _answer)

    # -------------------------------------------------------------------------
    # Wait Methods
    # -------------------------------------------------------------------------

    def wait_for_page_load(self, state: str = "load") -> None:
        """Wait for the page to reach a load state."""
        self.logger.info("Waiting for load state: %s", state)
        self.page.wait_for_load_state(state)

    def wait_for_element(self, locator: Locator, timeout: int = 5000) -> None:
        """
        Wait for an element to be visible.

        Args:
            locator: Playwright locator for the element.
            timeout: Maximum wait time in milliseconds.
        """
        locator.wait_for(state="visible", timeout=timeout)

    def wait_for_selector(self, selector: str, timeout: int = 10_000) -> None:
        self.logger.info("Waiting for selector: %s", selector)
        self.page.locator(selector).first.wait_for(state="visible", timeout=timeout)

    def wait_for_url(self, url: str | re.Pattern[str], timeout: int = 30_000) -> None:
        self.logger.info("Waiting for URL: %s", url)
        self.page.wait_for_url(url, timeout=timeout)

    def wait_and_click(self, selector: str, timeout: int = 10_000) -> None:
        self.wait_for_selector(selector, timeout=timeout)
        self.click(selector)

    # -------------------------------------------------------------------------
    # Getters and Checks
    # -------------------------------------------------------------------------

    def get_text(self, selector: str) -> str:
        self.logger.info("Getting text from: %s", selector)
        return self.page.locator(selector).first.inner_text()

    def get_value(self, selector: str) -> str:
        return self.page.locator(selector).first.input_value()

    def get_attribute(self, selector: str, name: str) -> str | None:
        return self.page.locator(selector).first.get_attribute(name)

    def count(self, selector: str) -> int:
        return self.page.locator(selector).count()

    def is_visible(self, selector: str) -> bool:
        return self.page.locator(selector).first.is_visible()

    def is_enabled(self, selector: str) -> bool:
        return self.page.locator(selector).first.is_enabled()

    def is_checked(self, selector: str) -> bool:
        return self.page.locator(selector).first.is_checked()

    # -------------------------------------------------------------------------
    # Assertion Methods
    # -------------------------------------------------------------------------

    def assert_visible(self, target: str | Locator, timeout: int = 5000) -> None:
        """Assert that an element (selector or locator) is visible."""
        self.logger.info("Asserting element is visible: %s", target)
        expect(self._as_locator(target)).to_be_visible(timeout=timeout)

    def assert_hidden(self, target: str | Locator, timeout: int = 5000) -> None:
        self.logger.info("Asserting element is hidden: %s", target)
        expect(self._as_locator(target)).to_be_hidden(timeout=timeout)

    def assert_contains_text(self, target: str | Locator, text: str) -> None:
        self.logger.info("Asserting element %s contains text: %s", target, text)
        expect(self._as_locator(target)).to_contain_text(text)

    def assert_has_value(self, target: str | Locator, value: str) -> None:
        expect(self._as_locator(target)).to_have_value(value)

    def assert_title(self, title: str | re.Pattern[str]) -> None:
        self.logger.info("Asserting page title: %s", title)
        expect(self.page).to_have_title(title)

    def assert_url_contains(self, expected: str) -> None:
        """
        Assert that the current URL contains a string.

        Args:
            expected: String expected to be in the URL.
        """
        expect(self.page).to_have_url(re.compile(re.escape(expected)))

    def _as_locator(self, target: str | Locator) -> Locator:
        if isinstance(target, str):
            return self.page.locator(target).first
        return target

    # -------------------------------------------------------------------------
    # Utility Methods
    # -------------------------------------------------------------------------

    def screenshot(self, name: str, full_page: bool = True) -> Path:
        """
        Take a screenshot of the current page.

        Args:
            name: File name without extension.
            full_page: Capture the whole scrollable page.

        Returns:
            Path to the saved screenshot.
        """
        self.screenshot_dir.mkdir(parents=True, exist_ok=True)
        path = self.screenshot_dir / f"{name}.png"
        self.logger.info("Taking screenshot: %s", path)
        self.page.screenshot(path=str(path), full_page=full_page)
        return path

    def scroll_to_element(self, selector: str) -> None:
        self.page.locator(selector).first.scroll_into_view_if_needed()

    def scroll_to_top(self) -> None:
        self.page.evaluate("() => window.scrollTo(0, 0)")

    def scroll_to_bottom(self) -> None:
        self.page.evaluate("() => window.scrollTo(0, document.body.scrollHeight)")

    def set_viewport_size(self, width: int, height: int) -> None:
        self.logger.info("Setting viewport size: %sx%s", width, height)
        self.page.set_viewport_size({"width": width, "height": height})

    def get_cookies(self) -> list[dict[str, Any]]:
        return self.page.context.cookies()

    def add_cookie(self, cookie: dict[str, Any]) -> None:
        self.logger.info("Adding cookie: %s", cookie.get("name"))
        self.page.context.add_cookies([cookie])

    def clear_cookies(self) -> None:
        self.logger.info("Clearing all cookies")
        self.page.context.clear_cookies()

    def retry_action(
        self, action: Callable[[], Any], max_retries: int = 3, delay_ms: int = 1000
    ) -> Any:
        """
        Retry a flaky interaction with a fixed delay between attempts.

        The delay uses ``page.wait_for_timeout`` so the browser keeps
        processing events while waiting.
        """
        return retry(
            action,
            max_retries=max_retries,
            delay=delay_ms,
            sleep=self.page.wait_for_timeout,
        )
