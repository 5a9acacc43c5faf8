"""
Browser-side helpers: network mocking, error tracking, storage and files.

These classes sit next to the page objects and deal with the browser
rather than with one page's UI: canned network responses and throttling,
console and network error collection, performance timings, basic
accessibility checks, cookies/localStorage, screenshots, downloads and
uploads.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from playwright.sync_api import BrowserContext, Download, Page, Route

logger = logging.getLogger(__name__)


def _timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%f")


# Chrome DevTools Protocol conditions; throughput in bytes per second.
SLOW_NETWORK = {
    "offline": False,
    "latency": 2000,
    "downloadThroughput": 500 * 1024,
    "uploadThroughput": 500 * 1024,
}
OFFLINE_NETWORK = {"offline": True, "latency": 0, "downloadThroughput": 0, "uploadThroughput": 0}
NORMAL_NETWORK = {"offline": False, "latency": 0, "downloadThroughput": -1, "uploadThroughput": -1}

PERFORMANCE_INIT_SCRIPT = """
() => {
  window.__e2eResources = [];
  new PerformanceObserver((list) => {
    for (const entry of list.getEntries()) {
      window.__e2eResources.push({
        name: entry.name,
        type: entry.entryType,
        startTime: entry.startTime,
        duration: entry.duration,
        transferSize: entry.transferSize || 0,
      });
    }
  }).observe({ entryTypes: ['resource'] });
}
"""

PERFORMANCE_METRICS_SCRIPT = """
() => {
  const nav = performance.getEntriesByType('navigation')[0];
  const paint = {};
  for (const entry of performance.getEntriesByType('paint')) paint[entry.name] = entry.startTime;
  return {
    load_time: nav ? nav.loadEventEnd - nav.loadEventStart : 0,
    dom_content_loaded: nav ? nav.domContentLoadedEventEnd - nav.domContentLoadedEventStart : 0,
    navigation: nav ? {
      total_time: nav.loadEventEnd - nav.fetchStart,
      dns_lookup: nav.domainLookupEnd - nav.domainLookupStart,
      tcp_connect: nav.connectEnd - nav.connectStart,
      ttfb: nav.responseStart - nav.requestStart,
    } : null,
    paint: paint,
    resources: window.__e2eResources || [],
  };
}
"""

ACCESSIBILITY_SCRIPT = """
() => {
  const issues = [];
  for (const img of document.querySelectorAll('img:not([alt])')) {
    issues.push({ type: 'missing-alt', element: img.tagName, message: 'Image missing alt attribute' });
  }
  const inputs = document.querySelectorAll('input:not([aria-label]):not([aria-labelledby])');
  for (const input of inputs) {
    if (input.type === 'hidden') continue;
    const labelled = (input.id && document.querySelector(`label[for="${input.id}"]`)) || input.closest('label');
    if (!labelled) {
      issues.push({ type: 'missing-label', element: input.tagName, message: 'Form input missing label' });
    }
  }
  return issues;
}
"""


class NetworkThrottle:
    """
    Network condition emulation for one page.

    Uses a Chromium DevTools session, so it only works in Chromium; the
    emulation lasts as long as the session, which is kept open here.
    """

    def __init__(self, page: Page):
        self.page = page
        self._session = None
        self.conditions: dict[str, Any] = dict(NORMAL_NETWORK)

    def apply(self, conditions: dict[str, Any]) -> None:
        if self._session is None:
            self._session = self.page.context.new_cdp_session(self.page)
            self._session.send("Network.enable")
        self._session.send("Network.emulateNetworkConditions", dict(conditions))
        self.conditions = dict(conditions)

    @property
    def is_throttled(self) -> bool:
        return self.conditions != NORMAL_NETWORK

    def slow(self) -> None:
        logger.info("Simulating slow network conditions")
        self.apply(SLOW_NETWORK)

    def offline(self) -> None:
        logger.info("Simulating offline network")
        self.apply(OFFLINE_NETWORK)

    def restore(self) -> None:
        logger.info("Restoring normal network conditions")
        self.apply(NORMAL_NETWORK)


class PerformanceMonitor:
    """
    Collects navigation, paint and resource timings from the page.

    :meth:`start` installs an init script, so it covers documents loaded
    after the call.
    """

    def __init__(self, page: Page):
        self.page = page
        self.started_at: float | None = None

    def start(self) -> "PerformanceMonitor":
        self.page.add_init_script(script=f"({PERFORMANCE_INIT_SCRIPT})()")
        self.started_at = time.time()
        logger.info("Performance monitoring started")
        return self

    def get_metrics(self) -> dict[str, Any]:
        """
        Timings of the current document.

        Returns:
            ``load_time`` and ``dom_content_loaded`` in milliseconds, a
            ``navigation`` breakdown (or None), first-paint times keyed by
            paint name, and the observed ``resources``.
        """
        return self.page.evaluate(PERFORMANCE_METRICS_SCRIPT)


class NetworkMocker:
    """
    Installs route handlers on a page and removes them again.

    Attributes:
        mocked_routes: URL pattern -> (method, response) for active mocks.
        throttle: Network condition emulation (Chromium only).
    """

    def __init__(self, page: Page):
        self.page = page
        self.mocked_routes: dict[str, dict[str, Any]] = {}
        self.throttle = NetworkThrottle(page)

    def simulate_slow_network(self) -> None:
        """2 s latency and 500 KB/s each way."""
        self.throttle.slow()

    def restore_network(self) -> None:
        self.throttle.restore()

    def mock_api(self, url_pattern: str, response: dict[str, Any], method: str = "GET") -> None:
        """
        Answer matching requests with a canned response.

        Args:
            url_pattern: Glob or URL pattern understood by ``page.route``.
            response: ``status``, ``body``, ``headers`` and ``content_type``
                (all optional).  Dict/list bodies are sent as JSON.
            method: Only requests with this method are fulfilled; others
                continue to the network.
        """
        logger.info("Mocking %s %s", method, url_pattern)
        body = response.get("body", "")
        if isinstance(body, (dict, list)):
            body = json.dumps(body)

        def handler(route: Route) -> None:
            if route.request.method != method.upper():
                route.continue_()
                return
            route.fulfill(
                status=response.get("status", 200),
                content_type=response.get("content_type", "application/json"),
                headers=response.get("headers", {}),
                body=body,
            )

        self.page.route(url_pattern, handler)
        self.mocked_routes[url_pattern] = {"method": method.upper(), "response": response}

    def block_resources(self, resource_types: Iterable[str] = ("image", "font", "media")) -> None:
        """Abort every request of the given resource types."""
        blocked = set(resource_types)
        logger.info("Blocking resources: %s", ", ".join(sorted(blocked)))

        def handler(route: Route) -> None:
            if route.request.resource_type in blocked:
                route.abort()
            else:
                route.continue_()

        self.page.route("**/*", handler)
        self.mocked_routes["**/*"] = {"method": "*", "response": {"blocked": sorted(blocked)}}

    def clear_mocks(self) -> None:
        """Remove every route handler and undo any network throttling."""
        logger.info("Clearing all network mocks")
        for pattern in list(self.mocked_routes):
            self.page.unroute(pattern)
        self.mocked_routes.clear()
        if self.throttle.is_throttled:
            self.throttle.restore()


@dataclass
class ErrorTracker:
    """
    Collects console errors, uncaught page errors and failed requests.

    Call :meth:`attach` to start listening and :meth:`detach` to stop.
    """

    page: Page
    console_errors: list[dict[str, Any]] = field(default_factory=list)
    page_errors: list[dict[str, Any]] = field(default_factory=list)
    network_errors: list[dict[str, Any]] = field(default_factory=list)

    def attach(self) -> "ErrorTracker":
        self.page.on("console", self._on_console)
        self.page.on("pageerror", self._on_page_error)
        self.page.on("requestfailed", self._on_request_failed)
        return self

    def detach(self) -> None:
        self.page.remove_listener("console", self._on_console)
        self.page.remove_listener("pageerror", self._on_page_error)
        self.page.remove_listener("requestfailed", self._on_request_failed)

    def _on_console(self, message) -> None:
        if message.type != "error":
            return
        self.console_errors.append({"text": message.text, "timestamp": time.time()})
        logger.error("Console error: %s", message.text)

    def _on_page_error(self, error) -> None:
        self.page_errors.append({"message": str(error), "timestamp": time.time()})
        logger.error("Page error: %s", error)

    def _on_request_failed(self, request) -> None:
        self.network_errors.append({
            "url": request.url,
            "method": request.method,
            "failure": request.failure,
            "timestamp": time.time(),
        })
        logger.error("Network error: %s", request.url)

    def has_errors(self) -> bool:
        return bool(self.console_errors or self.page_errors or self.network_errors)

    def clear(self) -> None:
        self.console_errors.clear()
        self.page_errors.clear()
        self.network_errors.clear()

    def summary(self) -> dict[str, int]:
        return {
            "total_errors": (
                len(self.console_errors) + len(self.page_errors) + len(self.network_errors)
            ),
            "console_errors": len(self.console_errors),
            "page_errors": len(self.page_errors),
            "network_errors": len(self.network_errors),
        }


class FileOperations:
    """
    Download and upload scratch directories for one test.

    Attributes:
        download_dir: Where downloads are saved.
        upload_dir: Where files to upload are created.
        created: Files this instance wrote; removed by :meth:`cleanup`.
    """

    def __init__(self, page: Page, download_dir: str | Path, upload_dir: str | Path):
        self.page = page
        self.download_dir = Path(download_dir)
        self.upload_dir = Path(upload_dir)
        self.created: list[Path] = []

    def ensure_directories(self) -> None:
        self.download_dir.mkdir(parents=True, exist_ok=True)
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    def save_download(self, download: Download, filename: str | None = None) -> dict[str, Any]:
        """Persist a Playwright download and describe the saved file."""
        self.ensure_directories()
        name = filename or download.suggested_filename
        path = self.download_dir / name
        download.save_as(str(path))
        self.created.append(path)
        logger.info("File downloaded: %s", path)
        return {"path": path, "filename": name, "size": path.stat().st_size}

    def create_test_file(self, filename: str, content: str = "Test file content") -> Path:
        self.ensure_directories()
        path = self.upload_dir / filename
        path.write_text(content, encoding="utf-8")
        self.created.append(path)
        logger.info("Test file created: %s", path)
        return path

    def upload(self, selector: str, filename: str) -> Path:
        """Set a file input, creating the file first when it is missing."""
        path = self.upload_dir / filename
        if not path.exists():
            path = self.create_test_file(filename)
        self.page.locator(selector).first.set_input_files(str(path))
        logger.info("File uploaded: %s", filename)
        return path

    def cleanup(self) -> None:
        """Remove the files this instance created."""
        while self.created:
            path = self.created.pop()
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as exc:
                logger.error("Error cleaning up %s: %s", path, exc)
        logger.info("Test files cleaned up")


class BrowserHelper:
    """
    Browser-level utilities for one page and its context.

    Attributes:
        page: Playwright page.
        context: Browser context (defaults to the page's).
        screenshot_dir: Where screenshots go.
    """

    def __init__(
        self,
        page: Page,
        context: BrowserContext | None = None,
        screenshot_dir: str | Path = "test-results/screenshots",
    ):
        self.page = page
        self.context = context or page.context
        self.screenshot_dir = Path(screenshot_dir)
        self.throttle = NetworkThrottle(page)
        self.performance = PerformanceMonitor(page)

    # -------------------------------------------------------------------------
    # Performance and network conditions
    # -------------------------------------------------------------------------

    def start_performance_monitoring(self) -> None:
        self.performance.start()

    def get_performance_metrics(self) -> dict[str, Any]:
        return self.performance.get_metrics()

    def simulate_slow_network(self) -> None:
        self.throttle.slow()

    def simulate_offline_mode(self) -> None:
        self.throttle.offline()

    def restore_network_conditions(self) -> None:
        self.throttle.restore()

    # -------------------------------------------------------------------------
    # Accessibility
    # -------------------------------------------------------------------------

    def get_accessibility_snapshot(self, selector: str = "body") -> str:
        """ARIA snapshot (YAML text) of the element matching ``selector``."""
        logger.info("Getting accessibility snapshot")
        return self.page.locator(selector).first.aria_snapshot()

    def check_accessibility_violations(self) -> list[dict[str, str]]:
        """
        Basic checks: images without ``alt`` and unlabelled inputs.

        Returns:
            One ``{"type", "element", "message"}`` entry per violation.
        """
        violations = self.page.evaluate(ACCESSIBILITY_SCRIPT)
        logger.info("Found %d accessibility violations", len(violations))
        return violations

    # -------------------------------------------------------------------------
    # Storage
    # -------------------------------------------------------------------------

    def set_local_storage(self, items: dict[str, str]) -> None:
        self.page.evaluate(
            "items => { for (const [k, v] of Object.entries(items)) localStorage.setItem(k, v); }",
            items,
        )

    def get_local_storage(self) -> dict[str, str]:
        return self.page.evaluate("() => Object.assign({}, localStorage)")

    def clear_browser_data(self) -> None:
        """Drop cookies, localStorage and sessionStorage."""
        self.context.clear_cookies()
        self.page.evaluate("() => { localStorage.clear(); sessionStorage.clear(); }")
        logger.info("Browser data cleared")

    def set_cookies(self, cookies: list[dict[str, Any]]) -> None:
        self.context.add_cookies(cookies)

    def get_cookies(self, urls: list[str] | None = None) -> list[dict[str, Any]]:
        return self.context.cookies(urls) if urls else self.context.cookies()

    # -------------------------------------------------------------------------
    # Emulation and waits
    # -------------------------------------------------------------------------

    def set_viewport(self, width: int, height: int) -> None:
        self.page.set_viewport_size({"width": width, "height": height})

    def set_geolocation(self, latitude: float, longitude: float) -> None:
        self.context.grant_permissions(["geolocation"])
        self.context.set_geolocation({"latitude": latitude, "longitude": longitude})

    def set_offline(self, offline: bool = True) -> None:
        logger.info("Setting offline mode: %s", offline)
        self.context.set_offline(offline)

    def wait_for_idle(self, timeout: int = 30_000) -> None:
        self.page.wait_for_load_state("networkidle", timeout=timeout)

    # -------------------------------------------------------------------------
    # Screenshots
    # -------------------------------------------------------------------------

    def take_full_page_screenshot(self, filename: str | None = None) -> Path:
        self.screenshot_dir.mkdir(parents=True, exist_ok=True)
        path = self.screenshot_dir / f"{filename or 'full-page-' + _timestamp()}.png"
        self.page.screenshot(path=str(path), full_page=True)
        logger.info("Screenshot saved: %s", path)
        return path

    def take_element_screenshot(self, selector: str, filename: str | None = None) -> Path:
        self.screenshot_dir.mkdir(parents=True, exist_ok=True)
        path = self.screenshot_dir / f"{filename or 'element-' + _timestamp()}.png"
        self.page.locator(selector).first.screenshot(path=str(path))
        logger.info("Element screenshot saved: %s", path)
        return path

    # -------------------------------------------------------------------------
    # Element geometry
    # -------------------------------------------------------------------------

    def get_computed_style(self, selector: str, prop: str) -> str:
        return self.page.locator(selector).first.evaluate(
            "(el, prop) => getComputedStyle(el).getPropertyValue(prop)", prop
        )

    def is_element_in_viewport(self, selector: str) -> bool:
        box = self.page.locator(selector).first.bounding_box()
        viewport = self.page.viewport_size
        if box is None or viewport is None:
            return False
        return (
            box["x"] >= 0
            and box["y"] >= 0
            and box["x"] + box["width"] <= viewport["width"]
            and box["y"] + box["height"] <= viewport["height"]
        )
