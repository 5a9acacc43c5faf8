"""
Playwright fixtures for the browser suite.

Key Concepts Demonstrated:
- Session bootstrap: log in once, reuse the storage state in later tests
- Overriding pytest-playwright's launch and context arguments from settings
- Framework fixtures resolved per test from a ``@pytest.mark.uses`` marker
- Outcome-gated tests skipped when their prerequisite was not recorded
- Screenshot capture on failure
"""

from __future__ import annotations

import logging
import os
from collections.abc import Generator
from dataclasses import replace
from pathlib import Path

import pytest
from playwright.sync_api import Browser, BrowserContext, Page, expect

from e2e_kit.config import RunConfig, get_config
from e2e_kit.errors import BootstrapError
from e2e_kit.fixtures import FixtureRegistry
from e2e_kit.outcome_store import OutcomeStore, require_outcome
from e2e_kit.registry import build_registry
from e2e_kit.session_bootstrap import cleanup_run, ensure_session
from tests.conftest import start_local_site

logger = logging.getLogger(__name__)

# Supplied outside the registry: page, context, browser and playwright by
# pytest-playwright, config by this conftest.
RUNNER_FIXTURES = ("config", "page", "context", "browser", "playwright")


# -----------------------------------------------------------------------------
# Configuration and Session Bootstrap
# -----------------------------------------------------------------------------

@pytest.fixture(scope="session")
def e2e_config(worker_id: str) -> Generator[RunConfig, None, None]:
    """
    Run configuration for the browser suite.

    In the ``local`` environment without ``BASE_URL`` a demo site is
    started on a free port, and its seeded account is used when
    ``LOGIN_EMAIL`` is unset.  Each pytest-xdist worker gets its own
    session snapshot file.
    """
    config = get_config()
    server = None
    if config.settings.environment == "local" and not os.environ.get("BASE_URL"):
        server, config = start_local_site(config)
        logger.info("Started demo site for the local environment at %s", config.base_url)

    if worker_id != "master":
        snapshot = config.storage_state_file
        config = replace(
            config,
            storage_state_file=snapshot.with_name(f"{snapshot.stem}-{worker_id}{snapshot.suffix}"),
        )

    yield config

    if server is not None:
        server.shutdown()


@pytest.fixture(scope="session", autouse=True)
def session_snapshot(e2e_config: RunConfig, browser_name: str, worker_id: str) -> Generator[Path, None, None]:
    """
    Log in once before any browser test and save the storage state.

    A failed bootstrap stops the whole run: every test that relies on
    the snapshot would fail for the same reason.  Global cleanup runs at
    the end of a non-distributed session; with pytest-xdist use
    ``e2e-kit cleanup`` after the run.
    """
    try:
        path = ensure_session(e2e_config, browser_name=browser_name)
    except BootstrapError as exc:
        pytest.exit(f"Session bootstrap failed: {exc}", returncode=1)

    yield path

    if worker_id == "master":
        cleanup_run(e2e_config)


# -----------------------------------------------------------------------------
# Browser Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture(scope="session")
def browser_type_launch_args(browser_type_launch_args: dict, e2e_config: RunConfig) -> dict:
    """Headed when either ``--headed`` or the saved browser mode asks for it."""
    headless = browser_type_launch_args.get("headless", True) and e2e_config.settings.headless
    return {**browser_type_launch_args, "headless": headless}


@pytest.fixture(scope="session")
def browser_context_args(browser_context_args: dict, e2e_config: RunConfig) -> dict:
    return {
        **browser_context_args,
        "base_url": e2e_config.base_url,
        "viewport": {"width": 1280, "height": 720},
        "ignore_https_errors": True,
    }


def _apply_timeouts(page: Page, config: RunConfig) -> Page:
    page.set_default_timeout(config.action_timeout_ms)
    page.set_default_navigation_timeout(config.navigation_timeout_ms)
    expect.set_options(timeout=config.expect_timeout_ms)
    return page


@pytest.fixture
def page(page: Page, e2e_config: RunConfig) -> Page:
    """pytest-playwright's page with the configured timeouts."""
    return _apply_timeouts(page, e2e_config)


@pytest.fixture
def authenticated_context(
    browser: Browser, browser_context_args: dict, session_snapshot: Path
) -> Generator[BrowserContext, None, None]:
    """A fresh context preloaded with the bootstrap's storage state."""
    context = browser.new_context(**browser_context_args, storage_state=str(session_snapshot))
    yield context
    context.close()


@pytest.fixture
def authenticated_page(
    authenticated_context: BrowserContext, e2e_config: RunConfig
) -> Generator[Page, None, None]:
    page = _apply_timeouts(authenticated_context.new_page(), e2e_config)
    yield page
    page.close()


# -----------------------------------------------------------------------------
# Framework Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture(scope="session")
def fixture_registry(e2e_config: RunConfig) -> FixtureRegistry:
    return build_registry(e2e_config)


@pytest.fixture
def resources(request, fixture_registry: FixtureRegistry, e2e_config: RunConfig):
    """
    Values of the framework fixtures named by ``@pytest.mark.uses(...)``.

    Runner fixtures (the page, the browser) are only started when one of
    them is needed.
    """
    marker = request.node.get_closest_marker("uses")
    names = marker.args if marker else ()

    provided = {"config": e2e_config}
    order = fixture_registry.setup_order(names, provided=RUNNER_FIXTURES)
    needed = {dep for name in order for dep in fixture_registry.get(name).dependencies}
    if needed & {"page", "context"}:
        page = request.getfixturevalue("page")
        provided.update(page=page, context=page.context)
    for name in needed & {"browser", "playwright"}:
        provided[name] = request.getfixturevalue(name)

    with fixture_registry.resolve(names, provided) as values:
        yield values


@pytest.fixture
def outcomes(e2e_config: RunConfig) -> OutcomeStore:
    return OutcomeStore.from_config(e2e_config)


@pytest.fixture(autouse=True)
def _require_outcome(request, outcomes: OutcomeStore, e2e_config: RunConfig) -> None:
    """Skip tests marked ``requires_outcome(key)`` unless ``key`` was recorded."""
    require_outcome(request.node, outcomes, parallel=e2e_config.settings.is_parallel)


# -----------------------------------------------------------------------------
# Screenshot on Failure
# -----------------------------------------------------------------------------

@pytest.hookimpl(tryfirst=True, hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """Save a screenshot of the page when a browser test fails."""
    outcome = yield
    report = outcome.get_result()

    if report.when != "call" or not report.failed:
        return
    page = item.funcargs.get("authenticated_page") or item.funcargs.get("page")
    if page is None:
        return

    config = item.funcargs.get("e2e_config") or get_config()
    screenshot_dir = Path(config.screenshots_dir)
    screenshot_dir.mkdir(parents=True, exist_ok=True)
    path = screenshot_dir / f"{item.name.replace('/', '_').replace('::', '_')}.png"
    try:
        page.screenshot(path=str(path), full_page=True)
    except Exception as exc:
        logger.error("Failed to capture screenshot for %s: %s", item.nodeid, exc)
    else:
        logger.info("Screenshot saved: %s", path)
