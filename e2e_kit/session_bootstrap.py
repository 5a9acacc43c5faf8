"""
One-time session bootstrap and end-of-run cleanup.

Before the browser suite starts, :func:`bootstrap_session` logs in once
through the real UI and saves the browser's storage state (cookies and
per-origin localStorage) to a JSON snapshot.  Tests that need an
authenticated browser load that snapshot into a fresh context instead of
logging in again.

The bootstrap is all-or-nothing: any failure raises
:class:`~e2e_kit.errors.BootstrapError` and no snapshot is left on disk
(an older snapshot is deleted before logging in, so a failed bootstrap
never leaves a stale one behind).  There is no freshness check; every
run logs in again unless ``reuse_storage_state`` is set.

After the run, :func:`cleanup_run` empties the temp directory (which
holds the outcome file) and archives the results directory.

Key Concepts Demonstrated:
- Global setup producing a reusable authenticated state
- Fail-fast setup with exception chaining
- Best-effort teardown that logs instead of raising
"""

from __future__ import annotations

import json
import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Playwright, sync_playwright

from e2e_kit.config import Credentials, RunConfig
from e2e_kit.errors import BootstrapError
from e2e_kit.pages.login_page import LoginPage

logger = logging.getLogger(__name__)


def _login_and_save(
    playwright: Playwright,
    config: RunConfig,
    credentials: Credentials,
    browser_name: str,
) -> dict:
    browser_type = getattr(playwright, browser_name)
    browser = browser_type.launch(headless=config.settings.headless)
    try:
        context = browser.new_context(base_url=config.base_url)
        context.set_default_timeout(config.action_timeout_ms)
        context.set_default_navigation_timeout(config.navigation_timeout_ms)
        page = context.new_page()

        login_page = LoginPage(page, config.base_url)
        login_page.navigate()
        login_page.login(credentials.email, credentials.password)
        page.wait_for_load_state("load")
        login_page.assert_login_success(timeout=config.expect_timeout_ms)

        return context.storage_state()
    finally:
        browser.close()


def bootstrap_session(
    config: RunConfig,
    credentials: Credentials | None = None,
    browser_name: str = "chromium",
) -> Path:
    """
    Log in through the UI once and write the session snapshot.

    Args:
        config: Run configuration (base URL, browser mode, snapshot path).
        credentials: Account to log in with.  Defaults to ``config.valid_user``.
        browser_name: Playwright browser type (``chromium``, ``firefox``,
            ``webkit``).

    Returns:
        Path of the written snapshot.

    Raises:
        BootstrapError: Credentials are missing, the login did not
            complete, or the resulting state holds no cookies.
    """
    credentials = credentials if credentials is not None else config.valid_user
    path = Path(config.storage_state_file)

    if path.exists():
        path.unlink()
        logger.info("Removed previous session snapshot %s", path)

    if not credentials:
        raise BootstrapError("LOGIN_EMAIL and LOGIN_PASSWORD must be set for the session bootstrap")

    logger.info("Bootstrapping session for %s at %s", credentials.email, config.base_url)
    try:
        with sync_playwright() as playwright:
            state = _login_and_save(playwright, config, credentials, browser_name)
    except (PlaywrightError, AssertionError) as exc:
        logger.error("Session bootstrap failed: %s", exc)
        raise BootstrapError(f"Login through the UI did not complete: {exc}") from exc

    if not state.get("cookies"):
        raise BootstrapError("Login completed but the browser holds no session cookies")

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(state, indent=2), encoding="utf-8")
    logger.info("Session snapshot saved to %s (%d cookies)", path, len(state["cookies"]))
    return path


def ensure_session(config: RunConfig, browser_name: str = "chromium") -> Path:
    """
    Return a usable snapshot path, bootstrapping unless reuse is configured.

    With ``config.reuse_storage_state`` an existing snapshot is returned
    as-is; a missing one is still an error.
    """
    path = Path(config.storage_state_file)
    if config.reuse_storage_state:
        if not path.exists():
            raise BootstrapError(f"Reuse requested but no session snapshot exists at {path}")
        logger.info("Reusing existing session snapshot %s", path)
        return path
    return bootstrap_session(config, browser_name=browser_name)


def cleanup_run(config: RunConfig) -> Path | None:
    """
    Global teardown: clear temp files and archive the results directory.

    Errors are logged, never raised, so a cleanup problem cannot turn a
    passing run into a failing one.

    Returns:
        The archive directory when results were archived, else ``None``.
    """
    logger.info("Running global teardown...")
    archived: Path | None = None
    try:
        temp_dir = Path(config.temp_dir)
        if temp_dir.exists():
            for item in temp_dir.iterdir():
                if item.is_file():
                    item.unlink()
            logger.info("Cleaned up temporary files in %s", temp_dir)

        results_dir = Path(config.results_dir)
        if results_dir.exists() and any(results_dir.iterdir()):
            archive_root = Path(config.archive_dir)
            archive_root.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%f")
            target = archive_root / f"results-{stamp}"
            shutil.move(str(results_dir), str(target))
            archived = target
            logger.info("Archived test results to %s", archived)
    except OSError as exc:
        logger.error("Error during global teardown: %s", exc)
    else:
        logger.info("Global teardown completed successfully")
    return archived
