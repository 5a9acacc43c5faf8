"""
Unit tests for the session bootstrap and global cleanup.

``sync_playwright`` is patched so no browser is launched; the login page
object is patched so the outcome of the UI login can be chosen per test.
"""

import json
from dataclasses import replace
from unittest.mock import MagicMock, patch

import pytest
from playwright.sync_api import Error as PlaywrightError

from e2e_kit.config import Credentials
from e2e_kit.errors import BootstrapError, SetupError
from e2e_kit.session_bootstrap import bootstrap_session, cleanup_run, ensure_session

pytestmark = pytest.mark.unit

SESSION_STATE = {
    "cookies": [{"name": "session", "value": "abc", "domain": "localhost", "path": "/"}],
    "origins": [],
}


@pytest.fixture
def playwright():
    """A fake Playwright whose chromium context returns SESSION_STATE."""
    playwright = MagicMock()
    context = playwright.chromium.launch.return_value.new_context.return_value
    context.storage_state.return_value = SESSION_STATE
    with patch("e2e_kit.session_bootstrap.sync_playwright") as sync_playwright:
        sync_playwright.return_value.__enter__.return_value = playwright
        yield playwright


@pytest.fixture
def login_page():
    with patch("e2e_kit.session_bootstrap.LoginPage", autospec=True) as login_page_class:
        yield login_page_class.return_value


def test_valid_login_writes_snapshot_with_cookie(run_config, playwright, login_page):
    # Act
    path = bootstrap_session(run_config)

    # Assert
    assert path == run_config.storage_state_file
    state = json.loads(path.read_text(encoding="utf-8"))
    assert len(state["cookies"]) >= 1
    login_page.login.assert_called_once_with(
        run_config.valid_user.email, run_config.valid_user.password
    )
    login_page.assert_login_success.assert_called_once()
    playwright.chromium.launch.assert_called_once_with(headless=True)
    playwright.chromium.launch.return_value.close.assert_called_once_with()


def test_failed_login_leaves_no_snapshot(run_config, playwright, login_page):
    # Arrange
    login_page.assert_login_success.side_effect = AssertionError("Logged in as not visible")

    # Act
    with pytest.raises(BootstrapError) as exc_info:
        bootstrap_session(run_config, Credentials("user@example.com", "wrong"))

    # Assert
    assert not run_config.storage_state_file.exists()
    assert isinstance(exc_info.value.__cause__, AssertionError)
    assert isinstance(exc_info.value, SetupError)
    playwright.chromium.launch.return_value.close.assert_called_once_with()


def test_failed_login_removes_stale_snapshot(run_config, playwright, login_page):
    # Arrange
    run_config.storage_state_file.parent.mkdir(parents=True)
    run_config.storage_state_file.write_text(json.dumps(SESSION_STATE), encoding="utf-8")
    login_page.navigate.side_effect = PlaywrightError("net::ERR_CONNECTION_REFUSED")

    # Act / Assert
    with pytest.raises(BootstrapError):
        bootstrap_session(run_config)
    assert not run_config.storage_state_file.exists()


def test_missing_credentials_fail_before_launching(run_config, playwright):
    config = replace(run_config, valid_user=Credentials())

    with pytest.raises(BootstrapError, match="LOGIN_EMAIL"):
        bootstrap_session(config)

    playwright.chromium.launch.assert_not_called()


def test_state_without_cookies_is_rejected(run_config, playwright, login_page):
    context = playwright.chromium.launch.return_value.new_context.return_value
    context.storage_state.return_value = {"cookies": [], "origins": []}

    with pytest.raises(BootstrapError, match="no session cookies"):
        bootstrap_session(run_config)

    assert not run_config.storage_state_file.exists()


def test_headed_mode_launches_visible_browser(run_config, playwright, login_page):
    config = replace(run_config, settings=replace(run_config.settings, browser_mode="headed"))

    bootstrap_session(config)

    playwright.chromium.launch.assert_called_once_with(headless=False)


def test_ensure_session_reuses_existing_snapshot(run_config, playwright):
    # Arrange
    config = replace(run_config, reuse_storage_state=True)
    config.storage_state_file.parent.mkdir(parents=True)
    config.storage_state_file.write_text(json.dumps(SESSION_STATE), encoding="utf-8")

    # Act
    path = ensure_session(config)

    # Assert
    assert path == config.storage_state_file
    playwright.chromium.launch.assert_not_called()


def test_ensure_session_reuse_without_snapshot_fails(run_config):
    with pytest.raises(BootstrapError):
        ensure_session(replace(run_config, reuse_storage_state=True))


class TestCleanupRun:

    def test_clears_temp_and_archives_results(self, run_config):
        # Arrange
        run_config.temp_dir.mkdir(parents=True)
        (run_config.temp_dir / "testData.json").write_text("{}", encoding="utf-8")
        run_config.results_dir.mkdir(parents=True)
        (run_config.results_dir / "report.xml").write_text("<xml/>", encoding="utf-8")

        # Act
        archived = cleanup_run(run_config)

        # Assert
        assert list(run_config.temp_dir.iterdir()) == []
        assert not run_config.results_dir.exists()
        assert archived.parent == run_config.archive_dir
        assert (archived / "report.xml").exists()

    def test_nothing_to_do_returns_none(self, run_config):
        assert cleanup_run(run_config) is None

    def test_filesystem_error_is_logged_not_raised(self, run_config):
        run_config.results_dir.mkdir(parents=True)
        (run_config.results_dir / "report.xml").write_text("<xml/>", encoding="utf-8")

        with patch("e2e_kit.session_bootstrap.shutil.move", side_effect=OSError("busy")):
            assert cleanup_run(run_config) is None
