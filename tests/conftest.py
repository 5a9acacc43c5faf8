"""
Shared pytest fixtures for the e2e_kit test suite.

Key Concepts Demonstrated:
- Fixture scopes (function, session)
- Run configuration isolated under ``tmp_path``
- Flask test client and a live server thread for HTTP-level tests
"""

from __future__ import annotations

import threading
import time
from collections.abc import Generator
from dataclasses import replace
from pathlib import Path

import pytest
import requests
from faker import Faker
from werkzeug.serving import make_server

from demo_site import create_app
from demo_site.config import DEFAULT_SEED_USERS, build_seed_users
from e2e_kit.config import Credentials, RunConfig, Settings
from e2e_kit.outcome_store import OutcomeStore

pytest_plugins = ["pytester"]

fake = Faker()


def wait_for_healthy(url: str, timeout: float = 15, interval: float = 0.2) -> None:
    """Poll the demo site's health endpoint until it answers 200."""
    deadline = time.time() + timeout
    while time.time() < deadline:
        try:
            if requests.get(f"{url}/api/health", timeout=2).status_code == 200:
                return
        except requests.RequestException:
            pass
        time.sleep(interval)
    raise RuntimeError(f"Demo site at {url} not healthy after {timeout}s")


def start_live_server(app, host: str = "127.0.0.1"):
    """Serve ``app`` on a free port in a daemon thread; returns (server, url)."""
    server = make_server(host, 0, app, threaded=True)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    url = f"http://{host}:{server.server_port}"
    wait_for_healthy(url)
    return server, url


def start_local_site(config: RunConfig):
    """
    Start a demo site for the ``local`` environment and point ``config`` at it.

    The configured login account is seeded alongside the defaults; when
    none is configured the first default account becomes the login.

    Returns:
        tuple: (server, config) with ``base_url`` and ``valid_user`` set.
    """
    if not config.valid_user:
        seed = DEFAULT_SEED_USERS[0]
        config = replace(config, valid_user=Credentials(seed["email"], seed["password"]))
    users = build_seed_users(config.valid_user.email, config.valid_user.password)
    server, url = start_live_server(create_app("testing", seed_users=users))
    return server, config.with_base_url(url)


# -----------------------------------------------------------------------------
# Configuration Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def seed_user() -> dict[str, str]:
    """The first account every demo site instance starts with."""
    return dict(DEFAULT_SEED_USERS[0])


@pytest.fixture
def run_config(tmp_path: Path, seed_user: dict[str, str]) -> RunConfig:
    """
    A complete RunConfig whose every path lives under ``tmp_path``.

    Tests never touch the repository's temp/, storageState/ or
    test-results/ directories.
    """
    return RunConfig(
        settings=Settings(environment="local"),
        base_url="http://localhost:3000",
        api_base_url="http://localhost:3000/api",
        valid_user=Credentials(seed_user["email"], seed_user["password"]),
        invalid_user=Credentials(seed_user["email"], "wrong-password"),
        outcome_file=tmp_path / "temp" / "testData.json",
        storage_state_file=tmp_path / "storageState" / "storageState.json",
        test_data_dir=Path(__file__).resolve().parent.parent / "testData",
        temp_dir=tmp_path / "temp",
        screenshots_dir=tmp_path / "test-results" / "screenshots",
        downloads_dir=tmp_path / "downloads",
        uploads_dir=tmp_path / "testFiles",
        results_dir=tmp_path / "test-results",
        archive_dir=tmp_path / "archived-results",
    )


@pytest.fixture
def outcome_store(run_config: RunConfig) -> OutcomeStore:
    return OutcomeStore.from_config(run_config)


# -----------------------------------------------------------------------------
# Demo Site Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def app():
    """A fresh demo site with its own in-memory database."""
    return create_app("testing", seed_users=[dict(user) for user in DEFAULT_SEED_USERS])


@pytest.fixture
def client(app):
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture(scope="session")
def live_server() -> Generator[str, None, None]:
    """
    Serve a demo site over real HTTP for the whole session.

    Yields:
        str: Base URL of the running server.
    """
    application = create_app("testing", seed_users=[dict(user) for user in DEFAULT_SEED_USERS])
    server, url = start_live_server(application)
    yield url
    server.shutdown()


@pytest.fixture
def new_account() -> dict[str, str]:
    """Name, email and password for an account that does not exist yet."""
    return {
        "name": fake.name(),
        "email": f"{fake.uuid4()[:8]}_{fake.email()}",
        "password": fake.password(length=12),
    }
