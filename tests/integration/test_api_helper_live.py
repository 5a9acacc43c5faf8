"""
The API helper and the authenticated-user fixture against a live demo
site served over real HTTP.
"""

from __future__ import annotations

from dataclasses import replace

import pytest

from demo_site.config import DEFAULT_SEED_USERS
from e2e_kit.api_helper import ApiHelper
from e2e_kit.config import Credentials
from e2e_kit.errors import ApiError
from tests.conftest import start_local_site

pytestmark = pytest.mark.integration


@pytest.fixture
def api(live_server):
    helper = ApiHelper(f"{live_server}/api")
    yield helper
    helper.close()


def test_health_endpoint(api):
    # Act
    response = api.get("/health")

    # Assert
    api.assert_status_code(response, 200)
    api.assert_body_equals(response, "healthy", path="status")
    api.assert_response_time(response, 5000)


def test_login_returns_token_matching_schema(api, seed_user):
    response = api.post("/auth/login", {"email": seed_user["email"], "password": seed_user["password"]})

    api.assert_status_code(response, 200)
    api.assert_schema(response, {"token": str, "user": dict})
    api.assert_body_contains(response, seed_user["email"], path="user.email")


def test_bearer_token_is_sent_on_later_requests(api, seed_user):
    # Arrange
    login = api.post("/auth/login", {"email": seed_user["email"], "password": seed_user["password"]})
    api.set_bearer_token(login.data["token"])

    # Act
    response = api.get("/auth/verify")

    # Assert
    api.assert_status_code(response, 200)
    api.assert_body_equals(response, seed_user["email"], path="email")


def test_wrong_password_is_a_response_not_an_exception(api, seed_user):
    response = api.post("/auth/login", {"email": seed_user["email"], "password": "wrong"})

    assert response.status == 401
    assert not response.success


def test_performance_smoke(api):
    result = api.performance_test("/health", iterations=5)

    assert result["stats"]["success_rate"] == 100
    assert result["stats"]["total_requests"] == 5


def test_unreachable_host_raises_api_error():
    helper = ApiHelper("http://127.0.0.1:9", timeout=1)

    with pytest.raises(ApiError):
        helper.get("/health")


def test_local_site_seeds_configured_login_account(run_config):
    # Arrange: an account that is not one of the default seed users
    config = replace(
        run_config, valid_user=Credentials("qa.owner@example.com", "Owner123!")
    )

    # Act
    server, config = start_local_site(config)
    helper = ApiHelper(config.api_base_url)
    try:
        response = helper.post(
            "/auth/login",
            {"email": config.valid_user.email, "password": config.valid_user.password},
        )
    finally:
        helper.close()
        server.shutdown()

    # Assert
    helper.assert_status_code(response, 200)
    helper.assert_body_equals(response, "qa.owner@example.com", path="user.email")


def test_local_site_falls_back_to_default_account(run_config):
    config = replace(run_config, valid_user=Credentials())

    server, config = start_local_site(config)
    server.shutdown()

    assert config.valid_user.email == DEFAULT_SEED_USERS[0]["email"]
    assert config.base_url.startswith("http://127.0.0.1:")
