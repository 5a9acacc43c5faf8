"""
The registry's browser-side fixtures working against the site under test.
"""

import pytest

pytestmark = pytest.mark.e2e


@pytest.mark.uses("authenticated_user", "api_helper")
def test_authenticated_user_sets_token_cookie(resources, page):
    # Arrange
    auth = resources["authenticated_user"]

    # Act
    cookies = {cookie["name"]: cookie["value"] for cookie in page.context.cookies()}

    # Assert
    if auth["token"]:
        assert cookies.get("auth_token") == auth["token"]
        assert resources["api_helper"].get("/auth/verify").success
    else:
        assert page.get_by_text("Logged in as").is_visible()


@pytest.mark.uses("network_mocker", "error_tracker", "config")
def test_mocked_endpoint_is_served_to_the_page(resources, page):
    # Arrange
    resources["network_mocker"].mock_api("**/api/health", {"body": {"status": "mocked"}})
    page.goto(resources["config"].base_url)

    # Act
    body = page.evaluate("() => fetch('/api/health').then(r => r.json())")

    # Assert
    assert body == {"status": "mocked"}
    assert resources["error_tracker"].page_errors == []


@pytest.mark.uses("admin_user", "api_helper")
def test_admin_user_logs_in_through_api(resources, page):
    admin = resources["admin_user"]

    assert admin["token"]
    assert admin["user"]["email"] != ""
    assert resources["api_helper"].get("/auth/verify").success


@pytest.mark.uses("performance_monitor", "config")
def test_performance_metrics_after_navigation(resources, page):
    # Arrange
    monitor = resources["performance_monitor"]

    # Act
    page.goto(resources["config"].base_url, wait_until="load")
    metrics = monitor.get_metrics()

    # Assert
    assert metrics["navigation"] is not None
    assert metrics["navigation"]["total_time"] >= 0
    assert isinstance(metrics["resources"], list)


@pytest.mark.skip_browser("firefox")
@pytest.mark.uses("mobile_device")
def test_mobile_device_renders_home_page(resources):
    mobile = resources["mobile_device"]["page"]

    mobile.goto("/")

    assert mobile.viewport_size["width"] < 500
    assert mobile.get_by_role("heading", name="Demo Shop").is_visible()


@pytest.mark.only_browser("chromium")
@pytest.mark.uses("network_mocker", "config")
def test_slow_network_still_loads_page(resources, page):
    # Arrange
    mocker = resources["network_mocker"]
    mocker.simulate_slow_network()

    # Act
    page.goto(resources["config"].base_url)

    # Assert
    assert mocker.throttle.is_throttled
    assert page.get_by_role("heading", name="Demo Shop").is_visible()
