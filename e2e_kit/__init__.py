"""
End-to-end test framework built on Playwright and pytest.

The package bundles the pieces a browser suite needs around the test
runner itself: a persisted outcome store for sharing results between
test files, a one-time session bootstrap that saves an authenticated
storage state, a fixture registry with dependency resolution, page
objects, and API/browser/test-data helpers.
"""

from e2e_kit.errors import (
    ApiError,
    BootstrapError,
    CycleError,
    SetupError,
    TeardownError,
    UnknownFixtureError,
)
from e2e_kit.logger import configure_logging

configure_logging()

__all__ = [
    "ApiError",
    "BootstrapError",
    "CycleError",
    "SetupError",
    "TeardownError",
    "UnknownFixtureError",
    "configure_logging",
]
