"""
Error taxonomy for the end-to-end framework.

Every failure that the framework raises on its own behalf is one of the
classes below.  Expectation failures use the builtin ``AssertionError``
(raised by ``playwright.sync_api.expect`` and by the API helper), waits use
Playwright's ``TimeoutError``, and filesystem problems use ``OSError``, so
none of those are redefined here.

Key Concepts Demonstrated:
- A single module owning the framework's exception hierarchy
- Exception chaining (``raise ... from exc``) to keep the root cause
"""

from __future__ import annotations

from typing import Any


class E2EKitError(Exception):
    """Base class for all framework errors."""


class SetupError(E2EKitError):
    """
    A fixture's setup phase failed.

    Attributes:
        fixture: Name of the fixture whose setup failed.
    """

    def __init__(self, fixture: str, message: str | None = None):
        self.fixture = fixture
        super().__init__(message or f"Setup of fixture '{fixture}' failed")


class UnknownFixtureError(SetupError, KeyError):
    """A test or fixture depends on a name that was never defined."""

    def __init__(self, fixture: str, required_by: str | None = None):
        self.required_by = required_by
        if required_by:
            message = f"Fixture '{fixture}' (required by '{required_by}') is not defined"
        else:
            message = f"Fixture '{fixture}' is not defined"
        super().__init__(fixture, message)

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message.
        return self.args[0] if self.args else super().__str__()


class CycleError(E2EKitError):
    """
    Fixture dependencies form a cycle.

    Attributes:
        cycle: Fixture names along the cycle, first name repeated at the end.
    """

    def __init__(self, cycle: list[str]):
        self.cycle = cycle
        super().__init__("Fixture dependency cycle: " + " -> ".join(cycle))


class TeardownError(E2EKitError):
    """A fixture's teardown phase failed."""

    def __init__(self, fixture: str):
        self.fixture = fixture
        super().__init__(f"Teardown of fixture '{fixture}' failed")


class BootstrapError(SetupError):
    """The one-time login that produces the session snapshot failed."""

    def __init__(self, message: str):
        super().__init__("session_bootstrap", message)


class ApiError(E2EKitError):
    """
    An HTTP request could not be completed (connection, timeout, TLS).

    HTTP error statuses are *not* ApiErrors: the API helper returns those
    as regular responses so tests can assert on them.

    Attributes:
        request: Summary of the request that failed.
    """

    def __init__(self, message: str, request: dict[str, Any] | None = None):
        self.request = request or {}
        super().__init__(message)
