"""
Unit tests for the bounded retry helper.
"""

import logging
from unittest.mock import MagicMock

import pytest

from e2e_kit.retry import retry, with_retry

pytestmark = pytest.mark.unit


def test_fails_twice_then_succeeds_on_third_attempt():
    # Arrange
    action = MagicMock(side_effect=[RuntimeError("1"), RuntimeError("2"), "ok"])
    sleeps = []

    # Act
    result = retry(action, max_retries=3, delay=1.0, sleep=sleeps.append)

    # Assert
    assert result == "ok"
    assert action.call_count == 3
    assert sleeps == [1.0, 1.0]


def test_final_failure_propagates_unchanged():
    errors = [ValueError("first"), ValueError("second"), ValueError("last")]
    action = MagicMock(side_effect=errors)

    with pytest.raises(ValueError) as exc_info:
        retry(action, max_retries=3, delay=0.5, sleep=lambda _: None)

    assert exc_info.value is errors[-1]
    assert action.call_count == 3


def test_no_delay_after_last_attempt():
    sleeps = []

    with pytest.raises(RuntimeError):
        retry(MagicMock(side_effect=RuntimeError("x")), max_retries=2, delay=2, sleep=sleeps.append)

    assert sleeps == [2]


def test_success_on_first_attempt_never_sleeps():
    sleep = MagicMock()

    assert retry(lambda: 42, sleep=sleep) == 42
    sleep.assert_not_called()


def test_unlisted_exception_is_not_retried():
    action = MagicMock(side_effect=KeyError("k"))

    with pytest.raises(KeyError):
        retry(action, exceptions=(ValueError,), sleep=lambda _: None)

    assert action.call_count == 1


def test_max_retries_below_one_is_rejected():
    with pytest.raises(ValueError):
        retry(lambda: None, max_retries=0)


def test_decorator_retries_wrapped_function():
    # Arrange
    calls = []

    @with_retry(max_retries=2, delay=0)
    def flaky(value):
        calls.append(value)
        if len(calls) == 1:
            raise RuntimeError("first call fails")
        return value * 2

    # Act / Assert
    assert flaky(21) == 42
    assert calls == [21, 21]
    assert flaky.__name__ == "flaky"


def test_each_suppressed_failure_is_logged(caplog):
    action = MagicMock(side_effect=[RuntimeError("flaky"), "ok"])

    with caplog.at_level(logging.WARNING, logger="e2e_kit.retry"):
        retry(action, max_retries=3, delay=0, sleep=lambda _: None)

    assert "retry 1/3: flaky" in caplog.text
