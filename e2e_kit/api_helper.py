"""
HTTP API helper for API-level tests and test setup.

Wraps a ``requests.Session`` so that every call is logged, summarised as
an :class:`ApiResponse`, and never raises on an HTTP error status -- tests
assert on the status instead.  Transport failures (connection refused,
timeouts) raise :class:`~e2e_kit.errors.ApiError`.

Key Concepts Demonstrated:
- Session reuse with default headers and auth
- Uniform response objects for assertions
- Simple latency statistics for smoke-level performance checks
"""

from __future__ import annotations

import json
import logging
import statistics
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import requests
from faker import Faker

from e2e_kit.errors import ApiError

logger = logging.getLogger(__name__)

fake = Faker()


def _safe_json(response: requests.Response) -> Any:
    """Parsed JSON body, or the raw text when the body is not JSON."""
    try:
        return response.json()
    except ValueError:
        return response.text


@dataclass
class ApiResponse:
    """
    Summary of one HTTP exchange.

    Attributes:
        status: HTTP status code.
        reason: Status reason phrase.
        headers: Response headers.
        data: JSON body, or text when the body is not JSON.
        elapsed_ms: Wall-clock time of the call in milliseconds.
        request: Method, URL and timestamp of the request.
    """

    status: int
    reason: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    data: Any = None
    elapsed_ms: float = 0.0
    request: dict[str, Any] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return 200 <= self.status < 300


class ApiHelper:
    """
    Thin, logged wrapper over ``requests`` for one API root.

    Attributes:
        base_url: Root URL prepended to relative paths.
        timeout: Per-request timeout in seconds.
        last_request: Summary of the most recent request.
        last_response: The most recent :class:`ApiResponse`.
    """

    DEFAULT_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}

    def __init__(
        self,
        base_url: str = "",
        default_headers: dict[str, str] | None = None,
        timeout: float = 30,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({**self.DEFAULT_HEADERS, **(default_headers or {})})
        self.last_request: dict[str, Any] | None = None
        self.last_response: ApiResponse | None = None

    def close(self) -> None:
        self.session.close()

    def url_for(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    # -------------------------------------------------------------------------
    # HTTP Methods
    # -------------------------------------------------------------------------

    def request(self, method: str, path: str, **kwargs: Any) -> ApiResponse:
        """
        Send a request and summarise the response.

        Args:
            method: HTTP method.
            path: Path relative to ``base_url`` or an absolute URL.
            **kwargs: Passed to ``requests.Session.request``.

        Raises:
            ApiError: The request could not be completed.
        """
        url = self.url_for(path)
        kwargs.setdefault("timeout", self.timeout)
        self.last_request = {
            "method": method.upper(),
            "url": url,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        logger.info("API Request: %s %s", method.upper(), url)

        started = time.perf_counter()
        try:
            response = self.session.request(method.upper(), url, **kwargs)
        except requests.RequestException as exc:
            logger.error("API Error: %s %s: %s", method.upper(), url, exc)
            raise ApiError(f"{method.upper()} {url} failed: {exc}", self.last_request) from exc
        elapsed_ms = (time.perf_counter() - started) * 1000

        result = ApiResponse(
            status=response.status_code,
            reason=response.reason or "",
            headers=dict(response.headers),
            data=_safe_json(response),
            elapsed_ms=elapsed_ms,
            request=self.last_request,
        )
        self.last_response = result
        logger.info("API Response: %s %s (%.0f ms)", result.status, result.reason, elapsed_ms)
        return result

    def get(self, path: str, **kwargs: Any) -> ApiResponse:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, data: Any = None, **kwargs: Any) -> ApiResponse:
        return self.request("POST", path, json=data, **kwargs)

    def put(self, path: str, data: Any = None, **kwargs: Any) -> ApiResponse:
        return self.request("PUT", path, json=data, **kwargs)

    def patch(self, path: str, data: Any = None, **kwargs: Any) -> ApiResponse:
        return self.request("PATCH", path, json=data, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> ApiResponse:
        return self.request("DELETE", path, **kwargs)

    def upload_file(
        self,
        path: str,
        file_path: str | Path,
        field_name: str = "file",
        extra_fields: dict[str, str] | None = None,
    ) -> ApiResponse:
        """POST a file as multipart form data."""
        file_path = Path(file_path)
        # requests sets the multipart boundary header itself.
        headers = {"Content-Type": None}
        with file_path.open("rb") as handle:
            return self.request(
                "POST",
                path,
                files={field_name: (file_path.name, handle)},
                data=extra_fields or {},
                headers=headers,
            )

    # -------------------------------------------------------------------------
    # Authentication
    # -------------------------------------------------------------------------

    def set_bearer_token(self, token: str) -> None:
        self.session.headers["Authorization"] = f"Bearer {token}"
        logger.info("Bearer token set for API requests")

    def set_basic_auth(self, username: str, password: str) -> None:
        self.session.auth = (username, password)
        logger.info("Basic auth credentials set for API requests")

    def set_api_key(self, header: str, value: str) -> None:
        self.session.headers[header] = value
        logger.info("API key set in header: %s", header)

    def clear_auth(self) -> None:
        self.session.headers.pop("Authorization", None)
        self.session.auth = None
        logger.info("Authentication cleared")

    # -------------------------------------------------------------------------
    # Assertions
    # -------------------------------------------------------------------------

    @staticmethod
    def value_at(body: Any, path: str | None) -> Any:
        """Follow a dotted path (``"data.user.email"``) into a JSON body."""
        if not path:
            return body
        current = body
        for key in path.split("."):
            if isinstance(current, list) and key.isdigit():
                index = int(key)
                current = current[index] if index < len(current) else None
            elif isinstance(current, dict):
                current = current.get(key)
            else:
                return None
        return current

    def assert_status_code(self, response: ApiResponse, expected: int) -> None:
        assert response.status == expected, (
            f"Expected status {expected} but got {response.status}"
        )
        logger.info("Status code assertion passed: %s", expected)

    def assert_response_time(self, response: ApiResponse, max_ms: float) -> None:
        assert response.elapsed_ms <= max_ms, (
            f"Response time {response.elapsed_ms:.0f}ms exceeded maximum {max_ms}ms"
        )

    def assert_body_contains(
        self, response: ApiResponse, expected: Any, path: str | None = None
    ) -> None:
        actual = self.value_at(response.data, path)
        if isinstance(actual, str) and isinstance(expected, str):
            contains = expected in actual
        else:
            contains = json.dumps(expected) in json.dumps(actual)
        assert contains, f"Response body does not contain expected value: {expected!r}"

    def assert_body_equals(
        self, response: ApiResponse, expected: Any, path: str | None = None
    ) -> None:
        actual = self.value_at(response.data, path)
        assert actual == expected, (
            f"Response body does not equal expected value. "
            f"Expected: {expected!r}, Actual: {actual!r}"
        )

    def assert_schema(self, response: ApiResponse, schema: dict[str, type]) -> None:
        """Check that each key exists in the body with the given Python type."""
        body = response.data
        assert isinstance(body, dict), "Response body is not a JSON object"
        mismatches = [
            key for key, expected_type in schema.items()
            if not isinstance(body.get(key), expected_type)
        ]
        assert not mismatches, f"Response does not match expected schema: {mismatches}"

    # -------------------------------------------------------------------------
    # Performance and data helpers
    # -------------------------------------------------------------------------

    def performance_test(
        self, path: str, method: str = "GET", data: Any = None, iterations: int = 10
    ) -> dict[str, Any]:
        """
        Call an endpoint repeatedly and summarise latency.

        Transport errors count as failed iterations instead of aborting.

        Returns:
            ``{"results": [...], "stats": {...}}``.
        """
        results = []
        for iteration in range(1, iterations + 1):
            started = time.perf_counter()
            try:
                if method.upper() in ("POST", "PUT", "PATCH"):
                    response = self.request(method, path, json=data)
                else:
                    response = self.request(method, path)
                status, success, error = response.status, response.success, None
            except ApiError as exc:
                status, success, error = 0, False, str(exc)
            results.append({
                "iteration": iteration,
                "response_time": (time.perf_counter() - started) * 1000,
                "status": status,
                "success": success,
                "error": error,
            })

        stats = self.calculate_stats(results)
        logger.info("Performance test results: %s", stats)
        return {"results": results, "stats": stats}

    @staticmethod
    def calculate_stats(results: list[dict[str, Any]]) -> dict[str, Any]:
        if not results:
            return {"total_requests": 0}
        times = [result["response_time"] for result in results]
        successes = sum(1 for result in results if result["success"])
        return {
            "total_requests": len(results),
            "successful_requests": successes,
            "failed_requests": len(results) - successes,
            "success_rate": successes / len(results) * 100,
            "avg_response_time": statistics.fmean(times),
            "min_response_time": min(times),
            "max_response_time": max(times),
            "median_response_time": statistics.median(times),
        }

    @staticmethod
    def generate_payload(template: dict[str, str]) -> dict[str, Any]:
        """
        Fill a ``{field: kind}`` template with Faker values.

        Kinds: email, name, phone, address, company, uuid, number,
        boolean, date; anything else yields a random word.
        """
        generators = {
            "email": fake.email,
            "name": fake.name,
            "phone": fake.phone_number,
            "address": fake.street_address,
            "company": fake.company,
            "uuid": fake.uuid4,
            "number": lambda: fake.random_int(min=1, max=1000),
            "boolean": fake.boolean,
            "date": lambda: fake.future_datetime().isoformat(),
        }
        return {key: generators.get(kind, fake.word)() for key, kind in template.items()}
