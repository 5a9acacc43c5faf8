"""
Run configuration for the end-to-end framework.

Two sources feed the configuration:

1. ``settings.json`` -- the three run switches (execution mode, browser
   mode, target environment).  Missing keys fall back to defaults and a
   broken file is logged and ignored.
2. Environment variables (optionally from a ``.env`` file loaded with
   python-dotenv) -- base URLs, credentials, API tokens and file paths.

Both are folded into one frozen :class:`RunConfig` built once per process
by :func:`get_config` and handed to whatever needs it.

Key Concepts Demonstrated:
- Defaults merged with a user-editable settings file
- Environment-variable overrides for CI deployability
- Immutable configuration object created once at startup
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from functools import lru_cache
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Project root: every relative path below resolves against it.
BASE_DIR = Path(__file__).resolve().parent.parent

EXECUTION_MODES = ("parallel", "sequential")
BROWSER_MODES = ("headless", "headed")
ENVIRONMENTS = ("local", "dev", "staging", "production")

BASE_URLS: dict[str, str] = {
    "local": "http://localhost:3000",
    "dev": "https://dev.example.com",
    "staging": "https://staging.example.com",
    "production": "https://example.com",
}


@dataclass(frozen=True)
class Settings:
    """The user-selectable run switches stored in ``settings.json``."""

    execution_mode: str = "parallel"
    browser_mode: str = "headless"
    environment: str = "staging"

    @property
    def is_parallel(self) -> bool:
        return self.execution_mode == "parallel"

    @property
    def headless(self) -> bool:
        return self.browser_mode == "headless"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Settings":
        """
        Build settings from the camelCase JSON shape, merged onto defaults.

        Unrecognised values are logged and replaced by the default so a
        typo in the file never changes behaviour silently.
        """
        defaults = cls()
        values = {
            "execution_mode": data.get("executionMode", defaults.execution_mode),
            "browser_mode": data.get("browserMode", defaults.browser_mode),
            "environment": data.get("environment") or defaults.environment,
        }
        allowed = {
            "execution_mode": EXECUTION_MODES,
            "browser_mode": BROWSER_MODES,
            "environment": ENVIRONMENTS,
        }
        for key, value in list(values.items()):
            if value not in allowed[key]:
                logger.warning(
                    "Ignoring invalid %s %r; using %r", key, value, getattr(defaults, key)
                )
                values[key] = getattr(defaults, key)
        return cls(**values)

    def to_dict(self) -> dict[str, str]:
        return {
            "executionMode": self.execution_mode,
            "browserMode": self.browser_mode,
            "environment": self.environment,
        }


def settings_path() -> Path:
    """Location of the settings file (``E2E_SETTINGS_FILE`` overrides)."""
    return Path(os.environ.get("E2E_SETTINGS_FILE", BASE_DIR / "settings.json"))


def load_settings(path: Path | None = None) -> Settings:
    """
    Load settings from disk, falling back to defaults.

    Args:
        path: Settings file.  Defaults to :func:`settings_path`.

    Returns:
        Settings merged onto the defaults.  A missing or unparsable file
        yields the defaults.
    """
    path = path or settings_path()
    if not path.exists():
        return Settings()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.error("Failed to parse settings file %s: %s", path, exc)
        return Settings()
    if not isinstance(data, dict):
        logger.error("Settings file %s does not hold a JSON object", path)
        return Settings()
    return Settings.from_dict(data)


def save_settings(settings: Settings, path: Path | None = None) -> Path:
    """Write settings as indented JSON and return the path written."""
    path = path or settings_path()
    path.write_text(json.dumps(settings.to_dict(), indent=2) + "\n", encoding="utf-8")
    logger.info("Settings updated: %s", settings.to_dict())
    return path


@dataclass(frozen=True)
class Credentials:
    """An email/password pair."""

    email: str = ""
    password: str = ""

    def __bool__(self) -> bool:
        return bool(self.email and self.password)


def _env_flag(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


def _path(environ: Mapping[str, str], name: str, default: Path) -> Path:
    value = environ.get(name)
    return Path(value) if value else default


@dataclass(frozen=True)
class RunConfig:
    """
    Everything a test run needs to know, resolved once.

    Attributes:
        settings: Run switches from ``settings.json``.
        base_url: Root URL of the application under test.
        api_base_url: Root URL for API calls.
        valid_user: Credentials expected to log in.
        invalid_user: Credentials expected to be rejected.
        signup_name: Display name used by signup tests.
        signup_email: Email of an already-registered account.
        convert_api_token: Token for the third-party ConvertAPI service.
        convert_api_base: Base URL of the ConvertAPI service.
        outcome_file: Backing file of the outcome store.
        storage_state_file: Session snapshot written by the bootstrap.
        reuse_storage_state: Reuse an existing snapshot instead of logging in.
    """

    settings: Settings = field(default_factory=Settings)
    base_url: str = BASE_URLS["staging"]
    api_base_url: str = f"{BASE_URLS['staging']}/api"
    valid_user: Credentials = field(default_factory=Credentials)
    invalid_user: Credentials = field(default_factory=Credentials)
    signup_name: str = ""
    signup_email: str = ""
    convert_api_token: str = ""
    convert_api_base: str = "https://v2.convertapi.com"
    outcome_file: Path = BASE_DIR / "temp" / "testData.json"
    storage_state_file: Path = BASE_DIR / "storageState" / "storageState.json"
    reuse_storage_state: bool = False
    test_data_dir: Path = BASE_DIR / "testData"
    temp_dir: Path = BASE_DIR / "temp"
    screenshots_dir: Path = BASE_DIR / "test-results" / "screenshots"
    downloads_dir: Path = BASE_DIR / "downloads"
    uploads_dir: Path = BASE_DIR / "testFiles"
    results_dir: Path = BASE_DIR / "test-results"
    archive_dir: Path = BASE_DIR / "archived-results"
    action_timeout_ms: int = 10_000
    navigation_timeout_ms: int = 30_000
    expect_timeout_ms: int = 10_000

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        settings: Settings | None = None,
    ) -> "RunConfig":
        """
        Build a config from environment variables and settings.

        Args:
            environ: Variables to read.  Defaults to ``os.environ``.
            settings: Run switches.  Defaults to :func:`load_settings`.
        """
        environ = os.environ if environ is None else environ
        settings = settings or load_settings()

        base_url = (environ.get("BASE_URL") or BASE_URLS[settings.environment]).rstrip("/")
        api_base_url = (environ.get("API_BASE_URL") or f"{base_url}/api").rstrip("/")
        defaults = cls()

        return cls(
            settings=settings,
            base_url=base_url,
            api_base_url=api_base_url,
            valid_user=Credentials(
                environ.get("LOGIN_EMAIL", ""), environ.get("LOGIN_PASSWORD", "")
            ),
            invalid_user=Credentials(
                environ.get("INVALID_EMAIL", ""), environ.get("INVALID_PASSWORD", "")
            ),
            signup_name=environ.get("SIGNUP_NAME", ""),
            signup_email=environ.get("SIGNUP_EMAIL", ""),
            convert_api_token=environ.get("CONVERT_API_TOKEN", ""),
            convert_api_base=environ.get("CONVERT_API_BASE", defaults.convert_api_base),
            outcome_file=_path(environ, "E2E_OUTCOME_FILE", defaults.outcome_file),
            storage_state_file=_path(
                environ, "E2E_STORAGE_STATE", defaults.storage_state_file
            ),
            reuse_storage_state=_env_flag(environ.get("E2E_REUSE_STORAGE_STATE")),
        )

    def with_base_url(self, base_url: str) -> "RunConfig":
        """Return a copy pointed at another application root."""
        base_url = base_url.rstrip("/")
        return replace(self, base_url=base_url, api_base_url=f"{base_url}/api")


@lru_cache(maxsize=1)
def get_config() -> RunConfig:
    """
    Return the process-wide configuration.

    The ``.env`` file is loaded first (existing variables win), then the
    config is built and cached; later calls never re-read the sources.
    """
    load_dotenv(BASE_DIR / ".env")
    config = RunConfig.from_env()
    logger.info(
        "Run config: environment=%s base_url=%s mode=%s browser=%s",
        config.settings.environment,
        config.base_url,
        config.settings.execution_mode,
        config.settings.browser_mode,
    )
    return config
