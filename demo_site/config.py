"""
Configuration for the demo target site.

Follows Flask's recommended pattern: a shared ``Config`` base class holds
defaults and environment-specific subclasses override only what differs.
``SEED_USERS`` lists the accounts created when the app starts, so the
browser suite always has a known login to work with.
"""

from __future__ import annotations

import os

from sqlalchemy.pool import StaticPool

DEFAULT_SEED_USERS = [
    {"name": "Demo User", "email": "demo.user@example.com", "password": "DemoPass123!"},
    {"name": "Existing Member", "email": "existing.member@example.com", "password": "Member123!"},
]


def build_seed_users(email: str = "", password: str = "") -> list[dict[str, str]]:
    """Default accounts plus one for ``email``/``password`` when both are given."""
    users = [dict(user) for user in DEFAULT_SEED_USERS]
    email = email.strip()
    if email and password and all(user["email"] != email for user in users):
        users.append({"name": email.split("@")[0], "email": email, "password": password})
    return users


def _seed_users_from_env() -> list[dict[str, str]]:
    return build_seed_users(os.environ.get("LOGIN_EMAIL", ""), os.environ.get("LOGIN_PASSWORD", ""))


class Config:
    """Base configuration with default settings."""

    SECRET_KEY: str = os.environ.get("SECRET_KEY", "dev-secret-key-change-in-production")
    SQLALCHEMY_TRACK_MODIFICATIONS: bool = False

    # One shared in-memory database; the live server answers from other threads.
    SQLALCHEMY_DATABASE_URI: str = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS: dict = {
        "poolclass": StaticPool,
        "connect_args": {"check_same_thread": False},
    }

    JWT_EXPIRY_HOURS: int = int(os.environ.get("JWT_EXPIRY_HOURS", "1"))
    SEED_USERS: list[dict[str, str]] = _seed_users_from_env()


class DevelopmentConfig(Config):
    DEBUG: bool = True
    TESTING: bool = False


class TestingConfig(Config):
    DEBUG: bool = True
    TESTING: bool = True
    SECRET_KEY: str = "testing-secret-key-for-the-demo-site-only"


class ProductionConfig(Config):
    DEBUG: bool = False
    TESTING: bool = False


config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}


def get_config(env: str | None = None) -> type[Config]:
    """
    Get the configuration class for the specified environment.

    Args:
        env: Environment name (development, testing, production).
             If None, uses FLASK_ENV environment variable.
    """
    if env is None:
        env = os.environ.get("FLASK_ENV", "development")
    return config.get(env, config["default"])
