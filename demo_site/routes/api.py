"""
JSON endpoints of the demo site.

Endpoints:
    GET  /api/health      - Health check
    POST /api/auth/login  - Exchange email/password for a bearer token
    GET  /api/auth/verify - Validate a bearer token
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from flask import Blueprint, Response, current_app, jsonify, request

from demo_site.models import find_user

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__)


# -----------------------------------------------------------------------------
# Helper Functions
# -----------------------------------------------------------------------------

def _json_error(message: str, status_code: int) -> tuple[Response, int]:
    return jsonify({"error": message}), status_code


def create_token(user_id: int, email: str) -> str:
    """Sign an HS256 token for ``user_id`` with the app's secret key."""
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "user_id": user_id,
        "email": email,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(hours=current_app.config["JWT_EXPIRY_HOURS"])).timestamp()),
    }
    return jwt.encode(payload, current_app.config["SECRET_KEY"], algorithm="HS256")


def _extract_bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    return auth_header[7:].strip() or None


# -----------------------------------------------------------------------------
# API Endpoints
# -----------------------------------------------------------------------------

@api_bp.route("/health", methods=["GET"])
def health_check() -> tuple[Response, int]:
    """Health check endpoint for readiness polling."""
    return jsonify({"status": "healthy"}), 200


@api_bp.route("/auth/login", methods=["POST"])
def login() -> tuple[Response, int]:
    """
    Authenticate and receive a bearer token.

    Returns:
        200 with ``token`` and ``user`` on success.
        400 if email or password is missing.
        401 if the credentials are incorrect.
    """
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")
    if not isinstance(email, str) or not email.strip():
        return _json_error("'email' is required", 400)
    if not isinstance(password, str) or not password:
        return _json_error("'password' is required", 400)

    user = find_user(email)
    if user is None or not user.check_password(password):
        logger.info("POST /api/auth/login - rejected %s", email)
        return _json_error("Invalid email or password", 401)

    logger.info("POST /api/auth/login - issued token for %s", user.email)
    return jsonify({"token": create_token(user.id, user.email), "user": user.to_dict()}), 200


@api_bp.route("/auth/verify", methods=["GET"])
def verify() -> tuple[Response, int]:
    """
    Validate a bearer token.

    Returns:
        200 with ``user_id`` and ``email``; 401 if the token is missing,
        invalid or expired.
    """
    token = _extract_bearer_token()
    if token is None:
        return _json_error("Missing or invalid Authorization header", 401)
    try:
        payload = jwt.decode(token, current_app.config["SECRET_KEY"], algorithms=["HS256"])
    except jwt.InvalidTokenError:
        return _json_error("Invalid or expired token", 401)
    return jsonify({"user_id": payload["user_id"], "email": payload["email"]}), 200
