"""
HTML view routes for the demo site.

Routes:
    GET       /                - Home page ("Logged in as <name>" when signed in)
    GET, POST /login           - Login and signup forms on one page
    POST      /signup          - First signup step (name + email)
    GET, POST /signup/details  - Account-details form; creates the account
    GET       /logout          - End the session and return to /login
"""

from __future__ import annotations

import logging

from flask import Blueprint, redirect, render_template, request, session, url_for

from demo_site import db
from demo_site.models import PROFILE_FIELDS, User, create_user, find_user

logger = logging.getLogger(__name__)

views_bp = Blueprint("views", __name__)

LOGIN_ERROR = "Your email or password is incorrect!"
DUPLICATE_EMAIL_ERROR = "Email Address already exist!"

MONTHS = (
    "January", "February", "March", "April", "May", "June", "July",
    "August", "September", "October", "November", "December",
)
COUNTRIES = ("India", "United States", "Canada", "Australia", "Israel", "New Zealand", "Singapore")


def current_user() -> User | None:
    user_id = session.get("user_id")
    if user_id is None:
        return None
    return db.session.get(User, user_id)


@views_bp.route("/")
def index():
    user = current_user()
    logger.info("GET / - user=%s", user.email if user else None)
    return render_template("index.html", user=user)


@views_bp.route("/login", methods=["GET", "POST"])
def login():
    """
    Render the login/signup page, or handle a login submission.

    A failed login re-renders the page with the error text and a 401.
    """
    if request.method == "GET":
        return render_template("login.html")

    email = request.form.get("email", "")
    password = request.form.get("password", "")
    user = find_user(email) if email else None
    if user is None or not user.check_password(password):
        logger.info("POST /login - rejected %s", email)
        return render_template("login.html", login_error=LOGIN_ERROR), 401

    session.clear()
    session["user_id"] = user.id
    logger.info("POST /login - %s logged in", user.email)
    return redirect(url_for("views.index"))


@views_bp.route("/signup", methods=["POST"])
def signup():
    """First signup step: an unused email leads on to the details form."""
    name = request.form.get("name", "").strip()
    email = request.form.get("email", "").strip()
    if not name or not email:
        return render_template("login.html", signup_error="Name and email are required"), 400
    if find_user(email) is not None:
        logger.info("POST /signup - duplicate email %s", email)
        return render_template("login.html", signup_error=DUPLICATE_EMAIL_ERROR), 409

    session["pending_signup"] = {"name": name, "email": email}
    return redirect(url_for("views.signup_details"))


@views_bp.route("/signup/details", methods=["GET", "POST"])
def signup_details():
    """Second signup step: collect the password and profile, then create the account."""
    pending = session.get("pending_signup")
    if not pending:
        return redirect(url_for("views.login"))

    if request.method == "GET":
        return render_template(
            "signup_details.html",
            pending=pending,
            months=MONTHS,
            countries=COUNTRIES,
        )

    password = request.form.get("password", "")
    if not password:
        return render_template(
            "signup_details.html",
            pending=pending,
            months=MONTHS,
            countries=COUNTRIES,
            error="Password is required",
        ), 400

    profile = {field: request.form.get(field, "").strip() for field in PROFILE_FIELDS}
    profile["birth_date"] = "-".join(
        request.form.get(part, "") for part in ("days", "months", "years")
    )
    user = create_user(pending["name"], pending["email"], password, **profile)

    session.pop("pending_signup", None)
    session["user_id"] = user.id
    logger.info("POST /signup/details - created account %s", user.email)
    return render_template("account_created.html", user=user)


@views_bp.route("/logout")
def logout():
    session.clear()
    return redirect(url_for("views.login"))
