"""
Database models for the demo site.

:class:`User` stores the two-step signup data: name and email from the
first step, password and profile fields from the account-details form.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from werkzeug.security import check_password_hash, generate_password_hash

from demo_site import db

PROFILE_FIELDS = (
    "first_name",
    "last_name",
    "company",
    "address",
    "address2",
    "country",
    "state",
    "city",
    "zipcode",
    "mobile_number",
)


class User(db.Model):
    """
    A registered account.

    Attributes:
        id: Auto-incrementing integer primary key.
        name: Display name shown as "Logged in as <name>".
        email: Unique login identifier.
        password_hash: Werkzeug-generated hash of the password.
        birth_date: ``day-month-year`` as entered on the details form.
        profile fields: see ``PROFILE_FIELDS``.
    """

    __tablename__ = "users"

    id: int = db.Column(db.Integer, primary_key=True)
    name: str = db.Column(db.String(120), nullable=False)
    email: str = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash: str = db.Column(db.String(256), nullable=False)
    birth_date: str | None = db.Column(db.String(32), nullable=True)
    first_name: str | None = db.Column(db.String(80), nullable=True)
    last_name: str | None = db.Column(db.String(80), nullable=True)
    company: str | None = db.Column(db.String(120), nullable=True)
    address: str | None = db.Column(db.String(200), nullable=True)
    address2: str | None = db.Column(db.String(200), nullable=True)
    country: str | None = db.Column(db.String(80), nullable=True)
    state: str | None = db.Column(db.String(80), nullable=True)
    city: str | None = db.Column(db.String(80), nullable=True)
    zipcode: str | None = db.Column(db.String(20), nullable=True)
    mobile_number: str | None = db.Column(db.String(40), nullable=True)
    created_at: datetime = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def to_dict(self) -> dict[str, Any]:
        """Public representation; the password hash is never included."""
        data = {"id": self.id, "name": self.name, "email": self.email}
        data.update({field: getattr(self, field) for field in PROFILE_FIELDS})
        return data

    def __repr__(self) -> str:
        return f"<User {self.id}: {self.email}>"


def find_user(email: str) -> User | None:
    return db.session.scalar(select(User).where(User.email == email.strip().lower()))


def create_user(name: str, email: str, password: str, **profile: Any) -> User:
    """Add and commit a user; unknown profile keys are ignored."""
    user = User(name=name.strip(), email=email.strip().lower())
    user.set_password(password)
    for field in PROFILE_FIELDS:
        if field in profile:
            setattr(user, field, profile[field])
    if "birth_date" in profile:
        user.birth_date = profile["birth_date"]
    db.session.add(user)
    db.session.commit()
    return user


def seed_users(users: list[dict[str, str]]) -> int:
    """Create every listed account that does not exist yet; return how many."""
    created = 0
    for entry in users:
        if find_user(entry["email"]) is None:
            create_user(entry["name"], entry["email"], entry["password"])
            created += 1
    return created
