# Overview: Password hashing, user creation and credential checks.

"""
Authentication Service

Every invoice and purchase order is attributed to the user who created it,
so every request must carry a known user.

Passwords are stored as bcrypt hashes (cost 12). New passwords must pass
PASSWORD_RULES; existing hashes are only ever compared, never re-validated.
Session tokens live in session_service.py.
"""

import re

import bcrypt

from ..extensions import db
from ..models import ROLE_EMPLOYEE, ROLES, User
from ..time_utils import utcnow

MIN_PASSWORD_LENGTH = 8
BCRYPT_ROUNDS = 12

# (pattern that must match, message when it does not)
PASSWORD_RULES = (
    (re.compile(r"[A-Z]"), "Password must contain an uppercase letter"),
    (re.compile(r"[a-z]"), "Password must contain a lowercase letter"),
    (re.compile(r"\d"), "Password must contain a digit"),
    (re.compile(r"[!@#$%^&*(),.'\":{}|<>]"), "Password must contain a special character"),
)


class PasswordValidationError(Exception):
    """New password rejected by the strength rules."""


def validate_password_strength(password: str) -> None:
    """Raise PasswordValidationError on the first rule the password breaks."""
    if len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )
    for pattern, message in PASSWORD_RULES:
        if not pattern.search(password):
            raise PasswordValidationError(message)


def hash_password(password: str) -> str:
    validate_password_strength(password)
    digest = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
    return digest.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time bcrypt comparison; a malformed stored hash is a mismatch."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def create_user(name: str, email: str, password: str, role: str = ROLE_EMPLOYEE) -> User:
    """
    Create a user. Email is stored lowercased; role is ADMIN or EMPLOYEE.

    Raises ValueError for an unknown role or a taken email and
    PasswordValidationError for a weak password.
    """
    role = role.upper()
    if role not in ROLES:
        raise ValueError(f"Role must be one of: {', '.join(ROLES)}")

    email = email.strip().lower()
    if db.session.query(User.id).filter(User.email == email).first() is not None:
        raise ValueError("Email already exists")

    user = User(name=name.strip(), email=email, role=role, password_hash=hash_password(password))
    db.session.add(user)
    db.session.commit()
    return user


def authenticate(email: str, password: str) -> User | None:
    """Active user for these credentials (last_login_at is stamped), else None."""
    user = (
        db.session.query(User)
        .filter(User.email == email.strip().lower(), User.is_active.is_(True))
        .first()
    )
    if user is None or not verify_password(password, user.password_hash):
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user
