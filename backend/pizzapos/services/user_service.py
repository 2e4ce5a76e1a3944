# Overview: Service-layer operations for staff accounts (creation and lookup only).

from __future__ import annotations

import bcrypt

from ..errors import InvalidInputError
from ..extensions import db
from ..models import User
from ..models.auth import ROLES
from ..validation import parse_choice, parse_text
from .audit_service import record_audit


MIN_PASSWORD_LENGTH = 8


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Password length is validated before hashing.
    """
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidInputError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))


def create_user(
    *,
    username: str,
    password: str,
    name: str,
    last_name: str = "",
    email: str | None = None,
    role: str = "USER",
    is_active: bool = True,
    created_by: int | None = None,
) -> User:
    """
    Create a staff account with a bcrypt password hash.

    created_by is the acting user when the account is created over HTTP;
    the creation is audited under that id. CLI bootstrap passes None.
    """
    username = parse_text(username, "username", required=True, max_length=64)
    if db.session.query(User).filter_by(username=username).first():
        raise InvalidInputError(f"User '{username}' already exists")

    user = User(
        username=username,
        name=parse_text(name, "name", required=True, max_length=128),
        last_name=parse_text(last_name, "last_name", max_length=128) or "",
        email=parse_text(email, "email"),
        password_hash=hash_password(password),
        role=parse_choice(role, "role", ROLES),
        is_active=bool(is_active),
    )
    db.session.add(user)
    db.session.flush()

    if created_by is not None:
        record_audit(
            user_id=created_by,
            action="CREATE_USER",
            table_name="users",
            record_id=user.id,
            new_values=user.to_dict(),
        )

    db.session.commit()
    return user


def list_users(*, page: int = 1, limit: int = 50) -> tuple[list[User], int]:
    query = db.session.query(User)
    total = query.count()
    users = (
        query.order_by(User.created_at.desc(), User.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return users, total


def get_active_user(username: str) -> User | None:
    """Resolve the username forwarded by the auth layer to an active account."""
    if not username:
        return None
    return db.session.query(User).filter_by(username=username, is_active=True).first()
