from __future__ import annotations

from ..extensions import db
from pizzapos.time_utils import to_utc_z, utcnow


ROLES = ("USER", "ADMIN", "SYSADMIN")
CASH_ADMIN_ROLES = ("ADMIN", "SYSADMIN")


class User(db.Model):
    """
    Restaurant staff account.

    Credentials are checked upstream; this row supplies the identity and
    role the ledger attributes movements and audit entries to.
    """
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), nullable=False, unique=True, index=True)
    name = db.Column(db.String(128), nullable=False)
    last_name = db.Column(db.String(128), nullable=False, default="")
    email = db.Column(db.String(255), nullable=True)
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.String(16), nullable=False, default="USER")  # USER, ADMIN, SYSADMIN
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.last_name}".strip()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "name": self.name,
            "last_name": self.last_name,
            "email": self.email,
            "role": self.role,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
