from __future__ import annotations

from ..extensions import db
from pizzapos.time_utils import to_utc_z, utcnow


class Client(db.Model):
    __tablename__ = "clients"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    last_name = db.Column(db.String(128), nullable=False, default="")
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(64), nullable=True)

    # National ID and tax ID (RUC); cedula is unique when present
    cedula = db.Column(db.String(32), nullable=True, unique=True)
    ruc = db.Column(db.String(32), nullable=True)
    requires_invoice = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "last_name": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "cedula": self.cedula,
            "ruc": self.ruc,
            "requires_invoice": self.requires_invoice,
            "created_at": to_utc_z(self.created_at),
        }
