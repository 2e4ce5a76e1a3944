from __future__ import annotations

from ..extensions import db
from pizzapos.time_utils import to_utc_z, utcnow
from pizzapos.validation import amount_to_json


class SystemConfig(db.Model):
    """Restaurant-wide settings. A single row, created with defaults on first read."""
    __tablename__ = "system_config"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)

    restaurant_name = db.Column(db.String(128), nullable=False, default="Polipizza")
    restaurant_address = db.Column(db.String(255), nullable=False, default="Dirección del restaurante")
    restaurant_phone = db.Column(db.String(64), nullable=False, default="+595 21 123 456")
    restaurant_ruc = db.Column(db.String(32), nullable=False, default="12345678-9")
    iva_rate = db.Column(db.Numeric(5, 2), nullable=False, default=10)

    # Receipt printer
    printer_ip = db.Column(db.String(64), nullable=False, default="192.168.1.100")
    printer_port = db.Column(db.Integer, nullable=False, default=9100)
    paper_width = db.Column(db.Integer, nullable=False, default=58)
    logo_url = db.Column(db.String(255), nullable=True, default="")
    footer_message = db.Column(db.String(255), nullable=True, default="¡Gracias por su compra!")

    # Security policy
    password_expiry_days = db.Column(db.Integer, nullable=False, default=90)
    max_failed_attempts = db.Column(db.Integer, nullable=False, default=5)
    session_timeout_minutes = db.Column(db.Integer, nullable=False, default=60)
    enable_audit_log = db.Column(db.Boolean, nullable=False, default=True)

    auto_backup = db.Column(db.Boolean, nullable=False, default=False)
    backup_frequency = db.Column(db.String(16), nullable=False, default="weekly")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "restaurant_name": self.restaurant_name,
            "restaurant_address": self.restaurant_address,
            "restaurant_phone": self.restaurant_phone,
            "restaurant_ruc": self.restaurant_ruc,
            "iva_rate": amount_to_json(self.iva_rate),
            "printer_ip": self.printer_ip,
            "printer_port": self.printer_port,
            "paper_width": self.paper_width,
            "logo_url": self.logo_url,
            "footer_message": self.footer_message,
            "password_expiry_days": self.password_expiry_days,
            "max_failed_attempts": self.max_failed_attempts,
            "session_timeout_minutes": self.session_timeout_minutes,
            "enable_audit_log": self.enable_audit_log,
            "auto_backup": self.auto_backup,
            "backup_frequency": self.backup_frequency,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
