# Overview: Service-layer operations for the restaurant-wide SystemConfig row.

from __future__ import annotations

from typing import Any

from ..errors import InvalidInputError
from ..extensions import db
from ..models import SystemConfig
from ..validation import parse_amount, parse_choice, parse_positive_int, parse_text
from .audit_service import record_audit


BACKUP_FREQUENCIES = ("daily", "weekly", "monthly")


def _bool(value: Any, field: str) -> bool:
    if not isinstance(value, bool):
        raise InvalidInputError(f"{field} must be true or false")
    return value


# payload key -> (column, parser)
CONFIG_FIELDS = {
    "restaurantName": ("restaurant_name", lambda v, f: parse_text(v, f, required=True, max_length=128)),
    "restaurantAddress": ("restaurant_address", lambda v, f: parse_text(v, f, required=True)),
    "restaurantPhone": ("restaurant_phone", lambda v, f: parse_text(v, f, required=True, max_length=64)),
    "restaurantRuc": ("restaurant_ruc", lambda v, f: parse_text(v, f, required=True, max_length=32)),
    "ivaRate": ("iva_rate", lambda v, f: parse_amount(v, f)),
    "printerIp": ("printer_ip", lambda v, f: parse_text(v, f, required=True, max_length=64)),
    "printerPort": ("printer_port", parse_positive_int),
    "paperWidth": ("paper_width", parse_positive_int),
    "logoUrl": ("logo_url", lambda v, f: parse_text(v, f) or ""),
    "footerMessage": ("footer_message", lambda v, f: parse_text(v, f) or ""),
    "passwordExpiryDays": ("password_expiry_days", parse_positive_int),
    "maxFailedAttempts": ("max_failed_attempts", parse_positive_int),
    "sessionTimeoutMinutes": ("session_timeout_minutes", parse_positive_int),
    "enableAuditLog": ("enable_audit_log", _bool),
    "autoBackup": ("auto_backup", _bool),
    "backupFrequency": (
        "backup_frequency",
        lambda v, f: parse_choice(v, f, [x.upper() for x in BACKUP_FREQUENCIES]).lower(),
    ),
}


def get_config() -> SystemConfig:
    """Return the config row, creating it with restaurant defaults on first read."""
    config = db.session.query(SystemConfig).order_by(SystemConfig.id).first()
    if config is None:
        config = SystemConfig()
        db.session.add(config)
        db.session.commit()
    return config


def update_config(*, user_id: int, data: dict) -> SystemConfig:
    """
    Apply a partial update. Unknown keys are ignored; known keys are validated.

    The audit entry is written before the change is applied when auditing is
    being switched off, so the switch itself is always recorded.
    """
    if not isinstance(data, dict):
        raise InvalidInputError("Request body must be a JSON object")

    changes = {}
    for key, (column, parser) in CONFIG_FIELDS.items():
        if key in data:
            changes[column] = parser(data[key], key)

    config = get_config()
    old_values = config.to_dict()

    record_audit(
        user_id=user_id,
        action="UPDATE_CONFIG",
        table_name="system_config",
        record_id=config.id,
        old_values=old_values,
        new_values={**old_values, **changes},
    )

    for column, value in changes.items():
        setattr(config, column, value)

    db.session.commit()
    return config
