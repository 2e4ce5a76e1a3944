# Overview: Service-layer operations for the audit trail; append-only, no reads from business logic.

from __future__ import annotations

import json
from typing import Any

from ..extensions import db
from ..models import AuditLog, SystemConfig


def _serialize(values: Any) -> str | None:
    if values is None:
        return None
    return json.dumps(values, default=str, ensure_ascii=False, sort_keys=True)


def audit_enabled() -> bool:
    """Audit is on unless the SystemConfig row explicitly turns it off."""
    flag = db.session.query(SystemConfig.enable_audit_log).order_by(SystemConfig.id).first()
    return True if flag is None else bool(flag[0])


def record_audit(
    *,
    user_id: int,
    action: str,
    table_name: str,
    record_id: str | int,
    old_values: Any = None,
    new_values: Any = None,
) -> AuditLog | None:
    """
    Append an audit entry to the current transaction.

    Does not commit: the caller's commit makes the entry visible together
    with the change it describes, and a rollback discards both.
    """
    if not audit_enabled():
        return None

    entry = AuditLog(
        user_id=user_id,
        action=action,
        table_name=table_name,
        record_id=str(record_id),
        old_values=_serialize(old_values),
        new_values=_serialize(new_values),
    )
    db.session.add(entry)
    return entry
