# Overview: Service-layer read models for cash reporting.

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal

from flask import current_app
from sqlalchemy.orm import joinedload

from ..extensions import db
from ..models import CashMovement
from ..time_utils import business_day_bounds, business_today, to_utc_z
from .cash_register_service import get_cash_register


def cash_report(start: datetime | None = None, end: datetime | None = None) -> dict:
    """
    Cash movements in [start, end) with sale and extraction totals.

    Defaults to the current business day. closing_balance is the register's
    balance right now, not at `end`.
    """
    if start is None or end is None:
        tz_name = current_app.config["BUSINESS_TIMEZONE"]
        start, end = business_day_bounds(tz_name, business_today(tz_name))
    if end <= start:
        end = start + timedelta(days=1)

    movements = (
        db.session.query(CashMovement)
        .options(joinedload(CashMovement.user))
        .filter(CashMovement.created_at >= start, CashMovement.created_at < end)
        .order_by(CashMovement.created_at, CashMovement.id)
        .all()
    )

    totals = {"OPENING": Decimal("0"), "SALE": Decimal("0"), "EXTRACTION": Decimal("0"), "CLOSING": Decimal("0")}
    for movement in movements:
        totals[movement.type] += movement.amount

    register = get_cash_register()
    opening = next((m.amount for m in movements if m.type == "OPENING"), Decimal("0"))

    return {
        "start": to_utc_z(start),
        "end": to_utc_z(end),
        "opening_balance": float(opening),
        "closing_balance": float(register.current_balance) if register else 0.0,
        "total_sales": float(totals["SALE"]),
        "total_extractions": float(totals["EXTRACTION"]),
        "movements": [
            {
                "time": to_utc_z(m.created_at),
                "type": m.type,
                "amount": float(m.amount),
                "description": m.description,
                "user_name": m.user.full_name if m.user else None,
            }
            for m in movements
        ],
    }
