# Overview: Service-layer operations for order numbering; per-day atomic counters.

from __future__ import annotations

from datetime import date

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import OrderSequence, Sale
from ..time_utils import business_day_bounds, order_date_prefix


def _count_stored_sales(day: date) -> int:
    """Sales already stored for the day (data written before the counter existed)."""
    start, end = business_day_bounds(current_app.config["BUSINESS_TIMEZONE"], day)
    return (
        db.session.query(Sale)
        .filter(Sale.created_at >= start, Sale.created_at < end)
        .count()
    )


def next_order_number(day: date, *, pad: int = 3) -> str:
    """
    Allocate the next order number for a business day: "ddMMyyyy-NNN".

    Must be called inside the sale's write transaction. The counter row is
    incremented with a single UPDATE, so two concurrent sales serialize on
    it and can never draw the same number; the number is released again if
    the sale rolls back.
    """
    key = order_date_prefix(day)

    stmt = (
        update(OrderSequence)
        .where(OrderSequence.business_date == key)
        .values(next_number=OrderSequence.next_number + 1)
        .execution_options(synchronize_session=False)
    )

    result = db.session.execute(stmt)
    if result.rowcount:
        current = (
            db.session.query(OrderSequence.next_number)
            .filter_by(business_date=key)
            .scalar()
        )
        next_num = current - 1
    else:
        next_num = _count_stored_sales(day) + 1
        try:
            with db.session.begin_nested():
                db.session.add(OrderSequence(business_date=key, next_number=next_num + 1))
        except IntegrityError:
            # Another transaction created today's row first; use it
            result = db.session.execute(stmt)
            if not result.rowcount:
                raise
            current = (
                db.session.query(OrderSequence.next_number)
                .filter_by(business_date=key)
                .scalar()
            )
            next_num = current - 1

    return f"{key}-{next_num:0{pad}d}"
