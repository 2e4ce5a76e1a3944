"""
Cash register ledger service.

Open, extract and close the restaurant's single cash drawer.

INVARIANTS:
- current_balance >= 0 after every committed operation
- every balance change appends exactly one CashMovement in the same transaction
- CashMovement rows are never updated or deleted
- preconditions are checked on the locked row; a violation rolls back
  the transaction before anything is committed
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..errors import (
    ForbiddenError,
    InsufficientFundsError,
    InvalidStateError,
)
from ..extensions import db
from ..models import CashMovement, CashRegister, CashTicket, Sale
from ..models.auth import CASH_ADMIN_ROLES
from ..models.sales import PAYMENT_METHODS
from ..time_utils import to_utc_z, utcnow
from ..validation import parse_amount, parse_text
from .audit_service import record_audit
from .concurrency import begin_write_transaction, lock_for_update, run_with_retry


DEFAULT_EXTRACTION_DESCRIPTION = "Extracción de efectivo"


def register_id() -> str:
    return current_app.config["CASH_REGISTER_ID"]


def get_cash_register() -> CashRegister | None:
    return db.session.get(CashRegister, register_id())


def ensure_cash_register() -> CashRegister:
    """
    Create the register row on first use (closed, zero balance).

    Two first requests may race to insert it; the loser rolls back and
    reads the winner's row.
    """
    register = get_cash_register()
    if register is not None:
        return register

    try:
        db.session.add(CashRegister(id=register_id(), is_open=False, current_balance=Decimal("0")))
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        current_app.logger.info("Cash register %s created concurrently", register_id())

    return get_cash_register()


def lock_cash_register() -> CashRegister:
    """
    Load the register row under lock inside the current transaction.

    Creates it lazily so the first open works on an empty database.
    """
    register = lock_for_update(
        db.session.query(CashRegister).filter_by(id=register_id())
    ).first()

    if register is None:
        register = CashRegister(id=register_id(), is_open=False, current_balance=Decimal("0"))
        db.session.add(register)
        db.session.flush()

    return register


def append_movement(
    register: CashRegister,
    *,
    user_id: int,
    movement_type: str,
    amount: Decimal,
    description: str | None = None,
    sale_id: int | None = None,
    occurred_at: datetime | None = None,
) -> CashMovement:
    """Append a ledger row to the current transaction (no commit)."""
    movement = CashMovement(
        cash_register_id=register.id,
        user_id=user_id,
        type=movement_type,
        amount=amount,
        description=description,
        sale_id=sale_id,
        created_at=occurred_at or utcnow(),
    )
    db.session.add(movement)
    db.session.flush()
    return movement


# =============================================================================
# LEDGER OPERATIONS
# =============================================================================

def open_register(*, user_id: int, initial_amount) -> tuple[CashRegister, CashMovement]:
    """
    Open the register with a starting float.

    Raises:
        InvalidInputError: initial_amount missing or negative
        InvalidStateError: register already open
    """
    amount = parse_amount(initial_amount, "initialAmount")

    def _op():
        begin_write_transaction()
        register = lock_cash_register()

        if register.is_open:
            raise InvalidStateError("La caja ya está abierta")

        now = utcnow()
        old_values = register.to_dict()

        register.is_open = True
        register.current_balance = amount
        register.last_opened_at = now

        movement = append_movement(
            register,
            user_id=user_id,
            movement_type="OPENING",
            amount=amount,
            description="Apertura de caja",
            occurred_at=now,
        )

        record_audit(
            user_id=user_id,
            action="OPEN_CASH_REGISTER",
            table_name="cash_registers",
            record_id=register.id,
            old_values=old_values,
            new_values=register.to_dict(),
        )

        db.session.commit()
        return register, movement

    register, movement = run_with_retry(_op)
    current_app.logger.info("Cash register %s opened with %s", register.id, amount)
    return register, movement


def extract_cash(
    *,
    user_id: int,
    user_role: str,
    amount,
    description: str | None = None,
) -> tuple[CashRegister, CashMovement]:
    """
    Remove cash from the open register.

    Requires ADMIN or SYSADMIN. The balance check runs against the locked
    row, so two concurrent extractions cannot both pass on a stale balance.

    Raises:
        ForbiddenError: caller role not allowed
        InvalidInputError: amount missing or <= 0
        InvalidStateError: register closed
        InsufficientFundsError: amount > current_balance
    """
    if user_role not in CASH_ADMIN_ROLES:
        raise ForbiddenError("Permisos insuficientes para extraer efectivo")

    amount = parse_amount(amount, "amount", allow_zero=False)
    description = parse_text(description, "description") or DEFAULT_EXTRACTION_DESCRIPTION

    def _op():
        begin_write_transaction()
        register = lock_cash_register()

        if not register.is_open:
            raise InvalidStateError("La caja debe estar abierta para realizar extracciones")

        if amount > register.current_balance:
            raise InsufficientFundsError(
                "Saldo insuficiente en la caja",
                details={
                    "requested": float(amount),
                    "current_balance": float(register.current_balance),
                },
            )

        register.current_balance = register.current_balance - amount

        movement = append_movement(
            register,
            user_id=user_id,
            movement_type="EXTRACTION",
            amount=amount,
            description=description,
        )

        record_audit(
            user_id=user_id,
            action="EXTRACT_CASH",
            table_name="cash_registers",
            record_id=register.id,
            new_values=register.to_dict(),
        )

        db.session.commit()
        return register, movement

    register, movement = run_with_retry(_op)
    current_app.logger.info("Extracted %s from cash register %s", amount, register.id)
    return register, movement


def close_register(*, user_id: int, final_amount) -> tuple[CashRegister, CashMovement, CashTicket]:
    """
    Close the register and produce the session's CashTicket.

    The CLOSING movement hands over the whole ledger balance, which drops
    to zero. final_amount (what was physically counted) is only recorded on
    the ticket next to the expected amount; it never overrides the balance.

    Raises:
        InvalidInputError: final_amount missing or negative
        InvalidStateError: register not open
    """
    counted = parse_amount(final_amount, "finalAmount")

    def _op():
        begin_write_transaction()
        register = lock_cash_register()

        if not register.is_open:
            raise InvalidStateError("La caja no está abierta")

        now = utcnow()
        opened_at = register.last_opened_at or now
        totals = payment_totals_since(register.id, opened_at)
        expected = register.current_balance
        old_values = register.to_dict()

        register.is_open = False
        register.last_closed_at = now
        register.current_balance = Decimal("0")

        movement = append_movement(
            register,
            user_id=user_id,
            movement_type="CLOSING",
            amount=expected,
            description="Cierre de caja",
            occurred_at=now,
        )

        ticket = CashTicket(
            cash_register_id=register.id,
            user_id=user_id,
            opened_at=opened_at,
            closed_at=now,
            hours_open=hours_between(opened_at, now),
            cash_total=totals["CASH"],
            card_total=totals["CARD"],
            transfer_total=totals["TRANSFER"],
            total_sales=sum(totals.values(), Decimal("0")),
            expected_amount=expected,
            counted_amount=counted,
            difference=counted - expected,
        )
        db.session.add(ticket)
        db.session.flush()

        record_audit(
            user_id=user_id,
            action="CLOSE_CASH_REGISTER",
            table_name="cash_registers",
            record_id=register.id,
            old_values=old_values,
            new_values={"cash_register": register.to_dict(), "cash_ticket_id": ticket.id},
        )

        db.session.commit()
        return register, movement, ticket

    register, movement, ticket = run_with_retry(_op)
    current_app.logger.info(
        "Cash register %s closed: expected %s, counted %s",
        register.id, ticket.expected_amount, ticket.counted_amount,
    )
    return register, movement, ticket


# =============================================================================
# SESSION QUERIES
# =============================================================================

def hours_between(start: datetime, end: datetime) -> Decimal:
    seconds = max((end - start).total_seconds(), 0)
    return (Decimal(str(seconds)) / Decimal("3600")).quantize(Decimal("0.01"))


def payment_totals_since(
    cash_register_id: str,
    since: datetime,
    until: datetime | None = None,
) -> dict[str, Decimal]:
    """Sum SALE movements in [since, until], grouped by the sale's payment method."""
    query = (
        db.session.query(Sale.payment_method, func.sum(CashMovement.amount))
        .join(Sale, CashMovement.sale_id == Sale.id)
        .filter(
            CashMovement.cash_register_id == cash_register_id,
            CashMovement.type == "SALE",
            CashMovement.created_at >= since,
        )
    )
    if until is not None:
        query = query.filter(CashMovement.created_at <= until)
    rows = query.group_by(Sale.payment_method).all()

    totals = {method: Decimal("0") for method in PAYMENT_METHODS}
    for method, amount in rows:
        totals[method] = Decimal(str(amount or 0)).quantize(Decimal("0.01"))
    return totals


def get_session_summary() -> dict:
    """
    Payment totals for the current (or last) register session.

    While open the window runs from last_opened_at to now; once closed it
    is the last session's window.
    """
    register = get_cash_register()
    empty = {"cash": 0.0, "card": 0.0, "transfer": 0.0, "total": 0.0}
    if register is None:
        info = {"is_open": False, "opened_at": None, "closed_at": None, "hours_open": 0.0}
        return {**empty, "session_info": info}

    session_info = {
        "is_open": register.is_open,
        "opened_at": to_utc_z(register.last_opened_at),
        "closed_at": None if register.is_open else to_utc_z(register.last_closed_at),
        "hours_open": 0.0,
    }

    if register.last_opened_at is None:
        return {**empty, "session_info": session_info}

    end = utcnow() if register.is_open else (register.last_closed_at or utcnow())
    totals = payment_totals_since(register.id, register.last_opened_at, end)

    session_info["hours_open"] = float(hours_between(register.last_opened_at, end))

    return {
        "cash": float(totals["CASH"]),
        "card": float(totals["CARD"]),
        "transfer": float(totals["TRANSFER"]),
        "total": float(sum(totals.values(), Decimal("0"))),
        "session_info": session_info,
    }


def list_movements(*, page: int = 1, limit: int = 10) -> tuple[list[CashMovement], int]:
    query = db.session.query(CashMovement).filter_by(cash_register_id=register_id())
    total = query.count()
    movements = (
        query.order_by(CashMovement.created_at.desc(), CashMovement.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return movements, total


def list_cash_tickets(*, page: int = 1, limit: int = 10) -> tuple[list[CashTicket], int]:
    query = db.session.query(CashTicket)
    total = query.count()
    tickets = (
        query.order_by(CashTicket.created_at.desc(), CashTicket.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return tickets, total
