from __future__ import annotations

from ..extensions import db
from pizzapos.time_utils import to_utc_z, utcnow
from pizzapos.validation import amount_to_json


MOVEMENT_TYPES = ("OPENING", "CLOSING", "SALE", "EXTRACTION")


class CashRegister(db.Model):
    """
    The restaurant's cash drawer.

    There is one row, keyed by the configured CASH_REGISTER_ID and created on
    first use. current_balance only changes through ledger operations, each
    of which appends a CashMovement in the same transaction.

    version_id is an optimistic-lock counter: an UPDATE against a stale
    version raises StaleDataError and the unit of work is retried.
    """
    __tablename__ = "cash_registers"

    id = db.Column(db.String(64), primary_key=True)
    is_open = db.Column(db.Boolean, nullable=False, default=False)
    current_balance = db.Column(db.Numeric(14, 2), nullable=False, default=0)

    last_opened_at = db.Column(db.DateTime(timezone=True), nullable=True)
    last_closed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "is_open": self.is_open,
            "current_balance": amount_to_json(self.current_balance),
            "last_opened_at": to_utc_z(self.last_opened_at),
            "last_closed_at": to_utc_z(self.last_closed_at),
            "version_id": self.version_id,
        }


class CashMovement(db.Model):
    """
    Cash ledger entry.

    APPEND-ONLY: rows are inserted by the ledger engine and never updated
    or deleted.

    TYPES:
    - OPENING: starting float when the register opens
    - SALE: sale total added to the drawer
    - EXTRACTION: cash removed by an admin
    - CLOSING: balance handed over when the register closes
    """
    __tablename__ = "cash_movements"
    __table_args__ = (
        db.Index("ix_cash_movements_register_created", "cash_register_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    cash_register_id = db.Column(db.String(64), db.ForeignKey("cash_registers.id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    type = db.Column(db.String(16), nullable=False, index=True)
    amount = db.Column(db.Numeric(14, 2), nullable=False)
    description = db.Column(db.String(255), nullable=True)

    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    user = db.relationship("User", backref=db.backref("cash_movements", lazy=True))
    sale = db.relationship("Sale", backref=db.backref("cash_movements", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "cash_register_id": self.cash_register_id,
            "user_id": self.user_id,
            "user_name": self.user.full_name if self.user else None,
            "type": self.type,
            "amount": amount_to_json(self.amount),
            "description": self.description,
            "sale_id": self.sale_id,
            "created_at": to_utc_z(self.created_at),
        }


class CashTicket(db.Model):
    """
    Reconciliation summary produced when the register closes.

    expected_amount is the balance the ledger says should be in the drawer;
    counted_amount is what the cashier physically counted. The difference is
    informational and never fed back into the balance.
    """
    __tablename__ = "cash_tickets"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    cash_register_id = db.Column(db.String(64), db.ForeignKey("cash_registers.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    opened_at = db.Column(db.DateTime(timezone=True), nullable=False)
    closed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    hours_open = db.Column(db.Numeric(8, 2), nullable=False, default=0)

    cash_total = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    card_total = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    transfer_total = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    total_sales = db.Column(db.Numeric(14, 2), nullable=False, default=0)

    expected_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    counted_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    difference = db.Column(db.Numeric(14, 2), nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    user = db.relationship("User", backref=db.backref("cash_tickets", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "cash_register_id": self.cash_register_id,
            "user_id": self.user_id,
            "user_name": self.user.full_name if self.user else None,
            "opened_at": to_utc_z(self.opened_at),
            "closed_at": to_utc_z(self.closed_at),
            "hours_open": amount_to_json(self.hours_open),
            "cash_total": amount_to_json(self.cash_total),
            "card_total": amount_to_json(self.card_total),
            "transfer_total": amount_to_json(self.transfer_total),
            "total_sales": amount_to_json(self.total_sales),
            "expected_amount": amount_to_json(self.expected_amount),
            "counted_amount": amount_to_json(self.counted_amount),
            "difference": amount_to_json(self.difference),
            "created_at": to_utc_z(self.created_at),
        }
