# Overview: Business-rule exceptions raised by services and mapped to JSON by routes.

from __future__ import annotations


class LedgerError(Exception):
    """
    Base class for rule violations detected before anything is committed.

    `kind` is the stable name clients switch on; `status_code` is what the
    HTTP layer answers with.
    """
    kind = "Internal"
    status_code = 500

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}

    def to_dict(self) -> dict:
        payload = {"error": str(self), "kind": self.kind}
        if self.details:
            payload["details"] = self.details
        return payload


class InvalidInputError(LedgerError):
    """Malformed or missing fields, non-positive amounts, empty cart."""
    kind = "InvalidInput"
    status_code = 400


class InvalidStateError(LedgerError):
    """Register is open when it should be closed, or the other way round."""
    kind = "InvalidState"
    status_code = 400


class InsufficientFundsError(LedgerError):
    kind = "InsufficientFunds"
    status_code = 400


class RegisterClosedError(LedgerError):
    kind = "RegisterClosed"
    status_code = 400


class ForbiddenError(LedgerError):
    kind = "Forbidden"
    status_code = 403


class NotFoundError(LedgerError):
    kind = "NotFound"
    status_code = 404
