# backend/pizzapos/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/pizzapos.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///pizzapos.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Identifier of the single cash drawer row
    CASH_REGISTER_ID = os.environ.get("CASH_REGISTER_ID", "default-cash-register")

    # Order numbers and "today" are computed in the restaurant's local time
    BUSINESS_TIMEZONE = os.environ.get("BUSINESS_TIMEZONE", "America/Asuncion")

    # Header set by the upstream auth layer with the authenticated username
    AUTH_USER_HEADER = os.environ.get("AUTH_USER_HEADER", "X-Authenticated-User")

    LEDGER_RETRY_ATTEMPTS = int(os.environ.get("LEDGER_RETRY_ATTEMPTS", "3"))
