# backend/stockmate/config.py
from __future__ import annotations
import os


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # Relative sqlite paths resolve against the Flask instance folder
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///stockmate.sqlite3")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Applied to app.logger; service loggers (stockmate.*) inherit it
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    # Attempts for a ledger-mutating unit of work on lock contention / stale rows
    LEDGER_WRITE_ATTEMPTS = int(os.environ.get("LEDGER_WRITE_ATTEMPTS", "3"))
