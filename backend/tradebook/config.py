# backend/tradebook/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/tradebook.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///tradebook.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Inventory summary: products below this count are "low stock"
    LOW_STOCK_THRESHOLD = int(os.environ.get("LOW_STOCK_THRESHOLD", "10"))

    # Statistics: how many recent documents to attach to a report
    RECENT_DOCUMENTS_LIMIT = int(os.environ.get("RECENT_DOCUMENTS_LIMIT", "10"))

    # Reject tax combinations that are not meaningful (IGST with CGST/SGST,
    # discount outside 0-100). Off by default: totals stay permissive.
    STRICT_TAX_VALIDATION = _env_bool("STRICT_TAX_VALIDATION", False)

    SESSION_ABSOLUTE_TIMEOUT_HOURS = int(os.environ.get("SESSION_ABSOLUTE_TIMEOUT_HOURS", "24"))
    SESSION_IDLE_TIMEOUT_HOURS = int(os.environ.get("SESSION_IDLE_TIMEOUT_HOURS", "12"))

    CORS_ALLOWED_ORIGINS = [
        o.strip()
        for o in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:3000,http://localhost:5173,http://127.0.0.1:5173",
        ).split(",")
        if o.strip()
    ]

    # Printed at the top of every exported invoice / purchase order
    LETTERHEAD = {
        "company_name": os.environ.get("LETTERHEAD_COMPANY_NAME", "TradeBook Enterprise"),
        "tagline": os.environ.get("LETTERHEAD_TAGLINE", ""),
        "address": os.environ.get("LETTERHEAD_ADDRESS", ""),
        "contact": os.environ.get("LETTERHEAD_CONTACT", ""),
        "email": os.environ.get("LETTERHEAD_EMAIL", ""),
        "gstin": os.environ.get("LETTERHEAD_GSTIN", ""),
        "logo_path": os.environ.get("LETTERHEAD_LOGO_PATH", ""),
    }
