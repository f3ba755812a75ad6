# Overview: Read-only rollups over invoices and purchase orders.

from __future__ import annotations

from datetime import datetime

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import Invoice, PurchaseOrder, User
from ..time_utils import parse_iso_datetime
from ..validation import ValidationError


def _parse_range(start: str | None, end: str | None) -> tuple[datetime | None, datetime | None]:
    """Date-only values mean midnight UTC, on both ends."""
    try:
        start_dt = parse_iso_datetime(start) if start else None
        end_dt = parse_iso_datetime(end) if end else None
    except ValueError:
        raise ValidationError("start_date and end_date must be ISO-8601 dates")
    return start_dt, end_dt


def _amount(value) -> float:
    return float(value or 0)


def _document_statistics(model, *, start: str | None, end: str | None, recent_limit: int | None) -> dict:
    start_dt, end_dt = _parse_range(start, end)

    def _filtered(query):
        if start_dt:
            query = query.filter(model.created_at >= start_dt)
        if end_dt:
            query = query.filter(model.created_at <= end_dt)
        return query

    count, total_amount, total_net = _filtered(
        db.session.query(
            func.count(model.id),
            func.coalesce(func.sum(model.total_amount), 0),
            func.coalesce(func.sum(model.net_amount), 0),
        )
    ).one()

    by_status = _filtered(
        db.session.query(
            model.status,
            func.count(model.id).label("count"),
            func.coalesce(func.sum(model.total_amount), 0).label("total_amount"),
        )
    ).group_by(model.status).order_by(model.status).all()

    by_user_rows = _filtered(
        db.session.query(
            model.user_id,
            func.count(model.id).label("count"),
            func.coalesce(func.sum(model.total_amount), 0).label("total_amount"),
        )
    ).group_by(model.user_id).order_by(model.user_id).all()

    user_ids = [row.user_id for row in by_user_rows]
    users = {u.id: u for u in db.session.query(User).filter(User.id.in_(user_ids)).all()} if user_ids else {}

    limit = recent_limit or current_app.config.get("RECENT_DOCUMENTS_LIMIT", 10)
    recent = (
        _filtered(db.session.query(model))
        .order_by(model.created_at.desc(), model.id.desc())
        .limit(limit)
        .all()
    )

    return {
        "count": int(count or 0),
        "total_amount": _amount(total_amount),
        "total_net_amount": _amount(total_net),
        "by_status": [
            {"status": row.status, "count": int(row.count), "total_amount": _amount(row.total_amount)}
            for row in by_status
        ],
        "by_user": [
            {
                "user_id": row.user_id,
                "count": int(row.count),
                "total_amount": _amount(row.total_amount),
                "user": users[row.user_id].to_summary() if row.user_id in users else None,
            }
            for row in by_user_rows
        ],
        "recent": [doc.to_dict(include_items=False) for doc in recent],
    }


def invoice_statistics(*, start: str | None = None, end: str | None = None, recent_limit: int | None = None) -> dict:
    """
    Invoice report. "Revenue" is the sum of pre-tax subtotals (total_amount);
    the payable sum is reported separately as total_net_amount.
    """
    stats = _document_statistics(Invoice, start=start, end=end, recent_limit=recent_limit)
    return {
        "total_invoices": stats["count"],
        "total_revenue": stats["total_amount"],
        "total_net_amount": stats["total_net_amount"],
        "invoices_by_status": stats["by_status"],
        "invoices_by_user": stats["by_user"],
        "recent_invoices": stats["recent"],
    }


def purchase_order_statistics(*, start: str | None = None, end: str | None = None, recent_limit: int | None = None) -> dict:
    stats = _document_statistics(PurchaseOrder, start=start, end=end, recent_limit=recent_limit)
    return {
        "total_purchase_orders": stats["count"],
        "total_cost": stats["total_amount"],
        "total_net_amount": stats["total_net_amount"],
        "purchase_orders_by_status": stats["by_status"],
        "purchase_orders_by_user": stats["by_user"],
        "recent_purchase_orders": stats["recent"],
    }
