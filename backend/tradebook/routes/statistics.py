# Overview: Flask API routes for admin statistics reports.

from flask import Blueprint, request

from ..services.statistics_service import invoice_statistics, purchase_order_statistics
from ..validation import ValidationError, parse_limit
from ..decorators import require_auth, require_admin

statistics_bp = Blueprint("statistics", __name__, url_prefix="/api/statistics")


@statistics_bp.get("/invoices")
@require_auth
@require_admin
def invoice_statistics_route():
    """
    Query params:
    - start_date: ISO-8601 (optional, inclusive)
    - end_date: ISO-8601 (optional, inclusive; a bare date means midnight)
    - recent_limit: int 1-100 (optional, defaults to RECENT_DOCUMENTS_LIMIT)
    """
    try:
        return invoice_statistics(
            start=request.args.get("start_date"),
            end=request.args.get("end_date"),
            recent_limit=parse_limit(request.args.get("recent_limit"), key="recent_limit"),
        )
    except ValidationError as e:
        return {"error": str(e)}, 400


@statistics_bp.get("/purchase-orders")
@require_auth
@require_admin
def purchase_order_statistics_route():
    try:
        return purchase_order_statistics(
            start=request.args.get("start_date"),
            end=request.args.get("end_date"),
            recent_limit=parse_limit(request.args.get("recent_limit"), key="recent_limit"),
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
