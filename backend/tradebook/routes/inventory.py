# Overview: Flask API routes for inventory status and stock movements.

from flask import Blueprint, request

from ..services.inventory_service import list_inventory, list_movements
from ..decorators import require_auth, require_admin

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("")
@require_auth
def inventory_status():
    """
    Current stock and summary (totals, low stock, out of stock).

    Query params:
    - search: str (optional) - matches name or barcode
    """
    return list_inventory(search=request.args.get("search"))


@inventory_bp.get("/movements")
@require_auth
@require_admin
def stock_movements():
    """
    Stock movement audit trail, newest first.

    Query params:
    - product_id: int (optional)
    - document_number: str (optional)
    - limit: int (default 100, max 500)
    - offset: int (default 0)
    """
    rows, total = list_movements(
        product_id=request.args.get("product_id", type=int),
        document_number=request.args.get("document_number"),
        limit=request.args.get("limit", default=100, type=int),
        offset=request.args.get("offset", default=0, type=int),
    )
    return {"items": [m.to_dict() for m in rows], "count": len(rows), "total": total}
