from .auth import User, SessionToken, ROLE_ADMIN, ROLE_EMPLOYEE, ROLES
from .catalog import Product, StockMovement
from .documents import (
    Invoice,
    InvoiceItem,
    PurchaseOrder,
    PurchaseOrderItem,
    DocumentSequence,
    DOCUMENT_STATUSES,
    STATUS_PENDING,
    STATUS_COMPLETED,
    STATUS_CANCELLED,
    INVOICE_TEXT_FIELDS,
    INVOICE_DATE_FIELDS,
    PURCHASE_ORDER_TEXT_FIELDS,
    PURCHASE_ORDER_DATE_FIELDS,
)

__all__ = [
    'User', 'SessionToken', 'ROLE_ADMIN', 'ROLE_EMPLOYEE', 'ROLES',
    'Product', 'StockMovement',
    'Invoice', 'InvoiceItem', 'PurchaseOrder', 'PurchaseOrderItem', 'DocumentSequence',
    'DOCUMENT_STATUSES', 'STATUS_PENDING', 'STATUS_COMPLETED', 'STATUS_CANCELLED',
    'INVOICE_TEXT_FIELDS', 'INVOICE_DATE_FIELDS',
    'PURCHASE_ORDER_TEXT_FIELDS', 'PURCHASE_ORDER_DATE_FIELDS',
]
