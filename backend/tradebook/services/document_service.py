# Overview: Human-readable document numbers backed by a per-type counter.

from __future__ import annotations

import time

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import DocumentSequence

INVOICE_PREFIX = "INV"
PURCHASE_ORDER_PREFIX = "PO"


class DocumentSequenceError(Exception):
    """Raised when document sequence operations fail."""
    pass


def _epoch_ms() -> int:
    return int(time.time() * 1000)


def _current_value(document_type: str) -> int:
    return (
        db.session.query(DocumentSequence.next_number)
        .filter_by(document_type=document_type)
        .scalar()
    )


def next_document_number(*, document_type: str, prefix: str) -> str:
    """
    Allocate the next number for a document type, e.g. "INV-1718000000000-42".

    The sequence part comes from an atomic counter increment, so numbers are
    unique even when two documents are created in the same millisecond.
    Runs inside the caller's unit of work: the allocation commits or rolls
    back together with the document that uses it.
    """
    if not document_type:
        raise DocumentSequenceError("document_type is required")

    stmt = (
        update(DocumentSequence)
        .where(DocumentSequence.document_type == document_type)
        .values(next_number=DocumentSequence.next_number + 1)
    )

    result = db.session.execute(stmt)
    if result.rowcount:
        next_num = _current_value(document_type) - 1
    else:
        # First document of this type; another request may be creating the
        # row concurrently, so insert under a savepoint.
        try:
            with db.session.begin_nested():
                db.session.add(DocumentSequence(document_type=document_type, next_number=2))
            next_num = 1
        except IntegrityError:
            result = db.session.execute(stmt)
            if not result.rowcount:
                raise DocumentSequenceError(f"Unable to allocate a {document_type} number")
            next_num = _current_value(document_type) - 1

    return f"{prefix}-{_epoch_ms()}-{next_num}"
