# Overview: Year-scoped document numbering for receipts (DR-) and purchases (PO-).

from __future__ import annotations

from flask import current_app
from sqlalchemy import case, update
from sqlalchemy.exc import IntegrityError

from ..config import Config
from ..extensions import db
from ..models import ReceiptSequence, PurchaseSequence
from backoffice.time_utils import today
from .concurrency import RetryableConflict


class DocumentSequenceError(Exception):
    """Raised when document sequence operations fail."""
    pass


def _bump(session, model, *, year: int, floor: int) -> int:
    """
    Atomically increment the counter row for `year` and return the new value.

    The increment is a single UPDATE, so two writers can never read the same
    value. A counter below `floor` jumps to floor + 1.
    """
    if year < 1:
        raise DocumentSequenceError("year is required")

    stmt = (
        update(model)
        .where(model.year == year)
        .values(
            last_number=case(
                (model.last_number < floor, floor + 1),
                else_=model.last_number + 1,
            )
        )
        .execution_options(synchronize_session=False)
    )

    result = session.execute(stmt)
    if not result.rowcount:
        seq = model(year=year, last_number=floor + 1)
        session.add(seq)
        try:
            session.flush()
        except IntegrityError as exc:
            # Another writer created this year's row first; rerun the unit of work.
            session.rollback()
            raise RetryableConflict(f"{model.__tablename__} row for {year} created concurrently") from exc
        return floor + 1

    session.flush()
    current = session.query(model.last_number).filter(model.year == year).scalar()
    return current


def next_receipt_number(session=None, *, year: int | None = None, start: int | None = None) -> str:
    """
    Allocate the next DR-{year}-{NNNNNN} number inside the caller's transaction.

    start defaults to the RECEIPT_SEQUENCE_START setting; the first number of
    a year is start + 1. Does not commit; the number is only durable once the
    caller commits.
    """
    session = session if session is not None else db.session
    year = year or today().year
    if start is None:
        start = int(current_app.config.get("RECEIPT_SEQUENCE_START", Config.RECEIPT_SEQUENCE_START))
    number = _bump(session, ReceiptSequence, year=year, floor=start)
    return f"DR-{year}-{number:06d}"


def next_purchase_number(session=None, *, year: int | None = None) -> str:
    """Allocate the next PO-{year}-{NNNNNN} number inside the caller's transaction."""
    session = session if session is not None else db.session
    year = year or today().year
    number = _bump(session, PurchaseSequence, year=year, floor=0)
    return f"PO-{year}-{number:06d}"
