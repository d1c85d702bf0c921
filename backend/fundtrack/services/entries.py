from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fundtrack.core.config import settings
from fundtrack.core.errors import ConflictError, NotFoundError, ValidationError
from fundtrack.models.entry import Entry
from fundtrack.models.stock import Stock
from fundtrack.schemas.entry import EntryCreate, EntryOut
from fundtrack.utils.timezone import now_local, parse_hhmm

log = logging.getLogger(__name__)


def _entry_body(e: Entry) -> dict[str, Any]:
    return EntryOut.model_validate(e).model_dump(mode="json", by_alias=True)


def _find_existing(s: Session, stock_id: int, day: date) -> Entry | None:
    return (
        s.execute(select(Entry).where(Entry.stock_id == stock_id, Entry.date == day))
        .scalars()
        .first()
    )


def resolve_session_type(day: date, requested: str | None, force: bool, now: datetime) -> str:
    close_at = parse_hhmm(settings.session_close_time)
    is_today = day == now.date()
    after_close = now.time() >= close_at

    if requested is None:
        if not is_today:
            return "manual"
        return "close" if after_close else "open"

    if requested == "open" and is_today and after_close and not force:
        raise ValidationError(
            "entry_type_out_of_window",
            f"'open' entries are not accepted after {settings.session_close_time}; pass force to override",
        )
    return requested


def create_entry(s: Session, body: EntryCreate, now: datetime | None = None) -> tuple[Entry, bool]:
    """Insert the day's entry for a fund, or overwrite it when forced.

    Returns the stored row and whether it was newly created. A second entry
    for the same fund and day raises ConflictError carrying the existing row
    unless ``body.force`` is set.
    """
    if body.stock_id is None or body.unit_price is None or body.total_value is None:
        raise ValidationError("entry_fields_required", "stockId, unitPrice and totalValue required")

    now = now or now_local()
    day = body.date or now.date()

    stock = s.execute(select(Stock).where(Stock.id == body.stock_id)).scalar_one_or_none()
    if stock is None:
        raise NotFoundError("stock_not_found")

    entry_type = resolve_session_type(day, body.type, body.force, now)

    existing = _find_existing(s, body.stock_id, day)
    if existing is not None:
        if not body.force:
            log.info("entry conflict stock=%s date=%s id=%s", body.stock_id, day, existing.id)
            raise ConflictError(_entry_body(existing))

        existing.unit_price = body.unit_price
        existing.total_value = body.total_value
        existing.remarks = body.remarks
        s.add(existing)
        s.commit()
        s.refresh(existing)
        log.info("entry overwritten stock=%s date=%s id=%s", body.stock_id, day, existing.id)
        return existing, False

    e = Entry(
        stock_id=body.stock_id,
        date=day,
        type=entry_type,
        unit_price=body.unit_price,
        total_value=body.total_value,
        remarks=body.remarks,
    )
    s.add(e)
    try:
        s.commit()
    except IntegrityError:
        # Another request inserted the same (stock, date) between the lookup and the insert.
        s.rollback()
        winner = _find_existing(s, body.stock_id, day)
        log.warning("entry insert lost race stock=%s date=%s", body.stock_id, day)
        raise ConflictError(_entry_body(winner) if winner is not None else None) from None
    s.refresh(e)
    log.info("entry created stock=%s date=%s id=%s type=%s", e.stock_id, e.date, e.id, e.type)
    return e, True


def list_entries(s: Session, stock_id: int | None = None, day: date | None = None) -> list[Entry]:
    q = select(Entry)
    if stock_id is not None:
        q = q.where(Entry.stock_id == stock_id)
    if day is not None:
        q = q.where(Entry.date == day)
    q = q.order_by(Entry.date.desc(), Entry.created_at.desc(), Entry.id.desc())
    return list(s.execute(q).scalars().all())


def latest_per_stock(s: Session) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    seen: set[int] = set()
    for e in list_entries(s):
        if e.stock_id in seen:
            continue
        seen.add(e.stock_id)
        out.append(
            {
                "stock": e.stock,
                "entry_id": e.id,
                "date": e.date,
                "type": e.type,
                "unit_price": e.unit_price,
                "total_value": e.total_value,
                "created_at": e.created_at,
            }
        )
    return out


def stock_history(s: Session, stock_id: int) -> list[Entry]:
    return list(
        s.execute(
            select(Entry)
            .where(Entry.stock_id == stock_id)
            .order_by(Entry.date.asc(), Entry.created_at.asc(), Entry.id.asc())
        )
        .scalars()
        .all()
    )


def history_feed(s: Session) -> list[dict[str, Any]]:
    """All entries newest first, each with its change in total value
    against the same fund's previous dated entry."""
    entries = list_entries(s)

    change_by_id: dict[int, float | None] = {}
    prev_by_stock: dict[int, Entry] = {}
    for e in reversed(entries):
        prev = prev_by_stock.get(e.stock_id)
        change_by_id[e.id] = (float(e.total_value) - float(prev.total_value)) if prev is not None else None
        prev_by_stock[e.stock_id] = e

    return [
        {
            "id": e.id,
            "stock_id": e.stock_id,
            "stock": e.stock,
            "date": e.date,
            "type": e.type,
            "unit_price": e.unit_price,
            "total_value": e.total_value,
            "remarks": e.remarks,
            "created_at": e.created_at,
            "updated_at": e.updated_at,
            "change": change_by_id[e.id],
        }
        for e in entries
    ]


def portfolio_summary(s: Session) -> dict[str, Any]:
    latest = latest_per_stock(s)
    return {
        "funds_tracked": len(latest),
        "total_value": sum(float(r["total_value"]) for r in latest),
        "as_of": max((r["date"] for r in latest), default=None),
    }
