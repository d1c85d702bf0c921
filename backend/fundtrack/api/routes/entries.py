from datetime import date
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from fundtrack.api.deps import db
from fundtrack.schemas.entry import EntryCreate, EntryOut, EntryWithStockOut, HistoryRow, LatestOut, SummaryOut
from fundtrack.services.entries import (
    create_entry,
    history_feed,
    latest_per_stock,
    list_entries,
    portfolio_summary,
    stock_history,
)

router = APIRouter(prefix="/api/entries", tags=["entries"])


@router.get("", response_model=list[EntryWithStockOut])
def get_entries(
    stock_id: int | None = Query(None, alias="stockId"),
    day: date | None = Query(None, alias="date"),
    s: Session = Depends(db),
):
    return list_entries(s, stock_id=stock_id, day=day)


@router.post("", response_model=EntryOut, status_code=201)
def add_entry(body: EntryCreate, response: Response, s: Session = Depends(db)):
    entry, created = create_entry(s, body)
    if not created:
        response.status_code = 200
    return entry


@router.get("/latest", response_model=list[LatestOut])
def latest(s: Session = Depends(db)):
    return latest_per_stock(s)


@router.get("/history", response_model=list[HistoryRow])
def history(s: Session = Depends(db)):
    return history_feed(s)


@router.get("/summary", response_model=SummaryOut)
def summary(s: Session = Depends(db)):
    return portfolio_summary(s)


@router.get("/analytics/{stock_id}", response_model=list[EntryOut])
def analytics(stock_id: int, s: Session = Depends(db)):
    return stock_history(s, stock_id)
