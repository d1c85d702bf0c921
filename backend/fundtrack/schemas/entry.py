from datetime import date as _date, datetime
from typing import Literal

from pydantic import Field, field_validator

from fundtrack.schemas.base import CamelModel
from fundtrack.schemas.stock import StockOut

SessionType = Literal["open", "close", "manual"]

# Matches Entry.remarks in fundtrack.models.entry.
REMARKS_MAX = 256


class EntryCreate(CamelModel):
    # Required fields are checked by the entry service so that a missing
    # value is reported the same way whether or not it came over HTTP.
    stock_id: int | None = None
    unit_price: float | None = None
    total_value: float | None = None
    date: _date | None = None
    remarks: str | None = Field(default=None, max_length=REMARKS_MAX)
    type: SessionType | None = None
    force: bool = False

    @field_validator("unit_price", "total_value")
    @classmethod
    def amount_finite_non_negative(cls, v: float | None):
        if v is None:
            return None
        if v != v:
            raise ValueError("must be a number")
        if v == float("inf") or v == float("-inf"):
            raise ValueError("must be finite")
        if v < 0:
            raise ValueError("must be non-negative")
        return v

    @field_validator("remarks")
    @classmethod
    def remarks_trim(cls, v: str | None):
        if v is None:
            return None
        v = v.strip()
        return v or None


class EntryOut(CamelModel):
    id: int
    stock_id: int
    date: _date
    type: SessionType | None
    unit_price: float
    total_value: float
    remarks: str | None
    created_at: datetime
    updated_at: datetime | None = None


class EntryWithStockOut(EntryOut):
    stock: StockOut


class HistoryRow(EntryWithStockOut):
    change: float | None = None


class LatestOut(CamelModel):
    stock: StockOut
    entry_id: int
    date: _date
    type: SessionType | None
    unit_price: float
    total_value: float
    created_at: datetime


class SummaryOut(CamelModel):
    funds_tracked: int
    total_value: float
    as_of: _date | None = None
