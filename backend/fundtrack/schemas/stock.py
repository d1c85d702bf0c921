from datetime import datetime
from pydantic import Field, field_validator

from fundtrack.schemas.base import CamelModel

# Match the column sizes in fundtrack.models.stock.
SYMBOL_MAX = 32
NAME_MAX = 128
NOTES_MAX = 512


def _non_negative(v: float | None):
    if v is None:
        return None
    if v != v or v in (float("inf"), float("-inf")):
        raise ValueError("units must be a finite number")
    if v < 0:
        raise ValueError("units must be non-negative")
    return v


class StockCreate(CamelModel):
    symbol: str = Field(max_length=SYMBOL_MAX)
    name: str = Field(max_length=NAME_MAX)
    units: float = 0.0
    notes: str | None = Field(default=None, max_length=NOTES_MAX)

    @field_validator("symbol", "name")
    @classmethod
    def required_trim(cls, v: str):
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("units")
    @classmethod
    def units_non_negative(cls, v: float):
        return _non_negative(v)


class StockUpdate(CamelModel):
    # Omitted fields are left unchanged; only notes may be cleared with null.
    symbol: str | None = Field(default=None, max_length=SYMBOL_MAX)
    name: str | None = Field(default=None, max_length=NAME_MAX)
    units: float | None = None
    notes: str | None = Field(default=None, max_length=NOTES_MAX)

    @field_validator("symbol", "name")
    @classmethod
    def optional_trim(cls, v: str | None):
        if v is None:
            raise ValueError("must not be null")
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("units")
    @classmethod
    def units_non_negative(cls, v: float | None):
        if v is None:
            raise ValueError("must not be null")
        return _non_negative(v)


class StockOut(CamelModel):
    id: int
    symbol: str
    name: str
    units: float
    notes: str | None
    created_at: datetime
    updated_at: datetime | None = None
