from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Mapping

import httpx

from fundtrack.core.config import ClientSettings
from fundtrack.core.errors import (
    AuthError,
    ConflictError,
    FundTrackError,
    NotFoundError,
    ValidationError,
)

log = logging.getLogger(__name__)

_ERRORS: dict[int, type[FundTrackError]] = {
    400: ValidationError,
    401: AuthError,
    404: NotFoundError,
}


@dataclass
class SubmitResult:
    saved: list[dict] = field(default_factory=list)
    failed: list[tuple[int, FundTrackError]] = field(default_factory=list)
    entries: list[dict] = field(default_factory=list)


def _raise_for(resp: httpx.Response) -> None:
    try:
        body = resp.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    detail = body.get("detail")
    detail = detail if isinstance(detail, str) else None

    if resp.status_code == 409:
        raise ConflictError(body.get("existing"), detail=detail)
    cls = _ERRORS.get(resp.status_code)
    if cls is not None:
        raise cls(detail)
    err = FundTrackError(detail or f"http_{resp.status_code}")
    err.status_code = resp.status_code
    raise err


class FundTrackerClient:
    """Thin wrapper over the REST API used by the client screens."""

    def __init__(self, base_url: str | None = None, http: httpx.Client | None = None, timeout: float = 10.0):
        if http is None:
            http = httpx.Client(base_url=base_url or ClientSettings().api_base_url, timeout=timeout)
        self.http = http

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "FundTrackerClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            resp = self.http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise FundTrackError("network_error", str(e)) from e
        if resp.is_success:
            return resp.json()
        _raise_for(resp)

    # stocks

    def list_stocks(self) -> list[dict]:
        return self._request("GET", "/api/stocks")

    def create_stock(self, symbol: str, name: str, units: float = 0.0, notes: str | None = None) -> dict:
        return self._request("POST", "/api/stocks", json={"symbol": symbol, "name": name, "units": units, "notes": notes})

    def update_stock(self, stock_id: int, **changes) -> dict:
        unknown = set(changes) - {"symbol", "name", "units", "notes"}
        if unknown:
            raise TypeError(f"unknown stock fields: {sorted(unknown)}")
        return self._request("PUT", f"/api/stocks/{stock_id}", json=changes)

    # entries

    def list_entries(self, stock_id: int | None = None, day: date | str | None = None) -> list[dict]:
        params: dict[str, Any] = {}
        if stock_id is not None:
            params["stockId"] = stock_id
        if day is not None:
            params["date"] = str(day)
        return self._request("GET", "/api/entries", params=params)

    def add_entry(
        self,
        stock_id: int,
        unit_price: float,
        total_value: float,
        day: date | str | None = None,
        remarks: str | None = None,
        entry_type: str | None = None,
        force: bool = False,
    ) -> dict:
        body: dict[str, Any] = {"stockId": stock_id, "unitPrice": unit_price, "totalValue": total_value, "force": force}
        if day is not None:
            body["date"] = str(day)
        if remarks is not None:
            body["remarks"] = remarks
        if entry_type is not None:
            body["type"] = entry_type
        return self._request("POST", "/api/entries", json=body)

    def latest(self) -> list[dict]:
        return self._request("GET", "/api/entries/latest")

    def history_feed(self) -> list[dict]:
        return self._request("GET", "/api/entries/history")

    def summary(self) -> dict:
        return self._request("GET", "/api/entries/summary")

    def analytics(self, stock_id: int) -> list[dict]:
        return self._request("GET", f"/api/entries/analytics/{stock_id}")

    def submit_entries(self, form: Mapping[int, Mapping[str, Any]]) -> SubmitResult:
        """Save one entry per filled-in fund row, one request at a time.

        Rows missing either number are skipped. A failed row is recorded and
        the remaining rows are still saved; entries are re-fetched at the end.
        """
        result = SubmitResult()
        for stock_id, row in form.items():
            unit_price = row.get("unit_price")
            total_value = row.get("total_value")
            if unit_price in (None, "") or total_value in (None, ""):
                continue
            try:
                try:
                    unit_price, total_value = float(unit_price), float(total_value)
                except (TypeError, ValueError):
                    raise ValidationError("entry_amount_invalid", "unitPrice and totalValue must be numbers") from None
                saved = self.add_entry(
                    stock_id,
                    unit_price,
                    total_value,
                    day=row.get("date"),
                    remarks=row.get("remarks"),
                    force=bool(row.get("force", False)),
                )
            except FundTrackError as e:
                log.warning("entry for stock %s not saved: %s", stock_id, e.detail)
                result.failed.append((stock_id, e))
                continue
            result.saved.append(saved)
        result.entries = self.list_entries()
        return result

    # auth

    def login(self, username: str, password: str) -> str:
        return self._request("POST", "/api/auth/login", json={"username": username, "password": password})["token"]

    def create_admin(self, username: str, password: str) -> dict:
        return self._request("POST", "/api/auth/create-admin", json={"username": username, "password": password})
