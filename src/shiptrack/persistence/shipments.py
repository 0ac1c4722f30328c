"""Shipment persistence: Supabase table with an in-memory fallback."""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import asdict, fields, replace
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Protocol

from ..config import settings
from ..db.supabase import get_supabase_client
from ..errors import ShipmentNotFound
from ..models.domain import Shipment

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = {f.name for f in fields(Shipment)} - {"shipment_id", "created_at", "updated_at"}


class ShipmentRepository(Protocol):
    def find_by_id(self, shipment_id: str) -> Shipment | None: ...

    def list(self, *, limit: int = 50, offset: int = 0) -> list[Shipment]: ...

    def create(self, shipment: Shipment) -> Shipment: ...

    def update(self, shipment_id: str, changes: dict[str, Any]) -> Shipment: ...

    def delete(self, shipment_id: str) -> None: ...


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _clean_changes(changes: dict[str, Any]) -> dict[str, Any]:
    unknown = set(changes) - _UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Unknown shipment fields: {', '.join(sorted(unknown))}")
    return dict(changes)


class InMemoryShipmentRepository:
    """Process-local store used when Supabase is not configured."""

    def __init__(self, shipments: list[Shipment] | None = None) -> None:
        self._lock = threading.Lock()
        self._items: dict[str, Shipment] = {}
        for shipment in shipments or []:
            self._items[shipment.shipment_id] = shipment

    def find_by_id(self, shipment_id: str) -> Shipment | None:
        with self._lock:
            return self._items.get(shipment_id)

    def list(self, *, limit: int = 50, offset: int = 0) -> list[Shipment]:
        with self._lock:
            items = sorted(self._items.values(), key=lambda s: s.created_at or _now())
        return items[offset : offset + limit]

    def create(self, shipment: Shipment) -> Shipment:
        now = _now()
        shipment_id = shipment.shipment_id or uuid.uuid4().hex
        record = replace(shipment, shipment_id=shipment_id, created_at=now, updated_at=now)
        with self._lock:
            if shipment_id in self._items:
                raise ValueError(f"Shipment '{shipment_id}' already exists")
            self._items[shipment_id] = record
        return record

    def update(self, shipment_id: str, changes: dict[str, Any]) -> Shipment:
        changes = _clean_changes(changes)
        with self._lock:
            current = self._items.get(shipment_id)
            if current is None:
                raise ShipmentNotFound(shipment_id)
            updated = replace(current, **changes, updated_at=_now())
            self._items[shipment_id] = updated
        return updated

    def delete(self, shipment_id: str) -> None:
        with self._lock:
            if self._items.pop(shipment_id, None) is None:
                raise ShipmentNotFound(shipment_id)


def _row_to_shipment(row: dict[str, Any]) -> Shipment:
    def _parse_ts(value: Any) -> datetime | None:
        if isinstance(value, str):
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        return value

    return Shipment(
        shipment_id=str(row["id"]),
        status=row.get("status") or "pending",
        customer_name=row.get("customer_name"),
        customer_email=row.get("customer_email"),
        customer_phone=row.get("customer_phone"),
        origin=row.get("origin"),
        destination=row.get("destination"),
        driver_id=row.get("driver_id"),
        last_location=row.get("last_location"),
        created_at=_parse_ts(row.get("created_at")),
        updated_at=_parse_ts(row.get("updated_at")),
    )


def _shipment_to_row(shipment: Shipment) -> dict[str, Any]:
    row = asdict(shipment)
    row["id"] = row.pop("shipment_id")
    for key in ("created_at", "updated_at"):
        if row[key] is not None:
            row[key] = row[key].isoformat()
    return row


class SupabaseShipmentRepository:
    """Shipments stored in a Supabase (PostgREST) table."""

    def __init__(self, client: Any, table: str | None = None) -> None:
        self._client = client
        self._table = table or settings.shipments_table

    def _query(self):
        return self._client.table(self._table)

    def find_by_id(self, shipment_id: str) -> Shipment | None:
        response = self._query().select("*").eq("id", shipment_id).limit(1).execute()
        rows = response.data or []
        return _row_to_shipment(rows[0]) if rows else None

    def list(self, *, limit: int = 50, offset: int = 0) -> list[Shipment]:
        response = (
            self._query()
            .select("*")
            .order("created_at")
            .range(offset, offset + limit - 1)
            .execute()
        )
        return [_row_to_shipment(row) for row in (response.data or [])]

    def create(self, shipment: Shipment) -> Shipment:
        now = _now()
        record = replace(
            shipment,
            shipment_id=shipment.shipment_id or uuid.uuid4().hex,
            created_at=now,
            updated_at=now,
        )
        response = self._query().insert(_shipment_to_row(record)).execute()
        rows = response.data or []
        return _row_to_shipment(rows[0]) if rows else record

    def update(self, shipment_id: str, changes: dict[str, Any]) -> Shipment:
        payload = _clean_changes(changes)
        payload["updated_at"] = _now().isoformat()
        response = self._query().update(payload).eq("id", shipment_id).execute()
        rows = response.data or []
        if not rows:
            raise ShipmentNotFound(shipment_id)
        return _row_to_shipment(rows[0])

    def delete(self, shipment_id: str) -> None:
        response = self._query().delete().eq("id", shipment_id).execute()
        if not response.data:
            raise ShipmentNotFound(shipment_id)


@lru_cache()
def get_shipment_repository() -> ShipmentRepository:
    """Supabase-backed repository when configured, in-memory otherwise."""
    client = get_supabase_client()
    if client is None:
        logger.info("Using in-memory shipment repository")
        return InMemoryShipmentRepository()
    return SupabaseShipmentRepository(client)
