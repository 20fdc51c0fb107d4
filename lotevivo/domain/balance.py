"""Quantity balance aggregation over the movement ledger.

Pure domain logic: turns movement rows into signed per-lot (or per-lot and
location) totals. A malformed row contributes zero instead of failing the batch.
"""
import math
import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

INBOUND_MOVEMENTS = frozenset({"ENTRY_PURCHASE", "BIRTH", "TRANSFER_IN"})
OUTBOUND_MOVEMENTS = frozenset({"SALE", "DEATH", "CULL", "TRANSFER_OUT"})


class BalanceGrouping(str, Enum):
    LOT = "lot"
    LOT_LOCATION = "lot_location"


@dataclass(frozen=True)
class MovementRow:
    """One ledger entry as read from the inventory module."""

    lot_id: uuid.UUID
    location_id: uuid.UUID | None
    movement_type: str | None
    qty: Any


@dataclass(frozen=True)
class BalanceRow:
    lot_id: uuid.UUID
    location_id: uuid.UUID | None
    balance: float


def coerce_quantity(value: Any) -> float:
    """Convert a stored quantity to float; anything non-numeric counts as 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def signed_quantity(movement_type: str | None, qty: Any) -> float:
    """Apply the movement type's direction to its quantity.

    Untyped rows carry an already-signed quantity. Unknown types contribute 0.
    """
    amount = coerce_quantity(qty)
    if movement_type is None:
        return amount
    kind = movement_type.upper()
    if kind in INBOUND_MOVEMENTS:
        return abs(amount)
    if kind in OUTBOUND_MOVEMENTS:
        return -abs(amount)
    return 0.0


def aggregate_balances(
    rows: Iterable[MovementRow],
    group_by: BalanceGrouping = BalanceGrouping.LOT,
) -> list[BalanceRow]:
    """Sum signed quantities per lot, or per (lot, location).

    A missing location is its own key under LOT_LOCATION. Lots without
    movement rows do not appear; callers tell "absent" from "zero".
    Rows come back in first-seen key order.
    """
    totals: dict[tuple[uuid.UUID, uuid.UUID | None], float] = {}
    for row in rows:
        location = row.location_id if group_by == BalanceGrouping.LOT_LOCATION else None
        key = (row.lot_id, location)
        totals[key] = totals.get(key, 0.0) + signed_quantity(row.movement_type, row.qty)

    return [BalanceRow(lot_id=lot_id, location_id=location_id, balance=total) for (lot_id, location_id), total in totals.items()]


def balances_by_lot(rows: Iterable[MovementRow]) -> dict[uuid.UUID, float]:
    """Per-lot totals keyed by lot id, for annotating kanban cards."""
    return {row.lot_id: row.balance for row in aggregate_balances(rows, BalanceGrouping.LOT)}
