"""Canonical item inventories.

Persisted groups and structures carry items in one of two legacy shapes:

  - array of objects:  ``[{"id": "wooden_sticks", "name": "Wooden Sticks", "quantity": 3}, ...]``
  - code-keyed object: ``{"WOODEN_STICKS": 3, ...}``

Both are read through :func:`normalize_items`, which always yields the
canonical shape ``dict[code, quantity]`` with uppercase codes.  Every
write produced by the engine uses the canonical shape.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

Inventory = dict[str, int]


@dataclass(frozen=True, slots=True)
class ResourceRequirement:
    """Quantity of one item code needed for a build or upgrade."""

    code: str
    quantity: int

    @classmethod
    def of(cls, name: str, quantity: int) -> ResourceRequirement:
        return cls(item_code(name), int(quantity))


def item_code(name: str) -> str:
    """``"Wooden Sticks"`` / ``"wooden_sticks"`` -> ``"WOODEN_STICKS"``."""
    return str(name).strip().upper().replace(" ", "_").replace("-", "_")


def _quantity(value: Any) -> int:
    if isinstance(value, Mapping):
        value = value.get("quantity", 1)
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0


def normalize_items(raw: Any) -> Inventory:
    """Read either legacy item shape into a canonical inventory."""
    items: Inventory = {}
    if not raw:
        return items
    if isinstance(raw, Mapping):
        for key, value in raw.items():
            if isinstance(value, Mapping):
                key = value.get("code") or value.get("id") or value.get("name") or key
            qty = _quantity(value)
            if qty > 0:
                code = item_code(key)
                items[code] = items.get(code, 0) + qty
        return items
    if isinstance(raw, (list, tuple)):
        for entry in raw:
            if not isinstance(entry, Mapping):
                continue
            key = entry.get("code") or entry.get("id") or entry.get("name")
            if not key:
                continue
            qty = _quantity(entry)
            if qty > 0:
                code = item_code(key)
                items[code] = items.get(code, 0) + qty
        return items
    raise ValueError(f"Unsupported item container: {type(raw).__name__}")


def count_total(items: Mapping[str, int]) -> int:
    return sum(items.values())


def merge_items(*inventories: Mapping[str, int]) -> Inventory:
    """Sum several canonical inventories into a new one."""
    merged: Inventory = {}
    for inv in inventories:
        for code, qty in inv.items():
            merged[code] = merged.get(code, 0) + qty
    return merged


def _totals(requirements: Iterable[ResourceRequirement]) -> Inventory:
    totals: Inventory = {}
    for req in requirements:
        totals[req.code] = totals.get(req.code, 0) + req.quantity
    return totals


def has_sufficient(items: Mapping[str, int], requirements: Iterable[ResourceRequirement]) -> bool:
    """Check *items* against *requirements*, summing repeated codes."""
    return all(items.get(code, 0) >= qty for code, qty in _totals(requirements).items())


def consume_resources(
    items: Mapping[str, int],
    requirements: Iterable[ResourceRequirement],
) -> Inventory | None:
    """Deduct *requirements* from *items*.

    Returns the updated inventory, or ``None`` when any requirement is
    short.  The input is never modified, so failure leaves nothing to undo.
    """
    totals = _totals(requirements)
    if any(items.get(code, 0) < qty for code, qty in totals.items()):
        return None
    updated = dict(items)
    for code, qty in totals.items():
        remaining = updated.get(code, 0) - qty
        if remaining > 0:
            updated[code] = remaining
        else:
            updated.pop(code, None)
    return updated
