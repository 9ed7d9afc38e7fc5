"""Decision summary merge engine.

A decision summary is built up incrementally by the model.  Each
``update_decision_summary`` call carries a *partial* summary which is folded
into the stored one:

* ``options`` and ``variables`` are merged by ``label``, ``pros_cons`` by
  ``option``.  A matching item is replaced wholesale at its original
  position; anything else (including items without the key) is appended.
* ``recommendation`` replaces the stored value when present.
* ``status`` is not part of the stored JSON; callers persist it separately
  (see :func:`extract_status`).
"""

from __future__ import annotations

import copy
import json
import logging
from typing import Any

_logger = logging.getLogger(__name__)

# field name -> key used to match items
ARRAY_KEYS: dict[str, str] = {
    "options": "label",
    "variables": "label",
    "pros_cons": "option",
}


def _load(existing: dict[str, Any] | str | None) -> dict[str, Any]:
    if existing is None:
        return {}
    if isinstance(existing, str):
        if not existing.strip():
            return {}
        try:
            data = json.loads(existing)
        except json.JSONDecodeError:
            _logger.warning("Stored decision summary is not valid JSON; starting fresh")
            return {}
        return data if isinstance(data, dict) else {}
    return copy.deepcopy(existing)


def _item_key(item: Any, key: str) -> str | None:
    if isinstance(item, dict):
        value = item.get(key)
        if isinstance(value, str):
            return value
    return None


def merge_array_by_key(
    existing: list[Any],
    new_items: list[Any],
    key: str,
) -> list[Any]:
    """Merge *new_items* into *existing* matching on *key*.

    Items whose key matches an existing item replace it in place; all other
    items are appended in arrival order.
    """
    result = list(existing)
    for item in new_items:
        new_key = _item_key(item, key)
        if new_key is not None:
            pos = next(
                (i for i, old in enumerate(result) if _item_key(old, key) == new_key),
                None,
            )
            if pos is not None:
                result[pos] = copy.deepcopy(item)
                continue
        result.append(copy.deepcopy(item))
    return result


def merge_summary(
    existing: dict[str, Any] | str | None,
    update: dict[str, Any],
) -> dict[str, Any]:
    """Fold a partial *update* into *existing* and return the merged summary.

    *existing* may be ``None`` (first update), a dict, or stored JSON text.
    Neither argument is mutated.
    """
    merged = _load(existing)

    for field_name, key in ARRAY_KEYS.items():
        new_items = update.get(field_name)
        if not isinstance(new_items, list):
            continue
        current = merged.get(field_name)
        if not isinstance(current, list):
            current = []
        merged[field_name] = merge_array_by_key(current, new_items, key)

    if "recommendation" in update:
        merged["recommendation"] = copy.deepcopy(update["recommendation"])

    return merged


def extract_status(update: dict[str, Any]) -> str | None:
    """Return the status carried by *update*, if any."""
    status = update.get("status")
    return status if isinstance(status, str) and status else None
