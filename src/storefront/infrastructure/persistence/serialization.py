"""Helpers shared by the JSON repositories.

Records are stored with camelCase keys, ISO-8601 timestamps and plain
JSON numbers for money, matching data already written by earlier
versions of the shop.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from storefront.domain.model.value_objects import Money

# Stand-in creation time for legacy records that never had one.
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def to_iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.isoformat()


def from_iso(raw: str | None) -> datetime | None:
    if not raw:
        return None
    # Older records carry a JavaScript-style trailing "Z".
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def money_or_none(raw: Any) -> Money | None:
    if raw is None:
        return None
    return Money.of(raw)


def compact(record: dict[str, Any]) -> dict[str, Any]:
    """Drop keys whose value is None so optional fields stay absent."""
    return {k: v for k, v in record.items() if v is not None}
