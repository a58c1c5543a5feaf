"""
Argo (ERDDAP tabledap JSON) payload mapping.

Response shape:
    {"table": {"columnNames": [...], "columnUnits": [...], "rows": [[...], ...]}}

The newest near-surface measurement wins; one row is one float at one
depth level.
"""
from typing import Any, Dict, Optional

from envfusion.core.fields import MappedPayload, parse_timestamp, to_float, to_location
from envfusion.core.models import Category


def latest_row(payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    table = payload.get("table") or {}
    columns = table.get("columnNames") or []
    rows = [dict(zip(columns, row)) for row in table.get("rows") or []]
    rows = [row for row in rows if row.get("temp") is not None]
    if not rows:
        return None
    return max(rows, key=lambda row: row.get("time") or "")


def map_ocean(payload: Dict[str, Any]) -> Optional[MappedPayload]:
    row = latest_row(payload)
    if row is None:
        return None

    return MappedPayload(
        fields={
            "surface_temperature": to_float(row.get("temp")),
            "salinity": to_float(row.get("psal")),
        },
        observed_at=parse_timestamp(row.get("time")),
        coordinates=to_location(row.get("latitude"), row.get("longitude")),
    )


MAPPINGS = {
    Category.OCEAN: map_ocean,
}
