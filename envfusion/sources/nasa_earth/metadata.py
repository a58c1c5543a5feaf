"""
NASA Earth assets payload mapping.

Response shape:
    {"date": "2024-04-28T18:41:16.350000", "id": "LC8_L1T_TOA/...",
     "resource": {"dataset": "LC8_L1T_TOA", "planet": "earth"},
     "url": "https://earthengine.googleapis.com/..."}

The asset is looked up for the requested point, so it carries no
coordinates of its own.
"""
from typing import Any, Dict, Optional

from envfusion.core.fields import MappedPayload, parse_timestamp
from envfusion.core.models import Category


def map_satellite(payload: Dict[str, Any]) -> Optional[MappedPayload]:
    resource = payload.get("resource") or {}
    return MappedPayload(
        fields={
            "imagery_url": payload.get("url"),
            "platform": resource.get("dataset") or "Landsat 8",
        },
        observed_at=parse_timestamp(payload.get("date")),
    )


MAPPINGS = {
    Category.SATELLITE: map_satellite,
}
