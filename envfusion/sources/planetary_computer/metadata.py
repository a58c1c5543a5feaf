"""
Planetary Computer STAC payload mapping.

Response is a GeoJSON FeatureCollection of STAC items:
    {"features": [{"id", "bbox": [w, s, e, n],
                   "properties": {"datetime", "eo:cloud_cover", "platform"},
                   "assets": {"rendered_preview": {"href"}, "visual": {"href"}}}]}

The clearest scene wins (lowest cloud cover, newest on ties).
"""
from typing import Any, Dict, Optional

from envfusion.core.fields import MappedPayload, parse_timestamp, to_float, to_location
from envfusion.core.models import Category


def _preview_url(item: Dict[str, Any]) -> Optional[str]:
    assets = item.get("assets") or {}
    for name in ("rendered_preview", "visual"):
        href = (assets.get(name) or {}).get("href")
        if href:
            return href
    return None


def best_item(payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    items = [f for f in payload.get("features") or [] if _preview_url(f)]
    if not items:
        return None

    def cloud(item):
        value = to_float((item.get("properties") or {}).get("eo:cloud_cover"))
        return 100.0 if value is None else value

    newest_first = sorted(
        items,
        key=lambda item: (item.get("properties") or {}).get("datetime") or "",
        reverse=True,
    )
    return min(newest_first, key=cloud)


def map_satellite(payload: Dict[str, Any]) -> Optional[MappedPayload]:
    item = best_item(payload)
    if item is None:
        return None

    props = item.get("properties") or {}
    cloud_cover = to_float(props.get("eo:cloud_cover"))

    coordinates = None
    bbox = item.get("bbox")
    if bbox and len(bbox) >= 4:
        coordinates = to_location((bbox[1] + bbox[3]) / 2, (bbox[0] + bbox[2]) / 2)

    return MappedPayload(
        fields={
            "imagery_url": _preview_url(item),
            "platform": props.get("platform") or "Sentinel-2",
            "cloud_cover": cloud_cover,
        },
        observed_at=parse_timestamp(props.get("datetime")),
        coordinates=coordinates,
        quality_hint=None if cloud_cover is None else round(1 - cloud_cover / 100.0, 4),
    )


MAPPINGS = {
    Category.SATELLITE: map_satellite,
}
