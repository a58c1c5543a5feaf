"""
NDBC realtime2 text parsing and mapping.

File layout (standard meteorological data):

    #YY  MM DD hh mm WDIR WSPD GST  WVHT   DPD   APD MWD   PRES  ATMP  WTMP  DEWP  VIS PTDY  TIDE
    #yr  mo dy hr mn degT m/s  m/s     m   sec   sec degT   hPa  degC  degC  degC  nmi  hPa    ft
    2024 05 01 12 00 300  5.0  6.0   1.2    10   6.5 290 1015.2  12.3  13.1   9.8   MM   MM    MM

Newest row first. Missing values are ``MM``; some older feeds still use
all-nines fill values (99.0, 999, 9999.0), which are treated as missing
here because no NDBC quantity legitimately takes those values.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from envfusion.core.fields import MappedPayload, to_float, to_location
from envfusion.core.models import Category

FILL_VALUES = {99.0, 999.0, 9999.0}


def _measurement(row: Dict[str, str], column: str) -> Optional[float]:
    value = to_float(row.get(column))
    if value is None or value in FILL_VALUES:
        return None
    return value


def parse_realtime(text: str) -> Optional[Dict[str, str]]:
    """
    Return the newest observation row as {column: raw value}.

    Returns:
        None when the file has no header or no data rows
    """
    header = None
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        if line.startswith("#"):
            if header is None:
                header = line.lstrip("#").split()
            continue
        if header is None:
            return None
        values = line.split()
        if len(values) < len(header):
            continue
        return dict(zip(header, values))
    return None


def _observed_at(row: Dict[str, str]) -> Optional[datetime]:
    try:
        return datetime(
            int(row["YY"]), int(row["MM"]), int(row["DD"]),
            int(row["hh"]), int(row["mm"]),
            tzinfo=timezone.utc,
        )
    except (KeyError, ValueError):
        return None


def _station_location(payload: Dict[str, Any]):
    station = payload.get("station") or {}
    return to_location(station.get("lat"), station.get("lon"))


def map_ocean(payload: Dict[str, Any]) -> Optional[MappedPayload]:
    row = parse_realtime(payload.get("text") or "")
    if row is None:
        return None

    return MappedPayload(
        fields={
            "surface_temperature": _measurement(row, "WTMP"),
            "wave_height": _measurement(row, "WVHT"),
            "air_temperature": _measurement(row, "ATMP"),
            "wind_speed": _measurement(row, "WSPD"),
            "pressure": _measurement(row, "PRES"),
        },
        observed_at=_observed_at(row),
        coordinates=_station_location(payload),
    )


def map_weather(payload: Dict[str, Any]) -> Optional[MappedPayload]:
    row = parse_realtime(payload.get("text") or "")
    if row is None:
        return None

    return MappedPayload(
        fields={
            "temperature": _measurement(row, "ATMP"),
            "wind_speed": _measurement(row, "WSPD"),
            "wind_direction": _measurement(row, "WDIR"),
            "pressure": _measurement(row, "PRES"),
        },
        observed_at=_observed_at(row),
        coordinates=_station_location(payload),
    )


MAPPINGS = {
    Category.OCEAN: map_ocean,
    Category.WEATHER: map_weather,
}
