"""
Provider integrations.

Each provider lives in its own package with a ``client`` module (the
``BaseSourceClient`` subclass issuing the HTTP calls) and a ``metadata``
module (pure mapping functions from raw payload to the common schema,
exported as ``MAPPINGS``).
"""
import logging
from typing import Callable, Dict, Optional, Tuple, Type

from envfusion.core.config import Settings, get_settings
from envfusion.core.fields import MappedPayload
from envfusion.core.http_client import BaseSourceClient
from envfusion.core.models import Category
from envfusion.core.source_registry import SOURCE_REGISTRY, SourceDescriptor
from envfusion.sources import (
    argo,
    nasa_earth,
    nasa_eonet,
    ndbc,
    open_meteo,
    openweather,
    planetary_computer,
    tomorrow,
    usgs_earthquakes,
    weather_gov,
    weatherapi,
)

logger = logging.getLogger(__name__)

Mapping = Callable[[dict], Optional[MappedPayload]]

CLIENT_CLASSES: Dict[str, Type[BaseSourceClient]] = {
    "openweather": openweather.OpenWeatherClient,
    "weatherapi": weatherapi.WeatherAPIClient,
    "weather_gov": weather_gov.WeatherGovClient,
    "tomorrow": tomorrow.TomorrowClient,
    "open_meteo": open_meteo.OpenMeteoClient,
    "ndbc": ndbc.NDBCClient,
    "argo": argo.ArgoClient,
    "nasa_earth": nasa_earth.NASAEarthClient,
    "planetary_computer": planetary_computer.PlanetaryComputerClient,
    "nasa_eonet": nasa_eonet.EONETClient,
    "usgs_earthquakes": usgs_earthquakes.USGSEarthquakeClient,
}

_PROVIDER_MAPPINGS = {
    "openweather": openweather.MAPPINGS,
    "weatherapi": weatherapi.MAPPINGS,
    "weather_gov": weather_gov.MAPPINGS,
    "tomorrow": tomorrow.MAPPINGS,
    "open_meteo": open_meteo.MAPPINGS,
    "ndbc": ndbc.MAPPINGS,
    "argo": argo.MAPPINGS,
    "nasa_earth": nasa_earth.MAPPINGS,
    "planetary_computer": planetary_computer.MAPPINGS,
    "nasa_eonet": nasa_eonet.MAPPINGS,
    "usgs_earthquakes": usgs_earthquakes.MAPPINGS,
}

# (source_id, category) -> mapping function
SOURCE_MAPPINGS: Dict[Tuple[str, Category], Mapping] = {
    (source_id, category): mapping
    for source_id, mappings in _PROVIDER_MAPPINGS.items()
    for category, mapping in mappings.items()
}


def build_default_clients(
    settings: Optional[Settings] = None,
    registry: Optional[Dict[str, SourceDescriptor]] = None,
) -> Dict[str, BaseSourceClient]:
    """
    Instantiate one client per registered source.

    Clients whose credential is missing are still created; they report
    ``is_configured() == False`` and the orchestrator leaves them out.
    """
    settings = settings or get_settings()
    registry = SOURCE_REGISTRY if registry is None else registry

    clients: Dict[str, BaseSourceClient] = {}
    for source_id, descriptor in registry.items():
        client_class = CLIENT_CLASSES.get(source_id)
        if client_class is None:
            logger.warning(f"No client implementation for source '{source_id}'")
            continue

        clients[source_id] = client_class(
            api_key=settings.get_api_key(descriptor.api_key_setting),
            descriptor=descriptor,
            timeout=settings.fetch_timeout_seconds,
        )
        if not clients[source_id].is_configured():
            logger.info(
                f"Source '{source_id}' disabled: "
                f"{descriptor.api_key_setting.upper()} not set"
            )

    return clients


__all__ = ["CLIENT_CLASSES", "SOURCE_MAPPINGS", "build_default_clients"]
