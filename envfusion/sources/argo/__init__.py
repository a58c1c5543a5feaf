"""
Argo float network data source adapter (via ERDDAP).

Near-surface temperature and salinity profiles from autonomous floats.

Official data: https://argo.ucsd.edu/data/
ERDDAP server: https://erddap.ifremer.fr/erddap/tabledap/ArgoFloats.html
Rate Limits: not published; kept conservative (200/hour)
Authentication: none
"""

from envfusion.sources.argo.client import ArgoClient
from envfusion.sources.argo.metadata import MAPPINGS

__all__ = ["ArgoClient", "MAPPINGS"]
