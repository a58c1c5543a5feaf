"""
Aggregation API endpoints.

Exposes the fusion pipeline plus read-only views of the source registry,
rate limiter and cache.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from envfusion.core.aggregator import Aggregator, get_aggregator
from envfusion.core.api_errors import AggregationError, AggregationErrorCode
from envfusion.core.models import Category
from envfusion.core.schemas import AggregateRequest
from envfusion.core.source_registry import SOURCE_REGISTRY, sources_for_category

logger = logging.getLogger(__name__)

router = APIRouter(tags=["aggregation"])

ERROR_STATUS = {
    AggregationErrorCode.QUALITY_INSUFFICIENT: 422,
    AggregationErrorCode.NO_SOURCES_AVAILABLE: 503,
}


@router.post("/aggregate")
async def aggregate(
    request: AggregateRequest,
    aggregator: Aggregator = Depends(get_aggregator),
):
    """
    Fuse every eligible source for one point and category.

    **Errors:**
    - 422 QUALITY_INSUFFICIENT: fused result scored below the category threshold
    - 503 NO_SOURCES_AVAILABLE: no source was eligible or none returned usable data

    Both carry ``issues`` and ``source_failures`` in the detail.
    """
    try:
        result = await aggregator.aggregate(
            request.location.to_location(),
            request.category,
            params=request.params,
            force_refresh=request.force_refresh,
        )
    except AggregationError as e:
        logger.info(f"Aggregation failed: {e}")
        raise HTTPException(status_code=ERROR_STATUS[e.code], detail=e.to_dict())

    return result.to_dict()


@router.get("/sources")
async def list_sources(
    category: Optional[str] = Query(None, description="Filter by category"),
):
    """List registered sources, highest priority first."""
    if category is None:
        descriptors = sorted(
            SOURCE_REGISTRY.values(),
            key=lambda d: (-d.priority.rank, d.source_id),
        )
    else:
        try:
            parsed = Category.parse(category)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        descriptors = sources_for_category(parsed)

    return {
        "count": len(descriptors),
        "sources": [d.to_dict() for d in descriptors],
    }


@router.get("/rate-limits")
async def rate_limits(aggregator: Aggregator = Depends(get_aggregator)):
    """Per-source limiter statistics for sources used so far."""
    return {"sources": aggregator.rate_limiter.get_all_stats()}


@router.get("/cache/stats")
async def cache_stats(aggregator: Aggregator = Depends(get_aggregator)):
    """Hit/miss statistics of the result cache."""
    return await aggregator.cache.get_stats()
