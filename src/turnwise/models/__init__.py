"""
Pydantic models for route requests and responses.
"""

from turnwise.models.route import (
    CostMode,
    RouteLegModel,
    RouteRequest,
    RouteResponse,
)

__all__ = [
    "CostMode",
    "RouteLegModel",
    "RouteRequest",
    "RouteResponse",
]
