"""
Restriction-aware route finding over road graphs.

This module provides:
- The road graph model (intersections, roads, segments)
- Turn restriction lookup keyed by pivot intersection
- Distance and travel-time cost models
- A* search honouring one-way roads and turn restrictions
- Reconstruction of road-by-road itineraries
"""

from turnwise.core.routing.graph import Edge, Node, Road, RoadGraph, Segment
from turnwise.core.routing.restrictions import Restriction, RestrictionIndex
from turnwise.core.routing.cost import (
    CostMode,
    CostModel,
    DistanceCostModel,
    TimeCostModel,
    cost_model_for,
)
from turnwise.core.routing.search import AStarSearch, SearchOutcome
from turnwise.core.routing.reconstruct import (
    PathReconstructor,
    RoadLeg,
    RoadSummary,
    same_name,
    same_road_id,
)
from turnwise.core.routing.router import (
    NoPathFound,
    RouteFound,
    RouteResult,
    find_route,
    find_routes_to_multiple_goals,
    route_request,
)

__all__ = [
    "Edge",
    "Node",
    "Road",
    "RoadGraph",
    "Segment",
    "Restriction",
    "RestrictionIndex",
    "CostMode",
    "CostModel",
    "DistanceCostModel",
    "TimeCostModel",
    "cost_model_for",
    "AStarSearch",
    "SearchOutcome",
    "PathReconstructor",
    "RoadLeg",
    "RoadSummary",
    "same_name",
    "same_road_id",
    "NoPathFound",
    "RouteFound",
    "RouteResult",
    "find_route",
    "find_routes_to_multiple_goals",
    "route_request",
]
