"""
Pydantic models for route requests and responses.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class CostMode(str, Enum):
    """What a route search minimises."""

    DISTANCE = "distance"
    TIME = "time"


class RouteRequest(BaseModel):
    """A request from a front end for a route between two intersections."""

    start_id: int = Field(..., ge=0, description="Start intersection id")
    goal_id: int = Field(..., ge=0, description="Goal intersection id")
    cost_mode: CostMode = Field(CostMode.DISTANCE, description="Minimise distance or travel time")
    include_exploration: bool = Field(
        False, description="Return every intersection the search settled"
    )


class RouteLegModel(BaseModel):
    """One road of the itinerary."""

    road_id: int
    name: str
    city: str = ""
    cost: float = Field(..., ge=0)
    display_cost: str
    segment_ids: List[int] = Field(default_factory=list)


class RouteResponse(BaseModel):
    """The router's answer to a RouteRequest."""

    found: bool
    cost_mode: CostMode
    legs: List[RouteLegModel] = Field(default_factory=list)
    total: Optional[float] = None
    total_display: Optional[str] = None
    highlighted_segment_ids: List[int] = Field(default_factory=list)
    explored_node_ids: List[int] = Field(default_factory=list)
    message: str = ""
