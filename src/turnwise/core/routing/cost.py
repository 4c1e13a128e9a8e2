"""
Cost models for route search.

A cost model turns a segment traversal into a scalar cost and estimates the
remaining cost to the goal. Two models are provided: distance (kilometres)
and travel time (hours). The model is chosen per request; there is no
process-wide mode switch.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional, Union

from turnwise.core.config import Settings, settings as default_settings
from turnwise.core.errors import ConfigurationError
from turnwise.core.routing.graph import MAX_ROAD_CLASS, Road, RoadGraph, Segment, UNLIMITED_SPEED_KMH
from turnwise.models.route import CostMode


def format_distance(km: float) -> str:
    return f"{km:.3f} km"


def format_duration(hours: float) -> str:
    """
    Format a duration in hours the way itineraries show it.

    Examples:
        >>> format_duration(0.25)
        '15.000 minutes'
        >>> format_duration(1.5)
        '1 hours 30.000 minutes'
    """
    minutes = hours % 1 * 60
    if hours < 1:
        return f"{minutes:.3f} minutes"
    return f"{int(hours)} hours {minutes:.3f} minutes"


class CostModel(ABC):
    """
    Strategy for costing segment traversals.

    ``edge_cost`` is what the search minimises. ``report_cost`` is what the
    finished route reports to the user. The two differ only when the search
    deliberately biases towards some roads.
    """

    mode: CostMode
    unit: str

    @abstractmethod
    def edge_cost(self, segment: Segment, road: Road) -> float:
        """Cost of traversing ``segment`` during search."""

    @abstractmethod
    def report_cost(self, segment: Segment, road: Road) -> float:
        """Real-world cost of ``segment`` for the finished itinerary."""

    @abstractmethod
    def heuristic(self, graph: RoadGraph, node_id: int, goal_id: int) -> float:
        """Admissible estimate of the remaining cost from node to goal."""

    @abstractmethod
    def format_cost(self, value: float) -> str:
        """Render a reported cost for display."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(mode={self.mode.value!r})"


class DistanceCostModel(CostModel):
    """Shortest route by length."""

    mode = CostMode.DISTANCE
    unit = "km"

    def edge_cost(self, segment: Segment, road: Road) -> float:
        return segment.length

    def report_cost(self, segment: Segment, road: Road) -> float:
        return segment.length

    def heuristic(self, graph: RoadGraph, node_id: int, goal_id: int) -> float:
        return graph.distance(node_id, goal_id)

    def format_cost(self, value: float) -> str:
        return format_distance(value)


class TimeCostModel(CostModel):
    """
    Fastest route by travel time.

    During search, each road's speed is scaled by a handicap that favours
    higher road classes::

        handicap = 1 - road_class_weight * (MAX_ROAD_CLASS - road_class)

    so highways keep their full speed and minor streets are slowed down.
    Reported times use the unscaled speed. The heuristic divides straight-line
    distance by the fastest speed any road allows; since every handicap is at
    most 1 it never overestimates.
    """

    mode = CostMode.TIME
    unit = "h"

    def __init__(
        self,
        road_class_weight: float = 0.06,
        max_speed_kmh: float = UNLIMITED_SPEED_KMH,
    ):
        """
        Initialize the time cost model.

        Args:
            road_class_weight: Penalty per road class below the top class
            max_speed_kmh: Fastest achievable speed, used by the heuristic

        Raises:
            ConfigurationError: If the weight is negative, the maximum speed
                is below any road's speed, or any handicap is not positive
        """
        if road_class_weight < 0:
            raise ConfigurationError(
                f"road_class_weight must be non-negative, got {road_class_weight}",
                config_key="road_class_weight",
            )
        if max_speed_kmh < UNLIMITED_SPEED_KMH:
            raise ConfigurationError(
                f"max_speed_kmh must be at least {UNLIMITED_SPEED_KMH}, got {max_speed_kmh}",
                config_key="max_speed_kmh",
            )

        self.road_class_weight = road_class_weight
        self.max_speed_kmh = max_speed_kmh
        self.handicaps: Dict[int, float] = {}

        for road_class in range(MAX_ROAD_CLASS + 1):
            handicap = 1.0 - road_class_weight * (MAX_ROAD_CLASS - road_class)
            if handicap <= 0:
                raise ConfigurationError(
                    f"road_class_weight={road_class_weight} gives a non-positive "
                    f"speed handicap ({handicap:.3f}) for road class {road_class}",
                    config_key="road_class_weight",
                    details={"road_class": road_class, "handicap": handicap},
                    suggestions=[f"Use a road_class_weight below {1.0 / MAX_ROAD_CLASS}"],
                )
            self.handicaps[road_class] = handicap

    def handicap(self, road: Road) -> float:
        return self.handicaps[road.road_class]

    def edge_cost(self, segment: Segment, road: Road) -> float:
        return segment.length / (road.speed_kmh * self.handicap(road))

    def report_cost(self, segment: Segment, road: Road) -> float:
        return segment.length / road.speed_kmh

    def heuristic(self, graph: RoadGraph, node_id: int, goal_id: int) -> float:
        return graph.distance(node_id, goal_id) / self.max_speed_kmh

    def format_cost(self, value: float) -> str:
        return format_duration(value)

    def __repr__(self) -> str:
        return (
            f"TimeCostModel(road_class_weight={self.road_class_weight}, "
            f"max_speed_kmh={self.max_speed_kmh})"
        )


def cost_model_for(
    mode: Union[CostMode, str, CostModel],
    settings: Optional[Settings] = None,
) -> CostModel:
    """
    Resolve a cost mode into a cost model.

    Args:
        mode: A CostMode, its string value, or a ready CostModel (returned as is)
        settings: Settings providing time model parameters (defaults to global)

    Returns:
        CostModel instance

    Raises:
        ConfigurationError: If the mode is unknown or the settings are invalid
    """
    if isinstance(mode, CostModel):
        return mode

    try:
        mode = CostMode(mode)
    except ValueError:
        raise ConfigurationError(
            f"Unknown cost mode {mode!r}",
            config_key="cost_mode",
            suggestions=[f"Use one of: {', '.join(m.value for m in CostMode)}"],
        )

    if mode is CostMode.DISTANCE:
        return DistanceCostModel()

    settings = settings or default_settings
    return TimeCostModel(
        road_class_weight=settings.road_class_weight,
        max_speed_kmh=settings.max_speed_kmh,
    )
