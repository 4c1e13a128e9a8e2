"""
Route requests in, itineraries out.

``find_route`` is the single entry point front ends call. It validates the
request, runs the A* search with the requested cost model, and rebuilds the
winning route as a list of roads with per-road and total costs.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from shapely.geometry import LineString

from turnwise.core.config import Settings, settings as default_settings
from turnwise.core.errors import InvalidRequestError
from turnwise.core.routing.cost import CostModel, cost_model_for
from turnwise.core.routing.graph import RoadGraph
from turnwise.core.routing.reconstruct import (
    PathReconstructor,
    RoadEquivalence,
    RoadLeg,
    RoadSummary,
    same_name,
)
from turnwise.core.routing.restrictions import RestrictionIndex
from turnwise.core.routing.search import AStarSearch, CancellationFlag
from turnwise.models.route import CostMode, RouteLegModel, RouteRequest, RouteResponse
from turnwise.utils.logging import PerformanceTimer

logger = logging.getLogger(__name__)


@dataclass
class RouteFound:
    """
    A successful route.

    Attributes:
        legs: Road-aggregated legs in travel order
        total: Total reported cost (km or hours)
        search_cost: Cost the search minimised; differs from ``total`` in
            time mode, where the search favours higher road classes
        cost_mode: Cost mode used
        node_path: Intersections from start to goal
        waypoints: Positions of the intersections in node_path
        explored: Every intersection the search finalized, in order
        road_segment_ids: Every segment of the roads the route uses
    """

    legs: List[RoadLeg]
    total: float
    search_cost: float
    cost_mode: CostMode
    node_path: List[int]
    waypoints: List[Tuple[float, float]] = field(default_factory=list)
    explored: List[int] = field(default_factory=list)
    road_segment_ids: List[int] = field(default_factory=list)
    cost_model: Optional[CostModel] = field(default=None, compare=False, repr=False)

    found = True

    @property
    def start(self) -> int:
        return self.node_path[0]

    @property
    def goal(self) -> int:
        return self.node_path[-1]

    @property
    def roads(self) -> List[Tuple[RoadSummary, float]]:
        """The itinerary as (road, aggregated cost) pairs."""
        return [(leg.road, leg.cost) for leg in self.legs]

    def route_segments(self) -> List[int]:
        """Ids of the segments travelled, start to goal."""
        return [segment_id for leg in self.legs for segment_id in leg.segment_ids]

    def highlight_segments(self) -> List[int]:
        """
        Ids of every segment on the roads the route uses, for highlighting.

        Whole roads are highlighted, including stretches the route does not
        travel. Use ``route_segments`` for the travelled part only.
        """
        return list(self.road_segment_ids)

    def get_geometry(self) -> LineString:
        """
        Get the route as a Shapely LineString through its intersections.

        Returns:
            LineString geometry
        """
        if len(self.waypoints) < 2:
            return LineString()
        return LineString(self.waypoints)

    def format_cost(self, value: float) -> str:
        model = self.cost_model or cost_model_for(self.cost_mode)
        return model.format_cost(value)

    def describe(self, graph: Optional[RoadGraph] = None) -> str:
        """
        Render the itinerary as text.

        Args:
            graph: When given, the header names the roads at each end

        Returns:
            Multi-line itinerary
        """
        if graph is not None:
            start_label = graph.describe_node(self.start)
            goal_label = graph.describe_node(self.goal)
        else:
            start_label, goal_label = str(self.start), str(self.goal)

        lines = [f"Journey from {start_label} to {goal_label}:"]
        for leg in self.legs:
            lines.append(f" - {leg.road.name}: {self.format_cost(leg.cost)}")

        label = "Total time" if self.cost_mode is CostMode.TIME else "Total distance"
        lines.append(f"{label}: {self.format_cost(self.total)}")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Convert route to dictionary."""
        return {
            "found": True,
            "cost_mode": self.cost_mode.value,
            "total": float(self.total),
            "search_cost": float(self.search_cost),
            "node_path": list(self.node_path),
            "legs": [
                {
                    "road_id": leg.road.id,
                    "name": leg.road.name,
                    "city": leg.road.city,
                    "cost": float(leg.cost),
                    "segment_ids": list(leg.segment_ids),
                }
                for leg in self.legs
            ],
            "num_explored": len(self.explored),
        }


@dataclass
class NoPathFound:
    """The goal cannot be reached from the start under the current constraints."""

    start: int
    goal: int
    cost_mode: CostMode
    explored: List[int] = field(default_factory=list)

    found = False

    def describe(self, graph: Optional[RoadGraph] = None) -> str:
        return "No path found."

    def to_dict(self) -> Dict[str, Any]:
        return {
            "found": False,
            "cost_mode": self.cost_mode.value,
            "start": self.start,
            "goal": self.goal,
            "num_explored": len(self.explored),
        }


RouteResult = Union[RouteFound, NoPathFound]


def _validate_request(graph: RoadGraph, start: int, goal: int) -> None:
    if not graph.has_node(start):
        raise InvalidRequestError(f"Start intersection {start} is not in the graph", field="start")
    if not graph.has_node(goal):
        raise InvalidRequestError(f"Goal intersection {goal} is not in the graph", field="goal")
    if start == goal:
        raise InvalidRequestError(
            f"Start and goal are both intersection {start}",
            field="goal",
            suggestions=["Pick a goal different from the start"],
        )


def find_route(
    graph: RoadGraph,
    restrictions: Optional[RestrictionIndex],
    start: int,
    goal: int,
    cost_mode: Union[CostMode, str, CostModel] = CostMode.DISTANCE,
    *,
    settings: Optional[Settings] = None,
    equivalence: RoadEquivalence = same_name,
    cancel: Optional[CancellationFlag] = None,
) -> RouteResult:
    """
    Find the cheapest route between two intersections.

    Args:
        graph: Road graph (read-only, may be shared between threads)
        restrictions: Turn restrictions, or None for none
        start: Start intersection id
        goal: Goal intersection id
        cost_mode: Distance or time, as a CostMode, its value, or a CostModel
        settings: Settings to use (defaults to the global settings)
        equivalence: When consecutive roads merge into one leg
        cancel: Optional flag (e.g. threading.Event) to abort the search

    Returns:
        RouteFound, or NoPathFound if the goal is unreachable

    Raises:
        InvalidRequestError: If start or goal is unknown, or they are equal
        ConfigurationError: If the cost model settings are invalid
        SearchCancelledError: If ``cancel`` is set during the search
    """
    settings = settings or default_settings
    _validate_request(graph, start, goal)

    cost_model = cost_model_for(cost_mode, settings)
    if restrictions is None:
        restrictions = RestrictionIndex.empty()

    search = AStarSearch(
        graph,
        restrictions,
        cost_model,
        check_heuristic=settings.check_heuristic or settings.debug,
        cancel=cancel,
    )

    with PerformanceTimer(
        f"Route search {start} -> {goal} ({cost_model.mode.value})",
        log_level=logging.DEBUG,
    ) as timer:
        outcome = search.run(start, goal)

    if timer.duration_ms is not None and timer.duration_ms >= settings.slow_search_threshold_ms:
        logger.info(
            f"Slow route search {start} -> {goal}: {timer.duration_ms:.1f}ms, "
            f"{outcome.nodes_expanded} nodes expanded",
            extra={
                "duration_ms": timer.duration_ms,
                "nodes_expanded": outcome.nodes_expanded,
                "cost_mode": cost_model.mode.value,
            },
        )

    if not outcome.found:
        logger.info(f"No path found from {start} to {goal} ({cost_model.mode.value})")
        return NoPathFound(
            start=start,
            goal=goal,
            cost_mode=cost_model.mode,
            explored=list(outcome.finalized),
        )

    reconstruction = PathReconstructor(graph, cost_model, equivalence).reconstruct(outcome)

    road_ids: List[int] = []
    for leg in reconstruction.legs:
        for segment_id in leg.segment_ids:
            road_id = graph.get_segment(segment_id).road_id
            if road_id not in road_ids:
                road_ids.append(road_id)

    logger.debug(
        f"Route {start} -> {goal}: {len(reconstruction.legs)} roads, "
        f"total {cost_model.format_cost(reconstruction.total)}"
    )

    return RouteFound(
        legs=reconstruction.legs,
        total=reconstruction.total,
        search_cost=outcome.search_cost,
        cost_mode=cost_model.mode,
        node_path=reconstruction.node_path,
        waypoints=[graph.get_node(nid).position for nid in reconstruction.node_path],
        explored=list(outcome.finalized),
        road_segment_ids=[sid for road_id in road_ids for sid in graph.road_segments[road_id]],
        cost_model=cost_model,
    )


def find_routes_to_multiple_goals(
    graph: RoadGraph,
    restrictions: Optional[RestrictionIndex],
    start: int,
    goals: Iterable[int],
    cost_mode: Union[CostMode, str, CostModel] = CostMode.DISTANCE,
    *,
    settings: Optional[Settings] = None,
) -> Dict[int, RouteResult]:
    """
    Find routes from one start to several goals.

    Each goal gets its own independent search over the shared graph.

    Returns:
        Dictionary mapping goal id to its RouteResult
    """
    return {
        goal: find_route(graph, restrictions, start, goal, cost_mode, settings=settings)
        for goal in goals
    }


def route_request(
    graph: RoadGraph,
    restrictions: Optional[RestrictionIndex],
    request: RouteRequest,
    *,
    settings: Optional[Settings] = None,
) -> RouteResponse:
    """
    Answer a front end's route request.

    Args:
        graph: Road graph
        restrictions: Turn restrictions, or None
        request: Validated request

    Returns:
        RouteResponse describing the route or the absence of one

    Raises:
        InvalidRequestError: If the request names unknown or equal intersections
    """
    result = find_route(
        graph,
        restrictions,
        request.start_id,
        request.goal_id,
        request.cost_mode,
        settings=settings,
    )
    explored = list(result.explored) if request.include_exploration else []

    if isinstance(result, NoPathFound):
        return RouteResponse(
            found=False,
            cost_mode=result.cost_mode,
            explored_node_ids=explored,
            message=result.describe(graph),
        )

    return RouteResponse(
        found=True,
        cost_mode=result.cost_mode,
        legs=[
            RouteLegModel(
                road_id=leg.road.id,
                name=leg.road.name,
                city=leg.road.city,
                cost=leg.cost,
                display_cost=result.format_cost(leg.cost),
                segment_ids=leg.segment_ids,
            )
            for leg in result.legs
        ],
        total=result.total,
        total_display=result.format_cost(result.total),
        highlighted_segment_ids=result.highlight_segments(),
        explored_node_ids=explored,
        message=result.describe(graph),
    )
