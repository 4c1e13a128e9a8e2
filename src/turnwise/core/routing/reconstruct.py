"""
Turn a finished search into a road-by-road itinerary.

The reconstructor walks predecessor links back from the goal, costs each
segment with the cost model's reporting semantics, and merges consecutive
segments that belong to the same road into a single leg.

Roads are considered the same when their names match. This is a known
approximation: two distinct roads that share a name and happen to meet
will be reported as one leg. Pass ``same_road_id`` to compare ids instead.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from turnwise.core.errors import RouteReconstructionError
from turnwise.core.routing.cost import CostModel
from turnwise.core.routing.graph import Road, RoadGraph, Segment
from turnwise.core.routing.search import SearchOutcome

logger = logging.getLogger(__name__)

RoadEquivalence = Callable[[Road, Road], bool]


def same_name(a: Road, b: Road) -> bool:
    """Roads are equivalent when their names match."""
    return a.name == b.name


def same_road_id(a: Road, b: Road) -> bool:
    """Roads are equivalent only when they are the same road."""
    return a.id == b.id


@dataclass(frozen=True)
class RoadSummary:
    """The road details shown in an itinerary."""

    id: int
    name: str
    city: str = ""

    @classmethod
    def of(cls, road: Road) -> "RoadSummary":
        return cls(id=road.id, name=road.name, city=road.city)


@dataclass
class RoadLeg:
    """
    A run of consecutive segments along one road.

    Attributes:
        road: Road the leg follows (the first road of the merged run)
        cost: Aggregated reported cost of the leg
        segment_ids: Segments in travel order
        start_node: Node the leg starts at
        end_node: Node the leg ends at
    """

    road: RoadSummary
    cost: float
    segment_ids: List[int] = field(default_factory=list)
    start_node: int = -1
    end_node: int = -1


@dataclass
class Reconstruction:
    """Legs, total reported cost, and the node sequence from start to goal."""

    legs: List[RoadLeg]
    total: float
    node_path: List[int]


class PathReconstructor:
    """
    Rebuilds routes from search outcomes.
    """

    def __init__(
        self,
        graph: RoadGraph,
        cost_model: CostModel,
        equivalence: RoadEquivalence = same_name,
    ):
        """
        Initialize the reconstructor.

        Args:
            graph: Graph the search ran on
            cost_model: Cost model whose reporting costs are aggregated
            equivalence: Predicate deciding when consecutive roads merge
        """
        self.graph = graph
        self.cost_model = cost_model
        self.equivalence = equivalence

    def reconstruct(self, outcome: SearchOutcome) -> Reconstruction:
        """
        Walk back from the goal and aggregate the route per road.

        Args:
            outcome: A successful search outcome

        Returns:
            Reconstruction in start -> goal order

        Raises:
            RouteReconstructionError: If the outcome did not reach the goal or
                the predecessor chain breaks before the start
        """
        if not outcome.found:
            raise RouteReconstructionError(
                f"Search from {outcome.start} to {outcome.goal} did not reach the goal",
                node_id=outcome.goal,
            )

        # Walk goal -> start collecting (from, to, segment) steps
        steps: List[Tuple[int, int, Segment]] = []
        current = outcome.goal
        visited = {current}

        while current != outcome.start:
            if current not in outcome.predecessors:
                raise RouteReconstructionError(
                    f"Node {current} was never finalized; predecessor chain is broken",
                    node_id=current,
                )
            link = outcome.predecessors[current]
            if link is None:
                raise RouteReconstructionError(
                    f"Predecessor chain ends at {current} before reaching start {outcome.start}",
                    node_id=current,
                )

            segment = self._connecting_segment(link.node_id, current, link.segment_id)
            steps.append((link.node_id, current, segment))

            current = link.node_id
            if current in visited:
                raise RouteReconstructionError(
                    f"Predecessor chain loops at node {current}", node_id=current
                )
            visited.add(current)

        steps.reverse()

        legs: List[RoadLeg] = []
        total = 0.0
        current_road: Optional[Road] = None

        for from_id, to_id, segment in steps:
            road = self.graph.road_of(segment)
            cost = self.cost_model.report_cost(segment, road)
            total += cost

            if current_road is not None and self.equivalence(current_road, road):
                leg = legs[-1]
                leg.cost += cost
                leg.segment_ids.append(segment.id)
                leg.end_node = to_id
            else:
                legs.append(
                    RoadLeg(
                        road=RoadSummary.of(road),
                        cost=cost,
                        segment_ids=[segment.id],
                        start_node=from_id,
                        end_node=to_id,
                    )
                )
                current_road = road

        node_path = [outcome.start] + [to_id for _, to_id, _ in steps]
        return Reconstruction(legs=legs, total=total, node_path=node_path)

    def _connecting_segment(self, from_id: int, to_id: int, segment_id: Optional[int]) -> Segment:
        if segment_id is not None and segment_id in self.graph.segments:
            return self.graph.get_segment(segment_id)

        # No recorded segment: pick the cheapest traversable one joining the nodes
        candidates = [
            s for s in self.graph.segments_between(from_id, to_id) if self.graph.is_traversable(s, from_id)
        ]
        if not candidates:
            raise RouteReconstructionError(
                f"No traversable segment from {from_id} to {to_id}", node_id=to_id
            )
        return min(candidates, key=lambda s: self.cost_model.edge_cost(s, self.graph.road_of(s)))
