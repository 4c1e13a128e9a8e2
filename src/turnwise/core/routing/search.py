"""
Restriction- and direction-aware A* search.

The search honours one-way roads and turn restrictions and minimises the
edge cost of whichever cost model it is given. Every piece of search state
(fringe, finalized set, predecessor links) lives in the ``run`` call, so a
single AStarSearch, and the graph behind it, can be used from several
threads at once.

Known limitation: nodes are finalized once, not once per arrival road. If
the cheapest way into an intersection is followed by a restricted turn,
a costlier approach along another road that would allow the turn is never
explored, and the search can report no path where a legal one exists.
"""

import heapq
import itertools
import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Set

from turnwise.core.errors import GraphIntegrityError, SearchCancelledError
from turnwise.core.routing.cost import CostModel
from turnwise.core.routing.graph import RoadGraph
from turnwise.core.routing.restrictions import RestrictionIndex

logger = logging.getLogger(__name__)

# Slack for floating point noise when checking heuristic consistency.
CONSISTENCY_TOLERANCE = 1e-9


class CancellationFlag(Protocol):
    """Anything with ``is_set()``, such as ``threading.Event``."""

    def is_set(self) -> bool: ...


@dataclass(frozen=True)
class PredecessorLink:
    """How a finalized node was reached: from ``node_id`` along ``segment_id``."""

    node_id: int
    segment_id: int


@dataclass(order=True)
class FringeEntry:
    """
    A candidate on the A* fringe.

    Entries order by estimated total cost, then by insertion sequence, which
    gives a strict and reproducible order between equal estimates.
    """

    estimated_total: float
    sequence: int
    node_id: int = field(compare=False)
    cost_so_far: float = field(compare=False)
    link: Optional[PredecessorLink] = field(default=None, compare=False)


@dataclass
class SearchOutcome:
    """
    Result of a single A* run.

    Attributes:
        found: Whether the goal was finalized
        start: Start node id
        goal: Goal node id
        predecessors: Finalized node -> link it was reached by (None for start)
        costs: Finalized node -> cost so far when finalized
        finalized: Finalized nodes in the order they were settled
        search_cost: Cost of the goal under the search cost, None if not found
        nodes_expanded: Number of nodes finalized
        entries_pushed: Number of fringe entries created
    """

    found: bool
    start: int
    goal: int
    predecessors: Dict[int, Optional[PredecessorLink]] = field(default_factory=dict)
    costs: Dict[int, float] = field(default_factory=dict)
    finalized: List[int] = field(default_factory=list)
    search_cost: Optional[float] = None
    nodes_expanded: int = 0
    entries_pushed: int = 0


class AStarSearch:
    """
    A* over a RoadGraph with turn restrictions.

    The heuristic must be admissible and consistent for the result to be
    optimal. With ``check_heuristic`` enabled, any child estimate lower than
    its parent's is logged as a warning; the search carries on regardless.
    """

    def __init__(
        self,
        graph: RoadGraph,
        restrictions: RestrictionIndex,
        cost_model: CostModel,
        check_heuristic: bool = False,
        cancel: Optional[CancellationFlag] = None,
    ):
        """
        Initialize the search.

        Args:
            graph: Road graph to search
            restrictions: Turn restrictions to honour
            cost_model: Cost model providing edge costs and the heuristic
            check_heuristic: Log inconsistent heuristic estimates
            cancel: Flag polled once per fringe pop; when set, the search
                raises SearchCancelledError
        """
        self.graph = graph
        self.restrictions = restrictions
        self.cost_model = cost_model
        self.check_heuristic = check_heuristic
        self.cancel = cancel

    def run(self, start_id: int, goal_id: int) -> SearchOutcome:
        """
        Search for the cheapest route from start to goal.

        Args:
            start_id: Start node id (must be in the graph)
            goal_id: Goal node id (must be in the graph)

        Returns:
            SearchOutcome; ``found`` is False when the goal is unreachable

        Raises:
            SearchCancelledError: If the cancellation flag is set mid-search
            GraphIntegrityError: If the cost model yields a negative edge cost
        """
        outcome = SearchOutcome(found=False, start=start_id, goal=goal_id)
        sequence = itertools.count()
        finalized: Set[int] = set()

        fringe: List[FringeEntry] = []
        heapq.heappush(
            fringe,
            FringeEntry(
                estimated_total=self._heuristic(start_id, goal_id),
                sequence=next(sequence),
                node_id=start_id,
                cost_so_far=0.0,
            ),
        )
        outcome.entries_pushed = 1

        while fringe:
            if self.cancel is not None and self.cancel.is_set():
                raise SearchCancelledError(
                    details={
                        "start": start_id,
                        "goal": goal_id,
                        "nodes_expanded": outcome.nodes_expanded,
                    }
                )

            current = heapq.heappop(fringe)
            node_id = current.node_id

            # Stale duplicate
            if node_id in finalized:
                continue

            finalized.add(node_id)
            outcome.finalized.append(node_id)
            outcome.predecessors[node_id] = current.link
            outcome.costs[node_id] = current.cost_so_far
            outcome.nodes_expanded += 1

            if node_id == goal_id:
                outcome.found = True
                outcome.search_cost = current.cost_so_far
                break

            self._expand(current, goal_id, finalized, fringe, sequence, outcome)

        if not outcome.found:
            logger.debug(
                f"No path from {start_id} to {goal_id} "
                f"after finalizing {outcome.nodes_expanded} nodes"
            )

        return outcome

    def _expand(
        self,
        current: FringeEntry,
        goal_id: int,
        finalized: Set[int],
        fringe: List[FringeEntry],
        sequence: "itertools.count[int]",
        outcome: SearchOutcome,
    ) -> None:
        node_id = current.node_id
        prev_node_id = current.link.node_id if current.link else None
        arrival_road = (
            self.graph.road_of(self.graph.get_segment(current.link.segment_id))
            if current.link
            else None
        )

        for edge in self.graph.outgoing_edges(node_id):
            if edge.target in finalized:
                continue

            if self.restrictions.is_forbidden(
                prev_node_id, node_id, edge.target, edge.road, arrival_road=arrival_road
            ):
                logger.debug(
                    f"Turn {prev_node_id} -> {node_id} -> {edge.target} "
                    f"onto road {edge.road.id} is restricted"
                )
                continue

            step = self.cost_model.edge_cost(edge.segment, edge.road)
            if not math.isfinite(step) or step < 0:
                raise GraphIntegrityError(
                    f"Negative or non-finite cost {step} on segment {edge.segment.id}",
                    entity="segment",
                    entity_id=edge.segment.id,
                )

            cost_so_far = current.cost_so_far + step
            estimated_total = cost_so_far + self._heuristic(edge.target, goal_id)

            if self.check_heuristic and estimated_total < current.estimated_total - CONSISTENCY_TOLERANCE:
                logger.warning(
                    f"Inconsistent heuristic: estimate dropped from "
                    f"{current.estimated_total:.6f} at node {node_id} to "
                    f"{estimated_total:.6f} at node {edge.target}",
                    extra={
                        "parent_node": node_id,
                        "child_node": edge.target,
                        "cost_mode": self.cost_model.mode.value,
                    },
                )

            heapq.heappush(
                fringe,
                FringeEntry(
                    estimated_total=estimated_total,
                    sequence=next(sequence),
                    node_id=edge.target,
                    cost_so_far=cost_so_far,
                    link=PredecessorLink(node_id=node_id, segment_id=edge.segment.id),
                ),
            )
            outcome.entries_pushed += 1

    def _heuristic(self, node_id: int, goal_id: int) -> float:
        return self.cost_model.heuristic(self.graph, node_id, goal_id)
