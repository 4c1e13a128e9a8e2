"""
Tests for turning search outcomes into road-by-road itineraries.
"""

import pytest

from turnwise.core.errors import RouteReconstructionError
from turnwise.core.routing.cost import DistanceCostModel, TimeCostModel
from turnwise.core.routing.graph import Node, Road, RoadGraph, Segment
from turnwise.core.routing.reconstruct import (
    PathReconstructor,
    RoadSummary,
    same_name,
    same_road_id,
)
from turnwise.core.routing.restrictions import RestrictionIndex
from turnwise.core.routing.search import AStarSearch, PredecessorLink, SearchOutcome


@pytest.fixture
def high_street_graph():
    """
    A straight chain 1 - 2 - 3 - 4.

    Two different roads both called High Street, then Low Road.
    """
    nodes = [Node(i, (float(i), 0.0)) for i in range(1, 5)]
    roads = [
        Road(1, "High Street", "Nelson", speed_class=3, road_class=2),
        Road(2, "High Street", "Nelson", speed_class=3, road_class=2),
        Road(3, "Low Road", "Nelson", speed_class=1, road_class=0),
    ]
    segments = [
        Segment(11, 1, 1, 2, 1.0),
        Segment(12, 2, 2, 3, 1.5),
        Segment(13, 3, 3, 4, 2.0),
    ]
    return RoadGraph.build(nodes, roads, segments)


def run_search(graph, cost_model, start=1, goal=4):
    return AStarSearch(graph, RestrictionIndex.empty(), cost_model).run(start, goal)


class TestEquivalence:
    """Tests for road equivalence predicates."""

    def test_same_name(self):
        assert same_name(Road(1, "High Street"), Road(2, "High Street"))
        assert not same_name(Road(1, "High Street"), Road(1, "Low Road"))

    def test_same_road_id(self):
        assert same_road_id(Road(1, "High Street"), Road(1, "Renamed"))
        assert not same_road_id(Road(1, "High Street"), Road(2, "High Street"))


class TestPathReconstructor:
    """Tests for PathReconstructor."""

    def test_merges_same_named_roads(self, high_street_graph):
        """Consecutive roads sharing a name become one leg."""
        model = DistanceCostModel()
        result = PathReconstructor(high_street_graph, model).reconstruct(run_search(high_street_graph, model))

        assert [leg.road.name for leg in result.legs] == ["High Street", "Low Road"]
        assert result.legs[0].cost == pytest.approx(2.5)
        assert result.legs[0].segment_ids == [11, 12]
        assert result.legs[0].start_node == 1
        assert result.legs[0].end_node == 3
        assert result.legs[0].road == RoadSummary(id=1, name="High Street", city="Nelson")
        assert result.legs[1].cost == pytest.approx(2.0)
        assert result.total == pytest.approx(4.5)
        assert result.node_path == [1, 2, 3, 4]

    def test_id_equivalence_keeps_roads_apart(self, high_street_graph):
        """With id-based equivalence, same-named roads stay separate."""
        model = DistanceCostModel()
        reconstructor = PathReconstructor(high_street_graph, model, equivalence=same_road_id)
        result = reconstructor.reconstruct(run_search(high_street_graph, model))

        assert [leg.road.id for leg in result.legs] == [1, 2, 3]
        assert [leg.cost for leg in result.legs] == pytest.approx([1.0, 1.5, 2.0])

    def test_time_report_uses_real_speed(self, high_street_graph):
        """Reported travel time ignores the road-class handicap."""
        model = TimeCostModel(road_class_weight=0.06)
        outcome = run_search(high_street_graph, model)
        result = PathReconstructor(high_street_graph, model).reconstruct(outcome)

        expected = 1.0 / 60.0 + 1.5 / 60.0 + 2.0 / 20.0
        assert result.total == pytest.approx(expected)
        assert outcome.search_cost > result.total

    def test_reported_distance_independent_of_search_mode(self, high_street_graph):
        """A path found by time search reports the same distance as any other recomputation."""
        outcome = run_search(high_street_graph, TimeCostModel())
        distance = PathReconstructor(high_street_graph, DistanceCostModel()).reconstruct(outcome)

        assert distance.total == pytest.approx(
            sum(segment.length for segment in high_street_graph.segments.values())
        )

    def test_outcome_not_found(self, high_street_graph):
        """Reconstructing a failed search is an error, not an empty route."""
        outcome = SearchOutcome(found=False, start=1, goal=4)

        with pytest.raises(RouteReconstructionError, match="did not reach the goal"):
            PathReconstructor(high_street_graph, DistanceCostModel()).reconstruct(outcome)

    def test_broken_chain(self, high_street_graph):
        """A chain missing a link raises instead of returning a partial route."""
        outcome = SearchOutcome(
            found=True,
            start=1,
            goal=4,
            predecessors={4: PredecessorLink(3, 13), 1: None},
        )

        with pytest.raises(RouteReconstructionError, match="Node 3 was never finalized") as exc_info:
            PathReconstructor(high_street_graph, DistanceCostModel()).reconstruct(outcome)

        assert exc_info.value.details["node_id"] == 3

    def test_chain_ends_early(self, high_street_graph):
        """A chain that ends before the start raises."""
        outcome = SearchOutcome(
            found=True,
            start=1,
            goal=4,
            predecessors={4: PredecessorLink(3, 13), 3: None},
        )

        with pytest.raises(RouteReconstructionError, match="before reaching start"):
            PathReconstructor(high_street_graph, DistanceCostModel()).reconstruct(outcome)

    def test_chain_loops(self, high_street_graph):
        """A cyclic chain raises instead of looping forever."""
        outcome = SearchOutcome(
            found=True,
            start=1,
            goal=4,
            predecessors={4: PredecessorLink(3, 13), 3: PredecessorLink(4, 13)},
        )

        with pytest.raises(RouteReconstructionError, match="loops"):
            PathReconstructor(high_street_graph, DistanceCostModel()).reconstruct(outcome)

    def test_unknown_segment_falls_back_to_scan(self, high_street_graph):
        """Links without a known segment are resolved from the graph."""
        outcome = SearchOutcome(
            found=True,
            start=1,
            goal=3,
            predecessors={3: PredecessorLink(2, 999), 2: PredecessorLink(1, 11), 1: None},
        )

        result = PathReconstructor(high_street_graph, DistanceCostModel()).reconstruct(outcome)

        assert result.legs[0].segment_ids == [11, 12]

    def test_no_traversable_segment(self, high_street_graph):
        """A link between unconnected nodes cannot be resolved."""
        outcome = SearchOutcome(
            found=True,
            start=1,
            goal=4,
            predecessors={4: PredecessorLink(1, 999), 1: None},
        )

        with pytest.raises(RouteReconstructionError, match="No traversable segment"):
            PathReconstructor(high_street_graph, DistanceCostModel()).reconstruct(outcome)
