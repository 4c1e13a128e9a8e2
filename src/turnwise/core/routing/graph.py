"""
Road graph model for restriction-aware routing.

This module holds the intersections, roads, and road segments handed over by
a graph provider. The graph is built once per dataset and is read-only for
every search that follows: no search writes to Node, Road, or Segment, so a
single RoadGraph can back any number of concurrent searches.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Iterator, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np
from shapely.geometry import LineString

try:
    import networkx as nx
except ImportError:
    raise ImportError(
        "NetworkX is required for road graph construction. "
        "Install it with: pip install networkx"
    )

from turnwise.core.errors import GraphIntegrityError
from turnwise.utils.logging import log_performance

logger = logging.getLogger(__name__)

# Road classes run from 0 (minor street) to 4 (highway).
MAX_ROAD_CLASS = 4

# Speed class -> maximum speed in km/h. Classes above 5 mean "no limit".
SPEED_TABLE_KMH: Dict[int, float] = {
    0: 5.0,
    1: 20.0,
    2: 40.0,
    3: 60.0,
    4: 80.0,
    5: 100.0,
}
UNLIMITED_SPEED_KMH = 110.0


@dataclass
class Node:
    """
    An intersection in the road graph.

    Attributes:
        id: Stable integer identifier
        position: (x, y) coordinates in kilometres
        segment_ids: Ids of incident segments (back-references only)
    """

    id: int
    position: Tuple[float, float]
    segment_ids: List[int] = field(default_factory=list)

    def __hash__(self) -> int:
        """Make node hashable for use in sets and dicts."""
        return hash(self.id)

    def __eq__(self, other: Any) -> bool:
        """Compare nodes by ID."""
        if not isinstance(other, Node):
            return False
        return self.id == other.id


@dataclass(frozen=True)
class Road:
    """
    A named road made up of one or more segments.

    Attributes:
        id: Unique road identifier
        name: Display name
        city: City the road belongs to
        one_way: 0 for bidirectional, anything else restricts travel to
            segment start -> end
        speed_class: Discrete speed class, 0-5, 6 or more meaning no limit
        road_class: Road class, 0 (minor) to MAX_ROAD_CLASS (highway)
    """

    id: int
    name: str
    city: str = ""
    one_way: int = 0
    speed_class: int = 6
    road_class: int = 0

    def __post_init__(self) -> None:
        """Validate road attributes."""
        if self.speed_class < 0:
            raise ValueError(f"speed_class must be non-negative, got {self.speed_class}")
        if not 0 <= self.road_class <= MAX_ROAD_CLASS:
            raise ValueError(
                f"road_class must be between 0 and {MAX_ROAD_CLASS}, got {self.road_class}"
            )

    @property
    def is_one_way(self) -> bool:
        return self.one_way != 0

    @property
    def speed_kmh(self) -> float:
        """Maximum speed on this road in km/h."""
        return SPEED_TABLE_KMH.get(self.speed_class, UNLIMITED_SPEED_KMH)


@dataclass(frozen=True)
class Segment:
    """
    A stretch of road between two intersections.

    Travel direction is not stored here; it follows from the owning road's
    one-way flag at search time.

    Attributes:
        id: Unique segment identifier
        road_id: Owning road
        start_id: First endpoint (the only valid origin on one-way roads)
        end_id: Second endpoint
        length: Length in kilometres
        coords: Optional polyline of (x, y) points along the segment
    """

    id: int
    road_id: int
    start_id: int
    end_id: int
    length: float
    coords: Tuple[Tuple[float, float], ...] = ()

    def __post_init__(self) -> None:
        """Validate segment length."""
        if not math.isfinite(self.length) or self.length < 0:
            raise ValueError(f"Segment length must be finite and non-negative, got {self.length}")

    def other_end(self, node_id: int) -> int:
        """
        Get the endpoint opposite to ``node_id``.

        Raises:
            ValueError: If node_id is not an endpoint of this segment
        """
        if node_id == self.start_id:
            return self.end_id
        if node_id == self.end_id:
            return self.start_id
        raise ValueError(f"Node {node_id} is not an endpoint of segment {self.id}")

    def connects(self, node1_id: int, node2_id: int) -> bool:
        """Check whether this segment joins the two nodes, in either order."""
        return {self.start_id, self.end_id} == {node1_id, node2_id}


class Edge(NamedTuple):
    """One traversable direction of a segment."""

    segment: Segment
    road: Road
    source: int
    target: int


class RoadGraph:
    """
    Intersections, roads, and segments with direction-aware adjacency.

    Adjacency is derived from the segments: each node keeps the ids of its
    incident segments, and ``outgoing_edges`` applies the one-way policy
    when asked. A networkx MultiGraph mirrors the topology for statistics
    and export.
    """

    def __init__(self) -> None:
        """Initialize an empty road graph."""
        self.nodes: Dict[int, Node] = {}
        self.roads: Dict[int, Road] = {}
        self.segments: Dict[int, Segment] = {}
        self.road_segments: Dict[int, List[int]] = {}
        self.graph: nx.MultiGraph = nx.MultiGraph()
        self._segment_counter = 0

    @classmethod
    @log_performance(log_level=logging.DEBUG)
    def build(
        cls,
        nodes: Iterable[Node],
        roads: Iterable[Road],
        segments: Iterable[Segment],
    ) -> "RoadGraph":
        """
        Build a graph from provider entities.

        Args:
            nodes: Intersections (their segment_ids are ignored and rebuilt)
            roads: Roads
            segments: Segments referencing the roads and nodes above

        Returns:
            Fully wired RoadGraph

        Raises:
            GraphIntegrityError: On duplicate ids, dangling references or
                self-loop segments
        """
        road_graph = cls()
        for node in nodes:
            road_graph.add_node(node.id, node.position)
        for road in roads:
            road_graph.add_road(road)
        for segment in segments:
            road_graph.add_segment(
                road_id=segment.road_id,
                start_id=segment.start_id,
                end_id=segment.end_id,
                length=segment.length,
                coords=segment.coords,
                segment_id=segment.id,
            )

        logger.info(
            f"Road graph built: {len(road_graph.nodes)} nodes, "
            f"{len(road_graph.roads)} roads, {len(road_graph.segments)} segments"
        )
        return road_graph

    @classmethod
    def from_records(
        cls,
        nodes: Iterable[Dict[str, Any]],
        roads: Iterable[Dict[str, Any]],
        segments: Iterable[Dict[str, Any]],
    ) -> "RoadGraph":
        """
        Build a graph from plain dictionaries.

        Node records need ``id`` and ``x``/``y`` (or ``position``). Road
        records take the Road field names. Segment records need ``road_id``,
        ``start_id``, ``end_id`` and ``length``; ``id`` and ``coords`` are
        optional.

        Returns:
            Fully wired RoadGraph
        """
        road_graph = cls()
        for record in nodes:
            position = record.get("position") or (record["x"], record["y"])
            road_graph.add_node(int(record["id"]), (float(position[0]), float(position[1])))
        for record in roads:
            road_graph.add_road(Road(**record))
        for record in segments:
            road_graph.add_segment(
                road_id=int(record["road_id"]),
                start_id=int(record["start_id"]),
                end_id=int(record["end_id"]),
                length=float(record["length"]),
                coords=tuple(tuple(point) for point in record.get("coords", ())),
                segment_id=record.get("id"),
            )
        return road_graph

    def add_node(self, node_id: int, position: Tuple[float, float]) -> Node:
        """
        Add an intersection.

        Raises:
            GraphIntegrityError: If the id is already used or the position
                is not finite
        """
        if node_id in self.nodes:
            raise GraphIntegrityError(f"Duplicate node id {node_id}", entity="node", entity_id=node_id)

        x, y = float(position[0]), float(position[1])
        if not (math.isfinite(x) and math.isfinite(y)):
            raise GraphIntegrityError(
                f"Node {node_id} has non-finite position ({x}, {y})",
                entity="node",
                entity_id=node_id,
            )

        node = Node(id=node_id, position=(x, y))
        self.nodes[node_id] = node
        self.graph.add_node(node_id)
        return node

    def add_road(self, road: Road) -> Road:
        """
        Add a road.

        Raises:
            GraphIntegrityError: If the id is already used
        """
        if road.id in self.roads:
            raise GraphIntegrityError(f"Duplicate road id {road.id}", entity="road", entity_id=road.id)

        self.roads[road.id] = road
        self.road_segments[road.id] = []
        return road

    def add_segment(
        self,
        road_id: int,
        start_id: int,
        end_id: int,
        length: float,
        coords: Sequence[Tuple[float, float]] = (),
        segment_id: Optional[int] = None,
    ) -> Segment:
        """
        Add a segment between two existing intersections.

        Args:
            road_id: Owning road
            start_id: First endpoint
            end_id: Second endpoint
            length: Length in kilometres
            coords: Optional polyline along the segment
            segment_id: Optional custom id, generated when omitted

        Returns:
            Segment instance

        Raises:
            GraphIntegrityError: If a reference is dangling, the id is taken,
                or both endpoints are the same intersection
        """
        if segment_id is None:
            while self._segment_counter in self.segments:
                self._segment_counter += 1
            segment_id = self._segment_counter
            self._segment_counter += 1

        if segment_id in self.segments:
            raise GraphIntegrityError(
                f"Duplicate segment id {segment_id}", entity="segment", entity_id=segment_id
            )
        if road_id not in self.roads:
            raise GraphIntegrityError(
                f"Segment {segment_id} references unknown road {road_id}",
                entity="segment",
                entity_id=segment_id,
            )
        for node_id in (start_id, end_id):
            if node_id not in self.nodes:
                raise GraphIntegrityError(
                    f"Segment {segment_id} references unknown node {node_id}",
                    entity="segment",
                    entity_id=segment_id,
                )
        if start_id == end_id:
            raise GraphIntegrityError(
                f"Segment {segment_id} starts and ends at node {start_id}",
                entity="segment",
                entity_id=segment_id,
            )

        segment = Segment(
            id=segment_id,
            road_id=road_id,
            start_id=start_id,
            end_id=end_id,
            length=length,
            coords=tuple(coords),
        )

        self.segments[segment_id] = segment
        self.road_segments[road_id].append(segment_id)
        self.nodes[start_id].segment_ids.append(segment_id)
        self.nodes[end_id].segment_ids.append(segment_id)
        self.graph.add_edge(start_id, end_id, key=segment_id, road_id=road_id, length=length)

        return segment

    def has_node(self, node_id: int) -> bool:
        return node_id in self.nodes

    def get_node(self, node_id: int) -> Node:
        return self.nodes[node_id]

    def get_road(self, road_id: int) -> Road:
        return self.roads[road_id]

    def get_segment(self, segment_id: int) -> Segment:
        return self.segments[segment_id]

    def road_of(self, segment: Segment) -> Road:
        """Get the road a segment belongs to."""
        return self.roads[segment.road_id]

    def outgoing_edges(self, node_id: int) -> Iterator[Edge]:
        """
        Iterate over the edges that may be travelled away from a node.

        A segment can always be travelled from its start to its end; the
        reverse direction is only allowed when the road is not one-way.

        Args:
            node_id: Node to expand

        Yields:
            Edge tuples, in segment insertion order
        """
        for segment_id in self.nodes[node_id].segment_ids:
            segment = self.segments[segment_id]
            road = self.roads[segment.road_id]
            if segment.start_id == node_id:
                yield Edge(segment, road, node_id, segment.end_id)
            elif not road.is_one_way:
                yield Edge(segment, road, node_id, segment.start_id)

    def is_traversable(self, segment: Segment, source_id: int) -> bool:
        """Check whether ``segment`` may be travelled starting at ``source_id``."""
        if source_id == segment.start_id:
            return True
        return source_id == segment.end_id and not self.road_of(segment).is_one_way

    def segments_between(self, node1_id: int, node2_id: int) -> List[Segment]:
        """
        Get all segments joining two nodes, regardless of direction.

        Returns:
            Segments in node1's incidence order
        """
        node = self.nodes.get(node1_id)
        if node is None:
            return []
        return [
            self.segments[sid]
            for sid in node.segment_ids
            if self.segments[sid].connects(node1_id, node2_id)
        ]

    def distance(self, node1_id: int, node2_id: int) -> float:
        """
        Straight-line distance between two nodes.

        Returns:
            Distance in kilometres
        """
        x1, y1 = self.nodes[node1_id].position
        x2, y2 = self.nodes[node2_id].position
        return float(np.hypot(x2 - x1, y2 - y1))

    def describe_node(self, node_id: int) -> str:
        """
        Human-readable label: the id followed by the roads meeting there.

        Example:
            ``"12 (Main Street / Queen Street)"``
        """
        names = sorted(
            {self.road_of(self.segments[sid]).name for sid in self.nodes[node_id].segment_ids}
        )
        if not names:
            return str(node_id)
        return f"{node_id} ({' / '.join(names)})"

    def segment_geometry(self, segment: Segment) -> LineString:
        """
        Get a segment as a Shapely LineString.

        Uses the segment polyline when present, else the endpoint positions.
        """
        if len(segment.coords) >= 2:
            return LineString(segment.coords)
        return LineString(
            [self.nodes[segment.start_id].position, self.nodes[segment.end_id].position]
        )

    def find_nearest_node(self, position: Tuple[float, float]) -> Optional[Node]:
        """
        Find the nearest intersection to a given position.

        Args:
            position: (x, y) coordinates

        Returns:
            Nearest Node or None if graph is empty
        """
        if not self.nodes:
            return None

        node_ids = list(self.nodes)
        coords = np.array([self.nodes[nid].position for nid in node_ids], dtype=float)
        distances = np.hypot(coords[:, 0] - position[0], coords[:, 1] - position[1])
        return self.nodes[node_ids[int(np.argmin(distances))]]

    def to_directed_graph(
        self, weight: Optional[Callable[[Segment, Road], float]] = None
    ) -> nx.DiGraph:
        """
        Export the traversable directions as a networkx DiGraph.

        Parallel segments collapse into the cheapest one per direction. Turn
        restrictions are not represented.

        Args:
            weight: Edge weight function, defaults to segment length

        Returns:
            DiGraph with ``weight`` and ``segment_id`` edge attributes
        """
        directed = nx.DiGraph()
        directed.add_nodes_from(self.nodes)

        for node_id in self.nodes:
            for edge in self.outgoing_edges(node_id):
                cost = weight(edge.segment, edge.road) if weight else edge.segment.length
                existing = directed.get_edge_data(edge.source, edge.target)
                if existing is None or cost < existing["weight"]:
                    directed.add_edge(
                        edge.source, edge.target, weight=cost, segment_id=edge.segment.id
                    )

        return directed

    def get_graph_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the road graph.

        Returns:
            Dictionary with graph statistics
        """
        if self.graph.number_of_nodes() == 0:
            return {
                "num_nodes": 0,
                "num_roads": len(self.roads),
                "num_segments": 0,
                "num_one_way_roads": 0,
                "is_connected": False,
                "num_components": 0,
                "avg_degree": 0.0,
            }

        return {
            "num_nodes": self.graph.number_of_nodes(),
            "num_roads": len(self.roads),
            "num_segments": self.graph.number_of_edges(),
            "num_one_way_roads": sum(1 for road in self.roads.values() if road.is_one_way),
            "is_connected": nx.is_connected(self.graph),
            "num_components": nx.number_connected_components(self.graph),
            "avg_degree": sum(dict(self.graph.degree()).values()) / self.graph.number_of_nodes(),
        }
