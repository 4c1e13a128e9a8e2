"""
Turn restrictions indexed by their pivot intersection.

A restriction forbids one specific manoeuvre: arriving at an intersection
from a given node along a given road, then leaving towards a given node
along a given road. Restrictions are looked up by the intersection where
the turn happens, so each edge expansion costs one dictionary lookup.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Mapping, Optional

from turnwise.core.errors import GraphIntegrityError
from turnwise.core.routing.graph import Road, RoadGraph

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Restriction:
    """
    A forbidden turn.

    Arriving at ``curr_node_id`` from ``prev_node_id`` via ``prev_road_id``,
    you may not continue to ``next_node_id`` via ``next_road_id``.
    """

    prev_road_id: int
    prev_node_id: int
    curr_node_id: int
    next_node_id: int
    next_road_id: int

    def matches(
        self,
        prev_road_id: int,
        prev_node_id: int,
        curr_node_id: int,
        next_node_id: int,
        next_road_id: int,
    ) -> bool:
        return (
            self.prev_road_id == prev_road_id
            and self.prev_node_id == prev_node_id
            and self.curr_node_id == curr_node_id
            and self.next_node_id == next_node_id
            and self.next_road_id == next_road_id
        )


class RestrictionIndex:
    """
    Lookup of forbidden turns keyed by pivot node.

    Built once per dataset alongside the RoadGraph and read-only afterwards.
    """

    def __init__(self, graph: Optional[RoadGraph] = None) -> None:
        self.graph = graph
        self._by_pivot: Dict[int, List[Restriction]] = defaultdict(list)
        self._count = 0

    @classmethod
    def empty(cls) -> "RestrictionIndex":
        """An index that forbids nothing."""
        return cls()

    @classmethod
    def build(cls, restrictions: Iterable[Restriction], graph: RoadGraph) -> "RestrictionIndex":
        """
        Index restrictions after checking them against the graph.

        Args:
            restrictions: Restrictions supplied by the graph provider
            graph: Graph the restrictions refer to

        Returns:
            RestrictionIndex

        Raises:
            GraphIntegrityError: If a restriction names a node or road that
                is not in the graph
        """
        index = cls(graph)
        for restriction in restrictions:
            index.add(restriction)

        logger.debug(
            f"Restriction index built: {len(index)} restrictions "
            f"at {len(index._by_pivot)} intersections"
        )
        return index

    @classmethod
    def from_mapping(
        cls, mapping: Mapping[int, Iterable[Restriction]], graph: RoadGraph
    ) -> "RestrictionIndex":
        """
        Build from a provider's pivot-node -> restrictions mapping.

        Raises:
            GraphIntegrityError: If a restriction is filed under the wrong
                pivot or names unknown entities
        """
        index = cls(graph)
        for pivot_id, restrictions in mapping.items():
            for restriction in restrictions:
                if restriction.curr_node_id != pivot_id:
                    raise GraphIntegrityError(
                        f"Restriction pivoted at {restriction.curr_node_id} filed under node {pivot_id}",
                        entity="restriction",
                        entity_id=pivot_id,
                    )
                index.add(restriction)
        return index

    def add(self, restriction: Restriction) -> None:
        """
        Add a single restriction.

        Raises:
            GraphIntegrityError: If the restriction refers to unknown entities
        """
        if self.graph is not None:
            self._validate(restriction)
        self._by_pivot[restriction.curr_node_id].append(restriction)
        self._count += 1

    def _validate(self, restriction: Restriction) -> None:
        for node_id in (restriction.prev_node_id, restriction.curr_node_id, restriction.next_node_id):
            if not self.graph.has_node(node_id):
                raise GraphIntegrityError(
                    f"Restriction references unknown node {node_id}",
                    entity="restriction",
                    entity_id=node_id,
                    details={"restriction": repr(restriction)},
                )
        for road_id in (restriction.prev_road_id, restriction.next_road_id):
            if road_id not in self.graph.roads:
                raise GraphIntegrityError(
                    f"Restriction references unknown road {road_id}",
                    entity="restriction",
                    entity_id=road_id,
                    details={"restriction": repr(restriction)},
                )

    def restrictions_at(self, node_id: int) -> List[Restriction]:
        """Get the restrictions pivoted at a node (empty list if none)."""
        return list(self._by_pivot.get(node_id, ()))

    def is_forbidden(
        self,
        prev_node_id: Optional[int],
        curr_node_id: int,
        next_node_id: int,
        next_road: Road,
        arrival_road: Optional[Road] = None,
    ) -> bool:
        """
        Check whether a turn is forbidden.

        Args:
            prev_node_id: Node we arrived from, None at the start of a search
            curr_node_id: Pivot node where the turn happens
            next_node_id: Node we want to continue to
            next_road: Road we want to continue along
            arrival_road: Road used to arrive, when the caller knows it.
                Otherwise it is derived from the segments joining
                prev_node_id and curr_node_id.

        Returns:
            True if a restriction matches the manoeuvre exactly
        """
        if prev_node_id is None:
            return False

        candidates = self._by_pivot.get(curr_node_id)
        if not candidates:
            return False

        if arrival_road is not None:
            arrival_road_ids = [arrival_road.id]
        else:
            arrival_road_ids = self._arrival_road_ids(prev_node_id, curr_node_id)

        for restriction in candidates:
            for arrival_road_id in arrival_road_ids:
                if restriction.matches(
                    arrival_road_id, prev_node_id, curr_node_id, next_node_id, next_road.id
                ):
                    return True
        return False

    def _arrival_road_ids(self, prev_node_id: int, curr_node_id: int) -> List[int]:
        if self.graph is None:
            return []
        return [
            segment.road_id for segment in self.graph.segments_between(prev_node_id, curr_node_id)
        ]

    def __len__(self) -> int:
        return self._count

    def __iter__(self) -> Iterator[Restriction]:
        for restrictions in self._by_pivot.values():
            yield from restrictions
