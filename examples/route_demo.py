"""
Demo script for restriction-aware routing.

This example walks through a small town:
1. Build a street grid from plain records
2. Route by distance, then by travel time
3. Add a turn restriction and a one-way street and route again
"""

import numpy as np

from turnwise.core.logging_config import setup_logging
from turnwise.core.routing import (
    CostMode,
    Restriction,
    RestrictionIndex,
    RoadGraph,
    find_route,
)

GRID = 4
SPACING_KM = 0.5


def build_town(one_way_main_street: bool = False) -> RoadGraph:
    """
    A GRID x GRID street grid. Row 0 is a fast arterial, column 0 a slow lane.
    """
    nodes = [
        {"id": row * GRID + col, "x": col * SPACING_KM, "y": row * SPACING_KM}
        for row in range(GRID)
        for col in range(GRID)
    ]

    roads = []
    segments = []
    for row in range(GRID):
        road_class = 4 if row == 0 else 1
        roads.append(
            {
                "id": row,
                "name": "Great North Road" if row == 0 else f"Street {row}",
                "city": "Riverton",
                "one_way": int(one_way_main_street and row == 0),
                "speed_class": 5 if row == 0 else 3,
                "road_class": road_class,
            }
        )
        for col in range(GRID - 1):
            segments.append(
                {
                    "road_id": row,
                    "start_id": row * GRID + col,
                    "end_id": row * GRID + col + 1,
                    "length": SPACING_KM,
                }
            )

    for col in range(GRID):
        road_id = GRID + col
        roads.append(
            {
                "id": road_id,
                "name": f"Avenue {col}",
                "city": "Riverton",
                "speed_class": 1 if col == 0 else 3,
                "road_class": 0,
            }
        )
        for row in range(GRID - 1):
            segments.append(
                {
                    "road_id": road_id,
                    "start_id": row * GRID + col,
                    "end_id": (row + 1) * GRID + col,
                    # Slight detours keep lengths above the straight line
                    "length": SPACING_KM * float(np.random.default_rng(row * GRID + col).uniform(1.0, 1.2)),
                }
            )

    return RoadGraph.from_records(nodes, roads, segments)


def print_route(title, graph, result):
    print(f"\n{title}")
    print("-" * 60)
    for line in result.describe(graph).splitlines():
        print(f"   {line}")
    if result.found:
        print(f"   Segments: {result.highlight_segments()}")
        print(f"   Intersections settled: {len(result.explored)}")


def main():
    """Run routing demo."""
    setup_logging(log_level="WARNING")

    print("=" * 60)
    print("Restriction-Aware Routing Demo")
    print("=" * 60)

    # 1. Build the town
    print("\n1. Building street grid...")
    graph = build_town()
    stats = graph.get_graph_stats()
    print(f"   - Intersections: {stats['num_nodes']}")
    print(f"   - Roads: {stats['num_roads']}")
    print(f"   - Segments: {stats['num_segments']}")
    print(f"   - Connected: {stats['is_connected']}")

    start = graph.find_nearest_node((0.0, 1.5)).id
    goal = graph.find_nearest_node((1.5, 0.0)).id
    print(f"   - Start: {graph.describe_node(start)}")
    print(f"   - Goal: {graph.describe_node(goal)}")

    # 2. Distance and time
    print_route("2. Shortest route:", graph, find_route(graph, None, start, goal, CostMode.DISTANCE))
    print_route("3. Fastest route:", graph, find_route(graph, None, start, goal, CostMode.TIME))

    # 3. Restrict the turn from Avenue 0 onto Great North Road
    restrictions = RestrictionIndex.build(
        [
            Restriction(
                prev_road_id=GRID,
                prev_node_id=GRID,
                curr_node_id=0,
                next_node_id=1,
                next_road_id=0,
            )
        ],
        graph,
    )
    print_route(
        "4. Fastest route, no turn onto Great North Road at the corner:",
        graph,
        find_route(graph, restrictions, start, goal, CostMode.TIME),
    )

    # 4. Make Great North Road eastbound only
    one_way = build_town(one_way_main_street=True)
    print_route(
        "5. Fastest route back, Great North Road one-way:",
        one_way,
        find_route(one_way, None, goal, start, CostMode.TIME),
    )

    print("\n" + "=" * 60)
    print("Demo Complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
