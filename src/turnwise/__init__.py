"""
turnwise - restriction-aware shortest-path routing over road graphs.

This package finds optimal routes between intersections, respecting one-way
roads and turn restrictions, by distance or by travel time.
"""

__version__ = "0.1.0"
