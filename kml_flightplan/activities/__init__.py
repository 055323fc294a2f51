"""Compile activities.

Each activity is a focused, synchronous step of the compile:
- extract_geometry: KML bytes -> PolygonRing
- select_template: (camera mode, altitude) -> template id
- rewrite_mission: staged template tree + polygon -> mutated tree
"""
