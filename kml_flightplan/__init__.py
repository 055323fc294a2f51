"""KML Flight Plan Compiler.

Extracts a single polygon from a KML document and compiles it into a
drone flight-plan package by rewriting a pre-authored mission template
(waypoints, altitude fields, payload identifiers and embedded geometry).
"""

__version__ = "0.1.0"
