"""
Spatial primitives and country boundaries.

Modules:
    geometry        — Coordinate, anti-meridian-aware point-in-ring
    boundaries      — BoundaryIndex over a GeoJSON country dataset
    country_filter  — narrow a ResultSet to one country
"""
