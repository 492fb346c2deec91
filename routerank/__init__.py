"""
routerank

Ranks tracked entities by how strongly their space-time pings support having
travelled along a candidate route, versus merely appearing nearby.
"""

__version__ = "0.1.0"
