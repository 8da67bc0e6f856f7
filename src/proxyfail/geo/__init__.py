"""Geodesic helpers."""

from proxyfail.geo.distance import distance_meters, round_meters

__all__ = ["distance_meters", "round_meters"]
