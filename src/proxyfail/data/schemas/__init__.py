"""Canonical data schemas."""

from proxyfail.data.schemas.session import GeoPoint, Session
from proxyfail.data.schemas.attendance import Attendance

__all__ = [
    "GeoPoint",
    "Session",
    "Attendance",
]
