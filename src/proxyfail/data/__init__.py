"""Data layer - schemas for sessions and attendance claims."""

from proxyfail.data.schemas import Attendance, GeoPoint, Session

__all__ = ["Attendance", "GeoPoint", "Session"]
