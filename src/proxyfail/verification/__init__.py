"""Verification - rule chain that turns a claim into a verdict."""

from proxyfail.verification.verifier import AttendanceVerifier, utc_now

__all__ = ["AttendanceVerifier", "utc_now"]
