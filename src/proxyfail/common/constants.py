"""Centralized constants for ProxyFail system configuration."""


# ===== AUDIT & LOGGING =====
class AuditConstants:
    QUEUE_SIZE = 10000
    FLUSH_TIMEOUT_SECONDS = 5.0
    QUEUE_GET_TIMEOUT = 1.0
    HASH_ALGORITHM = "sha256"


# ===== GEOFENCE & PROXIMITY =====
class GeoConstants:
    EARTH_RADIUS_METERS = 6_371_000.0
    DEFAULT_ALLOWED_RADIUS_METERS = 50.0


# ===== BEACON FACTOR =====
class BeaconConstants:
    DEFAULT_MIN_REQUIRED_RSSI = -85.0


# ===== SESSION TOKEN WINDOW =====
class TokenConstants:
    TOKEN_LENGTH = 8
    TOKEN_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
    FALLBACK_WINDOW_HOURS = 2  # Ceiling when tokenExpiresAt is absent


# ===== SCHEDULED SWEEPS =====
class SweepConstants:
    ROTATION_INTERVAL_MINUTES = 5
    REAPER_INTERVAL_MINUTES = 30
    MAX_SESSION_AGE_HOURS = 2
    THREAD_JOIN_TIMEOUT_SECONDS = 5.0


# ===== DATA & QUERY LIMITS =====
class DataConstants:
    DYNAMODB_TRANSACTION_LIMIT = 100
