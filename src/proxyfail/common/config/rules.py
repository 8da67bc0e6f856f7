"""Verification rules - tunable thresholds loaded from YAML.

This is the in-memory representation of verification_rules.yaml.
Used by the verifier, the rotator and the reaper for their defaults.
"""

from datetime import timedelta
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from proxyfail.common.constants import (
    BeaconConstants,
    GeoConstants,
    SweepConstants,
    TokenConstants,
)
from proxyfail.common.exceptions import ConfigurationError


class VerificationRules(BaseModel):
    """Thresholds governing verification and the background sweeps."""

    class Metadata(BaseModel):
        version: str = "1.0.0"
        description: str = ""

    class GeofenceRules(BaseModel):
        default_radius_meters: float = Field(
            default=GeoConstants.DEFAULT_ALLOWED_RADIUS_METERS, gt=0
        )

    class BeaconRules(BaseModel):
        default_min_rssi: float = Field(
            default=BeaconConstants.DEFAULT_MIN_REQUIRED_RSSI, le=0
        )

    class TokenRules(BaseModel):
        length: int = Field(default=TokenConstants.TOKEN_LENGTH, ge=6, le=8)
        fallback_window_hours: float = Field(
            default=TokenConstants.FALLBACK_WINDOW_HOURS, gt=0
        )

    class SweepRules(BaseModel):
        rotation_interval_minutes: float = Field(
            default=SweepConstants.ROTATION_INTERVAL_MINUTES, gt=0
        )
        reaper_interval_minutes: float = Field(
            default=SweepConstants.REAPER_INTERVAL_MINUTES, gt=0
        )
        max_session_age_hours: float = Field(
            default=SweepConstants.MAX_SESSION_AGE_HOURS, gt=0
        )

    metadata: Metadata = Field(default_factory=Metadata)
    geofence: GeofenceRules = Field(default_factory=GeofenceRules)
    beacon: BeaconRules = Field(default_factory=BeaconRules)
    token: TokenRules = Field(default_factory=TokenRules)
    sweeps: SweepRules = Field(default_factory=SweepRules)

    @property
    def version(self) -> str:
        return self.metadata.version

    @property
    def rotation_interval(self) -> timedelta:
        return timedelta(minutes=self.sweeps.rotation_interval_minutes)

    @property
    def reaper_interval(self) -> timedelta:
        return timedelta(minutes=self.sweeps.reaper_interval_minutes)

    @property
    def max_session_age(self) -> timedelta:
        return timedelta(hours=self.sweeps.max_session_age_hours)

    @property
    def fallback_window(self) -> timedelta:
        return timedelta(hours=self.token.fallback_window_hours)


def load_verification_rules(
    rules_file: Optional[Union[str, Path]] = None,
) -> VerificationRules:
    """Load and validate verification rules from a YAML file.

    Args:
        rules_file: Path to the rules YAML. Built-in defaults when None.

    Returns:
        Parsed VerificationRules

    Raises:
        ConfigurationError: If the file is missing or fails validation
    """
    if rules_file is None:
        return VerificationRules()

    path = Path(rules_file)
    if not path.exists():
        raise ConfigurationError(
            f"Verification rules file not found: {path}",
            details={"rules_file": str(path)},
        )

    with open(path, "r") as f:
        raw_config = yaml.safe_load(f) or {}

    try:
        return VerificationRules.model_validate(raw_config)
    except PydanticValidationError as e:
        raise ConfigurationError(
            f"Invalid verification rules in {path}",
            details={"errors": e.errors(include_url=False)},
        ) from e
