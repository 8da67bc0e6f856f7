"""Tests for the verification rules YAML loader."""

from datetime import timedelta
from pathlib import Path

import pytest

from proxyfail.common.config import VerificationRules, load_verification_rules
from proxyfail.common.exceptions import ConfigurationError

BUNDLED_RULES = Path(__file__).resolve().parents[3] / "config" / "verification_rules.yaml"


class TestVerificationRules:
    """Test rule defaults and derived intervals."""

    def test_defaults(self):
        rules = load_verification_rules()

        assert rules.geofence.default_radius_meters == 50
        assert rules.beacon.default_min_rssi == -85
        assert rules.token.length == 8
        assert rules.rotation_interval == timedelta(minutes=5)
        assert rules.reaper_interval == timedelta(minutes=30)
        assert rules.max_session_age == timedelta(hours=2)
        assert rules.fallback_window == timedelta(hours=2)

    def test_bundled_file_matches_defaults(self):
        rules = load_verification_rules(BUNDLED_RULES)

        assert rules.version == "1.0.0"
        assert rules.rotation_interval == VerificationRules().rotation_interval
        assert rules.token.length == VerificationRules().token.length

    def test_partial_file_keeps_defaults(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text("sweeps:\n  rotation_interval_minutes: 2\n")

        rules = load_verification_rules(path)

        assert rules.rotation_interval == timedelta(minutes=2)
        assert rules.reaper_interval == timedelta(minutes=30)

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text("")
        assert load_verification_rules(path).token.length == 8

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_verification_rules(tmp_path / "nope.yaml")

    @pytest.mark.parametrize("body", [
        "token:\n  length: 12\n",
        "sweeps:\n  rotation_interval_minutes: 0\n",
        "beacon:\n  default_min_rssi: 10\n",
    ])
    def test_invalid_values(self, tmp_path, body):
        path = tmp_path / "rules.yaml"
        path.write_text(body)

        with pytest.raises(ConfigurationError) as exc_info:
            load_verification_rules(path)

        assert exc_info.value.details["errors"]
