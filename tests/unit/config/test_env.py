"""Unit tests for EnvReader."""

from pathlib import Path

from streamnorm.config.env import EnvReader


class TestEnvReader:
    """Tests for typed environment access."""

    def test_get_str(self):
        reader = EnvReader(env={"A": " eng ", "B": "  "})
        assert reader.get_str("A") == "eng"
        assert reader.get_str("B", "default") == "default"
        assert reader.get_str("MISSING") is None

    def test_get_int(self):
        reader = EnvReader(env={"A": "720", "B": "seven"})
        assert reader.get_int("A") == 720
        assert reader.get_int("B") is None
        assert reader.get_int("B", 5) == 5

    def test_get_float(self):
        reader = EnvReader(env={"A": "-16.5", "B": "loud"})
        assert reader.get_float("A") == -16.5
        assert reader.get_float("B") is None

    def test_get_bool(self):
        reader = EnvReader(
            env={"A": "yes", "B": "OFF", "C": "1", "D": "maybe"}
        )
        assert reader.get_bool("A") is True
        assert reader.get_bool("B") is False
        assert reader.get_bool("C") is True
        assert reader.get_bool("D") is None
        assert reader.get_bool("MISSING", False) is False

    def test_get_path(self, temp_dir: Path):
        reader = EnvReader(env={"A": str(temp_dir), "B": str(temp_dir / "nope")})
        assert reader.get_path("A") == temp_dir
        assert reader.get_path("B") is None
        assert reader.get_path("B", must_exist=False) == temp_dir / "nope"
