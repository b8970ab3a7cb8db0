"""Tests for reward table loading."""

import pytest
import yaml

from mathgrade.core.config import get_settings
from mathgrade.core.errors import ConfigurationError
from mathgrade.rewards import RewardTables, ScoringEngine, load_reward_tables
from mathgrade.rewards.tables import DEFAULT_TABLES_PATH, SUPPORTED_VERSION


class TestPackagedTables:
    """Test the packaged reward_tables.yaml."""

    def test_values(self, reward_tables):
        """Test a sample of the packaged values."""
        assert reward_tables.xp_for(1) == 10
        assert reward_tables.xp_for(10) == 100
        assert reward_tables.coins_for(10) == 15
        assert reward_tables.hint_multiplier(0) == 1.0
        assert reward_tables.max_hints == 3
        assert reward_tables.expected_seconds(5) == 300
        assert [tier.min_streak for tier in reward_tables.streak_tiers] == [5, 3]
        assert reward_tables.version == SUPPORTED_VERSION

    def test_tables_are_immutable(self, reward_tables):
        """Test that neither the record nor its mappings can change."""
        with pytest.raises(TypeError):
            reward_tables.base_xp[1] = 1000
        with pytest.raises(AttributeError):
            reward_tables.time_bonus = 1.0


class TestLoading:
    """Test loading and caching."""

    def test_loaded_once(self):
        """Test that repeated loads share one instance."""
        assert load_reward_tables() is load_reward_tables()

    def test_custom_file(self, tables_file):
        """Test that an edited file changes the rewards."""
        data = yaml.safe_load(tables_file.read_text(encoding="utf-8"))
        data["base_xp"][5] = 500
        tables_file.write_text(yaml.safe_dump(data), encoding="utf-8")

        engine = ScoringEngine(load_reward_tables(str(tables_file)))
        assert engine.score(difficulty=5, is_correct=True).xp.total == 500

    def test_settings_path(self, tables_file, monkeypatch):
        """Test that the REWARD_TABLES_FILE setting is honored."""
        monkeypatch.setenv("MATHGRADE_REWARD_TABLES_FILE", str(tables_file))
        get_settings.cache_clear()
        try:
            assert load_reward_tables().xp_for(5) == 50
        finally:
            get_settings.cache_clear()

    def test_missing_file(self, tmp_path):
        """Test that a missing file is a configuration error."""
        with pytest.raises(ConfigurationError) as exc_info:
            RewardTables.from_yaml(tmp_path / "missing.yaml")
        assert exc_info.value.status_code == 500
        assert "missing.yaml" in exc_info.value.details["source"]

    def test_malformed_file(self, tables_file):
        """Test that a file missing a section is a configuration error."""
        data = yaml.safe_load(tables_file.read_text(encoding="utf-8"))
        del data["coin_multipliers"]
        tables_file.write_text(yaml.safe_dump(data), encoding="utf-8")

        with pytest.raises(ConfigurationError):
            RewardTables.from_yaml(tables_file)

    def test_hint_table_gap(self, tables_file):
        """Test that hint multipliers must be contiguous."""
        data = yaml.safe_load(tables_file.read_text(encoding="utf-8"))
        del data["hint_multipliers"][1]
        tables_file.write_text(yaml.safe_dump(data), encoding="utf-8")

        with pytest.raises(ConfigurationError):
            RewardTables.from_yaml(tables_file)

    def test_default_path_exists(self):
        """Test that the packaged file ships with the package."""
        assert DEFAULT_TABLES_PATH.is_file()

    @pytest.mark.parametrize("version", [2, None, "1"])
    def test_unsupported_version(self, tables_file, version):
        """Test that only the supported table format version loads."""
        data = yaml.safe_load(tables_file.read_text(encoding="utf-8"))
        data["version"] = version
        tables_file.write_text(yaml.safe_dump(data), encoding="utf-8")

        with pytest.raises(ConfigurationError) as exc_info:
            RewardTables.from_yaml(tables_file)
        assert "version" in exc_info.value.details["error"]

    def test_empty_file(self, tables_file):
        """Test that an empty document is a configuration error."""
        tables_file.write_text("", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            RewardTables.from_yaml(tables_file)
