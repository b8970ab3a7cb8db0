"""
Shared pytest fixtures.

Provides reward tables, engines and helpers for asserting validation
failures and result invariants.
"""

import pytest
from pathlib import Path
from typing import Any, Type

from pydantic import BaseModel, ValidationError

from mathgrade.core.config import Settings
from mathgrade.rewards import RewardTables, ScoringEngine, load_reward_tables
from mathgrade.rewards.tables import DEFAULT_TABLES_PATH
from mathgrade.services import EvaluationService


@pytest.fixture
def settings() -> Settings:
    """Default settings, independent of the environment"""
    return Settings(_env_file=None)


@pytest.fixture
def reward_tables() -> RewardTables:
    """Packaged reward tables"""
    return RewardTables.from_yaml(DEFAULT_TABLES_PATH)


@pytest.fixture
def scoring_engine(reward_tables: RewardTables) -> ScoringEngine:
    """Scoring engine over the packaged tables"""
    return ScoringEngine(reward_tables)


@pytest.fixture
def service(scoring_engine: ScoringEngine, settings: Settings) -> EvaluationService:
    """Evaluation service with default configuration"""
    return EvaluationService(scoring_engine=scoring_engine, settings=settings)


@pytest.fixture
def tables_file(tmp_path: Path) -> Path:
    """Writable copy of the packaged reward tables"""
    target = tmp_path / "reward_tables.yaml"
    target.write_text(DEFAULT_TABLES_PATH.read_text(encoding="utf-8"), encoding="utf-8")
    return target


@pytest.fixture(autouse=True)
def _clear_table_cache():
    """Keep cached tables from leaking between tests"""
    load_reward_tables.cache_clear()
    yield
    load_reward_tables.cache_clear()


@pytest.fixture
def assert_validation_error():
    """Helper to assert that a ValidationError is raised for a field."""
    def _assert_validation(
        model_class: Type[BaseModel],
        data: dict[str, Any],
        expected_field: str | None = None,
    ) -> ValidationError:
        """
        Assert that creating a model raises ValidationError.

        Args:
            model_class: The Pydantic model class
            data: Invalid data to pass to model
            expected_field: Expected field name (first element of an error loc)

        Returns:
            The ValidationError that was raised
        """
        with pytest.raises(ValidationError) as exc_info:
            model_class(**data)

        error = exc_info.value
        if expected_field:
            field_errors = [e for e in error.errors() if e['loc'] and e['loc'][0] == expected_field]
            assert len(field_errors) > 0, f"Expected error for field '{expected_field}' not found"

        return error

    return _assert_validation


pytestmark = [
    pytest.mark.filterwarnings("ignore::DeprecationWarning"),
]
