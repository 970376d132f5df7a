"""Tests that the Alembic migration builds the schema the models declare."""

from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import CheckConstraint, create_engine, inspect

from codriving.core.database import Base
from codriving.models import *  # noqa: F403 - Import all models

ALEMBIC_DIR = Path(__file__).resolve().parents[2] / "db" / "alembic"


@pytest.fixture
def migrated_db(tmp_path):
    """Upgrade a fresh SQLite file to head and return a sync engine on it."""
    db_file = tmp_path / "migrated.db"

    config = Config()
    config.set_main_option("script_location", str(ALEMBIC_DIR))
    config.attributes["database_url"] = f"sqlite+aiosqlite:///{db_file}"
    command.upgrade(config, "head")

    engine = create_engine(f"sqlite:///{db_file}")
    yield engine
    engine.dispose()


def test_migration_creates_model_tables(migrated_db):
    inspector = inspect(migrated_db)

    assert set(Base.metadata.tables) <= set(inspector.get_table_names())


def test_migration_check_constraints_match_models(migrated_db):
    """Test every named CHECK constraint on the models exists after migrating."""
    inspector = inspect(migrated_db)

    for name, table in Base.metadata.tables.items():
        declared = {
            constraint.name
            for constraint in table.constraints
            if isinstance(constraint, CheckConstraint) and constraint.name
        }
        migrated = {constraint["name"] for constraint in inspector.get_check_constraints(name)}
        assert declared <= migrated, f"{name} is missing {declared - migrated}"


def test_migration_has_confirmed_booking_unique_index(migrated_db):
    indexes = {index["name"]: index for index in inspect(migrated_db).get_indexes("bookings")}

    index = indexes["uq_booking_confirmed_passenger_trip"]
    assert index["unique"]
    assert index["column_names"] == ["passenger_id", "trip_id"]
