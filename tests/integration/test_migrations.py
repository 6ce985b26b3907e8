"""Test Alembic migrations: upgrade, downgrade, and structural checks.

Runs against a throwaway SQLite file, so no database server is needed.
"""

import os

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect


ROOT = os.path.join(os.path.dirname(__file__), "..", "..")

EXPECTED_TABLES = {
    "approval_templates",
    "approval_chains",
    "chain_steps",
    "chain_links",
    "step_transitions",
}


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'migrations.db'}"


@pytest.fixture
def alembic_cfg(database_url):
    cfg = Config(os.path.join(ROOT, "alembic.ini"))
    cfg.set_main_option("script_location", os.path.join(ROOT, "migrations"))
    cfg.set_main_option("sqlalchemy.url", database_url)
    # Leave the test session's logging alone
    cfg.attributes["configure_logger"] = False
    return cfg


def _inspect(database_url):
    engine = create_engine(database_url)
    try:
        inspector = inspect(engine)
        return {
            table: {
                "columns": {c["name"] for c in inspector.get_columns(table)},
                "unique": inspector.get_unique_constraints(table),
            }
            for table in inspector.get_table_names()
        }
    finally:
        engine.dispose()


@pytest.mark.integration
class TestMigrations:
    """Run upgrade, verify, downgrade, verify."""

    def test_upgrade_creates_tables(self, alembic_cfg, database_url):
        command.upgrade(alembic_cfg, "head")

        tables = _inspect(database_url)
        assert EXPECTED_TABLES <= set(tables)

    def test_chain_steps_columns(self, alembic_cfg, database_url):
        command.upgrade(alembic_cfg, "head")

        columns = _inspect(database_url)["chain_steps"]["columns"]
        for name in ("assignee_id", "role", "level", "status", "acted_by", "acted_at",
                     "note", "reason", "cancelled_at", "context_snapshot"):
            assert name in columns

    def test_links_are_unique_per_step(self, alembic_cfg, database_url):
        command.upgrade(alembic_cfg, "head")

        unique = _inspect(database_url)["chain_links"]["unique"]
        assert {tuple(u["column_names"]) for u in unique} >= {("from_step_id",), ("to_step_id",)}

    def test_downgrade_drops_tables(self, alembic_cfg, database_url):
        command.upgrade(alembic_cfg, "head")
        command.downgrade(alembic_cfg, "base")

        assert not EXPECTED_TABLES & set(_inspect(database_url))

    def test_models_match_migrations(self, alembic_cfg, database_url):
        """Every model column exists in the migrated schema."""
        from backoffice.db.base import Base
        import backoffice.db.models  # noqa: F401

        command.upgrade(alembic_cfg, "head")
        tables = _inspect(database_url)

        for table in Base.metadata.sorted_tables:
            assert {c.name for c in table.columns} <= tables[table.name]["columns"], table.name
