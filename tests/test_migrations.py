"""Alembic migrations build the same schema the ORM models declare."""
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import IntegrityError

from eventify.config import settings

ALEMBIC_DIR = Path(__file__).resolve().parent.parent / "alembic"


def _upgrade(monkeypatch, tmp_path) -> str:
    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    monkeypatch.setattr(settings, "DATABASE_URL", url)
    cfg = Config()
    cfg.set_main_option("script_location", str(ALEMBIC_DIR))
    command.upgrade(cfg, "head")
    return url


class TestMigrations:
    def test_upgrade_creates_tables(self, monkeypatch, tmp_path):
        engine = create_engine(_upgrade(monkeypatch, tmp_path))
        inspector = inspect(engine)
        assert {"users", "events", "registrations"} <= set(inspector.get_table_names())

        indexes = {ix["name"]: ix for ix in inspector.get_indexes("registrations")}
        assert indexes["uq_registrations_active_event_user"]["unique"]
        engine.dispose()

    def test_active_uniqueness_enforced_by_schema(self, monkeypatch, tmp_path):
        engine = create_engine(_upgrade(monkeypatch, tmp_path))
        with engine.begin() as conn:
            conn.execute(text(
                "INSERT INTO events (event_id, title, description, city, category, date, time, location, capacity) "
                "VALUES ('e1', 'Choir', '', 'Nicosia', 'culture', '2026-05-01', '18:00', 'Theatre', 5)"
            ))
            insert = text(
                "INSERT INTO registrations (registration_id, event_id, user_id, participants, status) "
                "VALUES (:rid, 'e1', 'u1', '[]', :status)"
            )
            conn.execute(insert, {"rid": "r1", "status": "cancelled"})
            conn.execute(insert, {"rid": "r2", "status": "active"})

        with engine.connect() as conn:
            with pytest.raises(IntegrityError):
                conn.execute(text(
                    "INSERT INTO registrations (registration_id, event_id, user_id, participants, status) "
                    "VALUES ('r3', 'e1', 'u1', '[]', 'active')"
                ))
        engine.dispose()

    def test_downgrade_removes_tables(self, monkeypatch, tmp_path):
        url = _upgrade(monkeypatch, tmp_path)
        cfg = Config()
        cfg.set_main_option("script_location", str(ALEMBIC_DIR))
        command.downgrade(cfg, "base")
        engine = create_engine(url)
        assert "registrations" not in inspect(engine).get_table_names()
        engine.dispose()
