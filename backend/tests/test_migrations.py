import tempfile
from pathlib import Path

from sqlalchemy import create_engine, inspect

import signin_api.config as config_module
from alembic import command
from alembic.config import Config

ALEMBIC_INI = Path(__file__).resolve().parents[1] / "alembic.ini"


def test_alembic_upgrade_head_on_fresh_sqlite_db():
    original_database_url = config_module.settings.database_url
    try:
        with tempfile.TemporaryDirectory() as tmpdir:
            db_path = Path(tmpdir) / "fresh.db"
            database_url = f"sqlite:///{db_path}"

            config_module.settings.database_url = database_url

            alembic_cfg = Config(str(ALEMBIC_INI))
            command.upgrade(alembic_cfg, "head")

            engine = create_engine(
                database_url,
                connect_args={"check_same_thread": False},
            )
            inspector = inspect(engine)
            tables = set(inspector.get_table_names())

            assert {"signin_challenges", "session_tokens"}.issubset(tables)

            challenge_columns = {c["name"] for c in inspector.get_columns("signin_challenges")}
            assert {"nonce", "commitment", "retain_until", "consumed_at"}.issubset(
                challenge_columns
            )
            engine.dispose()
    finally:
        config_module.settings.database_url = original_database_url


def test_alembic_downgrade_base_drops_tables():
    original_database_url = config_module.settings.database_url
    try:
        with tempfile.TemporaryDirectory() as tmpdir:
            database_url = f"sqlite:///{Path(tmpdir) / 'roundtrip.db'}"
            config_module.settings.database_url = database_url

            alembic_cfg = Config(str(ALEMBIC_INI))
            command.upgrade(alembic_cfg, "head")
            command.downgrade(alembic_cfg, "base")

            engine = create_engine(database_url)
            tables = set(inspect(engine).get_table_names())

            assert "signin_challenges" not in tables
            assert "session_tokens" not in tables
            engine.dispose()
    finally:
        config_module.settings.database_url = original_database_url
