"""
Unit tests for engine configuration and timeout detection.
"""

from sqlalchemy.exc import OperationalError

from infrastructure.config import Settings
from infrastructure.database import engine_options, is_statement_timeout


class QueryCanceled(Exception):
    sqlstate = "57014"


class TestEngineOptions:
    def test_postgres_statements_are_bounded(self):
        options = engine_options(
            Settings(
                database_url="postgresql+asyncpg://u:p@db:5432/news",
                db_statement_timeout_seconds=2.5,
                db_pool_timeout_seconds=7,
            )
        )

        assert options["pool_timeout"] == 7
        assert options["connect_args"]["server_settings"] == {"statement_timeout": "2500"}
        assert options["connect_args"]["command_timeout"] == 3.5
        assert "ssl" not in options["connect_args"]

    def test_production_requires_ssl(self):
        options = engine_options(
            Settings(
                database_url="postgresql+asyncpg://u:p@db:5432/news", environment="production"
            )
        )

        assert options["connect_args"]["ssl"] == "require"

    def test_sqlite_has_no_pool_options(self):
        options = engine_options(Settings(database_url="sqlite+aiosqlite:///:memory:"))

        assert "pool_size" not in options
        assert "connect_args" not in options


class TestIsStatementTimeout:
    def test_cancelled_statement(self):
        exc = OperationalError("SELECT pg_sleep(60)", {}, QueryCanceled("canceling statement"))
        assert is_statement_timeout(exc) is True

    def test_other_errors(self):
        assert is_statement_timeout(OperationalError("SELECT 1", {}, Exception("gone"))) is False
        assert is_statement_timeout(ValueError("nope")) is False
