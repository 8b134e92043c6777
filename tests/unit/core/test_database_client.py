"""Tests for database startup and health probing."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from pricing_dashboard.core.database import DatabaseClient, db_client, init_database


class TestInitDatabase:
    @pytest.mark.asyncio
    async def test_creates_tables_when_auto_migrate_is_on(self) -> None:
        with patch.object(db_client, "connect", AsyncMock()) as connect, \
                patch.object(db_client, "create_tables", AsyncMock()) as create_tables:
            await init_database(auto_migrate=True)

        connect.assert_awaited_once()
        create_tables.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_leaves_schema_alone_when_auto_migrate_is_off(self) -> None:
        with patch.object(db_client, "connect", AsyncMock()), \
                patch.object(db_client, "create_tables", AsyncMock()) as create_tables:
            await init_database(auto_migrate=False)

        create_tables.assert_not_called()

    @pytest.mark.asyncio
    async def test_connection_failure_propagates(self) -> None:
        with patch.object(db_client, "connect", AsyncMock(side_effect=OSError("refused"))), \
                patch.object(db_client, "create_tables", AsyncMock()) as create_tables:
            with pytest.raises(OSError):
                await init_database()

        create_tables.assert_not_called()


class TestHealthCheck:
    @pytest.mark.asyncio
    async def test_unreachable_database_is_unhealthy(self) -> None:
        engine = MagicMock()
        engine.connect.side_effect = OSError("refused")

        health = await DatabaseClient(engine).health_check()

        assert health == {"status": "unhealthy", "connected": False, "error": "refused"}

    @pytest.mark.asyncio
    async def test_reachable_database_is_healthy(self) -> None:
        conn = AsyncMock()
        conn.scalar.return_value = 1
        engine = MagicMock()
        engine.connect.return_value.__aenter__.return_value = conn
        engine.connect.return_value.__aexit__.return_value = None

        health = await DatabaseClient(engine).health_check()

        assert health["status"] == "healthy"
        assert health["latency_test"] == "passed"
