"""Tests for graph client construction and the shared runtime wiring."""

import os
from unittest.mock import AsyncMock, MagicMock, patch

import pytest


class TestCreateGraphClient:
    @pytest.mark.asyncio
    async def test_disabled_returns_none(self):
        from friend_graph_service.config import FalkorDBSettings
        from friend_graph_service.graph.factory import create_graph_client

        with patch.dict(os.environ, {"FRIENDS_FALKORDB_ENABLED": "false"}, clear=False):
            config = FalkorDBSettings()

        assert await create_graph_client(config) is None

    @pytest.mark.asyncio
    @patch("friend_graph_service.graph.factory.GraphClient")
    async def test_enabled_initializes_client(self, mock_client_cls):
        from friend_graph_service.config import FalkorDBSettings
        from friend_graph_service.graph.factory import create_graph_client

        mock_client_cls.return_value.initialize = AsyncMock()
        env = {"FRIENDS_FALKORDB_PASSWORD": "s3cret", "FRIENDS_FALKORDB_GRAPH_NAME": "social"}
        with patch.dict(os.environ, env, clear=False):
            config = FalkorDBSettings()

        client = await create_graph_client(config)

        assert client is mock_client_cls.return_value
        assert mock_client_cls.call_args.kwargs["password"] == "s3cret"
        assert mock_client_cls.call_args.kwargs["graph_name"] == "social"
        client.initialize.assert_awaited_once()


class TestGraphRuntime:
    @pytest.mark.asyncio
    @patch("friend_graph_service.shared_graph.create_graph_client", new_callable=AsyncMock)
    async def test_graph_disabled_leaves_engine_unset(self, mock_create):
        from friend_graph_service.config import Settings
        from friend_graph_service.shared_graph import GraphRuntime

        mock_create.return_value = None
        runtime = GraphRuntime(Settings())

        assert await runtime.initialize() is None
        assert runtime.engine is None
        assert runtime.notifications is None
        await runtime.close()

    @pytest.mark.asyncio
    @patch("friend_graph_service.shared_graph.NotificationQueue")
    @patch("friend_graph_service.shared_graph.create_graph_client", new_callable=AsyncMock)
    async def test_wires_engine_with_notifications(self, mock_create, mock_queue_cls):
        from friend_graph_service.config import Settings
        from friend_graph_service.shared_graph import GraphRuntime

        graph = MagicMock(close=AsyncMock())
        mock_create.return_value = graph
        queue = mock_queue_cls.return_value
        queue.start_consumer = AsyncMock()
        queue.stop_consumer = AsyncMock()

        runtime = GraphRuntime(Settings())
        engine = await runtime.initialize()

        assert engine is runtime.engine
        assert runtime.graph_client is graph
        queue.start_consumer.assert_awaited_once()

        # Second call reuses the same instances
        assert await runtime.initialize() is engine
        mock_create.assert_awaited_once()

        await runtime.close()
        queue.stop_consumer.assert_awaited_once()
        graph.close.assert_awaited_once()
        assert runtime.engine is None
