"""Tests for the judge client and logging setup."""

import asyncio
import json
import logging
from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import pytest

from services.llm import JudgeUnavailableError, OllamaClient
from services.logging import JsonFormatter, setup_logging


class TestOllamaClient:
    """Tests for OllamaClient."""

    @pytest.mark.unit
    def test_strips_openai_suffix(self) -> None:
        assert OllamaClient("http://localhost:11434/v1", "llama3.1:8b").base_url == "http://localhost:11434"
        assert OllamaClient("http://localhost:11434/v1/", "llama3.1:8b").base_url == "http://localhost:11434"

    @pytest.mark.unit
    def test_evaluate_returns_content(self) -> None:
        client = OllamaClient("http://localhost:11434", "llama3.1:8b")
        client.llm = SimpleNamespace(ainvoke=AsyncMock(return_value=SimpleNamespace(content="[]")))

        response = asyncio.run(client.evaluate("score these"))

        assert response["content"] == "[]"
        assert response["latency_ms"] >= 0
        (messages,), _ = client.llm.ainvoke.call_args
        assert messages[0].content == "score these"

    @pytest.mark.unit
    def test_refused_connection(self) -> None:
        client = OllamaClient("http://localhost:11434", "llama3.1:8b")
        client.llm = SimpleNamespace(ainvoke=AsyncMock(side_effect=httpx.ConnectError("refused")))

        with pytest.raises(JudgeUnavailableError, match="localhost:11434"):
            asyncio.run(client.evaluate("score these"))

    @pytest.mark.unit
    def test_timeout(self) -> None:
        async def hang(messages):
            await asyncio.sleep(5)

        client = OllamaClient("http://localhost:11434", "llama3.1:8b", timeout=0.01)
        client.llm = SimpleNamespace(ainvoke=hang)

        with pytest.raises(TimeoutError, match="timed out"):
            asyncio.run(client.evaluate("score these"))


class TestLogging:
    """Tests for the JSON log format."""

    @pytest.mark.unit
    def test_json_formatter(self) -> None:
        record = logging.LogRecord("processing.evaluator", logging.WARNING, __file__, 1, "retry %d", (2,), None)

        payload = json.loads(JsonFormatter().format(record))

        assert payload["level"] == "WARNING"
        assert payload["logger"] == "processing.evaluator"
        assert payload["message"] == "retry 2"

    @pytest.mark.unit
    def test_setup_is_idempotent(self) -> None:
        root = logging.getLogger()
        setup_logging("debug")
        setup_logging("INFO")

        handlers = [h for h in root.handlers if isinstance(h.formatter, JsonFormatter)]
        assert len(handlers) == 1
        assert root.level == logging.INFO


class TestHealthCheck:
    """Tests for OllamaClient.health_check."""

    @pytest.mark.unit
    def test_model_available(self) -> None:
        client = OllamaClient("http://localhost:11434", "llama3.1")
        client.list_models = AsyncMock(return_value=["llama3.1:latest", "qwen2.5:7b"])
        assert asyncio.run(client.health_check())

    @pytest.mark.unit
    def test_model_missing(self) -> None:
        client = OllamaClient("http://localhost:11434", "llama3.1:70b")
        client.list_models = AsyncMock(return_value=["llama3.1:8b"])
        assert not asyncio.run(client.health_check())

    @pytest.mark.unit
    def test_server_down(self) -> None:
        client = OllamaClient("http://localhost:11434", "llama3.1:8b")
        client.list_models = AsyncMock(return_value=None)
        assert not asyncio.run(client.health_check())
