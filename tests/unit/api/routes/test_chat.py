"""Unit tests for the chat API route."""

from __future__ import annotations

from collections.abc import Callable

import pytest
from fastapi import FastAPI, status
from fastapi.testclient import TestClient
from httpx import AsyncClient

from gateway.core.config import Settings
from tests.unit.services.backend_stub import COMPLETION_HOST, BackendStub


CHAT_ENDPOINT = "/api/v1/chat"


class TestChatRouteWithoutPipeline:
    def test_returns_503_before_startup(self) -> None:
        from gateway.api.routes.chat import router

        app = FastAPI()
        app.include_router(router, prefix="/api/v1")

        response = TestClient(app).post(CHAT_ENDPOINT, json={"message": "hi"})

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE


class TestChatRoute:
    @pytest.fixture
    def app(
        self,
        build_app: Callable[[Settings], FastAPI],
        make_settings: Callable[..., Settings],
    ) -> FastAPI:
        return build_app(make_settings())

    async def test_answers_with_completion_shape(
        self,
        app: FastAPI,
        backend: BackendStub,
        make_async_client: Callable[[FastAPI], AsyncClient],
    ) -> None:
        backend.completion("Hello! How can I help?")

        async with make_async_client(app) as client:
            response = await client.post(CHAT_ENDPOINT, json={"message": "hello"})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["id"].startswith("chat_")
        assert data["object"] == "chat.completion"
        assert data["message"] == {"role": "assistant", "content": "Hello! How can I help?"}
        assert data["choices"][0]["message"]["content"] == "Hello! How can I help?"
        assert data["usage"]["total_tokens"] == 20
        assert data["metadata"]["processing_mode"] == "pre_dispatch"
        assert "timestamp" in data

    async def test_invalid_json_is_400(
        self,
        app: FastAPI,
        backend: BackendStub,
        make_async_client: Callable[[FastAPI], AsyncClient],
    ) -> None:
        async with make_async_client(app) as client:
            response = await client.post(
                CHAT_ENDPOINT,
                content=b"{not json",
                headers={"Content-Type": "application/json"},
            )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"]["code"] == "CLIENT_ERROR"
        assert backend.requests == []

    async def test_empty_body_is_400(
        self,
        app: FastAPI,
        backend: BackendStub,
        make_async_client: Callable[[FastAPI], AsyncClient],
    ) -> None:
        async with make_async_client(app) as client:
            response = await client.post(CHAT_ENDPOINT, content=b"")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert backend.requests == []

    async def test_unknown_model_tier_is_400(
        self,
        app: FastAPI,
        backend: BackendStub,
        make_async_client: Callable[[FastAPI], AsyncClient],
    ) -> None:
        async with make_async_client(app) as client:
            response = await client.post(
                CHAT_ENDPOINT, json={"message": "hi", "model_tier": "turbo"}
            )

        body = response.json()
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert body["error"]["details"] == {"field": "model_tier"}
        assert backend.requests_to(COMPLETION_HOST) == []
