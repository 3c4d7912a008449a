"""End-to-end chat scenarios through the HTTP surface.

Each scenario drives POST /api/v1/chat on an app wired by build_pipeline,
with every backend, the completion API and the external orchestrator served
by BackendStub.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest
from fastapi import FastAPI
from httpx import AsyncClient

from gateway.core.config import Settings
from gateway.core.constants import DEFAULT_FALLBACK_MESSAGE
from gateway.services.registry import ServiceIdentifier
from tests.unit.services.backend_stub import (
    COMPLETION_HOST,
    ORCHESTRATOR_BASE_URL,
    ORCHESTRATOR_HOST,
    BackendStub,
    service_host,
)


pytestmark = pytest.mark.integration

CHAT_ENDPOINT = "/api/v1/chat"
COMPLIANCE = ServiceIdentifier.COMPLIANCE
RISK = ServiceIdentifier.RISK
BUDGET = ServiceIdentifier.BUDGET
ALL_SERVICES = tuple(ServiceIdentifier)


async def _chat(
    app: FastAPI,
    make_async_client: Callable[[FastAPI], AsyncClient],
    body: Any,
) -> tuple[int, dict[str, Any]]:
    async with make_async_client(app) as client:
        response = await client.post(CHAT_ENDPOINT, json=body)
    return response.status_code, response.json()


class TestScenarioPermitQuestion:
    """Only the compliance service is reachable."""

    async def test_compliance_consulted(
        self,
        backend: BackendStub,
        build_app: Callable[[Settings], FastAPI],
        make_settings: Callable[..., Settings],
        make_async_client: Callable[[FastAPI], AsyncClient],
    ) -> None:
        backend.service(COMPLIANCE, {"required_permits": ["grading", "stormwater"]})
        backend.completion("You need grading and stormwater permits.")
        # Every service configured, but only compliance answers
        app = build_app(make_settings(services=ALL_SERVICES))

        status_code, data = await _chat(
            app,
            make_async_client,
            {"messages": [{"role": "user", "content": "What permits do I need?"}]},
        )

        assert status_code == 200
        assert data["metadata"]["services_consulted"] == ["compliance"]
        assert data["metadata"]["backend_data_included"] is True
        assert "**Compliance Analysis**" in data["message"]["content"]
        assert backend.hosts_called.count(service_host(COMPLIANCE)) == 1


class TestScenarioSmallTalk:
    """Single-message form, no service keywords, healthy completion provider."""

    async def test_raw_completion_returned(
        self,
        backend: BackendStub,
        build_app: Callable[[Settings], FastAPI],
        make_settings: Callable[..., Settings],
        make_async_client: Callable[[FastAPI], AsyncClient],
    ) -> None:
        backend.completion("Hi! Ask me about your project.")
        app = build_app(make_settings(services=ALL_SERVICES))

        status_code, data = await _chat(app, make_async_client, {"message": "hello"})

        assert status_code == 200
        assert data["metadata"]["services_consulted"] == []
        assert data["message"]["content"] == "Hi! Ask me about your project."
        assert backend.hosts_called == [COMPLETION_HOST]


class TestScenarioNoCredential:
    """Completion provider unconfigured and no orchestrator reachable."""

    @pytest.mark.parametrize("orchestrator_url", [None, ORCHESTRATOR_BASE_URL])
    async def test_static_fallback_with_success_status(
        self,
        orchestrator_url: str | None,
        backend: BackendStub,
        build_app: Callable[[Settings], FastAPI],
        make_settings: Callable[..., Settings],
        make_async_client: Callable[[FastAPI], AsyncClient],
    ) -> None:
        app = build_app(
            make_settings(
                services=ALL_SERVICES,
                completion_api_key=None,
                orchestrator_url=orchestrator_url,
            )
        )

        status_code, data = await _chat(
            app, make_async_client, {"message": "What permits do I need?"}
        )

        assert status_code == 200
        assert data["message"]["content"] == DEFAULT_FALLBACK_MESSAGE
        assert data["metadata"]["processing_mode"] == "static_fallback"
        assert data["metadata"]["backend_data_included"] is False
        assert data["metadata"]["services_referenced"] == ["compliance"]
        assert COMPLETION_HOST not in backend.hosts_called


class TestScenarioMalformedInput:
    """No messages and no message: client error, no dependency calls."""

    async def test_client_error_and_no_calls(
        self,
        backend: BackendStub,
        build_app: Callable[[Settings], FastAPI],
        make_settings: Callable[..., Settings],
        make_async_client: Callable[[FastAPI], AsyncClient],
    ) -> None:
        backend.completion("never used")
        app = build_app(
            make_settings(services=ALL_SERVICES, orchestrator_url=ORCHESTRATOR_BASE_URL)
        )

        status_code, data = await _chat(app, make_async_client, {})

        assert status_code == 400
        assert data["error"]["code"] == "CLIENT_ERROR"
        assert backend.requests == []


class TestScenarioPartialTimeout:
    """One of two requested services times out, the other succeeds."""

    async def test_timed_out_service_omitted_from_text(
        self,
        backend: BackendStub,
        build_app: Callable[[Settings], FastAPI],
        make_settings: Callable[..., Settings],
        make_async_client: Callable[[FastAPI], AsyncClient],
    ) -> None:
        backend.service(RISK, {"open_risks": 3})
        backend.service(BUDGET, {"variance": "12%"}, delay=2.0)
        backend.completion("Three open risks; budget data pending.")
        app = build_app(
            make_settings(services=(RISK, BUDGET), service_timeout_seconds=0.1)
        )

        status_code, data = await _chat(
            app, make_async_client, {"message": "What is the risk to our budget?"}
        )

        metadata = data["metadata"]
        content = data["message"]["content"]
        assert status_code == 200
        assert "**Risk Assessment Analysis**" in content
        assert '"open_risks": 3' in content
        assert "Budget Analysis" not in content
        assert "12%" not in content
        assert metadata["services_consulted"] == ["risk"]
        assert set(metadata["services_referenced"]) >= {"risk", "budget"}
        assert metadata["service_outcomes"] == {"risk": "success", "budget": "timeout"}


class TestFallbackTiers:
    """Degradation through the external orchestrator and direct completion."""

    async def test_orchestrator_answers_when_provider_fails(
        self,
        backend: BackendStub,
        build_app: Callable[[Settings], FastAPI],
        make_settings: Callable[..., Settings],
        make_async_client: Callable[[FastAPI], AsyncClient],
    ) -> None:
        backend.respond(COMPLETION_HOST, {"error": {"message": "overloaded"}}, status_code=529)
        backend.respond(
            ORCHESTRATOR_HOST,
            {"choices": [{"message": {"content": "Orchestrated answer."}}]},
        )
        app = build_app(make_settings(orchestrator_url=ORCHESTRATOR_BASE_URL))

        status_code, data = await _chat(app, make_async_client, {"message": "hello"})

        assert status_code == 200
        assert data["message"]["content"] == "Orchestrated answer."
        assert data["metadata"]["processing_mode"] == "external_orchestrator"
        assert data["metadata"]["fallback_reasons"][0].startswith("primary: PROVIDER_ERROR")

    async def test_post_dispatch_mode_end_to_end(
        self,
        backend: BackendStub,
        build_app: Callable[[Settings], FastAPI],
        make_settings: Callable[..., Settings],
        make_async_client: Callable[[FastAPI], AsyncClient],
    ) -> None:
        backend.completion(
            '```json\n{"action": "call_service", "service": "budget", '
            '"query": "tower crane rental", "response_prefix": "Budget figures:"}\n```'
        )
        backend.service(BUDGET, {"crane_rental": 18000})
        app = build_app(
            make_settings(services=(BUDGET,), orchestration_mode="post_dispatch")
        )

        status_code, data = await _chat(
            app, make_async_client, {"message": "How much is the crane costing us?"}
        )

        assert status_code == 200
        assert data["message"]["content"].startswith("Budget figures:\n\n**Budget Analysis**")
        assert data["metadata"]["services_consulted"] == ["budget"]
        assert backend.json_sent_to(service_host(BUDGET))["query"] == "tower crane rental"
