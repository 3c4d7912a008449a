"""System directives sent to the completion provider."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from typing import Final

from gateway.services.dispatcher import ServiceCallResult
from gateway.services.registry import ServiceIdentifier


BASE_SYSTEM_PROMPT: Final[str] = (
    "You are a project intelligence assistant for construction and engineering "
    "teams. You answer questions about compliance, risk, health and safety, "
    "quality, schedule and budget. Be concise and specific, and say so when "
    "you lack the data to answer."
)

PRE_DISPATCH_TEMPLATE: Final[str] = """{base}

The following analysis results were retrieved for this question. Base your
answer on them and do not invent figures they do not contain.

{results}"""

NO_DATA_NOTE: Final[str] = (
    "No analysis service returned data for this question; answer from general "
    "knowledge and say that live project data was unavailable."
)

POST_DISPATCH_TEMPLATE: Final[str] = """{base}

You can consult one of these analysis services: {services}.
If answering requires live project data from one of them, reply with a single
JSON object and nothing else:
{{"action": "call_service", "service": "<service>", "query": "<what to ask>", "response_prefix": "<one sentence introducing the results>"}}
Otherwise answer directly."""


def render_payload(payload: object) -> str:
    """Render a service payload as stable, indented JSON."""
    return json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False, default=str)


def build_pre_dispatch_directive(results: Mapping[ServiceIdentifier, ServiceCallResult]) -> str:
    """System directive carrying pre-fetched service data."""
    blocks = [
        f"[{identifier.display_name}]\n{render_payload(result.payload)}"
        for identifier, result in results.items()
        if result.ok
    ]
    if not blocks:
        return f"{BASE_SYSTEM_PROMPT}\n\n{NO_DATA_NOTE}" if results else BASE_SYSTEM_PROMPT
    return PRE_DISPATCH_TEMPLATE.format(base=BASE_SYSTEM_PROMPT, results="\n\n".join(blocks))


def build_post_dispatch_directive(available: Iterable[ServiceIdentifier]) -> str:
    """System directive telling the model how to request a service."""
    services = ", ".join(identifier.value for identifier in available)
    if not services:
        return BASE_SYSTEM_PROMPT
    return POST_DISPATCH_TEMPLATE.format(base=BASE_SYSTEM_PROMPT, services=services)
