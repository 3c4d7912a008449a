"""Chat API route.

POST /api/v1/chat accepts a transcript and returns one orchestrated reply.
Dependency failures never surface here: the pipeline degrades to a lower
fallback tier instead. Only malformed input is rejected (400).
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException, Request, status

from gateway.core.exceptions import ClientError
from gateway.models.responses import OrchestrationResponse


if TYPE_CHECKING:
    from gateway.orchestration.pipeline import OrchestrationPipeline


router = APIRouter(tags=["chat"])


def _get_pipeline(request: Request) -> OrchestrationPipeline:
    """Get the orchestration pipeline from app state or raise 503."""
    pipeline: OrchestrationPipeline | None = getattr(
        request.app.state, "pipeline", None
    )
    if pipeline is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Orchestration pipeline not initialized",
        )
    return pipeline


@router.post(
    "/chat",
    response_model=OrchestrationResponse,
    summary="Orchestrated chat",
    responses={400: {"description": "Malformed request body"}},
)
async def chat(request: Request) -> OrchestrationResponse:
    """Answer a chat transcript, consulting backend services as needed.

    The body is read raw so that validation failures are reported through
    the gateway error schema rather than FastAPI's 422 format.

    Raises:
        ClientError: Body is not JSON or carries no usable user message.
    """
    pipeline = _get_pipeline(request)
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ClientError("Request body must be valid JSON") from e

    return await pipeline.handle_chat(body)
