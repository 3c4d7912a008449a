"""Directive parser: extract an embedded service-call request from model text.

In post-dispatch mode the model is told it may ask for a backend service by
emitting a JSON object such as::

    {"action": "call_service", "service": "risk",
     "query": "flood exposure at site B", "response_prefix": "Here is the risk picture:"}

The object may be bare or inside a ```json fence, surrounded by prose.
Extraction is best-effort: anything malformed or incomplete yields None and
never raises.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from gateway.core.logging import get_logger
from gateway.services.registry import ServiceIdentifier


logger = get_logger(__name__)

CALL_SERVICE_ACTION = "call_service"
_decoder = json.JSONDecoder()


@dataclass(frozen=True)
class Directive:
    """A parsed "call this service now" instruction.

    Attributes:
        service: Service to consult.
        query: Query to forward to the service.
        narrative_prefix: Sentence shown before the rendered service payload.
        raw: Exact text span of the directive inside the completion.
    """

    service: ServiceIdentifier
    query: str
    narrative_prefix: str
    raw: str

    def strip_from(self, text: str) -> str:
        """Remove this directive (and an enclosing code fence) from ``text``."""
        fenced = re.compile(r"```(?:json)?\s*" + re.escape(self.raw) + r"\s*```", re.IGNORECASE)
        cleaned, count = fenced.subn("", text, count=1)
        if count == 0:
            cleaned = text.replace(self.raw, "", 1)
        return cleaned.strip()


class DirectiveParser:
    """Best-effort extractor for the first call_service block."""

    def parse(self, completion_text: str | None) -> Directive | None:
        """Return the first well-formed directive, or None.

        The first JSON object whose ``action`` is ``call_service`` is the
        candidate. If it lacks a known service or a query, the result is
        None; later blocks are not consulted.
        """
        if not completion_text or "{" not in completion_text:
            return None

        for obj, raw in _iter_json_objects(completion_text):
            if obj.get("action") != CALL_SERVICE_ACTION:
                continue
            directive = _build_directive(obj, raw)
            if directive is None:
                logger.debug("Ignoring incomplete service directive", raw=raw[:200])
            return directive

        return None


def _iter_json_objects(text: str) -> Iterator[tuple[dict[str, Any], str]]:
    """Yield every top-level JSON object found in ``text`` with its raw span."""
    index = text.find("{")
    while index != -1:
        try:
            obj, end = _decoder.raw_decode(text, index)
        except ValueError:
            index = text.find("{", index + 1)
            continue
        if isinstance(obj, dict):
            yield obj, text[index:end]
        index = text.find("{", end)


def _build_directive(obj: dict[str, Any], raw: str) -> Directive | None:
    service = ServiceIdentifier.parse(obj.get("service"))
    query = obj.get("query")
    prefix = obj.get("response_prefix", obj.get("responsePrefix", ""))

    if service is None or not isinstance(query, str) or not query.strip():
        return None
    if not isinstance(prefix, str):
        prefix = ""

    return Directive(service=service, query=query.strip(), narrative_prefix=prefix.strip(), raw=raw)
