"""Response synthesis: merge model narrative with backend payloads.

Content rules, first match wins:
    1. A directive resolved to a successful call → narrative prefix + that
       service's rendered payload (the raw completion text is dropped).
    2. Dispatch results present → completion text + one labeled block per
       successful result. Failed results are left out of the text but are
       still recorded in metadata.
    3. Otherwise → completion text verbatim.

Synthesis is a pure function of its inputs. It assigns no id and no
timestamp; OrchestrationResponse.finalize() does that.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from gateway.models.responses import (
    CompletionResult,
    OrchestrationMetadata,
    ProcessingMode,
    SynthesizedReply,
)
from gateway.orchestration.directive import Directive
from gateway.orchestration.prompts import render_payload
from gateway.services.dispatcher import ServiceCallResult
from gateway.services.registry import ServiceIdentifier


SECTION_SEPARATOR = "\n\n---\n\n"


@dataclass(frozen=True)
class DirectiveResolution:
    """A parsed directive together with the result of calling its service."""

    directive: Directive
    result: ServiceCallResult


def format_service_block(identifier: ServiceIdentifier, payload: object) -> str:
    """Render one service payload under its label."""
    if isinstance(payload, str):
        body = payload.strip()
    else:
        body = f"```json\n{render_payload(payload)}\n```"
    return f"**{identifier.display_name} Analysis**\n{body}"


def detect_service_mentions(text: str) -> tuple[ServiceIdentifier, ...]:
    """Services whose identifier or display name appears in ``text``."""
    lowered = text.lower()
    return tuple(
        identifier
        for identifier in ServiceIdentifier
        if identifier.value in lowered or identifier.display_name.lower() in lowered
    )


def in_priority_order(identifiers: Iterable[ServiceIdentifier]) -> list[str]:
    present = set(identifiers)
    return [identifier.value for identifier in ServiceIdentifier if identifier in present]


class ResponseSynthesizer:
    """Builds the user-facing message and its metadata."""

    def synthesize(
        self,
        completion: CompletionResult,
        directive_resolution: DirectiveResolution | None,
        dispatch_results: Mapping[ServiceIdentifier, ServiceCallResult],
        referenced: Iterable[ServiceIdentifier],
        query: str,
        processing_mode: ProcessingMode,
    ) -> SynthesizedReply:
        """Combine completion text, directive result and dispatched payloads.

        Args:
            completion: Output of the completion provider.
            directive_resolution: Directive found in the completion and the
                result of calling its service, if any.
            dispatch_results: Results of the dispatch batch.
            referenced: Classifier output for the active query.
            query: The active user query.
            processing_mode: Mode recorded in metadata.

        Returns:
            SynthesizedReply with content, usage and metadata.
        """
        content = self._build_content(completion, directive_resolution, dispatch_results)

        consulted = [identifier for identifier, result in dispatch_results.items() if result.ok]
        outcomes = {
            identifier.value: result.outcome.value
            for identifier, result in dispatch_results.items()
        }
        if directive_resolution is not None:
            result = directive_resolution.result
            outcomes[result.identifier.value] = result.outcome.value
            if result.ok:
                consulted.append(result.identifier)

        mentioned = detect_service_mentions(f"{query}\n{content}")

        metadata = OrchestrationMetadata(
            services_referenced=in_priority_order([*referenced, *mentioned]),
            services_consulted=in_priority_order(consulted),
            processing_mode=processing_mode,
            backend_data_included=bool(consulted),
            service_outcomes=outcomes,
        )

        return SynthesizedReply(
            content=content,
            finish_reason=completion.finish_reason,
            usage=completion.usage,
            metadata=metadata,
        )

    def _build_content(
        self,
        completion: CompletionResult,
        directive_resolution: DirectiveResolution | None,
        dispatch_results: Mapping[ServiceIdentifier, ServiceCallResult],
    ) -> str:
        text = completion.text

        if directive_resolution is not None:
            directive = directive_resolution.directive
            result = directive_resolution.result
            if result.ok:
                block = format_service_block(directive.service, result.payload)
                if directive.narrative_prefix:
                    return f"{directive.narrative_prefix}\n\n{block}"
                return block
            # Raw directive JSON must not leak into the reply
            text = directive.strip_from(text) or directive.narrative_prefix

        blocks = [
            format_service_block(identifier, result.payload)
            for identifier, result in dispatch_results.items()
            if result.ok
        ]
        if blocks:
            return text + SECTION_SEPARATOR + "\n\n".join(blocks)
        return text
