"""Keyword intent classifier.

Maps a user utterance onto the backend services worth consulting. The match
is a plain lower-cased substring test against a fixed trigger table, so the
result depends only on the input text.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from types import MappingProxyType
from typing import Final

from gateway.services.registry import ServiceIdentifier


# Table order is the priority order of the output.
DEFAULT_TRIGGERS: Final[Mapping[ServiceIdentifier, tuple[str, ...]]] = MappingProxyType(
    {
        ServiceIdentifier.COMPLIANCE: (
            "compliance",
            "permit",
            "regulation",
            "regulatory",
            "building code",
            "zoning",
            "license",
            "inspection",
        ),
        ServiceIdentifier.RISK: ("risk", "threat", "issue", "exposure", "mitigation"),
        ServiceIdentifier.HSE: (
            "hse",
            "safety",
            "hazard",
            "incident",
            "injury",
            "environmental",
        ),
        ServiceIdentifier.QAQC: (
            "qaqc",
            "qa/qc",
            "quality",
            "defect",
            "nonconformance",
            "punch list",
        ),
        ServiceIdentifier.SCHEDULE: (
            "schedule",
            "timeline",
            "deadline",
            "delay",
            "milestone",
            "critical path",
        ),
        ServiceIdentifier.BUDGET: ("budget", "cost", "price", "financial", "estimate", "spend"),
    }
)


class IntentClassifier:
    """Deterministic keyword router.

    Example:
        >>> IntentClassifier().classify("What is the cost and schedule risk?")
        (<ServiceIdentifier.RISK: 'risk'>, <ServiceIdentifier.SCHEDULE: 'schedule'>, <ServiceIdentifier.BUDGET: 'budget'>)
    """

    def __init__(
        self,
        triggers: Mapping[ServiceIdentifier, Sequence[str]] = DEFAULT_TRIGGERS,
    ) -> None:
        self._triggers = tuple(
            (identifier, tuple(t.lower() for t in words))
            for identifier, words in triggers.items()
        )

    def classify(self, query: str) -> tuple[ServiceIdentifier, ...]:
        """Return the services whose triggers appear in ``query``.

        Each service appears at most once, in table order. An empty tuple
        means no service is needed.
        """
        text = (query or "").lower()
        if not text:
            return ()
        return tuple(
            identifier
            for identifier, words in self._triggers
            if any(word in text for word in words)
        )
