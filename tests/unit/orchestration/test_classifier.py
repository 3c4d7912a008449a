"""Unit tests for the keyword IntentClassifier."""

from __future__ import annotations

import pytest

from gateway.orchestration.classifier import DEFAULT_TRIGGERS, IntentClassifier
from gateway.services.registry import ServiceIdentifier


COMPLIANCE = ServiceIdentifier.COMPLIANCE
RISK = ServiceIdentifier.RISK
HSE = ServiceIdentifier.HSE
QAQC = ServiceIdentifier.QAQC
SCHEDULE = ServiceIdentifier.SCHEDULE
BUDGET = ServiceIdentifier.BUDGET


@pytest.fixture
def classifier() -> IntentClassifier:
    return IntentClassifier()


class TestClassify:
    @pytest.mark.parametrize(
        ("query", "expected"),
        [
            ("What permits do I need?", (COMPLIANCE,)),
            ("Any new threat to the site?", (RISK,)),
            ("Log the injury from yesterday", (HSE,)),
            ("Open items on the punch list", (QAQC,)),
            ("Is the critical path slipping?", (SCHEDULE,)),
            ("What is the projected spend?", (BUDGET,)),
        ],
    )
    def test_single_service(
        self, classifier: IntentClassifier, query: str, expected: tuple[ServiceIdentifier, ...]
    ) -> None:
        assert classifier.classify(query) == expected

    def test_no_trigger_is_empty_not_error(self, classifier: IntentClassifier) -> None:
        assert classifier.classify("hello") == ()

    @pytest.mark.parametrize("query", ["", None])
    def test_empty_query(self, classifier: IntentClassifier, query: str | None) -> None:
        assert classifier.classify(query) == ()  # type: ignore[arg-type]

    def test_case_insensitive(self, classifier: IntentClassifier) -> None:
        assert classifier.classify("BUILDING CODE review") == (COMPLIANCE,)

    def test_output_follows_priority_not_text_order(self, classifier: IntentClassifier) -> None:
        result = classifier.classify("Budget overrun, schedule delay and a safety risk")

        assert result == (RISK, HSE, SCHEDULE, BUDGET)

    def test_service_included_once(self, classifier: IntentClassifier) -> None:
        result = classifier.classify("cost, price, budget and financial estimate")

        assert result == (BUDGET,)

    def test_deterministic(self, classifier: IntentClassifier) -> None:
        query = "Which permit issues threaten the milestone budget?"

        first = classifier.classify(query)
        assert all(classifier.classify(query) == first for _ in range(5))
        assert len(set(first)) == len(first)

    def test_every_default_trigger_routes_to_its_service(
        self, classifier: IntentClassifier
    ) -> None:
        for identifier, words in DEFAULT_TRIGGERS.items():
            for word in words:
                assert identifier in classifier.classify(f"question about {word} today")

    def test_custom_trigger_table(self) -> None:
        classifier = IntentClassifier({BUDGET: ("Invoice",)})

        assert classifier.classify("send the invoice") == (BUDGET,)
        assert classifier.classify("budget") == ()
