"""Orchestration for service-gateway.

Modules:
- classifier: keyword IntentClassifier
- directive: DirectiveParser for model-issued service calls
- synthesizer: ResponseSynthesizer
- strategies: fallback tiers
- pipeline: OrchestrationPipeline (fallback ladder)
- factory: build_pipeline() from settings
"""

__all__: list[str] = []
