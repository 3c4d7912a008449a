"""Text processing utilities for completion output.

Deep-reasoning models (DeepSeek-R1, Qwen3, o-series proxies) may emit
<think>...</think> style blocks ahead of the answer. Those are stripped
before the text reaches directive parsing or synthesis.
"""

from __future__ import annotations

import re
from typing import Final


_REASONING_TAGS = "think|thinking|reasoning|internal_thought"

_COMBINED_PATTERN: Final[re.Pattern[str]] = re.compile(
    rf"<(?:{_REASONING_TAGS})>.*?</(?:{_REASONING_TAGS})>",
    re.DOTALL | re.IGNORECASE,
)

# Truncated output: an opening tag that never closes
_UNCLOSED_TAG_PATTERN: Final[re.Pattern[str]] = re.compile(
    rf"^\s*<(?:{_REASONING_TAGS})>\s*",
    re.IGNORECASE,
)


def strip_reasoning_tags(content: str) -> str:
    """Strip reasoning/thinking blocks from completion text.

    Examples:
        >>> strip_reasoning_tags("<think>Let me think...</think>The answer is 42.")
        'The answer is 42.'

        >>> strip_reasoning_tags("No tags here.")
        'No tags here.'
    """
    if not content or "<" not in content:
        return content

    cleaned = _COMBINED_PATTERN.sub("", content)
    cleaned = _UNCLOSED_TAG_PATTERN.sub("", cleaned)
    return cleaned.strip()
