"""
Split a model's raw output into an optional reasoning segment and the final answer.

Reasoning models (DeepSeek-R1, Qwen QwQ, ...) wrap their chain of thought like:

    <think>
    thinking content here...
    </think>

    main response content here...

Two ordered rules are applied:
1. Tagged blocks: every `<think>...</think>` block (case-insensitive) is moved to the
   reasoning segment and removed from the answer.
2. Intro phrases (only when no tagged block is present): a leading phrase such as
   "Let me think about this" followed by a blank line. The part before the blank line
   counts as reasoning only when it is longer than MIN_REASONING_CHARS, so short
   incidental openers stay in the answer.

The rules are re-applied to the remaining answer until neither fires, so running the
extractor on its own answer returns that answer unchanged.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Pattern, Sequence

THINK_TAG_PATTERN: Pattern[str] = re.compile(r"<think>([\s\S]*?)</think>", re.IGNORECASE)

INTRO_PATTERNS: Sequence[Pattern[str]] = (
    re.compile(r"^(Let me think about this[\s\S]*?)\n\n([\s\S]*)", re.IGNORECASE),
    re.compile(r"^(I need to consider[\s\S]*?)\n\n([\s\S]*)", re.IGNORECASE),
    re.compile(r"^(Thinking through this[\s\S]*?)\n\n([\s\S]*)", re.IGNORECASE),
)

MIN_REASONING_CHARS = 50


@dataclass(frozen=True)
class Extraction:
    reasoning: Optional[str]
    answer: str
    has_reasoning: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _split_tagged(text: str, tag_pattern: Pattern[str]) -> Optional[tuple[str, str]]:
    blocks = tag_pattern.findall(text)
    if not blocks:
        return None
    reasoning = "\n\n".join(block.strip() for block in blocks if block.strip())
    return reasoning, tag_pattern.sub("", text).strip()


def _split_intro(
    text: str,
    patterns: Sequence[Pattern[str]],
    min_chars: int,
) -> Optional[tuple[str, str]]:
    for pattern in patterns:
        match = pattern.match(text)
        if match and len(match.group(1)) > min_chars:
            return match.group(1).strip(), match.group(2).strip()
    return None


def extract_reasoning(
    raw_text: Optional[str],
    *,
    tag_pattern: Pattern[str] = THINK_TAG_PATTERN,
    intro_patterns: Sequence[Pattern[str]] = INTRO_PATTERNS,
    min_reasoning_chars: int = MIN_REASONING_CHARS,
) -> Extraction:
    answer = (raw_text or "").strip()
    segments: list[str] = []
    found = False

    while True:
        split = _split_tagged(answer, tag_pattern)
        if split is None:
            split = _split_intro(answer, intro_patterns, min_reasoning_chars)
        if split is None:
            break
        found = True
        reasoning, answer = split
        if reasoning:
            segments.append(reasoning)

    if not found:
        return Extraction(reasoning=None, answer=answer, has_reasoning=False)
    return Extraction(reasoning="\n\n".join(segments), answer=answer, has_reasoning=True)
