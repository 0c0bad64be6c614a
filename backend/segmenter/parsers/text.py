from __future__ import annotations

from typing import Iterable

from segmenter.parsers.base import (
    CitationSegment,
    CodeSegment,
    GraphSegment,
    MathSegment,
    Segment,
    TextSegment,
)
from segmenter.parsers.fenced import BLOCK_MATH_PATTERN, CODE_FENCE_PATTERN, EXECUTABLE_MARKER
from segmenter.parsers.inline import CITATION_PATTERN, INLINE_MATH_PATTERN

GRAPH_PLACEHOLDER = "[Graph]"


def _segment_to_text(segment: Segment) -> str:
    if isinstance(segment, TextSegment):
        return segment.content
    if isinstance(segment, MathSegment):
        if segment.display == "block":
            return f"$${segment.latex}$$"
        return f"${segment.latex}$"
    if isinstance(segment, CodeSegment):
        marker = EXECUTABLE_MARKER if segment.executable else ""
        return f"```{segment.language}{marker}\n{segment.content}\n```"
    if isinstance(segment, CitationSegment):
        return f"[{segment.id}]"
    if isinstance(segment, GraphSegment):
        return GRAPH_PLACEHOLDER
    return ""


def extract_text_content(segments: Iterable[Segment]) -> str:
    """Flatten segments back to their literal notation for copy-as-text."""
    return "".join(_segment_to_text(segment) for segment in segments)


def has_special_content(content: str) -> bool:
    if not content:
        return False
    return any(
        pattern.search(content) is not None
        for pattern in (BLOCK_MATH_PATTERN, INLINE_MATH_PATTERN, CODE_FENCE_PATTERN, CITATION_PATTERN)
    )
