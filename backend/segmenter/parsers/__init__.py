from segmenter.parsers.base import (
    CitationSegment,
    CodeSegment,
    GraphSegment,
    MathSegment,
    ParsedResponse,
    Segment,
    TextSegment,
)
from segmenter.parsers.response import ResponseParser, graph_segments, parse_response
from segmenter.parsers.text import extract_text_content, has_special_content

parse = parse_response

__all__ = [
    "CitationSegment",
    "CodeSegment",
    "GraphSegment",
    "MathSegment",
    "ParsedResponse",
    "ResponseParser",
    "Segment",
    "TextSegment",
    "extract_text_content",
    "graph_segments",
    "has_special_content",
    "parse",
    "parse_response",
]
