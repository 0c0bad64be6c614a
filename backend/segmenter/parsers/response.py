from __future__ import annotations

import logging
from typing import Iterable

from segmenter.parsers.base import CodeSegment, GraphSegment, MathSegment, ParsedResponse, Segment
from segmenter.parsers.fenced import FencedBlock, extract_fenced_blocks, iter_pieces
from segmenter.parsers.inline import parse_inline_elements

logger = logging.getLogger("segmenter.parsers")

DEFAULT_GRAPH_KEYWORDS = ("plt.", "plotly", "matplotlib")


class ResponseParser:
    """Splits one assistant message into ordered, typed segments.

    Fenced code and block math are lifted out first, the text between them is
    handed to the inline scanner, and every block is emitted back at its source
    position. The parser keeps no state between calls.
    """

    def __init__(self, graph_keywords: Iterable[str] | None = None) -> None:
        keywords = DEFAULT_GRAPH_KEYWORDS if graph_keywords is None else graph_keywords
        self._graph_keywords = tuple(keyword for keyword in keywords if keyword)

    @property
    def graph_keywords(self) -> tuple[str, ...]:
        return self._graph_keywords

    def is_plotting_code(self, segment: CodeSegment) -> bool:
        if not segment.executable:
            return False
        return any(keyword in segment.content for keyword in self._graph_keywords)

    def parse(self, content: str) -> ParsedResponse:
        normalized = (content or "").replace("\r\n", "\n")
        extraction = extract_fenced_blocks(normalized)

        segments: list[Segment] = []
        pending: list[str] = []

        def flush_text() -> None:
            run = "".join(pending)
            pending.clear()
            if run.strip():
                segments.extend(parse_inline_elements(run))

        for piece in iter_pieces(normalized, extraction.blocks):
            if isinstance(piece, FencedBlock):
                flush_text()
                segments.append(piece.segment)
                continue
            pending.append(piece)
        flush_text()

        code_segments = [segment for segment in segments if isinstance(segment, CodeSegment)]
        has_executable_code = any(segment.executable for segment in code_segments)
        has_math = bool(extraction.math_segments) or any(isinstance(segment, MathSegment) for segment in segments)
        has_graph = any(self.is_plotting_code(segment) for segment in code_segments)

        logger.debug(
            "response_parsed",
            extra={
                "event": "response_parsed",
                "content_chars": len(normalized),
                "segment_count": len(segments),
                "code_blocks": len(extraction.code_segments),
                "math_blocks": len(extraction.math_segments),
            },
        )
        return ParsedResponse(
            segments=tuple(segments),
            has_executable_code=has_executable_code,
            has_math=has_math,
            has_graph=has_graph,
        )

    def graph_segments(self, parsed: ParsedResponse) -> list[GraphSegment]:
        return [
            GraphSegment(python_code=segment.content)
            for segment in parsed.segments
            if isinstance(segment, CodeSegment) and self.is_plotting_code(segment)
        ]


_default_parser = ResponseParser()


def parse_response(content: str) -> ParsedResponse:
    return _default_parser.parse(content)


def graph_segments(parsed: ParsedResponse) -> list[GraphSegment]:
    return _default_parser.graph_segments(parsed)
