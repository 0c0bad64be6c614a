from __future__ import annotations

import re

from segmenter.parsers.base import CitationSegment, MathSegment, Segment, TextSegment

# ASCII-only classes: `[٣]` is prose, not a citation.
INLINE_MATH_PATTERN = re.compile(r"\$([^$\n]+?)\$", re.ASCII)
CITATION_PATTERN = re.compile(r"\[(\d+)\]", re.ASCII)
INLINE_PATTERN = re.compile(r"(\$[^$\n]+?\$)|(\[\d+\])", re.ASCII)


def _append_text(segments: list[Segment], text: str) -> None:
    # Fragments keep their whitespace; only blank ones are dropped.
    if text.strip():
        segments.append(TextSegment(content=text))


def _citation_id(token: str) -> int | None:
    try:
        return int(token[1:-1])
    except ValueError:
        # Digit runs past the interpreter's int conversion limit.
        return None


def parse_inline_elements(text: str) -> list[Segment]:
    segments: list[Segment] = []
    last_index = 0

    for match in INLINE_PATTERN.finditer(text):
        math_token, citation_token = match.group(1), match.group(2)
        if math_token is not None:
            _append_text(segments, text[last_index : match.start()])
            segments.append(MathSegment(latex=math_token[1:-1], display="inline"))
        else:
            citation_id = _citation_id(citation_token)
            if citation_id is None:
                # Left in place so it joins the surrounding text fragment.
                continue
            _append_text(segments, text[last_index : match.start()])
            segments.append(CitationSegment(id=citation_id))

        last_index = match.end()

    _append_text(segments, text[last_index:])
    return segments
