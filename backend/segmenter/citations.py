from __future__ import annotations

from typing import Iterable, Literal

from pydantic import BaseModel, Field

from segmenter.parsers.base import CitationSegment, Segment


class Citation(BaseModel):
    id: int = Field(..., ge=0)
    title: str = Field(default="", max_length=500)
    url: str = Field(default="", max_length=2000)
    snippet: str = Field(default="", max_length=4000)
    kind: Literal["internal", "external"] = "external"


class CitationResolution(BaseModel):
    resolved: list[Citation] = Field(default_factory=list)
    missing_ids: list[int] = Field(default_factory=list)


def referenced_citation_ids(segments: Iterable[Segment]) -> list[int]:
    """Unique citation ids in order of first appearance."""
    seen: set[int] = set()
    ordered: list[int] = []
    for segment in segments:
        if not isinstance(segment, CitationSegment) or segment.id in seen:
            continue
        seen.add(segment.id)
        ordered.append(segment.id)
    return ordered


def resolve_citations(segments: Iterable[Segment], catalog: Iterable[Citation]) -> CitationResolution:
    by_id: dict[int, Citation] = {}
    for citation in catalog:
        # First catalog entry wins when ids repeat.
        by_id.setdefault(citation.id, citation)

    resolution = CitationResolution()
    for citation_id in referenced_citation_ids(segments):
        citation = by_id.get(citation_id)
        if citation is None:
            resolution.missing_ids.append(citation_id)
        else:
            resolution.resolved.append(citation)
    return resolution
