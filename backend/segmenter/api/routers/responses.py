from __future__ import annotations

from typing import Callable

from fastapi import APIRouter, HTTPException

from segmenter.api.contracts import ContentRequest, ParseResponseRequest
from segmenter.citations import resolve_citations
from segmenter.config import settings
from segmenter.parsers import ResponseParser, extract_text_content, has_special_content

ResponseParserGetter = Callable[[], ResponseParser]


def _require_content_size(content: str) -> None:
    if len(content) > settings.max_content_chars:
        raise HTTPException(
            status_code=413,
            detail={
                "message": "Content exceeds the maximum allowed size.",
                "max_content_chars": settings.max_content_chars,
                "content_chars": len(content),
            },
        )


def build_responses_router(*, get_response_parser: ResponseParserGetter) -> APIRouter:
    router = APIRouter()

    @router.post("/responses/parse")
    def parse_response_endpoint(payload: ParseResponseRequest) -> dict[str, object]:
        _require_content_size(payload.content)
        parser = get_response_parser()
        parsed = parser.parse(payload.content)

        body = parsed.to_dict()
        body["graphs"] = [graph.to_dict() for graph in parser.graph_segments(parsed)]
        if payload.citations is not None:
            body["citations"] = resolve_citations(parsed.segments, payload.citations).model_dump()
        return body

    @router.post("/responses/text")
    def response_text_endpoint(payload: ContentRequest) -> dict[str, str]:
        _require_content_size(payload.content)
        parsed = get_response_parser().parse(payload.content)
        return {"text": extract_text_content(parsed.segments)}

    @router.post("/responses/detect")
    def detect_special_content_endpoint(payload: ContentRequest) -> dict[str, bool]:
        _require_content_size(payload.content)
        return {"has_special_content": has_special_content(payload.content)}

    return router
