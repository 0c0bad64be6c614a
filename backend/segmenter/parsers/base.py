from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Union

MathDisplay = Literal["inline", "block"]


@dataclass(frozen=True)
class TextSegment:
    content: str
    type: Literal["text"] = "text"

    def to_dict(self) -> dict[str, object]:
        return {"type": self.type, "content": self.content}


@dataclass(frozen=True)
class CitationSegment:
    id: int
    type: Literal["citation"] = "citation"

    def to_dict(self) -> dict[str, object]:
        return {"type": self.type, "id": self.id}


@dataclass(frozen=True)
class MathSegment:
    latex: str
    display: MathDisplay
    type: Literal["math"] = "math"

    def to_dict(self) -> dict[str, object]:
        return {"type": self.type, "latex": self.latex, "display": self.display}


@dataclass(frozen=True)
class CodeSegment:
    language: str
    content: str
    executable: bool = False
    type: Literal["code"] = "code"

    def to_dict(self) -> dict[str, object]:
        return {
            "type": self.type,
            "language": self.language,
            "content": self.content,
            "executable": self.executable,
        }


@dataclass(frozen=True)
class GraphSegment:
    """Plot-producing code unit; built downstream from executable code, never by parsing."""

    python_code: str
    type: Literal["graph"] = "graph"

    def to_dict(self) -> dict[str, object]:
        return {"type": self.type, "python_code": self.python_code}


Segment = Union[TextSegment, CitationSegment, MathSegment, CodeSegment, GraphSegment]


@dataclass(frozen=True)
class ParsedResponse:
    segments: tuple[Segment, ...]
    has_executable_code: bool = False
    has_math: bool = False
    has_graph: bool = False

    def to_dict(self) -> dict[str, object]:
        return {
            "segments": [segment.to_dict() for segment in self.segments],
            "has_executable_code": self.has_executable_code,
            "has_math": self.has_math,
            "has_graph": self.has_graph,
        }
