from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Literal, Union

from segmenter.parsers.base import CodeSegment, MathSegment

EXECUTABLE_MARKER = ":executable"

CODE_FENCE_PATTERN = re.compile(
    r"```(\w*)(" + re.escape(EXECUTABLE_MARKER) + r")?\n(.*?)```", re.DOTALL | re.ASCII
)
BLOCK_MATH_PATTERN = re.compile(r"\$\$(.*?)\$\$", re.DOTALL)

BlockKind = Literal["code", "math"]


@dataclass(frozen=True)
class FencedBlock:
    """Span of the source taken over by a code fence or block math.

    Later stages read ``(kind, index, span)`` in place of a placeholder token;
    the source text itself is never rewritten.
    """

    kind: BlockKind
    index: int
    start: int
    end: int
    segment: Union[CodeSegment, MathSegment]


@dataclass(frozen=True)
class FencedExtraction:
    blocks: tuple[FencedBlock, ...]
    code_segments: tuple[CodeSegment, ...]
    math_segments: tuple[MathSegment, ...]


def _trim_blank_lines(body: str) -> str:
    lines = body.split("\n")
    while lines and not lines[0].strip():
        lines.pop(0)
    while lines and not lines[-1].strip():
        lines.pop()
    return "\n".join(lines)


def _free_spans(length: int, taken: list[FencedBlock]) -> Iterator[tuple[int, int]]:
    cursor = 0
    for block in taken:
        if block.start > cursor:
            yield cursor, block.start
        cursor = block.end
    if cursor < length:
        yield cursor, length


def extract_code_blocks(content: str) -> list[FencedBlock]:
    blocks: list[FencedBlock] = []
    for match in CODE_FENCE_PATTERN.finditer(content):
        language, marker, body = match.group(1), match.group(2), match.group(3)
        segment = CodeSegment(
            language=language,
            content=_trim_blank_lines(body),
            executable=marker is not None,
        )
        blocks.append(
            FencedBlock(kind="code", index=len(blocks), start=match.start(), end=match.end(), segment=segment)
        )
    return blocks


def extract_block_math(content: str, code_blocks: list[FencedBlock]) -> list[FencedBlock]:
    blocks: list[FencedBlock] = []
    for span_start, span_end in _free_spans(len(content), code_blocks):
        for match in BLOCK_MATH_PATTERN.finditer(content, span_start, span_end):
            segment = MathSegment(latex=match.group(1).strip(), display="block")
            blocks.append(
                FencedBlock(kind="math", index=len(blocks), start=match.start(), end=match.end(), segment=segment)
            )
    return blocks


def extract_fenced_blocks(content: str) -> FencedExtraction:
    # Code fences go first: their bodies may hold `$` that must never open math.
    code_blocks = extract_code_blocks(content)
    math_blocks = extract_block_math(content, code_blocks)
    ordered = sorted([*code_blocks, *math_blocks], key=lambda block: block.start)
    return FencedExtraction(
        blocks=tuple(ordered),
        code_segments=tuple(block.segment for block in code_blocks),
        math_segments=tuple(block.segment for block in math_blocks),
    )


def iter_pieces(content: str, blocks: tuple[FencedBlock, ...]) -> Iterator[Union[str, FencedBlock]]:
    """Yield the plain-text gaps and the fenced blocks of ``content`` in source order."""
    cursor = 0
    for block in blocks:
        if block.start > cursor:
            yield content[cursor : block.start]
        yield block
        cursor = block.end
    if cursor < len(content):
        yield content[cursor:]
