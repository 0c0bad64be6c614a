#!/usr/bin/env python3
"""Segment an assistant message from a file or stdin and print the result."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from segmenter.parsers import extract_text_content, graph_segments, parse_response


def _read_content(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Split an AI response into text, math, code and citation segments."
    )
    parser.add_argument(
        "source",
        nargs="?",
        default="-",
        help="Path to the message file, or '-' to read stdin (default).",
    )
    parser.add_argument(
        "--text",
        action="store_true",
        help="Print the copy-as-text reconstruction instead of JSON.",
    )
    parser.add_argument(
        "--indent",
        type=int,
        default=2,
        help="JSON indentation (default: 2).",
    )
    args = parser.parse_args(argv)

    parsed = parse_response(_read_content(args.source))
    if args.text:
        print(extract_text_content(parsed.segments))
        return 0

    body = parsed.to_dict()
    body["graphs"] = [graph.to_dict() for graph in graph_segments(parsed)]
    print(json.dumps(body, indent=args.indent, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
