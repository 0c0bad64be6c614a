from __future__ import annotations

from segmenter.parsers import (
    CitationSegment,
    CodeSegment,
    GraphSegment,
    MathSegment,
    ParsedResponse,
    ResponseParser,
    TextSegment,
    graph_segments,
    parse,
    parse_response,
)


def test_plain_text_is_single_text_segment() -> None:
    source = "  Photosynthesis converts light into chemical energy.\n"
    parsed = parse_response(source)

    assert len(parsed.segments) == 1
    assert isinstance(parsed.segments[0], TextSegment)
    assert parsed.segments[0].content.strip() == source.strip()
    assert parsed.has_executable_code is False
    assert parsed.has_math is False
    assert parsed.has_graph is False


def test_inline_constructs_keep_source_order() -> None:
    parsed = parse_response("a $x$ b [1] c")

    assert list(parsed.segments) == [
        TextSegment("a "),
        MathSegment("x", "inline"),
        TextSegment(" b "),
        CitationSegment(1),
        TextSegment(" c"),
    ]
    assert parsed.has_math is True


def test_code_fence_contents_are_never_math() -> None:
    parsed = parse_response("Here:\n```python\nprice = '$5 and $6'\n```\nDone")

    assert list(parsed.segments) == [
        TextSegment("Here:\n"),
        CodeSegment(language="python", content="price = '$5 and $6'", executable=False),
        TextSegment("\nDone"),
    ]
    assert parsed.has_math is False


def test_block_math_delimiters_inside_code_fence_stay_code() -> None:
    parsed = parse_response("```latex\n$$a^2$$\n```")

    assert list(parsed.segments) == [CodeSegment(language="latex", content="$$a^2$$")]
    assert parsed.has_math is False


def test_executable_marker_sets_flag_and_is_stripped_from_language() -> None:
    executable = parse_response("```python:executable\nprint(1)\n```")
    plain = parse_response("```python\nprint(1)\n```")

    assert executable.segments == (CodeSegment(language="python", content="print(1)", executable=True),)
    assert executable.has_executable_code is True
    assert plain.segments == (CodeSegment(language="python", content="print(1)", executable=False),)
    assert plain.has_executable_code is False


def test_block_math_between_prose() -> None:
    parsed = parse_response("Start $$x^2+y^2=1$$ End")

    assert list(parsed.segments) == [
        TextSegment("Start "),
        MathSegment("x^2+y^2=1", "block"),
        TextSegment(" End"),
    ]
    assert parsed.has_math is True


def test_block_math_spans_lines_and_is_trimmed() -> None:
    parsed = parse_response("$$\n\\int_0^1 x\\,dx\n$$")

    assert parsed.segments == (MathSegment("\\int_0^1 x\\,dx", "block"),)


def test_graph_flag_requires_executable_plotting_code() -> None:
    plotting = "import matplotlib.pyplot as plt\nplt.plot([1, 2], [3, 4])"

    executable = parse_response(f"```python:executable\n{plotting}\n```")
    assert executable.has_graph is True
    assert isinstance(executable.segments[0], CodeSegment)
    assert "[1, 2]" in executable.segments[0].content

    static = parse_response(f"```python\n{plotting}\n```")
    assert static.has_graph is False

    no_plot = parse_response("```python:executable\nprint(sum(range(10)))\n```")
    assert no_plot.has_executable_code is True
    assert no_plot.has_graph is False


def test_custom_graph_keywords() -> None:
    source = "```python:executable\nimport seaborn as sns\nsns.lineplot(x=[1], y=[2])\n```"

    assert parse_response(source).has_graph is False
    assert ResponseParser(graph_keywords=["sns."]).parse(source).has_graph is True


def test_empty_input() -> None:
    assert parse_response("") == ParsedResponse(
        segments=(),
        has_executable_code=False,
        has_math=False,
        has_graph=False,
    )


def test_whitespace_only_input_emits_nothing() -> None:
    assert parse_response(" \n\t\n").segments == ()


def test_repeated_citations_are_not_deduplicated() -> None:
    parsed = parse_response("[1] and [1] again")

    assert list(parsed.segments) == [
        CitationSegment(1),
        TextSegment(" and "),
        CitationSegment(1),
        TextSegment(" again"),
    ]


def test_unterminated_fence_degrades_to_text() -> None:
    source = "```python\nprint('never closed')"
    parsed = parse_response(source)

    assert parsed.segments == (TextSegment(source),)
    assert parsed.has_executable_code is False


def test_stray_dollar_stays_text() -> None:
    assert parse_response("It costs $5 today").segments == (TextSegment("It costs $5 today"),)


def test_fence_without_language_tag() -> None:
    parsed = parse_response("```\nplain block\n```")

    assert parsed.segments == (CodeSegment(language="", content="plain block"),)


def test_code_content_drops_boundary_blank_lines_but_keeps_indentation() -> None:
    parsed = parse_response("```python\n\n    indented = 1\n\n    other = 2\n\n```")

    assert parsed.segments == (CodeSegment(language="python", content="    indented = 1\n\n    other = 2"),)


def test_windows_line_endings_are_normalized() -> None:
    parsed = parse_response("Line one\r\n```python\r\nx = 1\r\n```")

    assert list(parsed.segments) == [
        TextSegment("Line one\n"),
        CodeSegment(language="python", content="x = 1"),
    ]


def test_mixed_blocks_and_inline_elements() -> None:
    source = "Intro $$a$$\n```js\nlet b = [1];\n```\nOutro [2]"
    parsed = parse_response(source)

    assert list(parsed.segments) == [
        TextSegment("Intro "),
        MathSegment("a", "block"),
        CodeSegment(language="js", content="let b = [1];"),
        TextSegment("\nOutro "),
        CitationSegment(2),
    ]
    assert parsed.has_math is True
    assert parsed.has_executable_code is False


def test_graph_segments_are_synthesized_from_plotting_code() -> None:
    parsed = parse_response(
        "```python:executable\nimport plotly.express as px\n```\n"
        "```python:executable\nprint('no plot')\n```"
    )

    assert graph_segments(parsed) == [GraphSegment(python_code="import plotly.express as px")]
    assert all(not isinstance(segment, GraphSegment) for segment in parsed.segments)


def test_parse_alias_and_serialization() -> None:
    parsed = parse("See [3] for $e^x$.")

    assert parsed == parse_response("See [3] for $e^x$.")
    assert parsed.to_dict() == {
        "segments": [
            {"type": "text", "content": "See "},
            {"type": "citation", "id": 3},
            {"type": "text", "content": " for "},
            {"type": "math", "latex": "e^x", "display": "inline"},
            {"type": "text", "content": "."},
        ],
        "has_executable_code": False,
        "has_math": True,
        "has_graph": False,
    }


def test_oversized_citation_marker_does_not_raise() -> None:
    source = "see [" + "9" * 5000 + "] end"

    assert parse_response(source).segments == (TextSegment(source),)


def test_non_ascii_digit_marker_is_text() -> None:
    parsed = parse_response("see [٣]")

    assert parsed.segments == (TextSegment("see [٣]"),)
    assert not any(isinstance(segment, CitationSegment) for segment in parsed.segments)
