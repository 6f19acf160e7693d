import logging

import pytest
from pandoc.types import Div, Header, HorizontalRule, Pandoc, RawBlock, Space, Str

from code_appendix.transform import is_html_format, process_document


def appendix_of(doc):
    last = doc[1][-1]
    assert isinstance(last, Div) and last[0][0] == "code-appendix"
    return last[1]


def test_document_without_code_is_unchanged(document, para, code):
    doc = document(para("just text"), code("unclassed"))
    assert process_document(doc) is doc


def test_empty_document_is_unchanged(document):
    doc = document()
    assert process_document(doc) is doc


def test_standalone_block_with_level_two(document, code, para):
    block = code("print('hi')", "python")
    doc = document(para("intro"), block, settings={"appendix-level": 2})
    result = process_document(doc)

    assert isinstance(result, Pandoc)
    assert result[1][:2] == doc[1]
    assert result[1][1] is block
    assert appendix_of(result) == [
        HorizontalRule(),
        Header(2, ("", [], []), [Str("Code"), Space(), Str("Appendix")]),
        block,
    ]


def test_grouped_scenario(document, cell, code, output):
    r_out = output("[1] 2")
    py_out1, py_out2 = output("a"), output("b")
    r_code = code("1 + 1", "cell-code", "r")
    py_code = code("print('a'); print('b')", "cell-code", "python")
    doc = document(
        cell(r_code, r_out),
        cell(py_code, py_out1, py_out2),
        settings={"group-by-language": True},
    )
    body = appendix_of(process_document(doc))
    assert body[2:] == [
        Header(2, ("", [], []), [Str("Python")]),
        py_code,
        py_out1,
        py_out2,
        Header(2, ("", [], []), [Str("R")]),
        r_code,
        r_out,
    ]


def test_empty_title_resolves_to_default(document, code):
    doc = document(code("x", "python"), settings={"appendix-title": ""})
    header = appendix_of(process_document(doc))[1]
    assert header[2] == [Str("Code"), Space(), Str("Appendix")]


def test_level_nine_clamped_with_warning(document, code, caplog):
    caplog.set_level(logging.WARNING)
    doc = document(code("x", "python"), settings={"appendix-level": 9})
    header = appendix_of(process_document(doc))[1]
    assert header[0] == 1
    assert len([r for r in caplog.records if r.levelno == logging.WARNING]) == 1


def test_entry_count_matches_included_code(document, cell, code, para):
    doc = document(
        cell(language="python"),
        cell(language="r", appendix="false"),
        code("x", "bash"),
        code("y", "bash", appendix="no"),
        code("raw"),
        para("text"),
        settings={"show-separator": False},
    )
    body = appendix_of(process_document(doc))
    code_blocks = body[1:]
    assert len(code_blocks) == 2


def test_show_code_inline_false_moves_code(document, cell, code, para):
    intro = para("intro")
    doc = document(
        intro,
        cell(language="python"),
        code("x", "bash"),
        settings={"show-code-inline": False},
    )
    result = process_document(doc)
    assert result[1][0] is intro
    assert len(result[1]) == 2


def test_show_code_inline_false_strips_excluded_cells(document, cell, code, para):
    intro = para("intro")
    doc = document(
        intro,
        cell(language="python", appendix="false"),
        code("x", "bash"),
        settings={"show-code-inline": False},
    )
    result = process_document(doc)
    assert result[1][0] is intro
    assert len(result[1]) == 2
    assert len(appendix_of(result)) == 3  # separator, heading, bash block


def test_debug_option_applies_to_one_document(document, code, caplog):
    caplog.set_level(logging.WARNING)
    caplog.handler.setLevel(logging.DEBUG)

    process_document(document(code("x", "python"), settings={"debug": True}))
    assert logging.getLogger().level == logging.WARNING
    assert "Debug mode enabled" in [r.getMessage() for r in caplog.records]

    caplog.clear()
    process_document(document(code("y", "python")))
    assert not [r for r in caplog.records if r.levelno == logging.DEBUG]


def test_collapsible_html_only(document, code):
    settings = {"group-by-language": True, "collapsible": True}
    doc = document(code("x", "python"), settings=settings)

    html_body = appendix_of(process_document(doc, "html5"))
    assert isinstance(html_body[2], RawBlock)
    assert isinstance(html_body[-1], RawBlock)

    latex_body = appendix_of(process_document(doc, "latex"))
    assert isinstance(latex_body[2], Header)
    assert not any(isinstance(b, RawBlock) for b in latex_body)


def test_not_idempotent(document, code):
    doc = document(code("x", "python"))
    twice = process_document(process_document(doc))
    appendices = [b for b in twice[1] if isinstance(b, Div)]
    assert len(appendices) == 2


def test_defaults_apply_when_document_is_silent(document, code):
    doc = document(code("x", "python"))
    result = process_document(doc, defaults={"show-separator": False})
    assert not isinstance(appendix_of(result)[0], HorizontalRule)


@pytest.mark.parametrize(
    "fmt,expected",
    [
        ("html", True),
        ("html5", True),
        ("html5+smart", True),
        ("revealjs", True),
        ("latex", False),
        ("docx", False),
        ("", False),
        (None, False),
    ],
)
def test_is_html_format(fmt, expected):
    assert is_html_format(fmt) is expected
