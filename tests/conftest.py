from pathlib import Path

import pytest

from code_appendix import PandocNotFoundError, configure_pandoc

# pandoc.types has to be configured before any code_appendix module imports it.
try:
    configure_pandoc()
except PandocNotFoundError:
    # only the executable lookup can be tested without pandoc
    collect_ignore = [
        path.name
        for path in Path(__file__).parent.glob("test_*.py")
        if path.name != "test_configure.py"
    ]
else:
    from pandoc.types import (
        CodeBlock,
        Div,
        Header,
        Meta,
        MetaBool,
        MetaMap,
        MetaString,
        Pandoc,
        Para,
        Str,
    )


def _to_meta(value):
    if isinstance(value, bool):
        return MetaBool(value)
    return MetaString(str(value))


@pytest.fixture
def code():
    """CodeBlock builder: code("print(1)", "python", filename="a.py")."""

    def build(text, *classes, **attrs):
        return CodeBlock(("", list(classes), list(attrs.items())), text)

    return build


@pytest.fixture
def output():
    """A cell-output Div holding its text in an unclassed CodeBlock."""

    def build(text, kind="cell-output-stdout"):
        return Div(
            ("", ["cell-output", kind], []), [CodeBlock(("", [], []), text)]
        )

    return build


@pytest.fixture
def cell(code):
    """Cell Div builder; `language` adds a cell-code block first when given."""

    def build(*children, language=None, source="", **attrs):
        content = list(children)
        if language is not None:
            content.insert(0, code(source, "cell-code", language))
        return Div(("", ["cell"], list(attrs.items())), content)

    return build


@pytest.fixture
def meta():
    """Meta with `extensions: code-appendix:` settings from a plain dict."""

    def build(settings=None):
        if settings is None:
            return Meta({})
        return Meta(
            {
                "extensions": MetaMap(
                    {
                        "code-appendix": MetaMap(
                            {k: _to_meta(v) for k, v in settings.items()}
                        )
                    }
                )
            }
        )

    return build


@pytest.fixture
def document(meta):
    def build(*blocks, settings=None):
        return Pandoc(meta(settings), list(blocks))

    return build


@pytest.fixture
def heading():
    def build(text, level=1):
        return Header(level, ("", [], []), [Str(text)])

    return build


@pytest.fixture
def para():
    def build(text):
        return Para([Str(text)])

    return build
