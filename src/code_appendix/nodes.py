"""
Predicates and small accessors over pandoc AST nodes.

Quarto wraps executed code in a ``Div`` with class ``cell``; inside it the
source is a ``CodeBlock`` tagged ``cell-code`` followed by ``Div``s whose
classes start with ``cell-output``.
"""

from typing import Any

from pandoc.types import (
    Code,
    CodeBlock,
    Div,
    LineBreak,
    Space,
    SoftBreak,
    Str,
)

CELL_CLASS = "cell"
CELL_CODE_CLASS = "cell-code"
OUTPUT_CLASS_PREFIX = "cell-output"
DEFAULT_LANGUAGE = "text"

# Values of the `appendix` attribute that exclude a block.
EXCLUDE_VALUES = frozenset({"false", "no"})


def classes_of(block: Any) -> list[str]:
    if isinstance(block, (Div, CodeBlock)):
        return list(block[0][1])
    return []


def attribute(block: Any, key: str) -> str | None:
    """Return the value of a key/value attribute on a Div or CodeBlock, if set."""
    if not isinstance(block, (Div, CodeBlock)):
        return None
    for k, v in block[0][2]:
        if k == key:
            return v
    return None


def is_cell_container(block: Any) -> bool:
    return isinstance(block, Div) and CELL_CLASS in classes_of(block)


def is_output_container(block: Any) -> bool:
    return isinstance(block, Div) and any(
        c.startswith(OUTPUT_CLASS_PREFIX) for c in classes_of(block)
    )


def is_cell_code(block: Any) -> bool:
    return isinstance(block, CodeBlock) and CELL_CODE_CLASS in classes_of(block)


def is_classed_code(block: Any) -> bool:
    """A bare CodeBlock with at least one class; unclassed ones are output artifacts."""
    return isinstance(block, CodeBlock) and bool(classes_of(block))


def is_included(block: Any) -> bool:
    value = attribute(block, "appendix")
    if value in EXCLUDE_VALUES:
        return False
    return True


def filename_of(block: Any) -> str | None:
    return attribute(block, "filename")


def cell_code_language(block: Any) -> str:
    """First class other than ``cell-code``, scanning left to right."""
    for c in classes_of(block):
        if c != CELL_CODE_CLASS:
            return c
    return DEFAULT_LANGUAGE


def extract_text_from_inlines(inlines: list[Any]) -> str:
    text_parts = []
    for inline in inlines:
        if isinstance(inline, Str):
            text_parts.append(inline[0])
        elif isinstance(inline, (Space, SoftBreak, LineBreak)):
            text_parts.append(" ")
        elif isinstance(inline, Code):
            text_parts.append(inline[1])
        elif hasattr(inline, "__iter__") and len(inline) > 0:
            # Emph, Strong, Span, Link, ...: the nested inlines are the last list field
            nested = [field for field in inline if isinstance(field, list)]
            if nested:
                text_parts.append(extract_text_from_inlines(nested[-1]))
    return "".join(text_parts)


def text_inlines(text: str) -> list[Any]:
    """Tokenize text on whitespace into Str/Space inlines."""
    inlines: list[Any] = []
    for word in text.split():
        if inlines:
            inlines.append(Space())
        inlines.append(Str(word))
    return inlines
