import logging
from typing import Any

from pandoc.types import Div, Header, HorizontalRule

from code_appendix.collector import CodeEntry
from code_appendix.nodes import is_cell_container, is_classed_code, text_inlines
from code_appendix.options import Options

APPENDIX_ID = "code-appendix"
APPENDIX_CLASSES = ["appendix", "code-appendix"]


def strip_inline_code(blocks: list[Any]) -> list[Any]:
    """
    Drop every cell container and every classed code block, the two shapes
    the collector reads, whether or not they produced an entry. Everything
    else passes through in order.
    """
    kept = []
    for block in blocks:
        if is_cell_container(block) or is_classed_code(block):
            logging.debug("  Skipping %s", type(block).__name__)
            continue
        kept.append(block)
    logging.debug("Removed inline code, %d blocks remain", len(kept))
    return kept


def build_appendix(appendix_body: list[Any], options: Options) -> Div:
    content: list[Any] = []
    if options.show_separator:
        content.append(HorizontalRule())
    logging.debug("Creating appendix header: %s", options.appendix_title)
    title = text_inlines(options.appendix_title)
    content.append(Header(options.appendix_level, ("", [], []), title))
    content.extend(appendix_body)
    return Div((APPENDIX_ID, list(APPENDIX_CLASSES), []), content)


def rewrite_blocks(
    blocks: list[Any],
    entries: list[CodeEntry],
    options: Options,
    appendix_body: list[Any],
) -> list[Any]:
    """Return the document blocks with the appendix appended."""
    if not blocks or not entries:
        logging.debug("Nothing to append, returning blocks unchanged")
        return blocks

    if options.show_code_inline:
        new_blocks = list(blocks)
    else:
        logging.debug("Removing inline code (show-code-inline is false)")
        new_blocks = strip_inline_code(blocks)

    new_blocks.append(build_appendix(appendix_body, options))
    return new_blocks
