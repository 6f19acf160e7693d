import logging
from typing import Any

from pandoc.types import Pandoc

from code_appendix.assembler import assemble
from code_appendix.collector import collect_entries
from code_appendix.options import Options, debug_logging, load_options, log_options
from code_appendix.rewriter import rewrite_blocks

HTML_FORMATS = frozenset(
    {
        "html",
        "html4",
        "html5",
        "revealjs",
        "slidy",
        "slideous",
        "s5",
        "dzslides",
        "epub",
        "epub2",
        "epub3",
    }
)


def is_html_format(output_format: str | None) -> bool:
    """True for HTML-like targets; extension suffixes (`html5+smart`) are ignored."""
    if not output_format:
        return False
    base = output_format.split("+", 1)[0].split("-", 1)[0].lower()
    return base in HTML_FORMATS


def process_document(
    doc: Pandoc,
    output_format: str | None = None,
    defaults: dict[str, Any] | None = None,
) -> Pandoc:
    """
    Collect the document's code blocks and append them as a code appendix.

    Returns `doc` itself when there is nothing to collect. Not idempotent:
    running it on its own output collects the body again and appends a
    second appendix.
    """
    options = load_options(doc[0], defaults)
    with debug_logging(options.debug):
        log_options(options)
        return _append_appendix(doc, options, output_format)


def _append_appendix(
    doc: Pandoc, options: Options, output_format: str | None
) -> Pandoc:
    meta, blocks = doc[0], doc[1]
    if not blocks:
        logging.debug("Empty document, returning unchanged")
        return doc

    entries = collect_entries(blocks)
    if not entries:
        logging.debug("No code blocks collected, returning document unchanged")
        return doc
    logging.debug("Collected %d code blocks total", len(entries))

    appendix_body = assemble(entries, options, is_html_format(output_format))
    return Pandoc(meta, rewrite_blocks(blocks, entries, options, appendix_body))
