"""
Turn collected entries into the block sequence of the appendix body.

Two layouts: sequential (document order) and grouped (one section per
language, languages sorted, document order within each section).
"""

import html
import logging
from collections import defaultdict
from typing import Any

from pandoc.types import (
    Code,
    CodeBlock,
    Format,
    Header,
    Para,
    RawBlock,
    Str,
    Strong,
)

from code_appendix.collector import CodeEntry
from code_appendix.nodes import DEFAULT_LANGUAGE, text_inlines
from code_appendix.options import MAX_LEVEL, Options


def display_code(code: Any) -> CodeBlock:
    """Return the code block itself, or a placeholder when it is malformed."""
    if not isinstance(code, CodeBlock) or not isinstance(code[1], str):
        logging.warning("Invalid code block in appendix, using placeholder")
        return CodeBlock(("", [DEFAULT_LANGUAGE], []), "")
    return code


def make_filename_label(filename: str) -> Para:
    return Para([Strong([Str("File: ")]), Code(("", [], []), filename)])


def make_block_number_label(index: int, language: str | None = None) -> Para:
    label = f"Code Block {index}"
    if language and language != DEFAULT_LANGUAGE:
        label += f" ({language})"
    return Para([Strong(text_inlines(label))])


def make_collapsible_start(title: str) -> RawBlock:
    return RawBlock(
        Format("html"),
        '<details class="code-appendix-section">\n'
        f"<summary>{html.escape(title)}</summary>\n",
    )


def make_collapsible_end() -> RawBlock:
    return RawBlock(Format("html"), "</details>\n")


def section_title(language: str) -> str:
    return language[:1].upper() + language[1:]


def emit_entry(
    entry: CodeEntry, options: Options, number: int, language: str | None
) -> list[Any]:
    """Blocks for one entry: optional labels, the code, optional results."""
    blocks: list[Any] = []
    if options.number_blocks:
        blocks.append(make_block_number_label(number, language))
    if options.show_filename and entry.filename:
        blocks.append(make_filename_label(entry.filename))
    blocks.append(display_code(entry.code))
    if options.show_output_results:
        logging.debug("  Adding %d result divs", len(entry.results))
        blocks.extend(entry.results)
    return blocks


def build_sequential_appendix(
    entries: list[CodeEntry], options: Options
) -> list[Any]:
    appendix_blocks: list[Any] = []
    for i, entry in enumerate(entries, start=1):
        logging.debug("Processing code block %d", i)
        appendix_blocks.extend(emit_entry(entry, options, i, entry.language))
    return appendix_blocks


def group_by_language(entries: list[CodeEntry]) -> dict[str, list[CodeEntry]]:
    """Bucket entries by exact language; keys sorted, bucket order preserved."""
    by_lang: dict[str, list[CodeEntry]] = defaultdict(list)
    for entry in entries:
        by_lang[entry.language].append(entry)
    return {lang: by_lang[lang] for lang in sorted(by_lang)}


def build_grouped_appendix(
    entries: list[CodeEntry], options: Options, html_output: bool = False
) -> list[Any]:
    appendix_blocks: list[Any] = []
    collapsible = options.collapsible and html_output
    level = min(options.appendix_level + 1, MAX_LEVEL)
    block_counter = 0

    groups = group_by_language(entries)
    logging.debug("Languages found: %s", ", ".join(groups))

    for lang, group in groups.items():
        title = section_title(lang)
        if collapsible:
            appendix_blocks.append(make_collapsible_start(title))
        else:
            logging.debug("Creating header: %s", title)
            heading = Header(level, ("", [], []), text_inlines(title))
            appendix_blocks.append(heading)

        for entry in group:
            block_counter += 1
            appendix_blocks.extend(emit_entry(entry, options, block_counter, None))

        if collapsible:
            appendix_blocks.append(make_collapsible_end())

    return appendix_blocks


def assemble(
    entries: list[CodeEntry], options: Options, html_output: bool = False
) -> list[Any]:
    if options.group_by_language:
        logging.debug("Building grouped appendix")
        return build_grouped_appendix(entries, options, html_output)
    logging.debug("Building sequential appendix")
    return build_sequential_appendix(entries, options)
