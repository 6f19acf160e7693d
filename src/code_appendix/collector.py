import enum
import logging
from dataclasses import dataclass
from typing import Any

from pandoc.types import CodeBlock, Div

from code_appendix.nodes import (
    cell_code_language,
    classes_of,
    filename_of,
    is_cell_code,
    is_cell_container,
    is_classed_code,
    is_included,
    is_output_container,
)


class Origin(enum.Enum):
    CELL = "cell"
    STANDALONE = "standalone"


@dataclass(frozen=True)
class CodeEntry:
    """
    One code block destined for the appendix, with the output Divs that
    followed it in its cell (document order).

    `code` and `results` are the original AST nodes, not copies.
    """

    code: CodeBlock
    results: tuple[Div, ...]
    language: str
    origin: Origin
    filename: str | None = None


def extract_cell_entries(cell: Div) -> list[CodeEntry]:
    """
    Pair every included ``cell-code`` block of a cell with the output Divs
    that follow it. Outputs with no open code block are dropped.
    """
    if not is_included(cell):
        logging.debug("  -> Cell excluded via appendix attribute")
        return []

    cell_filename = filename_of(cell)
    pairs: list[tuple[CodeBlock, list[Div], str, str | None]] = []
    current: list[Div] | None = None

    for child in cell[1]:
        if is_cell_code(child):
            if not is_included(child):
                # outputs that follow still attach to the open entry
                logging.debug("  -> Code block excluded via appendix attribute")
                continue
            current = []
            pairs.append(
                (
                    child,
                    current,
                    cell_code_language(child),
                    filename_of(child) or cell_filename,
                )
            )
        elif is_output_container(child):
            if current is None:
                logging.debug("  -> Output with no open code block, dropped")
                continue
            current.append(child)

    return [
        CodeEntry(
            code=code,
            results=tuple(results),
            language=language,
            origin=Origin.CELL,
            filename=filename,
        )
        for code, results, language, filename in pairs
    ]


def collect_entries(blocks: list[Any]) -> list[CodeEntry]:
    """
    Walk the top-level blocks once and return the appendix entries in
    discovery order.
    """
    logging.debug("=== collect_entries called with %d blocks ===", len(blocks))
    entries: list[CodeEntry] = []

    for i, block in enumerate(blocks, start=1):
        logging.debug("Block %d: type=%s", i, type(block).__name__)

        if is_cell_container(block):
            cell_entries = extract_cell_entries(block)
            for entry in cell_entries:
                logging.debug(
                    "  -> Cell code (%s) with %d result(s)",
                    entry.language,
                    len(entry.results),
                )
            entries.extend(cell_entries)
        elif isinstance(block, CodeBlock):
            if not is_included(block):
                logging.debug("  -> CodeBlock excluded via appendix attribute")
            elif is_classed_code(block):
                entries.append(
                    CodeEntry(
                        code=block,
                        results=(),
                        language=classes_of(block)[0],
                        origin=Origin.STANDALONE,
                        filename=filename_of(block),
                    )
                )
                logging.debug("  -> Standalone code (%s)", classes_of(block)[0])
            else:
                logging.debug("  -> CodeBlock has no classes, skipping")

    logging.debug("=== collected %d code blocks ===", len(entries))
    return entries
