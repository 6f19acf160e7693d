import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from pandoc.types import (
    Meta,
    MetaBlocks,
    MetaBool,
    MetaInlines,
    MetaList,
    MetaMap,
    MetaString,
    Para,
    Plain,
)
from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator

from code_appendix import LOG_FORMAT, METADATA_KEY
from code_appendix.nodes import extract_text_from_inlines

DEFAULT_TITLE = "Code Appendix"
MIN_LEVEL = 1
MAX_LEVEL = 6

_TRUE = {"true", "yes", "on", "1"}
_FALSE = {"false", "no", "off", "0"}

FLAG_FIELDS = (
    "group_by_language",
    "show_code_inline",
    "show_output_results",
    "show_separator",
    "number_blocks",
    "show_filename",
    "collapsible",
    "debug",
)


def _alias(name: str) -> str:
    return name.replace("_", "-")


class Options(BaseModel):
    """
    Appendix settings. Validation never fails: bad values are replaced by
    defaults and a warning is logged.
    """

    model_config = ConfigDict(
        alias_generator=_alias, populate_by_name=True, frozen=True
    )

    group_by_language: bool = False
    show_code_inline: bool = True
    show_output_results: bool = True
    appendix_title: str = DEFAULT_TITLE
    appendix_level: int = 1
    show_separator: bool = True
    number_blocks: bool = False
    show_filename: bool = True
    collapsible: bool = False
    debug: bool = False

    @field_validator(*FLAG_FIELDS, mode="before")
    @classmethod
    def coerce_flag(cls, v: Any, info: ValidationInfo) -> bool:
        if isinstance(v, bool):
            return v
        if isinstance(v, (str, int)):
            text = str(v).strip().lower()
            if text in _TRUE:
                return True
            if text in _FALSE:
                return False
        default = cls.model_fields[info.field_name].default
        logging.warning(
            "%s must be a boolean, got %r; using %s",
            _alias(info.field_name),
            v,
            default,
        )
        return default

    @field_validator("appendix_title", mode="before")
    @classmethod
    def title_must_not_be_empty(cls, v: Any) -> str:
        if v is None:
            return DEFAULT_TITLE
        text = str(v)
        if not text.strip():
            return DEFAULT_TITLE
        return text

    @field_validator("appendix_level", mode="before")
    @classmethod
    def level_must_be_in_range(cls, v: Any) -> int:
        try:
            number = float(str(v).strip())
        except (TypeError, ValueError):
            number = None
        level = int(number) if number is not None and number.is_integer() else None
        if level is None or not MIN_LEVEL <= level <= MAX_LEVEL:
            logging.warning(
                "appendix-level must be %d-%d, got %r; using %d",
                MIN_LEVEL,
                MAX_LEVEL,
                v,
                MIN_LEVEL,
            )
            return MIN_LEVEL
        return level


def meta_to_python(value: Any) -> Any:
    """Convert a pandoc MetaValue into plain Python data."""
    if isinstance(value, MetaMap):
        return {k: meta_to_python(v) for k, v in value[0].items()}
    if isinstance(value, MetaList):
        return [meta_to_python(v) for v in value[0]]
    if isinstance(value, MetaBool):
        return value[0]
    if isinstance(value, MetaString):
        return value[0]
    if isinstance(value, MetaInlines):
        return extract_text_from_inlines(value[0])
    if isinstance(value, MetaBlocks):
        return "\n\n".join(
            extract_text_from_inlines(block[0])
            for block in value[0]
            if isinstance(block, (Para, Plain))
        )
    return value


def extension_settings(meta: Meta | dict | None) -> dict[str, Any]:
    """Return the `extensions.code-appendix` mapping of the document metadata."""
    if meta is None:
        return {}
    entries = meta[0] if isinstance(meta, Meta) else meta
    extensions = meta_to_python(entries.get("extensions"))
    if not isinstance(extensions, dict):
        return {}
    settings = extensions.get(METADATA_KEY)
    if not isinstance(settings, dict):
        return {}
    return settings


def load_options(
    meta: Meta | dict | None, defaults: dict[str, Any] | None = None
) -> Options:
    """
    Build Options from document metadata, with `defaults` (e.g. a YAML config
    file) underneath the document's own settings.
    """
    settings = {**(defaults or {}), **extension_settings(meta)}
    if not settings:
        logging.debug("No %s options found, using defaults", METADATA_KEY)

    known = {_alias(name) for name in Options.model_fields} | set(Options.model_fields)
    for key in settings:
        if key not in known:
            logging.debug("Ignoring unknown option %r", key)

    options = Options.model_validate(
        {k: v for k, v in settings.items() if k in known}
    )
    return options


@contextmanager
def debug_logging(enabled: bool) -> Iterator[None]:
    """Lower the root logger to DEBUG for one document, then restore it."""
    root = logging.getLogger()
    previous = root.level
    if enabled:
        logging.basicConfig(format=LOG_FORMAT)
        root.setLevel(logging.DEBUG)
        logging.debug("Debug mode enabled")
    try:
        yield
    finally:
        root.setLevel(previous)


def log_options(options: Options) -> None:
    for name, value in options.model_dump(by_alias=True).items():
        logging.debug("%s: %r", name, value)
