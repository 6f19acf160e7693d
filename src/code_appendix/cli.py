"""
code-appendix: collect a document's code cells into an appendix at its end.

Usage:
  code-appendix filter [FORMAT]
  code-appendix apply [OPTIONS] INPUT OUTPUT
  code-appendix entries [OPTIONS] INPUT

Examples:
  pandoc report.md --filter code-appendix-filter -o report.html
  code-appendix apply report.md report.html --config appendix.yml -v
  code-appendix entries report.ipynb -vv
"""

import logging
import sys
from pathlib import Path
from typing import Any

import orjson
import pandoc
import typer
import yaml

from code_appendix import (
    LOG_FORMAT,
    METADATA_KEY,
    PANDOC_ENV,
    PandocNotFoundError,
    configure_pandoc,
)

app = typer.Typer(help=__doc__, no_args_is_help=True)

PANDOC_HELP = "Path to the pandoc executable (default: pandoc on PATH)"


def setup_logging(verbose: int):
    """Set up logging based on verbosity level."""
    if verbose == 0:
        level = logging.WARNING
    elif verbose == 1:
        level = logging.INFO
    else:  # verbose >= 2
        level = logging.DEBUG

    # stderr: stdout carries the filter's JSON
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


def load_config(path: Path | None) -> dict[str, Any]:
    """
    Read default options from a YAML file. Accepts either a flat mapping or
    one nested under `code-appendix`.
    """
    if path is None:
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise typer.BadParameter(f"Could not read config {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise typer.BadParameter(f"Config {path} must be a mapping")
    nested = data.get(METADATA_KEY)
    if isinstance(nested, dict):
        return nested
    return data


def pandoc_api_version(source: str) -> str | None:
    """Return the `pandoc-api-version` of a JSON AST as a dotted string."""
    data = orjson.loads(source)
    version = data.get("pandoc-api-version") if isinstance(data, dict) else None
    if not version:
        return None
    return ".".join(str(part) for part in version)


def setup_pandoc(path: str | None) -> dict:
    try:
        return configure_pandoc(path)
    except PandocNotFoundError as e:
        raise typer.BadParameter(str(e), param_hint="--pandoc") from e


def read_document(
    input_path: Path, from_format: str | None, pandoc_path: str | None
):
    setup_pandoc(pandoc_path)
    try:
        return pandoc.read(file=str(input_path), format=from_format)
    except Exception as e:
        raise RuntimeError(f"Failed to read {input_path} with pandoc: {e}") from e


@app.command(
    "filter", help="Run as a pandoc JSON filter (AST JSON on stdin and stdout)."
)
def run_filter(
    output_format: str = typer.Argument(
        "", help="Target format; pandoc passes it as the first argument"
    ),
    config: Path = typer.Option(
        None, "--config", "-c", help="YAML file with default options"
    ),
    pandoc_path: str = typer.Option(
        None, "--pandoc", envvar=PANDOC_ENV, help=PANDOC_HELP
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase verbosity (-v for INFO, -vv for DEBUG)",
    ),
) -> None:
    """Read a pandoc AST from stdin, append the code appendix, write it to stdout."""
    setup_logging(verbose)
    defaults = load_config(config)

    source = sys.stdin.read()
    try:
        api_version = pandoc_api_version(source)
    except orjson.JSONDecodeError as e:
        logging.error(f"Input is not a pandoc JSON AST: {e}")
        raise typer.Exit(code=1) from e
    configuration = setup_pandoc(pandoc_path)
    if api_version and configuration["pandoc_types_version"] != api_version:
        logging.warning(
            f"Input pandoc-api-version {api_version} differs from pandoc-types "
            f"{configuration['pandoc_types_version']} of {configuration['path']}"
        )

    from code_appendix.transform import process_document

    doc = pandoc.read(source, format="json")
    result = process_document(doc, output_format or None, defaults)
    typer.echo(pandoc.write(result, format="json"), nl=False)


@app.command("apply", help="Read a document with pandoc, append the appendix, write it.")
def apply(
    input_path: Path = typer.Argument(..., help="Input document"),
    output_path: Path = typer.Argument(..., help="Output document"),
    from_format: str = typer.Option(
        None, "--from", "-f", help="Input format (default: from extension)"
    ),
    to_format: str = typer.Option(
        None, "--to", "-t", help="Output format (default: from extension)"
    ),
    standalone: bool = typer.Option(
        True, "--standalone/--fragment", help="Write a standalone document"
    ),
    config: Path = typer.Option(
        None, "--config", "-c", help="YAML file with default options"
    ),
    pandoc_path: str = typer.Option(
        None, "--pandoc", envvar=PANDOC_ENV, help=PANDOC_HELP
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase verbosity (-v for INFO, -vv for DEBUG)",
    ),
) -> None:
    """Convert INPUT to OUTPUT with the code appendix appended."""
    setup_logging(verbose)
    defaults = load_config(config)
    doc = read_document(input_path, from_format, pandoc_path)

    from code_appendix.transform import process_document

    target = to_format or output_path.suffix.lstrip(".")
    result = process_document(doc, target, defaults)
    pandoc.write(
        result,
        file=str(output_path),
        format=to_format,
        options=["--standalone"] if standalone else [],
    )
    logging.info(f"Wrote {output_path}")


@app.command("entries", help="List the code blocks that would go to the appendix.")
def entries(
    input_path: Path = typer.Argument(..., help="Input document"),
    from_format: str = typer.Option(
        None, "--from", "-f", help="Input format (default: from extension)"
    ),
    pandoc_path: str = typer.Option(
        None, "--pandoc", envvar=PANDOC_ENV, help=PANDOC_HELP
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase verbosity (-v for INFO, -vv for DEBUG)",
    ),
) -> None:
    """Print index, origin, language, filename and result count per entry."""
    setup_logging(verbose)
    doc = read_document(input_path, from_format, pandoc_path)

    from code_appendix.collector import collect_entries

    for i, entry in enumerate(collect_entries(doc[1]), start=1):
        typer.echo(
            f"{i}\t{entry.origin.value}\t{entry.language}\t"
            f"{entry.filename or '-'}\t{len(entry.results)}"
        )


def filter_main() -> None:
    """Entry point for `pandoc --filter code-appendix-filter`."""
    typer.run(run_filter)


if __name__ == "__main__":
    app()
