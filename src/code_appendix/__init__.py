import os
import shutil

import pandoc
from plumbum import local

LOG_FORMAT = "%(levelname)s:%(name)s:%(message)s"

# Document metadata lives under `extensions: code-appendix:` in the front matter.
METADATA_KEY = "code-appendix"

# Quarto ships its own pandoc outside PATH; point at it with this variable.
PANDOC_ENV = "CODE_APPENDIX_PANDOC"


class PandocNotFoundError(RuntimeError):
    pass


def find_pandoc(path: str | None = None) -> str:
    """
    Resolve the pandoc executable: `path`, then $CODE_APPENDIX_PANDOC, then
    `pandoc` on PATH.
    """
    candidate = path or os.environ.get(PANDOC_ENV) or "pandoc"
    resolved = shutil.which(candidate)
    if resolved is None:
        raise PandocNotFoundError(
            f"Cannot find the pandoc executable {candidate!r}. Install pandoc, "
            f"or pass its location with --pandoc or ${PANDOC_ENV}."
        )
    return resolved


def configure_pandoc(path: str | None = None) -> dict:
    """
    Configure pandoc.types before any module importing it is loaded, and
    return the configuration. A configuration made earlier is kept.
    """
    configuration = pandoc.configure(read=True)
    if configuration is not None:
        return configuration
    executable = find_pandoc(path)
    search_path = os.pathsep.join(
        [os.path.dirname(executable), local.env.get("PATH", "")]
    )
    # importing pandoc.types looks `pandoc` up on plumbum's PATH by itself
    with local.env(PATH=search_path):
        return pandoc.configure(path=executable, read=True)
