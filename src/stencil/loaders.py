"""Template loaders used by the default renderers.

Two ways of locating templates:

- ``RootLoader``: identifiers are paths relative to any directory on
  ``sys.path`` (e.g. ``"myapp/mail/welcome.txt"``).
- ``ReferenceLoader``: identifiers are relative to the directory of the
  module defining a reference class or module, so each package can keep its
  templates next to its code.

Both loaders can be re-created with another source encoding, which lets a
renderer honour the encoding passed to each render call.
"""

import importlib
import logging
import os
import sys
from pathlib import Path
from types import ModuleType
from typing import Any

from jinja2 import FileSystemLoader

logger = logging.getLogger(__name__)

Reference = type | ModuleType | str


def sys_path_roots() -> list[str]:
    """Return the existing directories currently on ``sys.path``, in order."""
    roots: list[str] = []
    for entry in sys.path:
        root = os.path.abspath(entry or os.curdir)
        if os.path.isdir(root) and root not in roots:
            roots.append(root)
    return roots


def reference_directory(reference: Reference) -> Path:
    """Return the directory holding the module that defines ``reference``.

    Args:
        reference: A class, a module object, or an importable module name

    Returns:
        Absolute directory path

    Raises:
        ValueError: If the module has no file on disk (builtins, namespace packages)
    """
    if isinstance(reference, str):
        module: Any = importlib.import_module(reference)
    elif isinstance(reference, ModuleType):
        module = reference
    else:
        module = sys.modules.get(reference.__module__)

    filename = getattr(module, "__file__", None)
    if not filename:
        raise ValueError(f"Cannot locate templates relative to {reference!r}: no module file")

    return Path(filename).resolve().parent


class RootLoader(FileSystemLoader):
    """Resolves template identifiers against the ``sys.path`` roots.

    The search path is a snapshot taken at construction; later changes to
    ``sys.path`` do not affect an existing loader.
    """

    def __init__(self, encoding: str = "utf-8", searchpath: list[str] | None = None) -> None:
        if searchpath is None:
            searchpath = sys_path_roots()
        super().__init__(searchpath, encoding=encoding)
        logger.debug("Root template loader over %d directories", len(self.searchpath))

    def with_encoding(self, encoding: str) -> "RootLoader":
        return RootLoader(encoding, list(self.searchpath))


class ReferenceLoader(FileSystemLoader):
    """Resolves template identifiers relative to a class's or module's package directory."""

    def __init__(self, reference: Reference, encoding: str = "utf-8") -> None:
        self.reference = reference
        self.directory = reference_directory(reference)
        super().__init__(str(self.directory), encoding=encoding)
        logger.debug("Template loader for %r rooted at %s", reference, self.directory)

    def with_encoding(self, encoding: str) -> "ReferenceLoader":
        return ReferenceLoader(self.reference, encoding)
