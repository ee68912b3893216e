"""Shared pytest fixtures for Stencil tests.

Fixtures are organized by category:
- Template fixtures: directories of templates on disk
- Renderer fixtures: renderers over those directories
- Package fixtures: importable packages carrying their own templates
"""

import importlib
import itertools
from collections.abc import Callable
from pathlib import Path
from types import ModuleType

import pytest

from stencil import TemplateRenderer, directory_renderer

# =============================================================================
# Template Fixtures
# =============================================================================

TEMPLATES: dict[str, str] = {
    "hello.txt": "Hello {{ name }}!",
    "static.txt": "Nothing to see here.",
    "count.txt": "{{ count }}",
    "greeting.txt": "Bonjour",
    "greeting_en.txt": "Hello",
    "greeting_en_US.txt": "Howdy",
    "page.html": "<p>{{ text }}</p>",
    "plain.txt": "<p>{{ text }}</p>",
    "undefined.txt": "{{ nope }}",
    "broken.txt": "{% if %}",
    "mail/welcome.txt": "Welcome {{ user.name }}",
    "amount.txt": "{{ n|number }}",
    "outer.txt": "[{% include 'hello.txt' %}]",
}


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    """Create a directory holding the standard test templates."""
    root = tmp_path / "templates"
    for name, source in TEMPLATES.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source, encoding="utf-8")

    (root / "latin.txt").write_bytes("Café {{ name }}".encode("latin-1"))
    return root


# =============================================================================
# Renderer Fixtures
# =============================================================================


@pytest.fixture
def renderer(template_dir: Path) -> TemplateRenderer:
    """Return a renderer over the standard test templates."""
    return directory_renderer(template_dir)


# =============================================================================
# Package Fixtures
# =============================================================================

_package_ids = itertools.count()


@pytest.fixture
def make_package(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> Callable[[dict[str, str]], ModuleType]:
    """Return a factory creating an importable package with templates.

    The package defines a ``Marker`` class; templates are written next to
    its ``__init__.py``.
    """
    packages_root = tmp_path / "packages"
    packages_root.mkdir()
    monkeypatch.syspath_prepend(str(packages_root))

    def factory(templates: dict[str, str]) -> ModuleType:
        name = f"stencil_test_pkg_{next(_package_ids)}"
        package_dir = packages_root / name
        package_dir.mkdir()
        (package_dir / "__init__.py").write_text("class Marker:\n    pass\n", encoding="utf-8")
        for template_name, source in templates.items():
            (package_dir / template_name).write_text(source, encoding="utf-8")

        importlib.invalidate_caches()
        return importlib.import_module(name)

    return factory
