"""Stencil - a small facade over Jinja2 for rendering named templates.

One call resolves a template, merges it with a data model and writes the
text to a stream; every failure surfaces as ``RenderFailure``.

    from stencil import default_renderer

    renderer = default_renderer(MyService)
    renderer.render_to_string("welcome.txt", {"name": "Christophe"})
"""

__version__ = "0.1.0"
__author__ = "Stencil Contributors"

from stencil.errors import RenderFailure
from stencil.renderer import (
    JinjaRenderer,
    TemplateRenderer,
    default_renderer,
    directory_renderer,
    from_environment,
)

__all__ = [
    "JinjaRenderer",
    "RenderFailure",
    "TemplateRenderer",
    "default_renderer",
    "directory_renderer",
    "from_environment",
]
