"""Template rendering facade over Jinja2.

``TemplateRenderer`` has a single abstract operation, ``render``, taking every
parameter explicitly. ``render_to_string`` and ``write`` build on it for the
common case (default locale, UTF-8).

Renderers returned by the factories here are safe to share between threads:
they wrap a Jinja2 environment that is fully configured before the renderer
exists and is never reachable by callers. ``from_environment`` gives the same
guarantee only if the caller stops modifying the environment it passes in.

Usage:
    renderer = default_renderer(MyService)
    text = renderer.render_to_string("welcome.txt", {"name": "Christophe"})
"""

import codecs
import io
import logging
import os
import posixpath
import threading
from abc import ABC, abstractmethod
from collections import ChainMap
from collections.abc import Iterator, Mapping
from decimal import Decimal
from typing import IO, Any

from babel import Locale
from jinja2 import Environment, Template
from jinja2.runtime import Context

from stencil.config import DEFAULT_ENCODING, RendererConfig, build_environment
from stencil.errors import RenderFailure
from stencil.formatting import DEFAULT_LOCALE, LOCALE_KEY
from stencil.loaders import Reference, ReferenceLoader, RootLoader

logger = logging.getLogger(__name__)

Sink = IO[str] | IO[bytes]


class TemplateRenderer(ABC):
    """Renders named templates against a data model."""

    @abstractmethod
    def render(
        self,
        template_id: str,
        model: Any,
        locale: Locale | str,
        encoding: str,
        sink: Sink,
    ) -> None:
        """Render a template into ``sink``.

        The sink is written to but never closed. Output already written when
        a failure occurs is not rolled back; render into a buffer first when
        all-or-nothing output matters.

        Args:
            template_id: Template identifier resolved by the renderer's loader
            model: Data model (mapping, or any object whose attributes the template reads)
            locale: Locale for template lookup and number/date formatting
            encoding: Template source encoding, also used to encode binary sinks
            sink: Text or binary stream receiving the output

        Raises:
            RenderFailure: If the template cannot be found, parsed or evaluated
        """

    def render_to_string(
        self,
        template_id: str,
        model: Any,
        locale: Locale | str = DEFAULT_LOCALE,
        encoding: str = DEFAULT_ENCODING,
    ) -> str:
        """Render a template and return the text.

        Raises:
            RenderFailure: If rendering fails
        """
        out = io.StringIO()
        self.render(template_id, model, locale, encoding, out)
        return out.getvalue()

    def write(self, template_id: str, model: Any, sink: Sink) -> None:
        """Render a template into ``sink`` with the default locale and UTF-8.

        Raises:
            RenderFailure: If rendering fails
        """
        self.render(template_id, model, DEFAULT_LOCALE, DEFAULT_ENCODING, sink)


def localized_names(template_id: str, locale: Locale) -> list[str]:
    """Return the lookup order for a template in ``locale``.

    ``mail/welcome.txt`` in fr_FR gives ``mail/welcome_fr_FR.txt``,
    ``mail/welcome_fr.txt``, ``mail/welcome.txt``.
    """
    root, ext = posixpath.splitext(template_id)
    parts = [p for p in (locale.language, locale.script, locale.territory, locale.variant) if p]

    names: list[str] = []
    for size in range(len(parts), 0, -1):
        name = f"{root}_{'_'.join(parts[:size])}{ext}"
        if name not in names:
            names.append(name)
    names.append(template_id)
    return names


class ModelView(Mapping[str, Any]):
    """Read-only mapping over an object's public attributes.

    Keys resolve through ``getattr`` on lookup, so properties, slots and
    named tuple fields are visible exactly as attribute access sees them.
    """

    __slots__ = ("_model",)

    def __init__(self, model: Any) -> None:
        self._model = model

    def __getitem__(self, key: str) -> Any:
        if not isinstance(key, str) or key.startswith("_"):
            raise KeyError(key)
        try:
            return getattr(self._model, key)
        except AttributeError:
            raise KeyError(key) from None

    def __iter__(self) -> Iterator[str]:
        return (name for name in dir(self._model) if not name.startswith("_"))

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __repr__(self) -> str:
        return f"ModelView({self._model!r})"


def model_namespace(model: Any) -> Mapping[str, Any]:
    """Expose a data model to templates without copying it.

    Mappings are used as they are, any other object through ``ModelView``.

    Raises:
        TypeError: If the model is a scalar (string, bytes, number), which has no names to expose
    """
    if model is None:
        return {}
    if isinstance(model, Mapping):
        return model
    if isinstance(model, (str, bytes, bytearray, int, float, complex, Decimal)):
        raise TypeError(f"Unsupported data model type: {type(model).__name__}")
    return ModelView(model)


def _generate(template: Template, context: Context) -> Iterator[str]:
    try:
        yield from template.root_render_func(context)
    except Exception:
        yield template.environment.handle_exception()


def _is_binary(sink: Sink) -> bool:
    return isinstance(sink, (io.RawIOBase, io.BufferedIOBase))


class JinjaRenderer(TemplateRenderer):
    """``TemplateRenderer`` backed by a Jinja2 environment.

    Loaders offering ``with_encoding`` (see ``stencil.loaders``) get one
    overlay environment per source encoding, created on first use. The
    wrapped environment itself is never modified.
    """

    def __init__(self, environment: Environment, localized_lookup: bool = True) -> None:
        """Initialize the renderer.

        Args:
            environment: Fully configured environment; must not be modified afterwards
            localized_lookup: Try locale-suffixed template names first
        """
        self._environment = environment
        self._localized_lookup = localized_lookup
        self._base_encoding = codecs.lookup(
            getattr(environment.loader, "encoding", None) or DEFAULT_ENCODING
        ).name
        self._overlays: dict[str, Environment] = {}
        self._lock = threading.Lock()

    def _environment_for(self, encoding: str) -> Environment:
        loader = self._environment.loader
        if encoding == self._base_encoding or not hasattr(loader, "with_encoding"):
            return self._environment

        with self._lock:
            environment = self._overlays.get(encoding)
            if environment is None:
                environment = self._environment.overlay(loader=loader.with_encoding(encoding))
                self._overlays[encoding] = environment
                logger.debug("Created template environment for encoding %s", encoding)
            return environment

    def _resolve(self, environment: Environment, template_id: str, locale: Locale) -> Template:
        if self._localized_lookup:
            return environment.select_template(localized_names(template_id, locale))
        return environment.get_template(template_id)

    def render(
        self,
        template_id: str,
        model: Any,
        locale: Locale | str,
        encoding: str,
        sink: Sink,
    ) -> None:
        try:
            locale = Locale.parse(locale)
            codec = codecs.lookup(encoding)

            template = self._resolve(self._environment_for(codec.name), template_id, locale)

            namespace = ChainMap({LOCALE_KEY: locale}, model_namespace(model), template.globals)
            if template.environment.is_async:
                chunks = template.generate(dict(namespace))
            else:
                chunks = _generate(template, template.new_context(namespace, shared=True))

            binary = _is_binary(sink)
            collected: list[str] | None = [] if logger.isEnabledFor(logging.DEBUG) else None

            for chunk in chunks:
                if binary:
                    sink.write(chunk.encode(codec.name))
                else:
                    sink.write(chunk)
                if collected is not None:
                    collected.append(chunk)

            if collected is not None:
                logger.debug("Rendered %s (%s, %s):\n%s", template.name, locale, codec.name, "".join(collected))

        except RenderFailure:
            raise
        except Exception as e:
            logger.error("Failed to render template %s: %s", template_id, e, exc_info=True)
            raise RenderFailure(cause=e) from e


def from_environment(environment: Environment, localized_lookup: bool = True) -> TemplateRenderer:
    """Wrap an already configured Jinja2 environment.

    The result is thread-safe only if ``environment`` is not modified after
    this call.

    Args:
        environment: Configured Jinja2 environment
        localized_lookup: Try locale-suffixed template names first

    Returns:
        A renderer using ``environment``
    """
    return JinjaRenderer(environment, localized_lookup=localized_lookup)


def default_renderer(
    reference: Reference | None = None,
    config: RendererConfig | None = None,
) -> TemplateRenderer:
    """Build a renderer with the standard configuration.

    Without ``reference`` template identifiers are resolved against the
    directories on ``sys.path``. With one they are resolved relative to the
    directory of the module defining ``reference``, so renderers for
    different packages never see each other's templates.

    Defaults: UTF-8 sources, numbers printed with the ``####`` pattern,
    undefined variables raise.

    Args:
        reference: Class, module or module name anchoring template lookup
        config: Renderer options

    Returns:
        A thread-safe renderer
    """
    if config is None:
        config = RendererConfig()

    if reference is None:
        loader: RootLoader | ReferenceLoader = RootLoader(config.encoding)
    else:
        loader = ReferenceLoader(reference, config.encoding)

    return JinjaRenderer(build_environment(loader, config), localized_lookup=config.localized_lookup)


def directory_renderer(
    directory: str | os.PathLike[str],
    config: RendererConfig | None = None,
) -> TemplateRenderer:
    """Build a renderer resolving template identifiers inside ``directory``."""
    if config is None:
        config = RendererConfig()

    loader = RootLoader(config.encoding, [os.fspath(directory)])
    return JinjaRenderer(build_environment(loader, config), localized_lookup=config.localized_lookup)
