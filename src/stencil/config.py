"""Stencil configuration system.

Renderer options live in a frozen dataclass so a renderer's behaviour is fixed
once it is built. Options can be read from YAML, with environment variable
substitution (${VAR}) in values.

Configuration file discovery (in priority order):
1. CLI --config argument
2. ./.stencil/config.yaml
3. ./stencil.yaml
"""

import codecs
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from babel import Locale, UnknownLocaleError
from babel.numbers import parse_pattern
from jinja2 import BaseLoader, Environment, StrictUndefined, Undefined, select_autoescape

from stencil.formatting import DEFAULT_NUMBER_FORMAT, FILTERS, LOCALE_KEY, make_finalize

DEFAULT_ENCODING = "UTF-8"

# =============================================================================
# Configuration Dataclasses
# =============================================================================


@dataclass(frozen=True)
class RendererConfig:
    """Options baked into a renderer's Jinja2 environment.

    Attributes:
        encoding: Default template source encoding
        locale: Default locale of ``stencil render``, and of templates rendered
            outside a render call (e.g. ``environment.from_string``)
        number_format: Decimal pattern applied to numbers in ``{{ ... }}``
        autoescape: Template file extensions that get HTML autoescaping
        trim_blocks: Remove the first newline after a block tag
        lstrip_blocks: Strip whitespace before a block tag
        keep_trailing_newline: Keep the final newline of template files
        localized_lookup: Prefer ``name_<locale>.ext`` variants of a template
        strict: Raise on undefined variables instead of rendering them empty
    """

    encoding: str = DEFAULT_ENCODING
    locale: str = "fr_FR"
    number_format: str = DEFAULT_NUMBER_FORMAT
    autoescape: tuple[str, ...] = ("html", "xml")
    trim_blocks: bool = False
    lstrip_blocks: bool = False
    keep_trailing_newline: bool = False
    localized_lookup: bool = True
    strict: bool = True

    def __post_init__(self) -> None:
        """Validate renderer configuration."""
        try:
            codecs.lookup(self.encoding)
        except LookupError as e:
            raise ValueError(f"Unknown encoding: {self.encoding}") from e

        try:
            Locale.parse(self.locale)
        except (UnknownLocaleError, ValueError) as e:
            raise ValueError(f"Invalid locale: {self.locale}") from e

        try:
            parse_pattern(self.number_format)
        except ValueError as e:
            raise ValueError(f"Invalid number format: {self.number_format}") from e


@dataclass
class StencilConfig:
    """Top-level configuration read by the CLI.

    Attributes:
        renderer: Renderer options
        template_dir: Directory templates are loaded from (None: sys.path roots);
            relative paths in a config file are taken from the file's directory
    """

    renderer: RendererConfig = field(default_factory=RendererConfig)
    template_dir: str | None = None

    _config_path: Path | None = field(default=None, repr=False)

    @property
    def config_path(self) -> Path | None:
        """Get the path to the config file that was loaded."""
        return self._config_path


# =============================================================================
# Jinja2 Environment
# =============================================================================


def build_environment(loader: BaseLoader, config: RendererConfig | None = None) -> Environment:
    """Create a fully configured Jinja2 environment.

    The environment must not be modified once a renderer wraps it.

    Args:
        loader: Template loader
        config: Renderer options (defaults when None)

    Returns:
        Configured environment
    """
    if config is None:
        config = RendererConfig()

    environment = Environment(
        loader=loader,
        autoescape=select_autoescape(list(config.autoescape), default_for_string=False),
        undefined=StrictUndefined if config.strict else Undefined,
        trim_blocks=config.trim_blocks,
        lstrip_blocks=config.lstrip_blocks,
        keep_trailing_newline=config.keep_trailing_newline,
        finalize=make_finalize(config.number_format),
    )
    environment.filters.update(FILTERS)
    # Render calls always pass their own locale; this one only reaches
    # templates rendered directly through the environment.
    environment.globals[LOCALE_KEY] = Locale.parse(config.locale)

    return environment


# =============================================================================
# Environment Variable Substitution
# =============================================================================

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def substitute_env_vars(value: Any) -> Any:
    """Substitute environment variables in config values.

    Supports ${VAR} syntax, e.g. ``template_dir: ${APP_HOME}/templates``.

    Args:
        value: Config value (string, dict, list, or other)

    Returns:
        Value with environment variables substituted

    Raises:
        ValueError: If a referenced variable is not set
    """
    if isinstance(value, str):

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ValueError(f"Environment variable not set: {var_name}")
            return env_value

        return _ENV_VAR_PATTERN.sub(replace_var, value)

    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [substitute_env_vars(v) for v in value]

    return value


# =============================================================================
# Config File Discovery and Loading
# =============================================================================


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find configuration file in standard locations.

    Args:
        start_path: Starting directory for search (defaults to cwd)

    Returns:
        Path to config file if found, None otherwise
    """
    if start_path is None:
        start_path = Path.cwd()

    start_path = start_path.resolve()

    candidates = [
        start_path / ".stencil" / "config.yaml",
        start_path / "stencil.yaml",
    ]

    for candidate in candidates:
        if candidate.exists():
            return candidate

    return None


def load_config_from_dict(data: dict[str, Any]) -> StencilConfig:
    """Load configuration from a dictionary.

    Args:
        data: Configuration dictionary

    Returns:
        StencilConfig instance

    Raises:
        ValueError: On unknown renderer options or invalid values
    """
    data = substitute_env_vars(data)

    config = StencilConfig()

    if "renderer" in data:
        renderer_data = dict(data["renderer"] or {})
        known = set(RendererConfig.__dataclass_fields__)
        unknown = set(renderer_data) - known
        if unknown:
            raise ValueError(f"Unknown renderer options: {sorted(unknown)}")
        if "autoescape" in renderer_data:
            renderer_data["autoescape"] = tuple(renderer_data["autoescape"] or ())
        config.renderer = RendererConfig(**renderer_data)

    if "templates" in data:
        templates_data = data["templates"] or {}
        config.template_dir = templates_data.get("directory", config.template_dir)

    return config


def load_config(
    config_path: Path | None = None,
    auto_discover: bool = True,
) -> StencilConfig:
    """Load configuration from file.

    Args:
        config_path: Explicit path to config file
        auto_discover: Whether to search for config file if not specified

    Returns:
        StencilConfig instance

    Raises:
        FileNotFoundError: If config_path specified but doesn't exist
    """
    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        found_path = config_path
    elif auto_discover:
        found_path = find_config_file()
    else:
        found_path = None

    if found_path is not None:
        with open(found_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        config = load_config_from_dict(data)
        config._config_path = found_path

        # Relative template directories are relative to the config file
        if config.template_dir is not None:
            config.template_dir = str(found_path.parent / config.template_dir)
    else:
        config = StencilConfig()

    return config


def create_default_config() -> str:
    """Create default configuration YAML content.

    Returns:
        YAML string with default configuration and comments
    """
    return '''# Stencil Configuration

renderer:
  encoding: "UTF-8"        # default template source and output encoding
  locale: "fr_FR"          # default locale for `stencil render`
  number_format: "####"    # pattern for numbers printed by {{ ... }}
  autoescape: ["html", "xml"]
  localized_lookup: true   # try name_fr_FR.txt, name_fr.txt, then name.txt
  strict: true             # undefined variables fail the render

# templates:
#   directory: "templates"  # relative to this file; default: directories on sys.path
'''
