"""Stencil CLI interface.

Commands:
- render: Render a template with a YAML/JSON data model
- validate: Check a template's syntax
- init: Write a default configuration file

Global options:
- --config: Path to configuration file
- --verbose: Enable verbose output with timestamps
- --quiet: Suppress info messages
- --ci: JSON log lines
- --version: Show version and exit
"""

from pathlib import Path
from typing import Annotated, Any

import typer
import yaml
from jinja2 import TemplateSyntaxError

from stencil import __version__
from stencil.config import (
    StencilConfig,
    build_environment,
    create_default_config,
    load_config,
)
from stencil.errors import RenderFailure
from stencil.loaders import RootLoader
from stencil.renderer import TemplateRenderer, default_renderer, directory_renderer
from stencil.utils.logging import configure_from_cli, get_logger

app = typer.Typer(
    name="stencil",
    help="Render named templates against a data model",
    add_completion=False,
    no_args_is_help=True,
)

_config: StencilConfig = StencilConfig()
_logger = get_logger("stencil.cli")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"stencil {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output with timestamps",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress info messages (warnings and errors only)",
        ),
    ] = False,
    ci: Annotated[
        bool,
        typer.Option(
            "--ci",
            help="Enable CI mode with JSON log lines",
        ),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """Stencil - render named templates against a data model."""
    global _config

    configure_from_cli(verbose=verbose, quiet=quiet, ci=ci)

    try:
        _config = load_config(config_path=config)
        if _config.config_path:
            _logger.debug("Loaded config from: %s", _config.config_path)
    except FileNotFoundError as e:
        _logger.error(str(e))
        raise typer.Exit(1)
    except (ValueError, yaml.YAMLError) as e:
        _logger.error("Failed to load config: %s", e)
        raise typer.Exit(1)


def _load_model(path: Path | None) -> dict[str, Any]:
    """Read a data model from a YAML or JSON file."""
    if path is None:
        return {}

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Data model must be a mapping, got {type(data).__name__}")
    return data


def _build_renderer(template_dir: Path | None) -> TemplateRenderer:
    directory = template_dir or _config.template_dir
    if directory is None:
        return default_renderer(config=_config.renderer)
    return directory_renderer(directory, config=_config.renderer)


# =============================================================================
# render command
# =============================================================================


@app.command()
def render(
    template: Annotated[
        str,
        typer.Argument(help="Template identifier, e.g. mail/welcome.txt"),
    ],
    template_dir: Annotated[
        Path | None,
        typer.Option(
            "--template-dir",
            "-t",
            help="Directory templates are resolved in (default: sys.path roots)",
            exists=True,
            file_okay=False,
        ),
    ] = None,
    model: Annotated[
        Path | None,
        typer.Option(
            "--model",
            "-m",
            help="YAML or JSON file holding the data model",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    locale: Annotated[
        str | None,
        typer.Option("--locale", "-l", help="Locale for lookup and formatting (default: renderer.locale)"),
    ] = None,
    encoding: Annotated[
        str | None,
        typer.Option("--encoding", "-e", help="Template and output encoding (default: renderer.encoding)"),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Write to this file instead of stdout",
            dir_okay=False,
        ),
    ] = None,
) -> None:
    """Render a template.

    Output is written only once rendering has fully succeeded.

    Exit codes:
    - 0: Success
    - 1: Rendering failed or the model could not be read
    """
    try:
        data = _load_model(model)
    except (OSError, ValueError, yaml.YAMLError) as e:
        _logger.error("Failed to load model: %s", e)
        raise typer.Exit(1)

    renderer = _build_renderer(template_dir)
    locale = locale or _config.renderer.locale
    encoding = encoding or _config.renderer.encoding

    try:
        content = renderer.render_to_string(template, data, locale, encoding)
    except RenderFailure as e:
        _logger.error("Rendering failed: %s", e)
        raise typer.Exit(1)

    if output is None:
        typer.echo(content, nl=False)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(content, encoding=encoding)
    _logger.info("Wrote %s to %s", template, output)


# =============================================================================
# validate command
# =============================================================================


@app.command()
def validate(
    template: Annotated[
        Path,
        typer.Argument(
            help="Path to template file to validate",
            exists=True,
            dir_okay=False,
        ),
    ],
) -> None:
    """Check a template's syntax with the configured environment."""
    renderer_config = _config.renderer
    environment = build_environment(RootLoader(renderer_config.encoding, []), renderer_config)

    try:
        environment.parse(template.read_text(encoding=renderer_config.encoding))
    except TemplateSyntaxError as e:
        _logger.error("Template syntax error at line %s: %s", e.lineno, e.message)
        raise typer.Exit(1)
    except (OSError, UnicodeDecodeError) as e:
        _logger.error("Cannot read template %s: %s", template, e)
        raise typer.Exit(1)

    typer.echo(f"Template is valid: {template}")


# =============================================================================
# init command
# =============================================================================


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            help="Overwrite existing config",
        ),
    ] = False,
) -> None:
    """Write a default stencil.yaml in the current directory."""
    config_file = Path("stencil.yaml")

    if config_file.exists() and not force:
        _logger.error("Config already exists: %s", config_file)
        _logger.info("Use --force to overwrite")
        raise typer.Exit(1)

    config_file.write_text(create_default_config(), encoding="utf-8")
    typer.echo(f"Created config: {config_file}")


if __name__ == "__main__":
    app()
