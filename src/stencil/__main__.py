"""Entry point for running Stencil as a module.

Usage:
    python -m stencil [command] [options]

Example:
    python -m stencil render welcome.txt --template-dir templates --model data.yaml
"""

from stencil.cli import app

if __name__ == "__main__":
    app()
