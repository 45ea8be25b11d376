"""CLI entrypoint.

Re-export the Typer app from the CLI surface.
"""

from .surfaces.cli.cli import app, main  # noqa: F401

__all__ = ["app", "main"]


if __name__ == "__main__":  # pragma: no cover
    main()
