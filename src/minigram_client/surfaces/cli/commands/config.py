from __future__ import annotations

import typer

from ....core.exceptions import ConfigError
from .utils import load_runtime, raise_exit


def register_config_commands(config_app: typer.Typer) -> None:
    @config_app.command("show")
    def config_show(ctx: typer.Context) -> None:
        """Show the resolved backend settings and where each came from."""
        runtime = load_runtime(ctx)
        for name, setting in runtime.resolver.describe().items():
            typer.echo(f"{name}: {setting.value} ({setting.source})")
        typer.echo(f"state: {runtime.config.state_path}")

    @config_app.command("set-url")
    def config_set_url(
        ctx: typer.Context,
        url: str = typer.Argument(..., help="Backend base URL, e.g. http://host:8080"),
    ) -> None:
        runtime = load_runtime(ctx)
        try:
            runtime.resolver.set_base_url(url)
        except ConfigError as exc:
            raise_exit(str(exc), cause=exc)
        typer.echo(f"base_url: {runtime.resolver.base_url()}")

    @config_app.command("reset-url")
    def config_reset_url(ctx: typer.Context) -> None:
        runtime = load_runtime(ctx)
        runtime.resolver.clear_base_url()
        typer.echo(f"base_url: {runtime.resolver.base_url()}")

    @config_app.command("enable")
    def config_enable(ctx: typer.Context) -> None:
        runtime = load_runtime(ctx)
        runtime.resolver.set_enabled(True)
        typer.echo(f"enabled: {runtime.resolver.is_enabled()}")

    @config_app.command("disable")
    def config_disable(ctx: typer.Context) -> None:
        runtime = load_runtime(ctx)
        runtime.resolver.set_enabled(False)
        typer.echo(f"enabled: {runtime.resolver.is_enabled()}")
