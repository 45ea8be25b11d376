from pathlib import Path
from typing import Optional

import typer

from .commands.auth import register_auth_commands
from .commands.calls import register_calls_commands
from .commands.chats import register_chats_commands, register_messages_commands
from .commands.config import register_config_commands
from .commands.utils import CliState, get_version

app = typer.Typer(add_completion=False)
config_app = typer.Typer(add_completion=False)
auth_app = typer.Typer(add_completion=False)
chats_app = typer.Typer(add_completion=False)
messages_app = typer.Typer(add_completion=False)
calls_app = typer.Typer(add_completion=False)


def _version_callback(value: bool) -> None:
    if not value:
        return
    typer.echo(f"minigram {get_version()}")
    raise typer.Exit(code=0)


@app.callback()
def _root(
    ctx: typer.Context,
    home: Optional[Path] = typer.Option(
        None,
        "--home",
        envvar="MINIGRAM_HOME",
        help="State and config directory (default ~/.minigram)",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    ctx.obj = CliState(home=home)


def main() -> None:
    """Entrypoint for CLI execution."""
    app()


app.add_typer(config_app, name="config", help="Backend endpoint and mode.")
register_config_commands(config_app)
app.add_typer(auth_app, name="auth", help="Sign in and out.")
register_auth_commands(auth_app)
app.add_typer(chats_app, name="chats", help="List and create chats.")
register_chats_commands(chats_app)
app.add_typer(messages_app, name="messages", help="Read and send messages.")
register_messages_commands(messages_app)
app.add_typer(calls_app, name="calls", help="Start or join calls.")
register_calls_commands(calls_app)
