from __future__ import annotations

import typer

from ....auth import AuthFlow
from .utils import load_runtime, run_backend


def register_auth_commands(auth_app: typer.Typer) -> None:
    @auth_app.command("request-code")
    def auth_request_code(
        ctx: typer.Context,
        phone: str = typer.Option(..., "--phone", help="Phone number"),
    ) -> None:
        runtime = load_runtime(ctx)
        sent = run_backend(
            runtime,
            lambda client: AuthFlow(client, runtime.session).request_code(phone),
            failure="Failed to send code",
        )
        typer.echo("Code sent." if sent else "Server did not send a code.")

    @auth_app.command("verify")
    def auth_verify(
        ctx: typer.Context,
        phone: str = typer.Option(..., "--phone", help="Phone number"),
        code: str = typer.Option(..., "--code", help="Code received out of band"),
        name: str = typer.Option("", "--name", help="Display name"),
    ) -> None:
        runtime = load_runtime(ctx)
        auth = run_backend(
            runtime,
            lambda client: AuthFlow(client, runtime.session).verify(phone, code, name),
            failure="Failed to verify code",
        )
        typer.echo(f"Authorized as {auth.user.display_name}")

    @auth_app.command("bot")
    def auth_bot(
        ctx: typer.Context,
        code: str = typer.Option(..., "--code", help="Bot code"),
        name: str = typer.Option("", "--name", help="Display name"),
    ) -> None:
        runtime = load_runtime(ctx)
        auth = run_backend(
            runtime,
            lambda client: AuthFlow(client, runtime.session).authorize_bot(code, name),
            failure="Authorization failed",
        )
        typer.echo(f"Authorized as {auth.user.display_name}")

    @auth_app.command("whoami")
    def auth_whoami(
        ctx: typer.Context,
        refresh: bool = typer.Option(
            False, "--refresh", help="Fetch the profile from the server first"
        ),
    ) -> None:
        runtime = load_runtime(ctx)
        if refresh and runtime.session.is_authorized():
            run_backend(
                runtime,
                lambda client: AuthFlow(client, runtime.session).refresh_profile(),
                failure="Failed to load profile",
            )
        snapshot = runtime.session.snapshot()
        if not snapshot.is_authorized or snapshot.user is None:
            typer.echo("Not authorized.")
            raise typer.Exit(code=1)
        user = snapshot.user
        typer.echo(f"{user.display_name} ({user.phone}) id={user.id}")

    @auth_app.command("logout")
    def auth_logout(ctx: typer.Context) -> None:
        runtime = load_runtime(ctx)
        runtime.session.clear()
        typer.echo("Signed out.")
