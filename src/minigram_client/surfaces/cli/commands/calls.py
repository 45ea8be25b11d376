from __future__ import annotations

from typing import Optional

import typer

from ....calls import CallCoordinator, CallHandoff
from .utils import load_runtime, run_backend


def _echo_handoff(handoff: CallHandoff) -> None:
    join = handoff.join
    typer.echo(f"call_id: {join.call_id}")
    typer.echo(f"room: {join.room}")
    typer.echo(f"livekit_url: {join.livekit_url}")
    typer.echo(f"token: {join.token}")


def register_calls_commands(calls_app: typer.Typer) -> None:
    @calls_app.command("start")
    def calls_start(
        ctx: typer.Context,
        chat_id: Optional[str] = typer.Option(
            None, "--chat", help="Associate the call with a chat"
        ),
    ) -> None:
        runtime = load_runtime(ctx)
        handoff = run_backend(
            runtime,
            lambda client: CallCoordinator(client, runtime.session).start_call(chat_id),
            failure="Failed to start call",
        )
        _echo_handoff(handoff)

    @calls_app.command("join")
    def calls_join(
        ctx: typer.Context,
        call_id: str = typer.Argument(..., help="Call id to join"),
    ) -> None:
        runtime = load_runtime(ctx)
        handoff = run_backend(
            runtime,
            lambda client: CallCoordinator(client, runtime.session).join_call(call_id),
            failure="Failed to join call",
        )
        _echo_handoff(handoff)
