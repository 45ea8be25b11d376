from __future__ import annotations

import typer

from ....api import DEFAULT_MESSAGE_LIMIT
from ....sync import ChatSynchronizer
from .utils import format_chat, format_message, load_runtime, run_backend


def register_chats_commands(chats_app: typer.Typer) -> None:
    @chats_app.command("list")
    def chats_list(ctx: typer.Context) -> None:
        runtime = load_runtime(ctx)
        chats = run_backend(
            runtime,
            lambda client: ChatSynchronizer(client).refresh_chats(),
            failure="Failed to load chats",
        )
        if not chats:
            typer.echo("No chats.")
            return
        for chat in chats:
            typer.echo(format_chat(chat))

    @chats_app.command("create")
    def chats_create(
        ctx: typer.Context,
        user_id: str = typer.Argument(..., help="Target user id"),
    ) -> None:
        runtime = load_runtime(ctx)
        chat = run_backend(
            runtime,
            lambda client: ChatSynchronizer(client).create_direct_chat(user_id),
            failure="Failed to create chat",
        )
        typer.echo(format_chat(chat))


def register_messages_commands(messages_app: typer.Typer) -> None:
    @messages_app.command("list")
    def messages_list(
        ctx: typer.Context,
        chat_id: str = typer.Argument(..., help="Chat id"),
        limit: int = typer.Option(
            DEFAULT_MESSAGE_LIMIT, "--limit", min=1, help="Maximum messages to fetch"
        ),
    ) -> None:
        runtime = load_runtime(ctx)
        messages = run_backend(
            runtime,
            lambda client: ChatSynchronizer(client).load_messages(chat_id, limit=limit),
            failure="Failed to load messages",
        )
        if not messages:
            typer.echo("No messages.")
            return
        for message in messages:
            typer.echo(format_message(message))

    @messages_app.command("send")
    def messages_send(
        ctx: typer.Context,
        chat_id: str = typer.Argument(..., help="Chat id"),
        body: str = typer.Argument(..., help="Message text"),
    ) -> None:
        runtime = load_runtime(ctx)
        message = run_backend(
            runtime,
            lambda client: ChatSynchronizer(client).send_message(chat_id, body),
            failure="Failed to send message",
        )
        typer.echo(format_message(message))
