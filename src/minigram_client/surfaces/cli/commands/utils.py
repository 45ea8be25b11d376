from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, NoReturn, Optional, TypeVar

import typer

from ....api import BackendClient
from ....config import ENABLED_ENV, collect_env_overrides, load_client_config
from ....core.exceptions import MinigramError
from ....core.logging_utils import log_event, setup_rotating_logger
from ....errors import BackendHTTPError
from ....models import Chat, Message
from ....runtime import MinigramRuntime, build_runtime

T = TypeVar("T")

logger = logging.getLogger("minigram_client.cli")


@dataclass
class CliState:
    home: Optional[Path] = None
    runtime: Optional[MinigramRuntime] = None


def get_version() -> str:
    import importlib.metadata

    try:
        return importlib.metadata.version("minigram-client")
    except importlib.metadata.PackageNotFoundError:
        return "unknown"


def raise_exit(message: str, *, cause: Optional[BaseException] = None) -> NoReturn:
    typer.echo(message, err=True)
    if cause is not None:
        raise typer.Exit(code=1) from cause
    raise typer.Exit(code=1)


def load_runtime(ctx: typer.Context) -> MinigramRuntime:
    state = ctx.find_object(CliState)
    if state is None:
        state = CliState()
        ctx.obj = state
    if state.runtime is not None:
        return state.runtime
    try:
        config = load_client_config(state.home)
    except MinigramError as exc:
        raise_exit(str(exc), cause=exc)
    cli_logger = setup_rotating_logger("minigram_client", config.log)
    env_overrides = collect_env_overrides(os.environ)
    if env_overrides:
        cli_logger.info("Environment overrides active: %s", ", ".join(env_overrides))
    state.runtime = build_runtime(config, logger=cli_logger)
    return state.runtime


def open_client(runtime: MinigramRuntime) -> BackendClient:
    return runtime.open_client()


def require_enabled(runtime: MinigramRuntime) -> None:
    if not runtime.resolver.is_enabled():
        raise_exit(
            "Backend mode is disabled; run `minigram config enable` "
            f"or set {ENABLED_ENV}=1."
        )


def describe_failure(exc: MinigramError) -> str:
    if isinstance(exc, BackendHTTPError):
        detail = exc.server_message or "no details"
        return f"Request failed ({exc.status_code}): {detail}"
    return exc.user_message or str(exc)


def run_backend(
    runtime: MinigramRuntime,
    action: Callable[[BackendClient], Awaitable[T]],
    *,
    failure: str,
) -> T:
    """Run one backend action on a fresh client and exit cleanly on failure."""
    require_enabled(runtime)

    async def _run() -> T:
        async with open_client(runtime) as client:
            return await action(client)

    try:
        return asyncio.run(_run())
    except MinigramError as exc:
        log_event(
            runtime.logger,
            logging.WARNING,
            "cli.action.failed",
            action=failure,
            exc=exc,
        )
        raise_exit(f"{failure}: {describe_failure(exc)}", cause=exc)


def format_chat(chat: Chat) -> str:
    title = chat.title or "(untitled)"
    created = chat.created_at.isoformat() if chat.created_at else "-"
    return f"{chat.id}\t{chat.kind}\t{title}\t{created}"


def format_message(message: Message) -> str:
    if message.body is not None:
        text = message.body
    else:
        text = f"[media {message.media_id or '-'}]"
    edited = " (edited)" if message.edited_at else ""
    return f"{message.created_at.isoformat()}\t{message.sender_id}\t{text}{edited}"
