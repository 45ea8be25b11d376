"""Process-level wiring.

:func:`build_runtime` is called once at startup. It creates the single
key-value store, config resolver and session store for the process, and
everything else receives them as constructor arguments.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Optional

import httpx

from .api import BackendClient
from .config import ClientConfig, ConfigResolver
from .core.kv_store import KeyValueStore
from .session import SessionStore


@dataclass
class MinigramRuntime:
    config: ClientConfig
    store: KeyValueStore
    resolver: ConfigResolver
    session: SessionStore
    logger: logging.Logger

    def open_client(
        self, *, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> BackendClient:
        return BackendClient(
            self.resolver.base_url(),
            self.session,
            timeout=self.config.timeout_seconds,
            transport=transport,
            logger=self.logger,
        )


def build_runtime(
    config: ClientConfig,
    *,
    env: Optional[Mapping[str, str]] = None,
    logger: Optional[logging.Logger] = None,
) -> MinigramRuntime:
    store = KeyValueStore(config.state_path)
    return MinigramRuntime(
        config=config,
        store=store,
        resolver=ConfigResolver(store, env=env),
        session=SessionStore(store),
        logger=logger or logging.getLogger("minigram_client"),
    )


__all__ = ["MinigramRuntime", "build_runtime"]
