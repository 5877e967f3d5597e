"""Channel carrying provider notifications into a wallet session."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from wallet_session.wallet.provider import ACCOUNTS_CHANGED, CHAIN_CHANGED, PROVIDER_EVENTS

logger = logging.getLogger("wallet_session.session.events")


@dataclass
class ProviderEvent:
    kind: str  # accountsChanged | chainChanged
    payload: Any
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def accounts_changed(cls, accounts: list[str]) -> ProviderEvent:
        return cls(kind=ACCOUNTS_CHANGED, payload=list(accounts))

    @classmethod
    def chain_changed(cls, chain_id: int | str) -> ProviderEvent:
        return cls(kind=CHAIN_CHANGED, payload=chain_id)


class EventChannel:
    """FIFO of provider events, consumed by exactly one task."""

    def __init__(self, history_limit: int = 100):
        self._queue: asyncio.Queue[ProviderEvent] = asyncio.Queue()
        self._history: list[ProviderEvent] = []
        self._history_limit = history_limit

    def push(self, event: ProviderEvent) -> None:
        """Enqueue *event*. Safe to call from synchronous provider callbacks."""
        if event.kind not in PROVIDER_EVENTS:
            raise ValueError(f"Unsupported provider event '{event.kind}'")
        self._history.append(event)
        if len(self._history) > self._history_limit:
            del self._history[: len(self._history) - self._history_limit]
        self._queue.put_nowait(event)

    async def get(self) -> ProviderEvent:
        return await self._queue.get()

    def task_done(self) -> None:
        self._queue.task_done()

    async def join(self) -> None:
        await self._queue.join()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def get_history(self, limit: int = 50, kind: str | None = None) -> list[ProviderEvent]:
        if limit <= 0:
            return []
        events = list(self._history)
        if kind:
            events = [e for e in events if e.kind == kind]
        return events[-limit:]
