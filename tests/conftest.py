"""Shared test fixtures for the wallet-session test suite.

FakeProvider stands in for an injected browser wallet so sessions can be
exercised without a node or a keystore.
"""

from __future__ import annotations

import asyncio

import pytest

from wallet_session.wallet.provider import (
    ACCOUNTS_CHANGED,
    CHAIN_CHANGED,
    CHAIN_NOT_ADDED,
    EventEmitter,
    ProviderRpcError,
)


class FakeProvider(EventEmitter):
    """Scriptable wallet provider.

    Set ``accounts`` / ``chain_id`` for the happy path, ``accounts_error`` or
    ``switch_error`` to make a request fail, and ``gate`` to hold
    ``request_accounts`` open until the test releases it.
    """

    def __init__(self, accounts=None, chain_id="0x1", known_chains=("1", "11155111")):
        super().__init__()
        self.accounts = list(accounts) if accounts is not None else ["0xabc"]
        self.chain_id = chain_id
        self.known_chains = set(known_chains)
        self.accounts_error: BaseException | None = None
        self.switch_error: BaseException | None = None
        self.gate: asyncio.Event | None = None
        self.request_calls = 0
        self.network_calls = 0
        self.switch_calls: list[str] = []

    async def request_accounts(self):
        self.request_calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.accounts_error is not None:
            raise self.accounts_error
        return list(self.accounts)

    async def get_network(self):
        self.network_calls += 1
        return self.chain_id

    async def switch_network(self, chain_id):
        self.switch_calls.append(str(chain_id))
        if self.switch_error is not None:
            raise self.switch_error
        if str(chain_id) not in self.known_chains:
            raise ProviderRpcError(CHAIN_NOT_ADDED, f"Unrecognized chain ID {chain_id}")
        self.chain_id = hex(int(chain_id))
        self.emit(CHAIN_CHANGED, self.chain_id)

    # Helpers for pushing wallet-side notifications
    def push_accounts(self, accounts):
        self.emit(ACCOUNTS_CHANGED, list(accounts))

    def push_chain(self, chain_id):
        self.emit(CHAIN_CHANGED, chain_id)


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def make_provider():
    return FakeProvider


@pytest.fixture
def settle():
    """Let pending tasks run until they block on something."""

    async def _settle(rounds: int = 10) -> None:
        for _ in range(rounds):
            await asyncio.sleep(0)

    return _settle


@pytest.fixture
def recorder():
    """Async watcher that keeps every SessionChange it receives."""

    class Recorder:
        def __init__(self):
            self.changes = []

        async def __call__(self, change):
            self.changes.append(change)

        @property
        def kinds(self):
            return [c.kind for c in self.changes]

    return Recorder()
