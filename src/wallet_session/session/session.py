"""Wallet session state container.

A :class:`WalletSession` owns the state of one wallet connection. Callers
drive it through :meth:`WalletSession.connect`, :meth:`WalletSession.disconnect`
and :meth:`WalletSession.switch_network`; the wallet provider drives it
through ``accountsChanged`` / ``chainChanged`` notifications, which are
queued on an :class:`EventChannel` and applied one at a time by a consumer
task. Anything that depends on the session registers a watcher and reacts to
:class:`SessionChange` objects instead of raw provider events.

Sessions are ordinary objects. Create as many as needed and pass them to
whatever depends on them.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from wallet_session.session.errors import (
    DuplicateRequest,
    NotConnected,
    ProviderRequestFailed,
    ProviderUnavailable,
    WalletError,
    classify_provider_error,
)
from wallet_session.session.events import EventChannel, ProviderEvent
from wallet_session.session.state import (
    ChangeKind,
    ConnectionState,
    SessionChange,
    SessionSnapshot,
)
from wallet_session.wallet.chains import normalize_chain_id
from wallet_session.wallet.provider import ACCOUNTS_CHANGED, CHAIN_CHANGED, WalletProvider

logger = logging.getLogger("wallet_session.session")

Watcher = Callable[[SessionChange], Awaitable[None]]


@dataclass
class _ConnectAttempt:
    """Bookkeeping for the one provider request a session may have in flight."""

    # Values pushed by the provider while the request was outstanding; they
    # are newer than whatever the request itself returns.
    accounts: list[str] | None = None
    chain_id: str | None = None
    # Set when the caller disconnected before the request finished.
    superseded: bool = False
    done: asyncio.Event = field(default_factory=asyncio.Event)


class WalletSession:
    """Tracks a single wallet connection against one provider."""

    def __init__(self, provider: WalletProvider | None = None, *, name: str = "default") -> None:
        self.name = name
        self.provider = provider
        self.events = EventChannel()
        self._snapshot = SessionSnapshot()
        self._watchers: list[Watcher] = []
        self._attempt: _ConnectAttempt | None = None
        self._consumer: asyncio.Task | None = None
        self._subscribed = False

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> SessionSnapshot:
        return self._snapshot

    @property
    def account(self) -> str | None:
        return self._snapshot.account

    @property
    def chain_id(self) -> str | None:
        return self._snapshot.chain_id

    @property
    def connection_state(self) -> ConnectionState:
        return self._snapshot.connection_state

    @property
    def last_error(self) -> str | None:
        return self._snapshot.last_error

    # ------------------------------------------------------------------
    # Watchers
    # ------------------------------------------------------------------

    def watch(self, callback: Watcher) -> None:
        self._watchers.append(callback)

    def unwatch(self, callback: Watcher) -> None:
        if callback in self._watchers:
            self._watchers.remove(callback)

    async def _commit(
        self,
        kind: ChangeKind,
        *,
        account: str | None = None,
        chain_id: str | None = None,
        state: ConnectionState = ConnectionState.DISCONNECTED,
        last_error: str | None = None,
        invalidates_bindings: bool = False,
    ) -> SessionSnapshot:
        previous = self._snapshot
        epoch = previous.network_epoch
        if chain_id != previous.chain_id:
            epoch += 1
        current = SessionSnapshot(
            account=account,
            chain_id=chain_id,
            connection_state=state,
            last_error=last_error,
            network_epoch=epoch,
        )
        self._snapshot = current
        logger.debug(
            f"[{self.name}] {kind.value}: {previous.connection_state.value} -> "
            f"{current.connection_state.value} account={current.account} chain={current.chain_id}"
        )

        change = SessionChange(
            kind=kind,
            previous=previous,
            current=current,
            invalidates_bindings=invalidates_bindings,
        )
        for callback in list(self._watchers):
            try:
                await callback(change)
            except Exception as e:
                logger.error(f"[{self.name}] Session watcher error on '{kind.value}': {e}")
        return current

    # ------------------------------------------------------------------
    # Caller operations
    # ------------------------------------------------------------------

    async def connect(self) -> SessionSnapshot:
        """Request account access from the provider.

        Never raises for provider failures: a failed attempt leaves the
        session disconnected with :attr:`last_error` set. Calling this while
        an attempt is in flight does nothing and returns the current state.
        """
        attempt = self._attempt
        if attempt is not None:
            if not attempt.superseded:
                logger.debug(f"[{self.name}] connect() ignored: {DuplicateRequest.default_message}")
                return self._snapshot
            # The caller disconnected and is connecting again before the
            # earlier request came back. Wait on that request instead of
            # issuing a second one.
            attempt.superseded = False
            await self._commit(ChangeKind.CONNECTING, state=ConnectionState.CONNECTING)
            await attempt.done.wait()
            return self._snapshot

        if self._snapshot.is_connected:
            return self._snapshot

        attempt = _ConnectAttempt()
        self._attempt = attempt
        await self._commit(ChangeKind.CONNECTING, state=ConnectionState.CONNECTING)

        error: WalletError | None = None
        accounts: list[str] = []
        chain_id: str | None = None
        try:
            try:
                if self.provider is None:
                    raise ProviderUnavailable()
                accounts = list(await self.provider.request_accounts())
                pushed = attempt.accounts
                if pushed or (pushed is None and accounts):
                    chain_id = normalize_chain_id(await self.provider.get_network())
            except Exception as exc:
                error = classify_provider_error(exc)
        finally:
            self._attempt = None

        try:
            if attempt.superseded:
                logger.info(f"[{self.name}] Connection attempt discarded after disconnect")
                return self._snapshot
            return await self._resolve_attempt(attempt, accounts, chain_id, error)
        finally:
            attempt.done.set()

    async def _resolve_attempt(
        self,
        attempt: _ConnectAttempt,
        accounts: list[str],
        chain_id: str | None,
        error: WalletError | None,
    ) -> SessionSnapshot:
        if error is None:
            if attempt.accounts is not None:
                accounts = attempt.accounts
            if attempt.chain_id is not None:
                chain_id = attempt.chain_id
            if not accounts:
                error = ProviderRequestFailed("wallet provider returned no accounts")

        if isinstance(error, DuplicateRequest):
            # The wallet already has a prompt open; the caller may retry.
            logger.info(f"[{self.name}] Provider reported a pending request; staying disconnected")
            return await self._commit(ChangeKind.CONNECT_FAILED)

        if error is not None:
            logger.warning(f"[{self.name}] Connection failed: {error}")
            return await self._commit(ChangeKind.CONNECT_FAILED, last_error=error.message)

        logger.info(f"[{self.name}] Connected {accounts[0]} on chain {chain_id}")
        return await self._commit(
            ChangeKind.CONNECTED,
            account=accounts[0],
            chain_id=chain_id,
            state=ConnectionState.CONNECTED,
        )

    async def disconnect(self) -> SessionSnapshot:
        """Forget the connection. Does not contact the provider."""
        if self._attempt is not None:
            self._attempt.superseded = True
        if self._snapshot == SessionSnapshot(network_epoch=self._snapshot.network_epoch):
            return self._snapshot
        logger.info(f"[{self.name}] Disconnected")
        return await self._commit(ChangeKind.DISCONNECTED)

    async def switch_network(self, target: int | str) -> SessionSnapshot:
        """Ask the provider to move to *target*.

        Raises
        ------
        NotConnected
            If no account is connected; the provider is not contacted.
        UnknownNetwork
            If the provider does not know *target*. The caller may offer to
            register the network and retry.
        UserRejected, ProviderUnavailable, ProviderRequestFailed
            Any other rejection. The session state is left untouched.
        """
        if self._snapshot.account is None:
            raise NotConnected()
        if self.provider is None:
            raise ProviderUnavailable()

        chain_id = normalize_chain_id(target)
        try:
            await self.provider.switch_network(chain_id)
        except Exception as exc:
            error = classify_provider_error(exc, chain_id=chain_id)
            logger.warning(f"[{self.name}] Switch to chain {chain_id} failed: {error}")
            raise error from exc

        return await self.on_network_changed(chain_id)

    # ------------------------------------------------------------------
    # Provider notifications
    # ------------------------------------------------------------------

    async def on_accounts_changed(self, accounts: list[str]) -> SessionSnapshot:
        attempt = self._attempt
        if not accounts:
            if attempt is not None:
                # An account pushed earlier is stale now
                attempt.accounts = None
            return await self.disconnect()

        # Recorded even on a superseded attempt: a reconnect may adopt it
        if attempt is not None:
            attempt.accounts = list(accounts)
            return self._snapshot

        current = self._snapshot
        if not current.is_connected:
            logger.debug(f"[{self.name}] accountsChanged ignored while {current.connection_state.value}")
            return current
        if accounts[0] == current.account:
            return current

        logger.info(f"[{self.name}] Account changed to {accounts[0]}")
        return await self._commit(
            ChangeKind.ACCOUNT_CHANGED,
            account=accounts[0],
            chain_id=current.chain_id,
            state=ConnectionState.CONNECTED,
        )

    async def on_network_changed(self, new_chain_id: int | str) -> SessionSnapshot:
        """Record a network change.

        Watchers get a change with ``invalidates_bindings`` set: contract and
        RPC handles built for the old network must be rebuilt.
        """
        chain_id = normalize_chain_id(new_chain_id)

        attempt = self._attempt
        if attempt is not None:
            attempt.chain_id = chain_id
            return self._snapshot

        current = self._snapshot
        if not current.is_connected:
            logger.debug(f"[{self.name}] chainChanged ignored while {current.connection_state.value}")
            return current
        if chain_id == current.chain_id:
            return current

        logger.info(f"[{self.name}] Network changed {current.chain_id} -> {chain_id}")
        return await self._commit(
            ChangeKind.NETWORK_CHANGED,
            account=current.account,
            chain_id=chain_id,
            state=ConnectionState.CONNECTED,
            invalidates_bindings=True,
        )

    # ------------------------------------------------------------------
    # Event consumption
    # ------------------------------------------------------------------

    def _push_accounts(self, accounts: list[str]) -> None:
        self.events.push(ProviderEvent.accounts_changed(accounts))

    def _push_chain(self, chain_id: int | str) -> None:
        self.events.push(ProviderEvent.chain_changed(chain_id))

    async def _apply(self, event: ProviderEvent) -> None:
        if event.kind == ACCOUNTS_CHANGED:
            await self.on_accounts_changed(list(event.payload or []))
        elif event.kind == CHAIN_CHANGED:
            await self.on_network_changed(event.payload)

    async def _consume(self) -> None:
        while True:
            event = await self.events.get()
            try:
                await self._apply(event)
            except Exception as e:
                logger.warning(f"[{self.name}] Failed to apply provider event '{event.kind}': {e}")
            finally:
                self.events.task_done()

    @property
    def running(self) -> bool:
        return self._consumer is not None and not self._consumer.done()

    async def start(self) -> None:
        """Subscribe to the provider and start applying its events."""
        if self.provider is not None and not self._subscribed:
            self.provider.subscribe(ACCOUNTS_CHANGED, self._push_accounts)
            self.provider.subscribe(CHAIN_CHANGED, self._push_chain)
            self._subscribed = True
        if not self.running:
            self._consumer = asyncio.create_task(
                self._consume(), name=f"wallet-session-{self.name}"
            )

    async def drain(self) -> None:
        """Wait until every queued provider event has been applied."""
        if not self.running:
            raise RuntimeError(f"Session '{self.name}' is not started")
        await self.events.join()

    async def close(self) -> None:
        """Unsubscribe from the provider and stop the consumer task."""
        if self._subscribed and self.provider is not None:
            unsubscribe = getattr(self.provider, "unsubscribe", None)
            if unsubscribe is not None:
                unsubscribe(ACCOUNTS_CHANGED, self._push_accounts)
                unsubscribe(CHAIN_CHANGED, self._push_chain)
            self._subscribed = False
        if self._consumer is not None:
            self._consumer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._consumer
            self._consumer = None

    async def __aenter__(self) -> WalletSession:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
