"""Wallet provider capability and a JSON-RPC backed implementation."""

from __future__ import annotations

import logging
from typing import Any, Callable, Protocol, runtime_checkable

from web3 import AsyncWeb3
from web3.types import RPCEndpoint

from wallet_session.wallet.chains import Chain, normalize_chain_id, to_hex_chain_id

logger = logging.getLogger("wallet_session.wallet.provider")

# EIP-1193 / EIP-3085 error codes
USER_REJECTED = 4001
UNAUTHORIZED = 4100
UNSUPPORTED_METHOD = 4200
DISCONNECTED = 4900
CHAIN_NOT_ADDED = 4902
REQUEST_PENDING = -32002

ACCOUNTS_CHANGED = "accountsChanged"
CHAIN_CHANGED = "chainChanged"
PROVIDER_EVENTS = (ACCOUNTS_CHANGED, CHAIN_CHANGED)

EventHandler = Callable[[Any], None]


class ProviderRpcError(Exception):
    """An error object returned by a wallet provider."""

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        super().__init__(f"[{code}] {message}")
        self.code = code
        self.message = message
        self.data = data


@runtime_checkable
class WalletProvider(Protocol):
    """What a wallet session needs from an injected wallet."""

    async def request_accounts(self) -> list[str]: ...

    async def get_network(self) -> int | str: ...

    async def switch_network(self, chain_id: int | str) -> None: ...

    def subscribe(self, event: str, handler: EventHandler) -> None: ...


class EventEmitter:
    """Keeps ``accountsChanged`` / ``chainChanged`` handlers for a provider."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = {}

    def subscribe(self, event: str, handler: EventHandler) -> None:
        if event not in PROVIDER_EVENTS:
            raise ValueError(f"Unsupported provider event '{event}'")
        self._handlers.setdefault(event, []).append(handler)

    def unsubscribe(self, event: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: str, payload: Any) -> None:
        """Deliver *payload* to every handler subscribed to *event*."""
        for handler in list(self._handlers.get(event, [])):
            try:
                handler(payload)
            except Exception as e:
                logger.error(f"Provider event handler error on '{event}': {e}")


class RpcWalletProvider(EventEmitter):
    """Wallet provider reached over JSON-RPC (a node, a signer proxy, a bridge).

    Requests go through :class:`web3.AsyncWeb3`. Errors returned in the
    response body are raised as :class:`ProviderRpcError`; transport
    failures propagate as-is so the session can report the provider as
    unavailable. Pushed notifications are forwarded with :meth:`emit`.
    """

    def __init__(self, rpc_url: str) -> None:
        super().__init__()
        self.rpc_url = rpc_url
        self.w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))

    async def _request(self, method: str, params: list[Any] | None = None) -> Any:
        logger.debug(f"RPC {method} -> {self.rpc_url}")
        response = await self.w3.provider.make_request(RPCEndpoint(method), params or [])
        error = response.get("error")
        if error:
            if isinstance(error, dict):
                raise ProviderRpcError(
                    int(error.get("code", -32603)),
                    str(error.get("message", "provider error")),
                    error.get("data"),
                )
            raise ProviderRpcError(-32603, str(error))
        return response.get("result")

    async def request_accounts(self) -> list[str]:
        result = await self._request("eth_requestAccounts")
        return list(result or [])

    async def get_network(self) -> str:
        result = await self._request("eth_chainId")
        return normalize_chain_id(result)

    async def switch_network(self, chain_id: int | str) -> None:
        await self._request(
            "wallet_switchEthereumChain", [{"chainId": to_hex_chain_id(chain_id)}]
        )

    async def add_network(self, chain: Chain) -> None:
        """Ask the wallet to register *chain* (EIP-3085)."""
        await self._request(
            "wallet_addEthereumChain",
            [
                {
                    "chainId": chain.hex_id,
                    "chainName": chain.name,
                    "rpcUrls": [chain.rpc_url],
                    "nativeCurrency": {
                        "name": chain.native_symbol,
                        "symbol": chain.native_symbol,
                        "decimals": 18,
                    },
                    "blockExplorerUrls": [chain.explorer_url],
                }
            ],
        )
