"""Error taxonomy for wallet session operations.

Providers raise whatever their transport produces; the session runs every
provider failure through :func:`classify_provider_error` so callers only
ever see the types below.
"""

from __future__ import annotations

from wallet_session.wallet.provider import (
    CHAIN_NOT_ADDED,
    REQUEST_PENDING,
    USER_REJECTED,
    ProviderRpcError,
)


class WalletError(Exception):
    """Base class for every error surfaced by a wallet session."""

    default_message = "wallet operation failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class ProviderUnavailable(WalletError):
    """No wallet provider is present, or it cannot be reached."""

    default_message = "no wallet provider available"


class UserRejected(WalletError):
    """The user declined a connection or network switch."""

    default_message = "user rejected"


class UnknownNetwork(WalletError):
    """The target network is not registered with the provider."""

    default_message = "network not registered with the wallet provider"

    def __init__(self, chain_id: str, message: str | None = None) -> None:
        super().__init__(message or f"network {chain_id} not registered with the wallet provider")
        self.chain_id = chain_id


class DuplicateRequest(WalletError):
    """A connection request is already in flight."""

    default_message = "a connection request is already pending"


class NotConnected(WalletError):
    """The operation needs a connected account."""

    default_message = "no wallet connected"


class ProviderRequestFailed(WalletError):
    """Any other provider failure; carries the underlying message."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


def classify_provider_error(exc: BaseException, chain_id: str | None = None) -> WalletError:
    """Map an exception raised by a provider onto the session taxonomy."""
    if isinstance(exc, WalletError):
        return exc
    if isinstance(exc, ProviderRpcError):
        code = exc.code
        # Some mobile wallets wrap the real error in an internal error
        if isinstance(exc.data, dict) and isinstance(exc.data.get("originalError"), dict):
            code = exc.data["originalError"].get("code", code)
        if code == USER_REJECTED:
            return UserRejected()
        if code == CHAIN_NOT_ADDED:
            return UnknownNetwork(chain_id or "unknown")
        if code == REQUEST_PENDING:
            return DuplicateRequest()
        return ProviderRequestFailed(exc.message, code=exc.code)
    # aiohttp's connector errors and socket failures all derive from OSError
    if isinstance(exc, (ConnectionError, TimeoutError, OSError)):
        return ProviderUnavailable(f"wallet provider unreachable: {exc}")
    return ProviderRequestFailed(str(exc) or type(exc).__name__)
