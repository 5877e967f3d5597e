"""Client-side wallet session management for EVM wallets.

A :class:`~wallet_session.session.WalletSession` tracks one wallet
connection: it connects through an injected wallet provider, follows the
provider's account and network notifications, and publishes every state
transition to its watchers.
"""

from wallet_session.session import (
    ConnectionState,
    SessionChange,
    SessionSnapshot,
    WalletSession,
)

__version__ = "0.1.0"

__all__ = [
    "ConnectionState",
    "SessionChange",
    "SessionSnapshot",
    "WalletSession",
    "__version__",
]
