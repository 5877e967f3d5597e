"""Wallet session state container, its state models, errors and event channel."""

from wallet_session.session.errors import (
    DuplicateRequest,
    NotConnected,
    ProviderRequestFailed,
    ProviderUnavailable,
    UnknownNetwork,
    UserRejected,
    WalletError,
    classify_provider_error,
)
from wallet_session.session.events import EventChannel, ProviderEvent
from wallet_session.session.session import WalletSession
from wallet_session.session.state import (
    ChangeKind,
    ConnectionState,
    SessionChange,
    SessionSnapshot,
)

__all__ = [
    "ChangeKind",
    "ConnectionState",
    "DuplicateRequest",
    "EventChannel",
    "NotConnected",
    "ProviderEvent",
    "ProviderRequestFailed",
    "ProviderUnavailable",
    "SessionChange",
    "SessionSnapshot",
    "UnknownNetwork",
    "UserRejected",
    "WalletError",
    "WalletSession",
    "classify_provider_error",
]
