"""Pydantic models describing wallet session state."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class ChangeKind(str, Enum):
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CONNECT_FAILED = "connect_failed"
    DISCONNECTED = "disconnected"
    ACCOUNT_CHANGED = "account_changed"
    NETWORK_CHANGED = "network_changed"


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class SessionSnapshot(BaseModel):
    """Immutable view of a session at one point in time."""

    model_config = ConfigDict(frozen=True)

    account: Optional[str] = None
    chain_id: Optional[str] = None
    connection_state: ConnectionState = ConnectionState.DISCONNECTED
    last_error: Optional[str] = None
    network_epoch: int = 0

    @model_validator(mode="after")
    def _check_invariants(self) -> "SessionSnapshot":
        if (self.account is None) != (self.chain_id is None):
            raise ValueError("chain_id must be set exactly when account is set")
        if (self.account is not None) != (self.connection_state == ConnectionState.CONNECTED):
            raise ValueError("account must be set exactly when connected")
        return self

    @property
    def is_connected(self) -> bool:
        return self.connection_state == ConnectionState.CONNECTED


class SessionChange(BaseModel):
    """Published to session watchers after every state transition."""

    model_config = ConfigDict(frozen=True)

    kind: ChangeKind
    previous: SessionSnapshot
    current: SessionSnapshot
    # True when anything bound to the previous network (contracts, RPC
    # handles, cached balances) must be rebuilt.
    invalidates_bindings: bool = False
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
