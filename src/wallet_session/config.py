"""Configuration system for wallet-session.

Loads settings from ``.wallet-session/config.yaml``, supports environment
variable expansion, and builds the provider and chain registry a session
runs against.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from wallet_session.wallet.chains import CHAINS, Chain
from wallet_session.wallet.local import ApprovalCallback, KeystoreWalletProvider
from wallet_session.wallet.provider import RpcWalletProvider


# ---------------------------------------------------------------------------
# Environment-variable expansion helper
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)\}")


def _expand_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with their environment values.

    If the variable is not set the placeholder is left as-is so that
    validation can catch it later.
    """

    def _replace(match: re.Match) -> str:
        var_name = match.group(1)
        return os.environ.get(var_name, match.group(0))

    return _ENV_VAR_RE.sub(_replace, value)


def _expand_env_recursive(obj: object) -> object:
    """Walk an arbitrary nested structure and expand env vars in strings."""
    if isinstance(obj, str):
        return _expand_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _expand_env_recursive(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_recursive(item) for item in obj]
    return obj


# ---------------------------------------------------------------------------
# Pydantic v2 models
# ---------------------------------------------------------------------------


class NetworkConfig(BaseModel):
    """An extra network to register alongside the built-in chains."""

    name: str
    chain_id: int = Field(gt=0)
    rpc_url: str
    native_symbol: str = "ETH"
    explorer_url: str = ""

    def to_chain(self) -> Chain:
        return Chain(
            name=self.name,
            chain_id=self.chain_id,
            rpc_url=self.rpc_url,
            native_symbol=self.native_symbol,
            explorer_url=self.explorer_url,
        )


class LoggingConfig(BaseModel):
    """Log output settings."""

    level: str = "WARNING"

    @field_validator("level")
    @classmethod
    def _upper(cls, value: str) -> str:
        value = value.upper()
        if value not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level '{value}'")
        return value


class WalletSessionConfig(BaseModel):
    """Root configuration object."""

    provider: Literal["keystore", "rpc"] = "keystore"
    default_chain: str = "ethereum"
    rpc_url: Optional[str] = None  # Wallet JSON-RPC endpoint for provider "rpc"
    keystore_dir: str = "wallet"  # Relative to the config directory
    networks: list[NetworkConfig] = Field(default_factory=list)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def chains(self) -> dict[str, Chain]:
        """Built-in chains plus configured networks (configured ones win)."""
        merged = dict(CHAINS)
        for network in self.networks:
            merged[network.name] = network.to_chain()
        return merged


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------


def get_root_dir(base: Path | None = None) -> Path:
    """Return the ``.wallet-session/`` directory (no auto-create).

    Parameters
    ----------
    base:
        Parent directory that contains (or will contain) the root folder.
        Defaults to the current working directory.
    """
    if base is None:
        base = Path.cwd()
    return base / ".wallet-session"


def get_config_path(base: Path | None = None) -> Path:
    return get_root_dir(base) / "config.yaml"


def get_keystore_dir(config: WalletSessionConfig, base: Path | None = None) -> Path:
    path = Path(config.keystore_dir).expanduser()
    if path.is_absolute():
        return path
    return get_root_dir(base) / path


def load_config(path: Path) -> WalletSessionConfig:
    """Load and validate configuration from a YAML file.

    Environment variable placeholders (``${VAR}``) are expanded before
    validation. A missing file yields the defaults.
    """
    if not path.exists():
        return WalletSessionConfig()
    raw_text = path.read_text(encoding="utf-8")
    raw_data = yaml.safe_load(raw_text) or {}
    expanded = _expand_env_recursive(raw_data)
    return WalletSessionConfig.model_validate(expanded)


def save_config(config: WalletSessionConfig, path: Path) -> None:
    """Serialize a :class:`WalletSessionConfig` to a YAML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump(mode="python", exclude_none=True)
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(data, fh, default_flow_style=False, sort_keys=False)


def build_provider(
    config: WalletSessionConfig,
    base: Path | None = None,
    approve: ApprovalCallback | None = None,
) -> KeystoreWalletProvider | RpcWalletProvider:
    """Create the wallet provider selected by *config*.

    Raises ``ValueError`` for an ``rpc`` provider without ``rpc_url`` and
    ``KeyError`` for an unknown ``default_chain``.
    """
    chains = config.chains()
    if config.default_chain not in chains:
        raise KeyError(
            f"Unknown default chain '{config.default_chain}'. Available: {sorted(chains)}"
        )
    if config.provider == "rpc":
        if not config.rpc_url:
            raise ValueError("provider 'rpc' requires rpc_url to be set")
        return RpcWalletProvider(config.rpc_url)
    return KeystoreWalletProvider(
        get_keystore_dir(config, base),
        chains=chains,
        default_chain=config.default_chain,
        approve=approve,
    )
