"""Tests for configuration loading and provider construction."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from wallet_session.config import (
    NetworkConfig,
    WalletSessionConfig,
    build_provider,
    get_config_path,
    get_keystore_dir,
    load_config,
    save_config,
)
from wallet_session.wallet.local import KeystoreWalletProvider
from wallet_session.wallet.provider import RpcWalletProvider


class TestWalletSessionConfig:
    def test_defaults(self) -> None:
        config = WalletSessionConfig()
        assert config.provider == "keystore"
        assert config.default_chain == "ethereum"
        assert config.logging.level == "WARNING"

    def test_log_level_normalised(self) -> None:
        config = WalletSessionConfig.model_validate({"logging": {"level": "debug"}})
        assert config.logging.level == "DEBUG"

    def test_bad_log_level(self) -> None:
        with pytest.raises(ValidationError):
            WalletSessionConfig.model_validate({"logging": {"level": "chatty"}})

    def test_extra_networks_merge(self) -> None:
        config = WalletSessionConfig(
            networks=[NetworkConfig(name="devnet", chain_id=31337, rpc_url="http://localhost:8545")]
        )
        chains = config.chains()
        assert chains["devnet"].chain_id == 31337
        assert "ethereum" in chains


class TestLoadSave:
    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        assert load_config(tmp_path / "nope.yaml") == WalletSessionConfig()

    def test_round_trip(self, tmp_path: Path) -> None:
        path = get_config_path(tmp_path)
        config = WalletSessionConfig(default_chain="sepolia", rpc_url="http://localhost:8545")
        save_config(config, path)
        assert load_config(path) == config

    def test_env_expansion(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setenv("WALLET_RPC", "http://signer:8545")
        path = tmp_path / "config.yaml"
        path.write_text("provider: rpc\nrpc_url: ${WALLET_RPC}\n", encoding="utf-8")
        assert load_config(path).rpc_url == "http://signer:8545"

    def test_unset_env_left_in_place(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("rpc_url: ${WALLET_SESSION_SURELY_UNSET}\n", encoding="utf-8")
        assert load_config(path).rpc_url == "${WALLET_SESSION_SURELY_UNSET}"


class TestBuildProvider:
    def test_keystore_provider(self, tmp_path: Path) -> None:
        provider = build_provider(WalletSessionConfig(default_chain="base"), tmp_path)
        assert isinstance(provider, KeystoreWalletProvider)
        assert provider.keystore.wallet_dir == tmp_path / ".wallet-session" / "wallet"
        assert provider.current_chain.chain_id == 8453

    def test_absolute_keystore_dir(self, tmp_path: Path) -> None:
        config = WalletSessionConfig(keystore_dir=str(tmp_path / "keys"))
        assert get_keystore_dir(config, Path("/elsewhere")) == tmp_path / "keys"

    def test_rpc_provider(self) -> None:
        provider = build_provider(WalletSessionConfig(provider="rpc", rpc_url="http://localhost:8545"))
        assert isinstance(provider, RpcWalletProvider)

    def test_rpc_provider_needs_url(self) -> None:
        with pytest.raises(ValueError):
            build_provider(WalletSessionConfig(provider="rpc"))

    def test_unknown_default_chain(self, tmp_path: Path) -> None:
        with pytest.raises(KeyError):
            build_provider(WalletSessionConfig(default_chain="nowhere"), tmp_path)
