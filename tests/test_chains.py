"""Tests for the chain registry and chain id helpers."""

from __future__ import annotations

import pytest

from wallet_session.wallet.chains import (
    CHAINS,
    get_chain,
    get_chain_by_id,
    list_chain_names,
    normalize_chain_id,
    to_hex_chain_id,
)


class TestNormalizeChainId:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (1, "1"),
            ("1", "1"),
            ("0x1", "1"),
            ("0xaa36a7", "11155111"),
            ("0xAA36A7", "11155111"),
            (" 137 ", "137"),
            (999999, "999999"),
        ],
    )
    def test_accepted_forms(self, value, expected) -> None:
        assert normalize_chain_id(value) == expected

    @pytest.mark.parametrize("value", ["", "mainnet", "0xzz", 0, -5, True, None, 1.5])
    def test_rejected_forms(self, value) -> None:
        with pytest.raises(ValueError):
            normalize_chain_id(value)

    def test_to_hex(self) -> None:
        assert to_hex_chain_id(11155111) == "0xaa36a7"
        assert to_hex_chain_id("137") == "0x89"


class TestRegistry:
    def test_get_chain(self) -> None:
        chain = get_chain("sepolia")
        assert chain.chain_id == 11155111
        assert chain.hex_id == "0xaa36a7"

    def test_get_chain_unknown(self) -> None:
        with pytest.raises(KeyError, match="Unknown chain 'dogechain'"):
            get_chain("dogechain")

    def test_get_chain_by_id(self) -> None:
        assert get_chain_by_id("0x2105").name == "base"
        assert get_chain_by_id(999999) is None

    def test_list_chain_names(self) -> None:
        assert list_chain_names() == list(CHAINS)
        assert "ethereum" in list_chain_names()
