"""Tests for the JSON-RPC wallet provider."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from wallet_session.session import ProviderUnavailable, UserRejected, WalletSession
from wallet_session.wallet.chains import get_chain
from wallet_session.wallet.provider import CHAIN_NOT_ADDED, ProviderRpcError, RpcWalletProvider


@pytest.fixture
def rpc() -> RpcWalletProvider:
    provider = RpcWalletProvider("http://127.0.0.1:8545")
    provider.w3.provider.make_request = AsyncMock()
    return provider


def _calls(provider: RpcWalletProvider):
    return [(c.args[0], c.args[1]) for c in provider.w3.provider.make_request.call_args_list]


class TestRpcWalletProvider:
    async def test_request_accounts(self, rpc) -> None:
        rpc.w3.provider.make_request.return_value = {"jsonrpc": "2.0", "id": 1, "result": ["0xabc"]}
        assert await rpc.request_accounts() == ["0xabc"]
        assert _calls(rpc) == [("eth_requestAccounts", [])]

    async def test_get_network_normalises(self, rpc) -> None:
        rpc.w3.provider.make_request.return_value = {"jsonrpc": "2.0", "id": 1, "result": "0xaa36a7"}
        assert await rpc.get_network() == "11155111"

    async def test_switch_sends_hex(self, rpc) -> None:
        rpc.w3.provider.make_request.return_value = {"jsonrpc": "2.0", "id": 1, "result": None}
        await rpc.switch_network("11155111")
        assert _calls(rpc) == [("wallet_switchEthereumChain", [{"chainId": "0xaa36a7"}])]

    async def test_error_response_raises(self, rpc) -> None:
        rpc.w3.provider.make_request.return_value = {
            "jsonrpc": "2.0",
            "id": 1,
            "error": {"code": CHAIN_NOT_ADDED, "message": "Unrecognized chain ID"},
        }
        with pytest.raises(ProviderRpcError) as excinfo:
            await rpc.switch_network(999999)
        assert excinfo.value.code == CHAIN_NOT_ADDED

    async def test_add_network(self, rpc) -> None:
        rpc.w3.provider.make_request.return_value = {"jsonrpc": "2.0", "id": 1, "result": None}
        await rpc.add_network(get_chain("polygon"))
        method, params = _calls(rpc)[0]
        assert method == "wallet_addEthereumChain"
        assert params[0]["chainId"] == "0x89"
        assert params[0]["nativeCurrency"]["symbol"] == "POL"


class TestSessionOverRpc:
    async def test_connect(self, rpc) -> None:
        rpc.w3.provider.make_request.side_effect = [
            {"jsonrpc": "2.0", "id": 1, "result": ["0xabc"]},
            {"jsonrpc": "2.0", "id": 2, "result": "0x1"},
        ]
        snapshot = await WalletSession(rpc).connect()
        assert snapshot.account == "0xabc"
        assert snapshot.chain_id == "1"

    async def test_connect_rejected(self, rpc) -> None:
        rpc.w3.provider.make_request.return_value = {
            "jsonrpc": "2.0",
            "id": 1,
            "error": {"code": 4001, "message": "User rejected the request."},
        }
        snapshot = await WalletSession(rpc).connect()
        assert snapshot.last_error == str(UserRejected())

    async def test_unreachable_node(self, rpc) -> None:
        rpc.w3.provider.make_request.side_effect = ConnectionRefusedError("refused")
        snapshot = await WalletSession(rpc).connect()
        assert snapshot.last_error.startswith("wallet provider unreachable")

    async def test_forwarded_events(self, rpc) -> None:
        rpc.w3.provider.make_request.side_effect = [
            {"jsonrpc": "2.0", "id": 1, "result": ["0xabc"]},
            {"jsonrpc": "2.0", "id": 2, "result": "0x1"},
        ]
        async with WalletSession(rpc) as session:
            await session.connect()
            rpc.emit("chainChanged", "0x89")
            await session.drain()
            assert session.chain_id == "137"

    async def test_switch_when_unreachable(self, rpc) -> None:
        rpc.w3.provider.make_request.side_effect = [
            {"jsonrpc": "2.0", "id": 1, "result": ["0xabc"]},
            {"jsonrpc": "2.0", "id": 2, "result": "0x1"},
            OSError("network down"),
        ]
        session = WalletSession(rpc)
        await session.connect()
        with pytest.raises(ProviderUnavailable):
            await session.switch_network(137)
        assert session.chain_id == "1"
