"""In-process wallet provider backed by an encrypted keystore.

Behaves like an injected browser wallet: the page (here, the session) asks
for accounts, the owner approves or declines, and the wallet pushes
``accountsChanged`` / ``chainChanged`` notifications when its state moves.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Awaitable, Callable

from wallet_session.wallet.chains import CHAINS, Chain, normalize_chain_id, to_hex_chain_id
from wallet_session.wallet.keystore import Keystore
from wallet_session.wallet.provider import (
    ACCOUNTS_CHANGED,
    CHAIN_CHANGED,
    CHAIN_NOT_ADDED,
    UNAUTHORIZED,
    USER_REJECTED,
    EventEmitter,
    ProviderRpcError,
)

logger = logging.getLogger("wallet_session.wallet.local")

# Receives the address being requested; returns True to grant access.
ApprovalCallback = Callable[[str], Awaitable[bool]]


async def _decline(address: str) -> bool:
    return False


class KeystoreWalletProvider(EventEmitter):
    """Wallet provider holding a single keystore account."""

    def __init__(
        self,
        wallet_dir: Path,
        *,
        chains: dict[str, Chain] | None = None,
        default_chain: str = "ethereum",
        approve: ApprovalCallback | None = None,
    ) -> None:
        super().__init__()
        self.keystore = Keystore(wallet_dir)
        self._chains: dict[str, Chain] = {}
        for chain in (chains or CHAINS).values():
            self._chains[str(chain.chain_id)] = chain
        if default_chain not in {c.name for c in self._chains.values()}:
            raise KeyError(f"Default chain '{default_chain}' is not registered")
        self._current = next(c for c in self._chains.values() if c.name == default_chain)
        # Without an approval callback nothing is ever granted
        self._approve = approve or _decline
        self._authorized = False

    # ------------------------------------------------------------------
    # Provider capability
    # ------------------------------------------------------------------

    @property
    def address(self) -> str | None:
        return self.keystore.address

    @property
    def current_chain(self) -> Chain:
        return self._current

    async def request_accounts(self) -> list[str]:
        addr = self.address
        if addr is None:
            return []
        if not self._authorized:
            if not await self._approve(addr):
                logger.info(f"Account access to {addr} declined")
                raise ProviderRpcError(USER_REJECTED, "User rejected the request.")
            self._authorized = True
            logger.info(f"Account access to {addr} granted")
        return [addr]

    async def get_network(self) -> str:
        return to_hex_chain_id(self._current.chain_id)

    async def switch_network(self, chain_id: int | str) -> None:
        key = normalize_chain_id(chain_id)
        chain = self._chains.get(key)
        if chain is None:
            raise ProviderRpcError(
                CHAIN_NOT_ADDED,
                f"Unrecognized chain ID \"{to_hex_chain_id(key)}\". "
                "Try adding the chain using wallet_addEthereumChain first.",
            )
        if chain.chain_id == self._current.chain_id:
            return
        self._current = chain
        logger.info(f"Switched to {chain.name} ({chain.chain_id})")
        self.emit(CHAIN_CHANGED, chain.hex_id)

    # ------------------------------------------------------------------
    # Wallet-side actions
    # ------------------------------------------------------------------

    def add_network(self, chain: Chain) -> None:
        """Register *chain* so it can be switched to."""
        self._chains[str(chain.chain_id)] = chain

    def has_network(self, chain_id: int | str) -> bool:
        return normalize_chain_id(chain_id) in self._chains

    def lock(self) -> None:
        """Revoke account access, as when the user locks the wallet."""
        if not self._authorized:
            return
        self._authorized = False
        self.emit(ACCOUNTS_CHANGED, [])

    def unlock(self, password: str) -> bytes:
        """Decrypt the signing key. Requires previously granted access."""
        if not self._authorized:
            raise ProviderRpcError(UNAUTHORIZED, "The requested account has not been authorized.")
        return self.keystore.decrypt(password)
