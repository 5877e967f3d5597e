"""Chain definitions for supported EVM networks."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Chain:
    """An EVM-compatible blockchain network."""

    name: str
    chain_id: int
    rpc_url: str
    native_symbol: str
    explorer_url: str

    @property
    def hex_id(self) -> str:
        return to_hex_chain_id(self.chain_id)


CHAINS: dict[str, Chain] = {
    "ethereum": Chain(
        name="ethereum",
        chain_id=1,
        rpc_url="https://eth.llamarpc.com",
        native_symbol="ETH",
        explorer_url="https://etherscan.io",
    ),
    "sepolia": Chain(
        name="sepolia",
        chain_id=11155111,
        rpc_url="https://rpc.sepolia.org",
        native_symbol="ETH",
        explorer_url="https://sepolia.etherscan.io",
    ),
    "base": Chain(
        name="base",
        chain_id=8453,
        rpc_url="https://mainnet.base.org",
        native_symbol="ETH",
        explorer_url="https://basescan.org",
    ),
    "arbitrum": Chain(
        name="arbitrum",
        chain_id=42161,
        rpc_url="https://arb1.arbitrum.io/rpc",
        native_symbol="ETH",
        explorer_url="https://arbiscan.io",
    ),
    "polygon": Chain(
        name="polygon",
        chain_id=137,
        rpc_url="https://polygon-rpc.com",
        native_symbol="POL",
        explorer_url="https://polygonscan.com",
    ),
}


def get_chain(name: str) -> Chain:
    """Get a chain by name. Raises ``KeyError`` if not found."""
    if name not in CHAINS:
        raise KeyError(
            f"Unknown chain '{name}'. Available: {list_chain_names()}"
        )
    return CHAINS[name]


def get_chain_by_id(chain_id: int | str) -> Chain | None:
    """Look up a built-in chain by numeric id (any accepted notation)."""
    wanted = int(normalize_chain_id(chain_id))
    for chain in CHAINS.values():
        if chain.chain_id == wanted:
            return chain
    return None


def list_chain_names() -> list[str]:
    """Return the names of all supported chains."""
    return list(CHAINS.keys())


def normalize_chain_id(value: int | str) -> str:
    """Return *value* as a decimal chain id string.

    Wallets report chain ids as ``0x``-prefixed hex (``"0xaa36a7"``), while
    configs and callers tend to use integers or decimal strings. All of them
    collapse to the same decimal form, e.g. ``"11155111"``.

    Raises ``ValueError`` for anything that is not a positive integer id.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid chain id: {value!r}")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str):
        text = value.strip().lower()
        try:
            number = int(text, 16) if text.startswith("0x") else int(text, 10)
        except ValueError:
            raise ValueError(f"Invalid chain id: {value!r}") from None
    else:
        raise ValueError(f"Invalid chain id: {value!r}")

    if number <= 0:
        raise ValueError(f"Invalid chain id: {value!r}")
    return str(number)


def to_hex_chain_id(value: int | str) -> str:
    """Return the ``0x``-prefixed hex form wallets expect on the wire."""
    return hex(int(normalize_chain_id(value)))
