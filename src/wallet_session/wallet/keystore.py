"""A single encrypted account on disk (eth-account V3 keyfile)."""

from __future__ import annotations

import json
from pathlib import Path

from eth_account import Account
from web3 import Web3

KEYSTORE_FILENAME = "keystore.json"


class Keystore:
    """The ``keystore.json`` inside a wallet directory.

    Nothing is cached: the file is read on every access so an account
    created or removed by another process is picked up.
    """

    def __init__(self, wallet_dir: Path) -> None:
        self.wallet_dir = wallet_dir
        self.path = wallet_dir / KEYSTORE_FILENAME

    def exists(self) -> bool:
        return self.path.is_file()

    def _read(self) -> dict:
        if not self.exists():
            raise FileNotFoundError(f"No keystore at {self.path}")
        return json.loads(self.path.read_text(encoding="utf-8"))

    @property
    def address(self) -> str | None:
        """Checksummed address stored in the keyfile, or ``None`` if there is none."""
        if not self.exists():
            return None
        raw = self._read().get("address", "")
        return Web3.to_checksum_address(raw if raw.startswith("0x") else f"0x{raw}")

    def create(self, password: str, *, iterations: int | None = None) -> str:
        """Generate an account, encrypt it with *password* and return its address.

        *iterations* switches the KDF to pbkdf2 with that work factor; tests
        use it to keep key derivation fast. Refuses to overwrite an existing
        keyfile.
        """
        if self.exists():
            raise FileExistsError(f"{self.path} already holds an account")

        acct = Account.create()
        if iterations is None:
            keyfile = Account.encrypt(acct.key, password)
        else:
            keyfile = Account.encrypt(acct.key, password, kdf="pbkdf2", iterations=iterations)

        self.wallet_dir.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(keyfile, indent=2), encoding="utf-8")
        return acct.address

    def decrypt(self, password: str) -> bytes:
        """Return the raw 32-byte private key. A wrong password is a ``ValueError``."""
        keyfile = self._read()
        try:
            return bytes(Account.decrypt(keyfile, password))
        except ValueError as exc:
            raise ValueError(f"Wrong password for {self.path}: {exc}") from exc
