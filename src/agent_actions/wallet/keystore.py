"""Encrypted keystore files (Web3 Secret Storage) using eth-account."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from eth_account import Account

from agent_actions.wallet.base import Address


def create_keystore(
    keystore_path: Path, password: str, *, iterations: Optional[int] = None
) -> Address:
    """Generate a new keypair and write it as an encrypted keystore file.

    Parameters
    ----------
    keystore_path:
        Destination file, e.g. ``~/.agent-actions/keystore.json``.
    password:
        Password used to encrypt the private key.
    iterations:
        KDF work factor override; ``None`` keeps eth-account's default.

    Returns
    -------
    Address
        The address of the new account.

    Raises
    ------
    FileExistsError
        If *keystore_path* already exists.
    """
    if keystore_path.exists():
        raise FileExistsError(
            f"Keystore already exists at {keystore_path}. "
            "Delete it first if you want to create a new one."
        )

    acct = Account.create()
    encrypted = Account.encrypt(acct.key, password, iterations=iterations)

    keystore_path.parent.mkdir(parents=True, exist_ok=True)
    keystore_path.write_text(json.dumps(encrypted, indent=2), encoding="utf-8")

    return Address.from_hex(acct.address)


def load_address(keystore_path: Path) -> Address | None:
    """Read the account address from a keystore file without decrypting.

    Returns ``None`` if the file does not exist or carries no address.
    """
    if not keystore_path.exists():
        return None

    data = json.loads(keystore_path.read_text(encoding="utf-8"))
    raw_address = data.get("address", "")
    if not raw_address:
        return None
    return Address.from_hex(raw_address)


def decrypt_key(keystore_path: Path, password: str) -> bytes:
    """Decrypt the private key from a keystore file.

    Raises
    ------
    FileNotFoundError
        If no keystore file exists.
    ValueError
        If the password is incorrect or the file is not a valid keystore.
    """
    if not keystore_path.exists():
        raise FileNotFoundError(f"No keystore found at {keystore_path}")

    data = json.loads(keystore_path.read_text(encoding="utf-8"))
    try:
        return bytes(Account.decrypt(data, password))
    except (ValueError, KeyError, TypeError) as exc:
        raise ValueError(f"Failed to decrypt keystore: {exc}") from exc
