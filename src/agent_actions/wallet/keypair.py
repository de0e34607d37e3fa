"""Local keypair wallet backed by eth-account."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Union

from eth_account import Account
from eth_account.messages import encode_defunct

from agent_actions.wallet.base import (
    Address,
    SequenceCounter,
    Signature,
    SignedTransaction,
    Wallet,
)
from agent_actions.wallet.keystore import decrypt_key

logger = logging.getLogger("agent_actions.wallet.keypair")


class KeypairWallet(Wallet):
    """Holds a private key in memory and signs locally.

    Signing is pure CPU work on an immutable key, so concurrent signs run
    independently; only the sequence counter is synchronized.
    """

    def __init__(self, private_key: Union[bytes, str]) -> None:
        self._account = Account.from_key(private_key)
        self._address = Address.from_hex(self._account.address)
        self._counter = SequenceCounter()

    @classmethod
    def generate(cls) -> KeypairWallet:
        """Create a wallet around a freshly generated keypair."""
        return cls(Account.create().key)

    @classmethod
    def from_keystore(cls, keystore_path: Path, password: str) -> KeypairWallet:
        """Decrypt *keystore_path* and load its key."""
        wallet = cls(decrypt_key(keystore_path, password))
        logger.info(f"Loaded keypair wallet {wallet.address()} from {keystore_path}")
        return wallet

    def address(self) -> Address:
        return self._address

    @property
    def signatures_issued(self) -> int:
        return self._counter.value

    async def sign(self, payload: bytes) -> Signature:
        signed = self._account.sign_message(encode_defunct(primitive=payload))
        return Signature(data=bytes(signed.signature), sequence=self._counter.next())

    async def sign_transaction(self, tx: dict[str, Any]) -> SignedTransaction:
        signed = self._account.sign_transaction(tx)
        return SignedTransaction(
            raw=bytes(signed.raw_transaction),
            hash=bytes(signed.hash),
            sequence=self._counter.next(),
        )

    def __repr__(self) -> str:
        return f"KeypairWallet(address={self._address})"
