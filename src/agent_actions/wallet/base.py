"""Wallet capability: a signing identity shared by every action of an agent."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterable, Union

from web3 import Web3

ADDRESS_LENGTH = 20


@dataclass(frozen=True)
class Address:
    """A 20-byte account identifier.

    ``str(address)`` gives the EIP-55 checksummed hex form.
    """

    raw: bytes

    def __post_init__(self) -> None:
        if len(self.raw) != ADDRESS_LENGTH:
            raise ValueError(
                f"Address must be {ADDRESS_LENGTH} bytes, got {len(self.raw)}"
            )

    @classmethod
    def from_hex(cls, value: str) -> Address:
        text = value[2:] if value.lower().startswith("0x") else value
        try:
            raw = bytes.fromhex(text)
        except ValueError as exc:
            raise ValueError(f"Invalid hex address: {value!r}") from exc
        return cls(raw)

    @classmethod
    def parse(cls, value: Union[str, bytes, Address]) -> Address:
        if isinstance(value, Address):
            return value
        if isinstance(value, bytes):
            return cls(value)
        return cls.from_hex(value)

    def __str__(self) -> str:
        return Web3.to_checksum_address(self.raw)


@dataclass(frozen=True)
class Signature:
    """A signature over an arbitrary payload.

    ``sequence`` is the wallet-local counter value assigned to this signature.
    """

    data: bytes
    sequence: int

    def hex(self) -> str:
        return "0x" + self.data.hex()


@dataclass(frozen=True)
class SignedTransaction:
    raw: bytes
    hash: bytes
    sequence: int

    @property
    def hash_hex(self) -> str:
        return "0x" + self.hash.hex()


class SequenceCounter:
    """Thread-safe counter starting at 1.

    :meth:`next` assigns a value after the work it numbers has succeeded.
    Callers that must announce the value up front use :meth:`peek_next` and
    then :meth:`advance_to`, holding their own lock around the pair so no
    value is ever duplicated or skipped. :meth:`resync` moves the counter to
    match an external authority such as a remote signer.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value = 0

    @property
    def value(self) -> int:
        """The last committed value (0 before the first signature)."""
        with self._lock:
            return self._value

    def next(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    def peek_next(self) -> int:
        with self._lock:
            return self._value + 1

    def advance_to(self, value: int) -> None:
        with self._lock:
            if value != self._value + 1:
                raise RuntimeError(
                    f"Sequence out of order: expected {self._value + 1}, got {value}"
                )
            self._value = value

    def resync(self, next_value: int) -> None:
        """Make *next_value* the next value handed out, in either direction."""
        if next_value < 1:
            raise ValueError(f"Sequence must start at 1, got {next_value}")
        with self._lock:
            self._value = next_value - 1


class Wallet(ABC):
    """Signing identity contract.

    Implementations must be safe to share between concurrently running
    actions. Each successful signature takes the next value of the wallet's
    sequence counter; failed attempts never consume one.
    """

    @abstractmethod
    def address(self) -> Address:
        """Return the public address. Never fails."""

    @abstractmethod
    async def sign(self, payload: bytes) -> Signature:
        """Sign an arbitrary byte payload.

        Raises ``SigningUnavailable`` if the key material cannot be reached
        and ``SigningRejected`` if the signer declines.
        """

    @abstractmethod
    async def sign_transaction(self, tx: dict[str, Any]) -> SignedTransaction:
        """Sign an unsigned transaction dict. Same failure modes as :meth:`sign`."""

    async def sign_all_transactions(
        self, txs: Iterable[dict[str, Any]]
    ) -> list[SignedTransaction]:
        """Sign transactions in order, stopping at the first failure."""
        return [await self.sign_transaction(tx) for tx in txs]

    @property
    @abstractmethod
    def signatures_issued(self) -> int:
        """Number of successful signatures produced so far."""
