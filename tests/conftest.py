from __future__ import annotations

from decimal import Decimal
from typing import Any

import pytest

from agent_actions.core.agent import AgentContext
from agent_actions.errors import SigningError
from agent_actions.wallet.base import Address, Signature, SignedTransaction, Wallet

WALLET_ADDRESS = "0x8ba1f109551bD432803012645Ac136ddd64DBA72"
RECIPIENT = "0x4838b106fce9647bdf1e7877bf73ce8b0bad5f97"
TOKEN = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"


class RecordingWallet(Wallet):
    """Stub signer that records every signing request."""

    def __init__(self, address: str = WALLET_ADDRESS, fail_with: SigningError | None = None) -> None:
        self._address = Address.from_hex(address)
        self.fail_with = fail_with
        self.sign_calls: list[bytes] = []
        self.signed_transactions: list[dict[str, Any]] = []

    def address(self) -> Address:
        return self._address

    @property
    def signatures_issued(self) -> int:
        return len(self.sign_calls) + len(self.signed_transactions)

    async def sign(self, payload: bytes) -> Signature:
        if self.fail_with is not None:
            raise self.fail_with
        self.sign_calls.append(payload)
        return Signature(data=b"\x01" * 65, sequence=self.signatures_issued)

    async def sign_transaction(self, tx: dict[str, Any]) -> SignedTransaction:
        if self.fail_with is not None:
            raise self.fail_with
        self.signed_transactions.append(tx)
        return SignedTransaction(raw=b"\xf8signed", hash=b"\xab" * 32, sequence=self.signatures_issued)


class FakeChainClient:
    """In-memory stand-in for ChainClient."""

    endpoint = "http://localhost:8545"
    native_symbol = "ETH"

    def __init__(self) -> None:
        self.native_balance = Decimal("1.5")
        self.token_balance = (Decimal("250.5"), 6, "USDC")
        self.blocks: dict[int, dict[str, Any]] = {}
        self.send_error: Exception | None = None
        self.build_error: Exception | None = None
        self.calls: list[tuple[str, tuple]] = []
        self.sent: list[bytes] = []

    async def get_native_balance(self, address: str) -> Decimal:
        self.calls.append(("get_native_balance", (address,)))
        return self.native_balance

    async def get_token_balance(self, owner: str, token_address: str):
        self.calls.append(("get_token_balance", (owner, token_address)))
        return self.token_balance

    async def get_block_number(self) -> int:
        return max(self.blocks)

    async def get_block(self, block_identifier):
        return self.blocks[block_identifier]

    async def build_native_transfer(self, from_address, to_address, amount):
        self.calls.append(("build_native_transfer", (from_address, to_address, amount)))
        if self.build_error is not None:
            raise self.build_error
        return {"to": to_address, "value": int(amount * 10**18), "nonce": 7, "chainId": 1}

    async def build_token_transfer(self, from_address, token_address, to_address, amount):
        self.calls.append(("build_token_transfer", (from_address, token_address, to_address, amount)))
        if self.build_error is not None:
            raise self.build_error
        return {"to": token_address, "data": "0xa9059cbb", "nonce": 7, "chainId": 1}

    async def send_raw_transaction(self, raw_transaction: bytes) -> str:
        self.sent.append(raw_transaction)
        if self.send_error is not None:
            raise self.send_error
        return "0x" + "cd" * 32


@pytest.fixture
def wallet() -> RecordingWallet:
    return RecordingWallet()


@pytest.fixture
def client() -> FakeChainClient:
    return FakeChainClient()


@pytest.fixture
def ctx(wallet: RecordingWallet, client: FakeChainClient) -> AgentContext:
    return AgentContext(wallet=wallet, client=client)  # type: ignore[arg-type]
