"""Async Web3 client bound to a single RPC endpoint.

This is the network handle an :class:`~agent_actions.core.agent.AgentContext`
carries. It reads chain state and builds unsigned transactions; it never
signs. Signing always goes through the context's wallet.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Optional

from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.exceptions import Web3Exception
from web3.middleware import ExtraDataToPOAMiddleware

from agent_actions.network.chains import Chain

logger = logging.getLogger("agent_actions.network.client")

# Minimal ERC-20 ABI: the read calls and transfer used by the token actions.
ERC20_ABI: list[dict[str, Any]] = [
    {
        "constant": True,
        "inputs": [{"name": "owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "symbol",
        "outputs": [{"name": "", "type": "string"}],
        "type": "function",
    },
    {
        "constant": False,
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "value", "type": "uint256"},
        ],
        "name": "transfer",
        "outputs": [{"name": "", "type": "bool"}],
        "type": "function",
    },
]

_PRIORITY_FEE_GWEI = Decimal("1.5")


class AmountTooSmall(ValueError):
    """The requested amount rounds down to zero base units."""


class ChainClient:
    """Thin async wrapper over :class:`web3.AsyncWeb3` for one endpoint."""

    def __init__(self, endpoint: str, chain: Optional[Chain] = None) -> None:
        self._endpoint = endpoint
        self._chain = chain
        self._w3 = AsyncWeb3(AsyncHTTPProvider(endpoint))
        # Base, Arbitrum, Polygon and most testnets carry POA-style extraData
        if chain is None or chain.chain_id != 1:
            self._w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def chain(self) -> Optional[Chain]:
        return self._chain

    @property
    def native_symbol(self) -> str:
        return self._chain.native_symbol if self._chain else "ETH"

    @property
    def web3(self) -> AsyncWeb3:
        return self._w3

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_native_balance(self, address: str) -> Decimal:
        """Native token balance in human-readable units (e.g. ETH)."""
        balance_wei = await self._w3.eth.get_balance(Web3.to_checksum_address(address))
        return Decimal(str(Web3.from_wei(balance_wei, "ether")))

    async def get_token_balance(self, owner: str, token_address: str) -> tuple[Decimal, int, str]:
        """ERC-20 balance of *owner* as ``(amount, decimals, symbol)``."""
        contract = self._erc20(token_address)
        raw = await contract.functions.balanceOf(Web3.to_checksum_address(owner)).call()
        decimals = await contract.functions.decimals().call()
        try:
            symbol = await contract.functions.symbol().call()
        except Web3Exception:
            # Some older tokens return bytes32 or omit symbol() entirely
            symbol = ""
        return Decimal(raw) / (Decimal(10) ** decimals), decimals, symbol

    async def get_block_number(self) -> int:
        return await self._w3.eth.block_number

    async def get_block(self, block_identifier: int | str = "latest") -> dict[str, Any]:
        return dict(await self._w3.eth.get_block(block_identifier))

    async def get_chain_id(self) -> int:
        if self._chain is not None:
            return self._chain.chain_id
        return await self._w3.eth.chain_id

    # ------------------------------------------------------------------
    # Unsigned transaction builders
    # ------------------------------------------------------------------

    async def build_native_transfer(
        self, from_address: str, to_address: str, amount: Decimal
    ) -> dict[str, Any]:
        """Build an unsigned native-token transfer.

        Uses EIP-1559 fee parameters with a legacy gas price fallback.
        Raises ``AmountTooSmall`` if *amount* is below one wei.
        """
        sender = Web3.to_checksum_address(from_address)
        value = Web3.to_wei(amount, "ether")
        if value == 0:
            raise AmountTooSmall("Transfer amount is too small")
        tx: dict[str, Any] = {
            "from": sender,
            "to": Web3.to_checksum_address(to_address),
            "value": value,
            "nonce": await self._w3.eth.get_transaction_count(sender, "pending"),
            "chainId": await self.get_chain_id(),
        }
        await self._apply_fees(tx)
        tx.pop("from")
        return tx

    async def build_token_transfer(
        self, from_address: str, token_address: str, to_address: str, amount: Decimal
    ) -> dict[str, Any]:
        """Build an unsigned ERC-20 ``transfer`` call.

        Raises ``AmountTooSmall`` if *amount* rounds to zero base units.
        """
        sender = Web3.to_checksum_address(from_address)
        contract = self._erc20(token_address)
        decimals = await contract.functions.decimals().call()
        units = int(amount * (Decimal(10) ** decimals))
        if units == 0:
            raise AmountTooSmall("Transfer amount is too small")
        tx = await contract.functions.transfer(
            Web3.to_checksum_address(to_address), units
        ).build_transaction(
            {
                "from": sender,
                "nonce": await self._w3.eth.get_transaction_count(sender, "pending"),
                "chainId": await self.get_chain_id(),
                "gas": 0,
            }
        )
        tx = dict(tx)
        tx.pop("gas", None)
        tx.pop("maxFeePerGas", None)
        tx.pop("maxPriorityFeePerGas", None)
        tx.pop("gasPrice", None)
        await self._apply_fees(tx)
        tx.pop("from", None)
        return tx

    async def _apply_fees(self, tx: dict[str, Any]) -> None:
        latest = await self._w3.eth.get_block("latest")
        base_fee = latest.get("baseFeePerGas")
        if base_fee is not None:
            max_priority = Web3.to_wei(_PRIORITY_FEE_GWEI, "gwei")
            tx["maxFeePerGas"] = base_fee * 2 + max_priority
            tx["maxPriorityFeePerGas"] = max_priority
        else:
            logger.debug(f"No baseFeePerGas on {self._endpoint}; using legacy gas price")
            tx["gasPrice"] = await self._w3.eth.gas_price
        tx["gas"] = await self._w3.eth.estimate_gas(tx)

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def send_raw_transaction(self, raw_transaction: bytes) -> str:
        """Broadcast a signed transaction. Returns the hash as ``0x`` hex."""
        tx_hash = await self._w3.eth.send_raw_transaction(raw_transaction)
        return Web3.to_hex(tx_hash)

    def _erc20(self, token_address: str):
        return self._w3.eth.contract(
            address=Web3.to_checksum_address(token_address), abi=ERC20_ABI
        )

    def __repr__(self) -> str:
        return f"ChainClient(endpoint={self._endpoint!r})"
