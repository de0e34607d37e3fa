"""Wallet and token actions: balances, address lookup, transfers, throughput."""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from pydantic import Field, field_validator
from web3 import Web3

from agent_actions.actions.base import Action, ActionExample, ActionInput, JsonValue
from agent_actions.errors import ActionError, ExternalFailure, InvalidInput
from agent_actions.network.client import AmountTooSmall

if TYPE_CHECKING:
    from agent_actions.actions.registry import ActionRegistry
    from agent_actions.core.agent import AgentContext

logger = logging.getLogger("agent_actions.actions.token")

_EXAMPLE_ADDRESS = "0x8ba1f109551bD432803012645Ac136ddd64DBA72"
_USDC = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"


def _checksum(value: str) -> str:
    if not Web3.is_address(value):
        raise ValueError(f"'{value}' is not a valid address")
    return Web3.to_checksum_address(value)


# =============================================================================
# BALANCE_ACTION
# =============================================================================


class BalanceInput(ActionInput):
    token_address: Optional[str] = Field(
        default=None,
        alias="tokenAddress",
        description="Optional ERC-20 token contract address; if omitted, the native balance is returned",
    )

    @field_validator("token_address")
    @classmethod
    def _valid_token(cls, v: Optional[str]) -> Optional[str]:
        return _checksum(v) if v is not None else None


class GetBalanceAction(Action):
    name = "BALANCE_ACTION"
    description = (
        "Get the balance of the agent's wallet. Without tokenAddress the native "
        "balance (e.g. ETH) is returned; with tokenAddress the ERC-20 balance."
    )
    similes = (
        "check balance",
        "get wallet balance",
        "view balance",
        "show balance",
        "check token balance",
    )
    examples = (
        ActionExample(
            input={},
            output={"status": "success", "balance": "1.25", "token": "ETH"},
            explanation="Get the native balance of the wallet",
        ),
        ActionExample(
            input={"tokenAddress": _USDC},
            output={"status": "success", "balance": "1000", "token": _USDC, "symbol": "USDC"},
            explanation="Get the USDC balance of the wallet",
        ),
    )
    input_model = BalanceInput

    async def run(self, context: AgentContext, params: BalanceInput) -> JsonValue:
        owner = str(context.address)
        if params.token_address is None:
            balance = await context.client.get_native_balance(owner)
            return {
                "status": "success",
                "balance": str(balance),
                "token": context.client.native_symbol,
            }
        balance, decimals, symbol = await context.client.get_token_balance(owner, params.token_address)
        return {
            "status": "success",
            "balance": str(balance),
            "token": params.token_address,
            "symbol": symbol,
            "decimals": decimals,
        }


# =============================================================================
# WALLET_ADDRESS
# =============================================================================


class WalletAddressAction(Action):
    name = "WALLET_ADDRESS"
    description = "Get your wallet address."
    similes = (
        "get wallet address",
        "show wallet address",
        "display wallet address",
        "my wallet address",
    )
    examples = (
        ActionExample(
            input={},
            output={
                "status": "success",
                "message": "Wallet address retrieved successfully",
                "address": _EXAMPLE_ADDRESS,
            },
            explanation="Get your wallet address",
        ),
    )

    async def run(self, context: AgentContext, params: ActionInput) -> JsonValue:
        return {
            "status": "success",
            "message": "Wallet address retrieved successfully",
            "address": str(context.address),
        }


# =============================================================================
# TRANSFER
# =============================================================================


class TransferInput(ActionInput):
    to: str = Field(description="Destination address")
    amount: float = Field(
        gt=0,
        allow_inf_nan=False,
        description="Amount of the native token or ERC-20 token to send",
    )
    token_address: Optional[str] = Field(
        default=None,
        alias="tokenAddress",
        description="ERC-20 token contract address; omit for the native token",
    )

    @field_validator("amount", mode="before")
    @classmethod
    def _numeric_amount(cls, v: object) -> object:
        if isinstance(v, bool):
            raise ValueError("amount must be a number")
        return v

    @field_validator("to")
    @classmethod
    def _valid_to(cls, v: str) -> str:
        return _checksum(v)

    @field_validator("token_address")
    @classmethod
    def _valid_token(cls, v: Optional[str]) -> Optional[str]:
        return _checksum(v) if v is not None else None


class TransferAction(Action):
    """Sends funds from the agent wallet.

    The transaction is signed once and submitted once. A submission failure
    is reported with the signed hash so the caller can look it up on-chain
    instead of blindly resending.
    """

    name = "TRANSFER"
    description = "Transfer the native token or an ERC-20 token from the agent's wallet to another address"
    similes = (
        "send eth",
        "send tokens",
        "transfer to another wallet",
    )
    examples = (
        ActionExample(
            input={"to": _EXAMPLE_ADDRESS, "amount": 0.1},
            output={"status": "success", "txHash": "0x5f3c...", "amount": "0.1", "token": "ETH"},
            explanation="Transfer 0.1 ETH to the given address",
        ),
        ActionExample(
            input={"to": _EXAMPLE_ADDRESS, "amount": 5, "tokenAddress": _USDC},
            output={"status": "success", "txHash": "0x9a1e...", "amount": "5", "token": _USDC},
            explanation="Transfer 5 USDC to the given address",
        ),
    )
    input_model = TransferInput

    async def run(self, context: AgentContext, params: TransferInput) -> JsonValue:
        sender = str(context.address)
        amount = Decimal(str(params.amount))
        try:
            if params.token_address is None:
                tx = await context.client.build_native_transfer(sender, params.to, amount)
            else:
                tx = await context.client.build_token_transfer(
                    sender, params.token_address, params.to, amount
                )
        except AmountTooSmall as exc:
            raise InvalidInput(str(exc), details={"action": self.name}) from exc

        signed = await context.wallet.sign_transaction(tx)

        try:
            tx_hash = await context.client.send_raw_transaction(signed.raw)
        except ActionError:
            raise
        except Exception as exc:
            raise ExternalFailure(
                f"Transaction submission failed, outcome unknown: {exc}",
                retryable=False,
                details={"action": self.name, "txHash": signed.hash_hex},
            ) from exc

        logger.info(f"Transfer submitted: {amount} to {params.to} tx={tx_hash}")
        return {
            "status": "success",
            "txHash": tx_hash,
            "amount": str(amount),
            "to": params.to,
            "token": params.token_address or context.client.native_symbol,
        }


# =============================================================================
# GET_TPS
# =============================================================================


class TpsInput(ActionInput):
    sample_blocks: int = Field(
        default=10,
        ge=1,
        le=100,
        alias="sampleBlocks",
        description="Number of recent blocks to average over",
    )


class GetTpsAction(Action):
    name = "GET_TPS"
    description = "Get the current transactions per second (TPS) of the network, averaged over recent blocks"
    similes = (
        "get transactions per second",
        "check network speed",
        "network performance",
        "transaction throughput",
        "network tps",
    )
    examples = (
        ActionExample(
            input={},
            output={"status": "success", "tps": 14.2, "message": "Current network TPS: 14"},
            explanation="Get the current TPS of the network",
        ),
    )
    input_model = TpsInput

    async def run(self, context: AgentContext, params: TpsInput) -> JsonValue:
        latest = await context.client.get_block_number()
        first = max(latest - params.sample_blocks, 0)
        blocks = await asyncio.gather(
            *(context.client.get_block(n) for n in range(first, latest + 1))
        )
        elapsed = blocks[-1]["timestamp"] - blocks[0]["timestamp"]
        if elapsed <= 0:
            raise ExternalFailure(
                "Not enough block history to compute TPS",
                retryable=True,
                details={"action": self.name},
            )
        tx_count = sum(len(block.get("transactions", [])) for block in blocks[1:])
        tps = tx_count / elapsed
        return {
            "status": "success",
            "tps": round(tps, 2),
            "blocks": len(blocks) - 1,
            "message": f"Current network TPS: {tps:.0f}",
        }


def register_token_actions(registry: ActionRegistry) -> None:
    registry.register_many(
        [
            GetBalanceAction(),
            WalletAddressAction(),
            TransferAction(),
            GetTpsAction(),
        ]
    )
