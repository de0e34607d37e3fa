"""Market-data actions backed by the CoinGecko public API."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

import httpx
from pydantic import Field, field_validator

from agent_actions.actions.base import Action, ActionExample, ActionInput, JsonValue
from agent_actions.actions.http import fetch_json
from agent_actions.config import CoinGeckoConfig, HttpConfig

if TYPE_CHECKING:
    from agent_actions.actions.registry import ActionRegistry
    from agent_actions.core.agent import AgentContext


class CoinGeckoAction(Action):
    """Shared plumbing for CoinGecko reads. All requests are idempotent GETs."""

    def __init__(
        self,
        config: Optional[CoinGeckoConfig] = None,
        http: Optional[HttpConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        super().__init__()
        self.config = config or CoinGeckoConfig()
        self.http = http or HttpConfig()
        self.client = client

    async def _get(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        headers = {}
        if self.config.api_key:
            headers["x-cg-demo-api-key"] = self.config.api_key
        return await fetch_json(
            f"{self.config.base_url.rstrip('/')}{path}",
            params=params,
            headers=headers,
            config=self.http,
            client=self.client,
            service="CoinGecko",
        )


class TokenPriceInput(ActionInput):
    token_ids: list[str] = Field(
        alias="tokenIds",
        min_length=1,
        description="CoinGecko token IDs (e.g. 'ethereum', 'bitcoin')",
    )
    vs_currencies: list[str] = Field(
        default_factory=lambda: ["usd"],
        alias="vsCurrencies",
        min_length=1,
        description="Currencies to get the price in (e.g. 'usd', 'eur')",
    )

    @field_validator("token_ids", "vs_currencies")
    @classmethod
    def _normalize(cls, v: list[str]) -> list[str]:
        cleaned = [item.strip().lower() for item in v if item.strip()]
        if not cleaned:
            raise ValueError("at least one non-empty value is required")
        return cleaned


class GetCoingeckoTokenPriceAction(CoinGeckoAction):
    name = "GET_COINGECKO_TOKEN_PRICE"
    description = "Get current token prices from CoinGecko for one or more CoinGecko token IDs"
    similes = (
        "get token price",
        "check price",
        "token value",
        "price check",
        "get price in usd",
    )
    examples = (
        ActionExample(
            input={"tokenIds": ["ethereum", "bitcoin"], "vsCurrencies": ["usd"]},
            output={
                "status": "success",
                "prices": {"ethereum": {"usd": 3150.25}, "bitcoin": {"usd": 64000}},
            },
            explanation="Get the USD price of ETH and BTC",
        ),
    )
    input_model = TokenPriceInput

    async def run(self, context: AgentContext, params: TokenPriceInput) -> JsonValue:
        data = await self._get(
            "/simple/price",
            {"ids": ",".join(params.token_ids), "vs_currencies": ",".join(params.vs_currencies)},
        )
        return {"status": "success", "prices": data}


class GetCoingeckoTrendingTokensAction(CoinGeckoAction):
    name = "GET_COINGECKO_TRENDING_TOKENS"
    description = "Get the tokens currently trending on CoinGecko"
    similes = (
        "trending tokens",
        "hot coins",
        "what is trending in crypto",
    )
    examples = (
        ActionExample(
            input={},
            output={
                "status": "success",
                "coins": [{"id": "pepe", "name": "Pepe", "symbol": "PEPE", "market_cap_rank": 24}],
            },
            explanation="List trending tokens",
        ),
    )

    async def run(self, context: AgentContext, params: ActionInput) -> JsonValue:
        data = await self._get("/search/trending")
        coins = [
            {
                "id": item.get("id"),
                "name": item.get("name"),
                "symbol": item.get("symbol"),
                "market_cap_rank": item.get("market_cap_rank"),
            }
            for item in (entry.get("item", {}) for entry in data.get("coins", []))
        ]
        return {"status": "success", "coins": coins}


class TokenInfoInput(ActionInput):
    token_address: str = Field(alias="tokenAddress", description="Token contract address")
    platform: str = Field(
        default="ethereum",
        pattern=r"^[a-z0-9-]+$",
        description="CoinGecko asset platform id (e.g. 'ethereum', 'base', 'arbitrum-one', 'polygon-pos')",
    )

    @field_validator("token_address")
    @classmethod
    def _lower(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("tokenAddress must not be empty")
        if not (v.isascii() and v.isalnum()):
            raise ValueError("tokenAddress must be alphanumeric")
        return v.lower()


class GetCoingeckoTokenInfoAction(CoinGeckoAction):
    name = "GET_COINGECKO_TOKEN_INFO"
    description = "Get token details (name, symbol, market data) from CoinGecko by contract address"
    similes = (
        "token info",
        "token details",
        "look up token",
    )
    examples = (
        ActionExample(
            input={"tokenAddress": "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"},
            output={"status": "success", "result": {"name": "USDC", "symbol": "usdc"}},
            explanation="Get information about USDC on Ethereum",
        ),
    )
    input_model = TokenInfoInput

    async def run(self, context: AgentContext, params: TokenInfoInput) -> JsonValue:
        data = await self._get(f"/coins/{params.platform}/contract/{params.token_address}")
        return {"status": "success", "result": data}


def register_market_actions(
    registry: ActionRegistry,
    config: Optional[CoinGeckoConfig] = None,
    http: Optional[HttpConfig] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> None:
    for action_cls in (
        GetCoingeckoTokenPriceAction,
        GetCoingeckoTrendingTokensAction,
        GetCoingeckoTokenInfoAction,
    ):
        registry.register(action_cls(config=config, http=http, client=client))
