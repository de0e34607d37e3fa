"""Configuration for agent actions.

Loads settings from a YAML file, expands ``${VAR}`` environment placeholders,
and validates them with pydantic. Also provides the logging bootstrap.
"""

from __future__ import annotations

import logging
import os
import re
import sys
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field

from agent_actions.network.chains import Chain, resolve_endpoint


# ---------------------------------------------------------------------------
# Environment-variable expansion helper
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)\}")


def _expand_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with their environment values.

    If the variable is not set the placeholder is left as-is so that
    validation can catch it later.
    """

    def _replace(match: re.Match) -> str:
        var_name = match.group(1)
        return os.environ.get(var_name, match.group(0))

    return _ENV_VAR_RE.sub(_replace, value)


def _expand_env_recursive(obj: object) -> object:
    """Walk an arbitrary nested structure and expand env vars in strings."""
    if isinstance(obj, str):
        return _expand_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _expand_env_recursive(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_recursive(item) for item in obj]
    return obj


# ---------------------------------------------------------------------------
# Pydantic v2 models
# ---------------------------------------------------------------------------


class WalletConfig(BaseModel):
    """Which wallet backend signs for the agent."""

    kind: Literal["keypair", "keystore", "remote"] = "keystore"
    private_key: str = ""            # ${AGENT_PRIVATE_KEY}, kind=keypair only
    keystore_path: str = "~/.agent-actions/keystore.json"
    password: str = ""               # ${AGENT_KEYSTORE_PASSWORD}
    signer_url: str = ""             # kind=remote
    address: str = ""                # kind=remote: the signer's account
    timeout: float = 30.0


class HttpConfig(BaseModel):
    """Timeouts and retry policy for read-only HTTP calls made by actions."""

    timeout: float = 15.0
    max_retries: int = Field(default=3, ge=0)
    backoff_initial: float = 0.5
    backoff_factor: float = 2.0
    backoff_max: float = 8.0


class CoinGeckoConfig(BaseModel):
    """CoinGecko market-data integration."""

    enabled: bool = True
    base_url: str = "https://api.coingecko.com/api/v3"
    api_key: str = ""                # ${COINGECKO_API_KEY}, optional demo/pro key


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class AgentActionsConfig(BaseModel):
    """Root configuration object for one agent context."""

    network: str = "ethereum"        # chain preset name or an RPC URL
    rpc_url: Optional[str] = None    # overrides the preset endpoint
    wallet: WalletConfig = Field(default_factory=WalletConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    coingecko: CoinGeckoConfig = Field(default_factory=CoinGeckoConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def endpoint(self) -> tuple[str, Optional[Chain]]:
        """Effective ``(rpc_url, chain preset)`` for this configuration."""
        return resolve_endpoint(self.network, self.rpc_url)


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------


def load_config(path: Path) -> AgentActionsConfig:
    """Load and validate configuration from a YAML file.

    Environment variable placeholders (``${VAR}``) are expanded before
    validation.
    """
    raw_text = path.read_text(encoding="utf-8")
    raw_data = yaml.safe_load(raw_text) or {}
    expanded = _expand_env_recursive(raw_data)
    return AgentActionsConfig.model_validate(expanded)


def save_config(config: AgentActionsConfig, path: Path) -> None:
    """Serialize an :class:`AgentActionsConfig` to a YAML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump(mode="python", exclude_none=True)
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(data, fh, default_flow_style=False, sort_keys=False)


def configure_logging(config: LoggingConfig | None = None) -> logging.Logger:
    """Attach a stderr handler to the ``agent_actions`` logger.

    Safe to call more than once; the previous handler is replaced.
    """
    config = config or LoggingConfig()
    level = getattr(logging, config.level.upper(), logging.INFO)
    logger = logging.getLogger("agent_actions")
    logger.setLevel(level)
    for handler in list(logger.handlers):
        if getattr(handler, "_agent_actions", False):
            logger.removeHandler(handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(config.format))
    handler._agent_actions = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    return logger
