"""Agent context: the immutable wallet + network pair every action runs against."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import urlsplit

from agent_actions.config import AgentActionsConfig, WalletConfig
from agent_actions.network.chains import resolve_endpoint
from agent_actions.network.client import ChainClient
from agent_actions.wallet.base import Address, Wallet
from agent_actions.wallet.keypair import KeypairWallet
from agent_actions.wallet.remote import RemoteSignerWallet

logger = logging.getLogger("agent_actions.core.agent")


@dataclass(frozen=True)
class AgentContext:
    """One operating session: exactly one wallet and one network client.

    Both are shared by reference among all concurrently executing actions
    and never replaced for the lifetime of the context.
    """

    wallet: Wallet
    client: ChainClient

    @classmethod
    def create(cls, wallet: Wallet, network: str, rpc_url: Optional[str] = None) -> AgentContext:
        """Build a context from a wallet and a chain preset name or RPC URL."""
        endpoint, chain = resolve_endpoint(network, rpc_url)
        return cls(wallet=wallet, client=ChainClient(endpoint, chain))

    @property
    def endpoint(self) -> str:
        return self.client.endpoint

    @property
    def address(self) -> Address:
        return self.wallet.address()


def build_wallet(config: WalletConfig) -> Wallet:
    """Instantiate the wallet backend described by *config*.

    Raises ``ValueError`` when the settings required by the chosen backend
    are missing.
    """
    if config.kind == "keypair":
        if not config.private_key:
            raise ValueError("wallet.private_key is required for kind 'keypair'")
        return KeypairWallet(config.private_key)
    if config.kind == "keystore":
        if not config.password:
            raise ValueError("wallet.password is required for kind 'keystore'")
        return KeypairWallet.from_keystore(Path(config.keystore_path).expanduser(), config.password)
    if not config.signer_url or not config.address:
        raise ValueError("wallet.signer_url and wallet.address are required for kind 'remote'")
    return RemoteSignerWallet(config.address, config.signer_url, timeout=config.timeout)


def build_context(config: AgentActionsConfig, wallet: Optional[Wallet] = None) -> AgentContext:
    """Create the agent context for *config*.

    An explicit *wallet* takes precedence over ``config.wallet``.
    """
    wallet = wallet or build_wallet(config.wallet)
    endpoint, chain = config.endpoint()
    context = AgentContext(wallet=wallet, client=ChainClient(endpoint, chain))
    # host only: provider URLs may embed API keys
    logger.info(f"Agent context ready: wallet={context.address} host={urlsplit(endpoint).netloc}")
    return context
