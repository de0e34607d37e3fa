"""Network collaborators: chain presets and the async RPC client."""

from agent_actions.network.chains import CHAINS, Chain, get_chain, list_chain_names, resolve_endpoint
from agent_actions.network.client import AmountTooSmall, ChainClient

__all__ = [
    "AmountTooSmall",
    "CHAINS",
    "Chain",
    "ChainClient",
    "get_chain",
    "list_chain_names",
    "resolve_endpoint",
]
