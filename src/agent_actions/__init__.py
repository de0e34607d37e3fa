"""Agent Actions - named, discoverable, async actions for on-chain AI agents.

An agent owns one :class:`AgentContext` (a shared wallet plus an RPC
client). Actions are registered on an :class:`ActionRegistry` and invoked by
name with JSON-like input; failures surface as structured errors from
:mod:`agent_actions.errors`.
"""

from agent_actions.actions import (
    Action,
    ActionDispatcher,
    ActionMetadata,
    ActionRegistry,
    ActionResult,
    register_all_actions,
)
from agent_actions.core.agent import AgentContext, build_context
from agent_actions.errors import (
    ActionError,
    ActionNotFound,
    DispatchError,
    ErrorKind,
    ExternalFailure,
    InvalidInput,
    SigningRejected,
    SigningUnavailable,
)

__version__ = "0.1.0"

__all__ = [
    "Action",
    "ActionDispatcher",
    "ActionError",
    "ActionMetadata",
    "ActionNotFound",
    "ActionRegistry",
    "ActionResult",
    "AgentContext",
    "DispatchError",
    "ErrorKind",
    "ExternalFailure",
    "InvalidInput",
    "SigningRejected",
    "SigningUnavailable",
    "build_context",
    "register_all_actions",
]
