"""Action dispatch for agents.

Actions are named, independently implemented operations invoked with untyped
JSON-like input against an agent context. Register them on an
:class:`ActionRegistry`, then execute by name directly or through an
:class:`ActionDispatcher`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from agent_actions.actions.base import Action, ActionExample, ActionInput, ActionMetadata, EmptyInput, JsonValue
from agent_actions.actions.dispatch import ActionDispatcher, ActionResult, ErrorPayload
from agent_actions.actions.market_actions import register_market_actions
from agent_actions.actions.registry import ActionRegistry
from agent_actions.actions.token_actions import register_token_actions

if TYPE_CHECKING:
    from agent_actions.config import AgentActionsConfig


def register_all_actions(registry: ActionRegistry, config: Optional[AgentActionsConfig] = None) -> None:
    """Register every built-in action group on *registry*.

    Groups run in order, so a name registered by a later group replaces the
    same name from an earlier one.
    """
    register_token_actions(registry)
    if config is None:
        register_market_actions(registry)
    elif config.coingecko.enabled:
        register_market_actions(registry, config.coingecko, config.http)


__all__ = [
    "Action",
    "ActionDispatcher",
    "ActionExample",
    "ActionInput",
    "ActionMetadata",
    "ActionRegistry",
    "ActionResult",
    "EmptyInput",
    "ErrorPayload",
    "JsonValue",
    "register_all_actions",
    "register_market_actions",
    "register_token_actions",
]
