"""Action registry - name-keyed storage and dispatch for actions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from agent_actions.actions.base import Action, ActionMetadata, JsonValue
from agent_actions.errors import ActionNotFound

if TYPE_CHECKING:
    from agent_actions.core.agent import AgentContext

logger = logging.getLogger("agent_actions.actions.registry")


class ActionRegistry:
    """Maps case-sensitive action names to action instances.

    Registering a name that already exists replaces the earlier action
    (last registration wins), so a later plugin group can override a default
    without unregistering it first. The replacement keeps the original
    entry's position in :meth:`metadata`.

    Registration is expected to finish before dispatch starts; concurrent
    lookups are safe, concurrent registration during dispatch is not.
    """

    def __init__(self) -> None:
        self._actions: dict[str, Action] = {}

    def register(self, action: Action) -> None:
        name = action.metadata().name
        previous = self._actions.get(name)
        if previous is not None and previous is not action:
            logger.info(f"Action {name} re-registered: {previous!r} replaced by {action!r}")
        self._actions[name] = action

    def register_many(self, actions: Iterable[Action]) -> None:
        for action in actions:
            self.register(action)

    def get(self, name: str) -> Action | None:
        return self._actions.get(name)

    def names(self) -> list[str]:
        return list(self._actions.keys())

    def actions(self) -> list[Action]:
        return list(self._actions.values())

    def metadata(self) -> list[ActionMetadata]:
        """Metadata for every registered action, one entry per name."""
        return [action.metadata() for action in self._actions.values()]

    async def execute(self, name: str, context: AgentContext, input: JsonValue) -> JsonValue:
        """Run the action registered under *name*.

        Raises ``ActionNotFound`` if nothing is registered under *name*;
        anything the action raises propagates unchanged.
        """
        action = self._actions.get(name)
        if action is None:
            raise ActionNotFound(name, available=self.names())
        return await action.execute(context, input)

    def __contains__(self, name: object) -> bool:
        return name in self._actions

    def __len__(self) -> int:
        return len(self._actions)

    def __repr__(self) -> str:
        return f"ActionRegistry({len(self._actions)} actions)"
