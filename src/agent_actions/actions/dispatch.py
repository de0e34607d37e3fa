"""Dispatch protocol: the call convention a tool-calling loop uses.

:class:`ActionDispatcher` binds a registry to one agent context and turns
every outcome into an :class:`ActionResult` envelope, so callers branch on
``result.ok`` and ``result.error.kind`` instead of catching exceptions.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Mapping, Optional, Union

from pydantic import BaseModel, Field, model_validator

from agent_actions.actions.base import JsonValue
from agent_actions.actions.registry import ActionRegistry
from agent_actions.errors import DispatchError, ErrorKind, InvalidInput

if TYPE_CHECKING:
    from agent_actions.core.agent import AgentContext

logger = logging.getLogger("agent_actions.actions.dispatch")


class ErrorPayload(BaseModel):
    """Structured error carried by a failed :class:`ActionResult`."""

    kind: ErrorKind
    message: str
    details: dict[str, Any] = Field(default_factory=dict)


class ActionResult(BaseModel):
    """Envelope for a single dispatch: either ``data`` or ``error``, never both."""

    ok: bool
    data: Any = None
    error: Optional[ErrorPayload] = None

    @model_validator(mode="after")
    def _enforce_error_contract(self) -> ActionResult:
        if self.ok and self.error is not None:
            raise ValueError("error must be None when ok=True")
        if not self.ok and self.error is None:
            raise ValueError("error is required when ok=False")
        return self

    @classmethod
    def success(cls, data: JsonValue) -> ActionResult:
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, exc: DispatchError) -> ActionResult:
        return cls(ok=False, error=ErrorPayload.model_validate(exc.to_payload()))

    def to_json(self) -> str:
        return self.model_dump_json(exclude_none=True)


class ActionDispatcher:
    """Executes actions by name against a fixed agent context.

    Each call is independent; the dispatcher keeps no state between calls.
    Cancellation of a call propagates to the caller untouched.
    """

    def __init__(self, registry: ActionRegistry, context: AgentContext) -> None:
        self.registry = registry
        self.context = context

    async def execute(self, name: str, input: JsonValue = None) -> ActionResult:
        try:
            data = await self.registry.execute(name, self.context, input)
        except DispatchError as exc:
            logger.warning(f"Action {name} failed [{exc.kind.value}]: {exc.message}")
            return ActionResult.failure(exc)
        logger.debug(f"Action {name} succeeded")
        return ActionResult.success(data)

    async def call_tool(self, name: str, arguments: Union[str, Mapping[str, Any], None]) -> str:
        """Execute a tool call as emitted by an LLM and return the JSON envelope.

        *arguments* may be the raw JSON string from the model or an already
        decoded mapping.
        """
        if isinstance(arguments, str):
            try:
                arguments = json.loads(arguments) if arguments.strip() else {}
            except json.JSONDecodeError as exc:
                err = InvalidInput(
                    f"Tool arguments for {name} are not valid JSON: {exc.msg}",
                    details={"action": name},
                )
                return ActionResult.failure(err).to_json()
        elif arguments is not None:
            arguments = dict(arguments)
        result = await self.execute(name, arguments)
        return result.to_json()

    def tool_definitions(self) -> list[dict[str, Any]]:
        """Tool definitions for every currently registered action."""
        return [meta.to_tool_definition() for meta in self.registry.metadata()]
