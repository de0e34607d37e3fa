"""Action capability contract and metadata model.

An action is a named unit of behaviour invoked with an untyped JSON-like
input against an :class:`~agent_actions.core.agent.AgentContext`. Each
concrete action declares a pydantic ``input_model``; :meth:`Action.execute`
validates the raw input against it before the action body ever runs, so no
side effect happens on bad input.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from agent_actions.errors import ActionError, ExternalFailure, InvalidInput

if TYPE_CHECKING:
    from agent_actions.core.agent import AgentContext

logger = logging.getLogger("agent_actions.actions")

JsonValue = Union[None, bool, int, float, str, list["JsonValue"], dict[str, "JsonValue"]]


class ActionExample(BaseModel):
    """A sample invocation shown to planners alongside the schema."""

    model_config = ConfigDict(frozen=True)

    input: dict[str, Any] = Field(default_factory=dict)
    output: Any = None
    explanation: str = ""


class ActionMetadata(BaseModel):
    """Static description of an action, used for tool discovery."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    similes: tuple[str, ...] = ()
    examples: tuple[ActionExample, ...] = ()
    input_schema: dict[str, Any] = Field(default_factory=lambda: {"type": "object", "properties": {}})

    def to_tool_definition(self) -> dict[str, Any]:
        """Render as a function-calling tool definition for an LLM."""
        description = self.description
        if self.similes:
            description += " Also known as: " + ", ".join(self.similes) + "."
        return {
            "name": self.name,
            "description": description,
            "parameters": self.input_schema,
        }


class ActionInput(BaseModel):
    """Base class for action inputs.

    Unknown keys are rejected. Fields may be supplied by their camelCase alias
    (what planners see in the schema) or by their Python name.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class EmptyInput(ActionInput):
    pass


class Action(ABC):
    """Base class every action implements.

    Subclasses set the class attributes below and implement :meth:`run`.
    """

    name: ClassVar[str]
    description: ClassVar[str]
    similes: ClassVar[tuple[str, ...]] = ()
    examples: ClassVar[tuple[ActionExample, ...]] = ()
    input_model: ClassVar[type[ActionInput]] = EmptyInput

    def __init__(self) -> None:
        self._metadata = ActionMetadata(
            name=self.name,
            description=self.description,
            similes=tuple(self.similes),
            examples=tuple(self.examples),
            input_schema=_input_schema(self.input_model),
        )

    def metadata(self) -> ActionMetadata:
        return self._metadata

    async def execute(self, context: AgentContext, input: JsonValue) -> JsonValue:
        """Validate *input*, then run the action.

        Raises
        ------
        InvalidInput
            If *input* does not match ``input_model``. The action body has
            not run.
        ActionError
            Any structured error raised by the body, unchanged.
        ExternalFailure
            Wrapping any other exception raised by the body.
        """
        params = self.parse_input(input)
        try:
            result = await self.run(context, params)
        except ActionError:
            raise
        except Exception as exc:
            logger.warning(f"Action {self.name} failed: {exc!r}")
            raise ExternalFailure(
                f"{self.name} failed: {exc}",
                details={"action": self.name, "exception": type(exc).__name__},
            ) from exc
        return result

    def parse_input(self, input: JsonValue) -> ActionInput:
        if input is None:
            input = {}
        try:
            return self.input_model.model_validate(input)
        except ValidationError as exc:
            raise InvalidInput(
                f"Invalid input for {self.name}: {exc.error_count()} validation error(s)",
                details={
                    "action": self.name,
                    "errors": exc.errors(include_url=False, include_context=False, include_input=False),
                },
            ) from exc

    @abstractmethod
    async def run(self, context: AgentContext, params: Any) -> JsonValue:
        """Perform the action on already-validated *params*."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


def _input_schema(model: type[ActionInput]) -> dict[str, Any]:
    schema = model.model_json_schema(by_alias=True)
    schema.pop("title", None)
    schema.setdefault("properties", {})
    return schema
