import pytest
from pydantic import Field

from agent_actions.actions.base import Action, ActionExample, ActionInput
from agent_actions.errors import ErrorKind, ExternalFailure, InvalidInput


class GreetInput(ActionInput):
    who: str
    times: int = Field(default=1, ge=1, alias="repeatCount")


class GreetAction(Action):
    name = "GREET"
    description = "Say hello"
    similes = ("say hi",)
    examples = (ActionExample(input={"who": "bob"}, output={"text": "hello bob"}),)
    input_model = GreetInput

    def __init__(self, error=None):
        super().__init__()
        self.error = error
        self.runs = 0

    async def run(self, context, params):
        self.runs += 1
        if self.error is not None:
            raise self.error
        return {"text": " ".join(["hello " + params.who] * params.times)}


def test_metadata_is_stable_and_derived_from_input_model():
    action = GreetAction()

    meta = action.metadata()
    assert meta is action.metadata()
    assert meta.name == "GREET"
    assert meta.similes == ("say hi",)
    assert meta.input_schema["required"] == ["who"]
    assert set(meta.input_schema["properties"]) == {"who", "repeatCount"}
    assert meta.input_schema["additionalProperties"] is False


def test_tool_definition_shape():
    definition = GreetAction().metadata().to_tool_definition()

    assert definition["name"] == "GREET"
    assert "say hi" in definition["description"]
    assert definition["parameters"]["type"] == "object"


@pytest.mark.asyncio
async def test_valid_input_accepts_alias_and_field_name(ctx):
    action = GreetAction()

    assert await action.execute(ctx, {"who": "ann", "repeatCount": 2}) == {"text": "hello ann hello ann"}
    assert await action.execute(ctx, {"who": "ann", "times": 1}) == {"text": "hello ann"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"who": "ann", "repeatCount": 0},
        {"who": "ann", "unexpected": True},
        ["who", "ann"],
        "ann",
    ],
)
async def test_invalid_input_never_reaches_run(ctx, payload):
    action = GreetAction()

    with pytest.raises(InvalidInput) as excinfo:
        await action.execute(ctx, payload)

    assert excinfo.value.kind is ErrorKind.INVALID_INPUT
    assert excinfo.value.details["errors"]
    assert action.runs == 0


@pytest.mark.asyncio
async def test_none_input_is_treated_as_empty_mapping(ctx):
    action = GreetAction()

    with pytest.raises(InvalidInput) as excinfo:
        await action.execute(ctx, None)

    assert excinfo.value.details["errors"][0]["loc"] == ("who",)


@pytest.mark.asyncio
async def test_unstructured_exceptions_become_external_failures(ctx):
    boom = ConnectionResetError("peer reset")
    action = GreetAction(error=boom)

    with pytest.raises(ExternalFailure) as excinfo:
        await action.execute(ctx, {"who": "ann"})

    assert excinfo.value.__cause__ is boom
    assert excinfo.value.retryable is False
    assert excinfo.value.details["exception"] == "ConnectionResetError"
