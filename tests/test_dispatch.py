import json

import pytest
from pydantic import ValidationError

from agent_actions.actions.base import Action, ActionInput
from agent_actions.actions.dispatch import ActionDispatcher, ActionResult, ErrorPayload
from agent_actions.actions.registry import ActionRegistry
from agent_actions.errors import ErrorKind, ExternalFailure


class TransferInput(ActionInput):
    to: str
    amount: float


class StubTransferAction(Action):
    name = "TRANSFER"
    description = "Stub transfer that signs once"
    input_model = TransferInput

    async def run(self, context, params):
        signed = await context.wallet.sign(f"{params.to}:{params.amount}".encode())
        return {"signature": signed.hex()}


class FlakyAction(Action):
    name = "FLAKY"
    description = "Fails with a retryable external error"

    async def run(self, context, params):
        raise ExternalFailure("price feed timed out", retryable=True)


@pytest.fixture
def dispatcher(ctx):
    registry = ActionRegistry()
    registry.register_many([StubTransferAction(), FlakyAction()])
    return ActionDispatcher(registry, ctx)


@pytest.mark.asyncio
async def test_success_envelope(dispatcher, wallet):
    result = await dispatcher.execute("TRANSFER", {"to": "abc", "amount": 1})

    assert result.ok is True
    assert result.error is None
    assert result.data["signature"].startswith("0x")
    assert len(wallet.sign_calls) == 1


@pytest.mark.asyncio
async def test_missing_required_field_yields_invalid_input_without_signing(dispatcher, wallet):
    result = await dispatcher.execute("TRANSFER", {"to": "abc"})

    assert result.ok is False
    assert result.error.kind is ErrorKind.INVALID_INPUT
    assert wallet.sign_calls == []


@pytest.mark.asyncio
async def test_unknown_action_yields_action_not_found(dispatcher):
    result = await dispatcher.execute("NONEXISTENT", {})

    assert result.ok is False
    assert result.error.kind is ErrorKind.ACTION_NOT_FOUND
    assert result.data is None


@pytest.mark.asyncio
async def test_external_failure_carries_retryable_flag(dispatcher):
    result = await dispatcher.execute("FLAKY")

    assert result.error.kind is ErrorKind.EXTERNAL_FAILURE
    assert result.error.details["retryable"] is True


@pytest.mark.asyncio
async def test_call_tool_accepts_json_string(dispatcher):
    raw = await dispatcher.call_tool("TRANSFER", '{"to": "abc", "amount": 0.5}')

    body = json.loads(raw)
    assert body["ok"] is True
    assert "signature" in body["data"]


@pytest.mark.asyncio
async def test_call_tool_rejects_malformed_json(dispatcher, wallet):
    raw = await dispatcher.call_tool("TRANSFER", '{"to": ')

    body = json.loads(raw)
    assert body["ok"] is False
    assert body["error"]["kind"] == "invalid_input"
    assert wallet.sign_calls == []


def test_tool_definitions_follow_registry(dispatcher):
    names = [d["name"] for d in dispatcher.tool_definitions()]
    assert names == ["TRANSFER", "FLAKY"]


def test_result_envelope_enforces_error_contract():
    with pytest.raises(ValidationError):
        ActionResult(ok=True, error=ErrorPayload(kind=ErrorKind.INVALID_INPUT, message="x"))
    with pytest.raises(ValidationError):
        ActionResult(ok=False)
