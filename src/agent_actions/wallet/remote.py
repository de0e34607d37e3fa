"""Wallet that delegates signing to a remote signing service over HTTP.

The service is expected to expose::

    POST /sign              {"address", "payload", "sequence"} -> {"signature"}
    POST /sign-transaction  {"address", "transaction", "sequence"} -> {"raw", "hash"}

Hex strings are ``0x``-prefixed. ``403`` means the signer (or its operator)
declined, ``409`` means it refused the sequence number; both surface as
``SigningRejected``. Anything else that prevents a signature surfaces as
``SigningUnavailable``.

A ``409`` body may carry ``{"expected_sequence": n}``; the wallet adopts ``n``
as its next sequence. When the request may have reached the signer but no
response came back, its sequence number is treated as used and is not sent
again.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import httpx

from agent_actions.errors import SigningRejected, SigningUnavailable
from agent_actions.wallet.base import (
    Address,
    SequenceCounter,
    Signature,
    SignedTransaction,
    Wallet,
)

logger = logging.getLogger("agent_actions.wallet.remote")

_REJECT_STATUSES = {403, 409}

# Failures raised before the request could reach the signer.
_NOT_SENT = (httpx.ConnectError, httpx.ConnectTimeout, httpx.PoolTimeout)


def _jsonable(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def _from_hex(value: Any, field: str) -> bytes:
    if not isinstance(value, str):
        raise SigningUnavailable(f"Remote signer returned no '{field}'")
    text = value[2:] if value.startswith("0x") else value
    try:
        return bytes.fromhex(text)
    except ValueError as exc:
        raise SigningUnavailable(f"Remote signer returned malformed '{field}'") from exc


class RemoteSignerWallet(Wallet):
    """Signs through a remote service such as an HSM gateway or co-signer.

    Requests are serialized so the sequence numbers the signer sees arrive in
    strictly increasing order with no gaps.
    """

    def __init__(
        self,
        address: Address | str,
        signer_url: str,
        *,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._address = Address.parse(address)
        self._signer_url = signer_url.rstrip("/")
        self._timeout = timeout
        self._client = client
        self._lock = asyncio.Lock()
        self._counter = SequenceCounter()

    def address(self) -> Address:
        return self._address

    @property
    def signatures_issued(self) -> int:
        return self._counter.value

    async def sign(self, payload: bytes) -> Signature:
        async with self._lock:
            sequence = self._counter.peek_next()
            body = await self._post(
                "/sign",
                {
                    "address": str(self._address),
                    "payload": "0x" + payload.hex(),
                    "sequence": sequence,
                },
            )
            data = _from_hex(body.get("signature"), "signature")
            self._counter.advance_to(sequence)
        return Signature(data=data, sequence=sequence)

    async def sign_transaction(self, tx: dict[str, Any]) -> SignedTransaction:
        async with self._lock:
            sequence = self._counter.peek_next()
            body = await self._post(
                "/sign-transaction",
                {
                    "address": str(self._address),
                    "transaction": _jsonable(tx),
                    "sequence": sequence,
                },
            )
            raw = _from_hex(body.get("raw"), "raw")
            tx_hash = _from_hex(body.get("hash"), "hash")
            self._counter.advance_to(sequence)
        return SignedTransaction(raw=raw, hash=tx_hash, sequence=sequence)

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self._signer_url}{path}"
        sequence = payload["sequence"]
        try:
            if self._client is not None:
                resp = await self._client.post(url, json=payload, timeout=self._timeout)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    resp = await client.post(url, json=payload)
        except _NOT_SENT as exc:
            logger.warning(f"Remote signer unreachable at {url}: {exc}")
            raise SigningUnavailable(
                f"Remote signer unreachable: {exc}", details={"url": url}
            ) from exc
        except httpx.HTTPError as exc:
            # The signer may have accepted this sequence; never send it again.
            self._counter.advance_to(sequence)
            logger.warning(
                f"Lost response from remote signer at {url} for sequence {sequence}: {exc}"
            )
            raise SigningUnavailable(
                f"Remote signer did not answer: {exc}",
                details={"url": url, "sequence": sequence, "sequence_consumed": True},
            ) from exc

        if resp.status_code in _REJECT_STATUSES:
            reason = _error_text(resp)
            details: dict[str, Any] = {"status": resp.status_code}
            expected = _expected_sequence(resp) if resp.status_code == 409 else None
            if expected is not None and expected != sequence:
                self._counter.resync(expected)
                details["expected_sequence"] = expected
                logger.warning(
                    f"Remote signer expects sequence {expected}, not {sequence}; resynchronized"
                )
            else:
                logger.info(f"Remote signer declined request ({resp.status_code}): {reason}")
            raise SigningRejected(f"Remote signer declined: {reason}", details=details)
        if resp.is_error:
            raise SigningUnavailable(
                f"Remote signer error {resp.status_code}: {_error_text(resp)}",
                details={"status": resp.status_code},
            )
        try:
            body = resp.json()
        except ValueError as exc:
            raise SigningUnavailable("Remote signer returned invalid JSON") from exc
        if not isinstance(body, dict):
            raise SigningUnavailable("Remote signer returned an unexpected body")
        return body

    def __repr__(self) -> str:
        return f"RemoteSignerWallet(address={self._address}, signer_url={self._signer_url!r})"


def _expected_sequence(resp: httpx.Response) -> Optional[int]:
    try:
        body = resp.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    value = body.get("expected_sequence")
    if isinstance(value, int) and not isinstance(value, bool) and value >= 1:
        return value
    return None


def _error_text(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or resp.reason_phrase
    if isinstance(body, dict):
        return str(body.get("error") or body.get("message") or body)
    return str(body)
