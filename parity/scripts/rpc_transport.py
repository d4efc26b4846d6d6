"""HTTP JSON-RPC transport for single and batched Parity calls.

``invoke_rpc`` always returns a transport envelope dict; it never raises for
network or HTTP trouble. Connection failures and throttling/gateway statuses
are retried on a short backoff schedule, everything else is final.
"""

from __future__ import annotations

import json
import logging
import time
import urllib.error
import urllib.request
from socket import timeout as SocketTimeout
from typing import Any

from error_map import ERR_RPC_TIMEOUT, ERR_RPC_TRANSPORT

logger = logging.getLogger(__name__)

RETRYABLE_HTTP_CODES = frozenset({429, 502, 503, 504})
BACKOFF_SECONDS = (0.15, 0.40)


class _RetryableFailure(Exception):
    def __init__(self, envelope: dict[str, Any]) -> None:
        super().__init__(envelope["error_message"])
        self.envelope = envelope


def _envelope(rpc_response: Any = None, code: str | None = None, message: str | None = None) -> dict[str, Any]:
    return {
        "ok": code is None,
        "error_code": code,
        "error_message": message,
        "rpc_response": rpc_response,
    }


def _decode(text: str) -> dict[str, Any]:
    try:
        return _envelope(json.loads(text))
    except json.JSONDecodeError:
        return _envelope({"raw": text}, ERR_RPC_TRANSPORT, "rpc endpoint returned non-json response")


def _post_once(rpc_url: str, body: bytes, timeout_seconds: float) -> dict[str, Any]:
    """One POST round trip; raises _RetryableFailure when another try may help."""
    request = urllib.request.Request(
        rpc_url,
        data=body,
        method="POST",
        headers={"Content-Type": "application/json"},
    )
    try:
        with urllib.request.urlopen(request, timeout=timeout_seconds) as resp:
            return _decode(resp.read().decode("utf-8"))
    except SocketTimeout as err:
        return _envelope(None, ERR_RPC_TIMEOUT, str(err))
    except urllib.error.HTTPError as err:
        failure = _envelope(
            {"status": err.code, "raw": err.read().decode("utf-8", errors="replace")},
            ERR_RPC_TRANSPORT,
            f"http error {err.code}",
        )
        if err.code in RETRYABLE_HTTP_CODES:
            raise _RetryableFailure(failure) from err
        return failure
    except urllib.error.URLError as err:
        # urlopen wraps connect timeouts in URLError
        if isinstance(err.reason, SocketTimeout):
            return _envelope(None, ERR_RPC_TIMEOUT, str(err.reason))
        raise _RetryableFailure(_envelope(None, ERR_RPC_TRANSPORT, str(err))) from err
    except (OSError, ValueError) as err:
        return _envelope(None, ERR_RPC_TRANSPORT, str(err))


def invoke_rpc(
    *,
    rpc_url: str,
    payload: dict[str, Any] | list[dict[str, Any]],
    timeout_seconds: float,
    retries: int,
) -> dict[str, Any]:
    """POST one request object or a batch array and decode the JSON reply."""
    body = json.dumps(payload).encode("utf-8")
    attempts = max(retries, 0) + 1
    attempt = 1

    while True:
        try:
            return _post_once(rpc_url, body, timeout_seconds)
        except _RetryableFailure as failure:
            if attempt == attempts:
                return failure.envelope
            logger.warning("rpc attempt %d/%d failed (%s), retrying", attempt, attempts, failure)
            if attempt <= len(BACKOFF_SECONDS):
                time.sleep(BACKOFF_SECONDS[attempt - 1])
            attempt += 1
