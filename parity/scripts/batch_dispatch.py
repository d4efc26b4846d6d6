"""Send single or batched JSON-RPC requests through the transport."""

from __future__ import annotations

import logging
from typing import Any, Callable

from error_map import ERR_RPC_TRANSPORT
from outcome import Err, Ok, Outcome
from rpc_transport import invoke_rpc

logger = logging.getLogger(__name__)

Invoker = Callable[..., dict[str, Any]]


def _malformed(message: str, rpc_response: Any) -> Err:
    return Err(
        {
            "ok": False,
            "error_code": ERR_RPC_TRANSPORT,
            "error_message": message,
            "rpc_response": rpc_response,
        }
    )


def response_error(response: dict[str, Any]) -> dict[str, Any] | None:
    """Return the node error of ``response`` as a dict, or None when it succeeded.

    A null ``error`` member counts as absent; a non-object error is wrapped
    as ``{"message": ...}``.
    """
    error = response.get("error")
    if error is None:
        return None
    if isinstance(error, dict):
        return error
    return {"message": str(error)}


def _invoke(
    payload: dict[str, Any] | list[dict[str, Any]],
    named_arguments: dict[str, Any],
    invoke: Invoker,
) -> dict[str, Any]:
    return invoke(
        rpc_url=named_arguments["rpc_url"],
        payload=payload,
        timeout_seconds=float(named_arguments["timeout_seconds"]),
        retries=int(named_arguments.get("retries", 0)),
    )


def json_rpc(
    requests: dict[str, Any] | list[dict[str, Any]],
    named_arguments: dict[str, Any],
    *,
    invoke: Invoker = invoke_rpc,
) -> Outcome:
    """Round-trip ``requests``.

    A batch (list) yields ``Ok(responses)`` as soon as the transport delivers
    a well-formed array, whatever the per-entry outcomes are. A single
    request yields ``Ok(result)`` or ``Err(node error)``. Transport failures
    come back as ``Err`` with the transport payload untouched.
    """
    if isinstance(requests, list):
        return _batch(requests, named_arguments, invoke)
    return _single(requests, named_arguments, invoke)


def _batch(requests: list[dict[str, Any]], named_arguments: dict[str, Any], invoke: Invoker) -> Outcome:
    if not requests:
        return Ok([])

    logger.debug("dispatching batch of %d requests", len(requests))
    transport = _invoke(requests, named_arguments, invoke)
    if not transport["ok"]:
        logger.debug("batch transport failed: %s", transport.get("error_message"))
        return Err(transport)

    responses = transport["rpc_response"]
    if not isinstance(responses, list):
        return _malformed("rpc endpoint returned a non-array reply to a batch request", responses)
    for response in responses:
        if not isinstance(response, dict) or "id" not in response:
            return _malformed("rpc batch reply contains an entry without an id", responses)

    if len(responses) != len(requests):
        logger.warning("batch of %d requests returned %d responses", len(requests), len(responses))
    return Ok(responses)


def _single(request: dict[str, Any], named_arguments: dict[str, Any], invoke: Invoker) -> Outcome:
    logger.debug("dispatching %s id=%s", request.get("method"), request.get("id"))
    transport = _invoke(request, named_arguments, invoke)
    if not transport["ok"]:
        return Err(transport)

    response = transport["rpc_response"]
    if not isinstance(response, dict):
        return _malformed("rpc endpoint returned a non-object reply", response)
    error = response_error(response)
    if error is not None:
        return Err(error)
    if "result" not in response:
        return _malformed("rpc reply has neither result nor error", response)
    return Ok(response["result"])
