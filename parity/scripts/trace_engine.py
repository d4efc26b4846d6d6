"""trace_replayTransaction response correlation and annotation."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from batch_dispatch import response_error
from error_map import ProtocolIntegrityError
from outcome import Err, Ok, Outcome, aggregate
from request_ids import IdToParams, check_response_ids, params_for_id

logger = logging.getLogger(__name__)


def trace_context(params: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "blockNumber": params["block_number"],
        "transactionIndex": params["transaction_index"],
        "transactionHash": params["hash_data"],
    }


def annotate_traces(traces: Iterable[dict[str, Any]], context: Mapping[str, Any]) -> list[dict[str, Any]]:
    """Stamp each trace with its position and the transaction it came from.

    The node's ordering encodes call order within the replayed transaction,
    so ``index`` is simply the position in the returned list.
    """
    return [{**trace, **context, "index": index} for index, trace in enumerate(traces)]


def annotate_error(error: dict[str, Any], context: Mapping[str, Any]) -> dict[str, Any]:
    data = error.get("data")
    merged = {**data, **context} if isinstance(data, dict) else dict(context)
    return {**error, "data": merged}


def trace_replay_response_to_traces(response: dict[str, Any], id_map: IdToParams) -> Outcome:
    request_id = response.get("id")
    context = trace_context(params_for_id(id_map, request_id))

    error = response_error(response)
    if error is not None:
        logger.debug("trace replay id=%s failed for %s", request_id, context["transactionHash"])
        return Err(annotate_error(error, context))

    result = response.get("result")
    if not isinstance(result, dict) or not isinstance(result.get("trace"), list):
        raise ProtocolIntegrityError(
            f"trace replay response id {request_id!r} carries no trace list"
        )
    return Ok(annotate_traces(result["trace"], context))


def trace_replay_responses_to_traces(responses: list[dict[str, Any]], id_map: IdToParams) -> Outcome:
    check_response_ids(responses, id_map)
    outcome = aggregate(trace_replay_response_to_traces(r, id_map) for r in responses)
    if isinstance(outcome, Ok):
        logger.info("trace replay batch of %d transactions produced %d traces", len(responses), len(outcome.value))
    else:
        logger.info("trace replay batch of %d transactions had %d failures", len(responses), len(outcome.reason))
    return outcome
