"""Ethereum JSON-RPC operations that only Parity/OpenEthereum nodes support."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from batch_dispatch import Invoker, json_rpc
from normalizers import beneficiaries_from_responses, traces_to_params, transactions_to_params
from outcome import Err, Ok, Outcome
from parity_requests import (
    beneficiary_requests,
    pending_transactions_request,
    trace_replay_transaction_requests,
)
from quantity import integer_to_quantity
from request_ids import id_to_params
from rpc_transport import invoke_rpc
from trace_engine import trace_replay_responses_to_traces

logger = logging.getLogger(__name__)


def _block_range_to_params_list(block_range: range) -> list[dict[str, Any]]:
    return [{"block_quantity": integer_to_quantity(number)} for number in block_range]


def fetch_beneficiaries(
    block_range: range,
    named_arguments: dict[str, Any],
    *,
    invoke: Invoker = invoke_rpc,
) -> Outcome:
    """Fetch block/uncle reward beneficiaries for every block in ``block_range``.

    Returns ``Ok(FetchedBeneficiaries)``; per-block failures are carried in its
    ``errors`` list. Only a transport failure produces ``Err``.
    """
    id_map = id_to_params(_block_range_to_params_list(block_range))
    outcome = json_rpc(beneficiary_requests(id_map), named_arguments, invoke=invoke)
    if isinstance(outcome, Err):
        return outcome
    return Ok(beneficiaries_from_responses(outcome.value, id_map))


def fetch_internal_transactions(
    transactions_params: Iterable[Mapping[str, Any]],
    named_arguments: dict[str, Any],
    *,
    invoke: Invoker = invoke_rpc,
) -> Outcome:
    """Replay each transaction's trace and convert it to internal-transaction params.

    Each entry of ``transactions_params`` needs ``block_number``, ``hash_data``
    and ``transaction_index``. A node error for any transaction fails the
    whole batch with ``Err`` listing every annotated error in response order.
    """
    id_map = id_to_params(transactions_params)
    outcome = json_rpc(trace_replay_transaction_requests(id_map), named_arguments, invoke=invoke)
    if isinstance(outcome, Err):
        return outcome

    traces = trace_replay_responses_to_traces(outcome.value, id_map)
    if isinstance(traces, Err):
        return traces
    return Ok(traces_to_params(traces.value))


def fetch_pending_transactions(
    named_arguments: dict[str, Any],
    *,
    invoke: Invoker = invoke_rpc,
) -> Outcome:
    """Fetch the node's pending transaction pool.

    The pool is local to the contacted node; other nodes may hold a different
    set or order.
    """
    outcome = json_rpc(pending_transactions_request(), named_arguments, invoke=invoke)
    if isinstance(outcome, Err):
        return outcome

    transactions = outcome.value or []
    logger.debug("node reported %d pending transactions", len(transactions))
    return Ok(transactions_to_params(transactions))
