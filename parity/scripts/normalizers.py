"""Convert node payloads into persistence-ready param records."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from batch_dispatch import response_error
from error_map import ProtocolIntegrityError
from quantity import integer_to_quantity, quantity_to_integer
from request_ids import IdToParams, check_response_ids, params_for_id

logger = logging.getLogger(__name__)

REWARD_ADDRESS_TYPES = {
    "block": "validator",
    "uncle": "uncle",
    "external": "emission_funds",
}


def _address(value: Any) -> str | None:
    return value.lower() if isinstance(value, str) else None


def _trace_base(trace: dict[str, Any]) -> dict[str, Any]:
    params = {
        "block_number": quantity_to_integer(trace.get("blockNumber")),
        "transaction_index": quantity_to_integer(trace.get("transactionIndex")),
        "transaction_hash": trace.get("transactionHash"),
        "index": trace.get("index"),
        "trace_address": list(trace.get("traceAddress") or []),
    }
    if trace.get("error") is not None:
        params["error"] = trace["error"]
    return params


def _call_params(action: dict[str, Any], result: dict[str, Any] | None) -> dict[str, Any]:
    params = {
        "type": "call",
        "call_type": action.get("callType"),
        "from_address_hash": _address(action.get("from")),
        "to_address_hash": _address(action.get("to")),
        "gas": quantity_to_integer(action.get("gas")),
        "input": action.get("input"),
        "value": quantity_to_integer(action.get("value")),
    }
    if result is not None:
        params["gas_used"] = quantity_to_integer(result.get("gasUsed"))
        params["output"] = result.get("output")
    return params


def _create_params(action: dict[str, Any], result: dict[str, Any] | None) -> dict[str, Any]:
    params = {
        "type": "create",
        "from_address_hash": _address(action.get("from")),
        "gas": quantity_to_integer(action.get("gas")),
        "init": action.get("init"),
        "value": quantity_to_integer(action.get("value")),
    }
    if result is not None:
        params["created_contract_address_hash"] = _address(result.get("address"))
        params["created_contract_code"] = result.get("code")
        params["gas_used"] = quantity_to_integer(result.get("gasUsed"))
    return params


def _selfdestruct_params(action: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "selfdestruct",
        "from_address_hash": _address(action.get("address")),
        "to_address_hash": _address(action.get("refundAddress")),
        "value": quantity_to_integer(action.get("balance")),
    }


def _reward_params(action: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "reward",
        "to_address_hash": _address(action.get("author")),
        "value": quantity_to_integer(action.get("value")),
    }


def trace_to_params(trace: dict[str, Any]) -> dict[str, Any]:
    trace_type = trace.get("type")
    action = trace.get("action") or {}
    result = trace.get("result")
    if trace.get("error") is not None:
        result = None

    if trace_type == "call":
        typed = _call_params(action, result)
    elif trace_type == "create":
        typed = _create_params(action, result)
    elif trace_type in ("suicide", "selfdestruct"):
        typed = _selfdestruct_params(action)
    elif trace_type == "reward":
        typed = _reward_params(action)
    else:
        raise ValueError(f"unsupported trace type: {trace_type!r}")

    return {**_trace_base(trace), **typed}


def traces_to_params(traces: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    return [trace_to_params(trace) for trace in traces]


def transaction_to_params(transaction: dict[str, Any]) -> dict[str, Any]:
    return {
        "block_hash": transaction.get("blockHash"),
        "block_number": quantity_to_integer(transaction.get("blockNumber")),
        "from_address_hash": _address(transaction.get("from")),
        "gas": quantity_to_integer(transaction.get("gas")),
        "gas_price": quantity_to_integer(transaction.get("gasPrice")),
        "hash": transaction.get("hash"),
        "index": quantity_to_integer(transaction.get("transactionIndex")),
        "input": transaction.get("input"),
        "nonce": quantity_to_integer(transaction.get("nonce")),
        "r": quantity_to_integer(transaction.get("r")),
        "s": quantity_to_integer(transaction.get("s")),
        "to_address_hash": _address(transaction.get("to")),
        "v": quantity_to_integer(transaction.get("v")),
        "value": quantity_to_integer(transaction.get("value")),
        "created_contract_address_hash": _address(transaction.get("creates")),
    }


def transactions_to_params(transactions: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    return [transaction_to_params(transaction) for transaction in transactions]


@dataclass
class FetchedBeneficiaries:
    """Beneficiary params for a block range plus the lookups that failed."""

    params_set: list[dict[str, Any]] = field(default_factory=list)
    errors: list[dict[str, Any]] = field(default_factory=list)

    def add_params(self, params: dict[str, Any]) -> None:
        if params not in self.params_set:
            self.params_set.append(params)


def _beneficiary_params(trace: dict[str, Any], block_number: int) -> dict[str, Any] | None:
    if trace.get("type") != "reward":
        return None
    action = trace.get("action") or {}
    address_type = REWARD_ADDRESS_TYPES.get(action.get("rewardType"))
    if address_type is None:
        logger.debug("skipping reward trace with rewardType=%r", action.get("rewardType"))
        return None
    return {
        "address_hash": _address(action.get("author")),
        "address_type": address_type,
        "block_hash": trace.get("blockHash"),
        "block_number": block_number,
        "reward": quantity_to_integer(action.get("value")),
    }


def beneficiaries_from_responses(responses: list[dict[str, Any]], id_map: IdToParams) -> FetchedBeneficiaries:
    check_response_ids(responses, id_map)
    fetched = FetchedBeneficiaries()
    for response in responses:
        block_quantity = params_for_id(id_map, response.get("id"))["block_quantity"]
        block_number = quantity_to_integer(block_quantity)

        error = response_error(response)
        if error is not None:
            fetched.errors.append({**error, "data": {"block_number": block_number}})
            continue

        traces = response.get("result")
        if traces is None:
            fetched.errors.append(
                {"code": 404, "message": "Not Found", "data": {"block_number": block_number}}
            )
            continue
        if not isinstance(traces, list):
            raise ProtocolIntegrityError(
                f"trace_block response id {response.get('id')!r} carries no trace list"
            )

        for trace in traces:
            params = _beneficiary_params(trace, block_number)
            if params is not None:
                fetched.add_params(params)

    if fetched.errors:
        logger.warning(
            "beneficiary lookup failed for %d block(s): %s",
            len(fetched.errors),
            ", ".join(integer_to_quantity(e["data"]["block_number"]) for e in fetched.errors),
        )
    return fetched
