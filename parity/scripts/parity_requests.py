"""Wire request builders for Parity-only JSON-RPC methods."""

from __future__ import annotations

from typing import Any

from request_ids import IdToParams

BENEFICIARIES_METHOD = "trace_block"
TRACE_REPLAY_METHOD = "trace_replayTransaction"
PENDING_TRANSACTIONS_METHOD = "parity_pendingTransactions"

# trace only: no vmTrace, no stateDiff
TRACE_REPLAY_TYPES = ("trace",)


def request(*, id: Any, method: str, params: list[Any]) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": id, "method": method, "params": params}


def beneficiary_requests(id_map: IdToParams) -> list[dict[str, Any]]:
    return [
        request(id=request_id, method=BENEFICIARIES_METHOD, params=[params["block_quantity"]])
        for request_id, params in sorted(id_map.items())
    ]


def trace_replay_transaction_request(*, id: Any, hash_data: str) -> dict[str, Any]:
    return request(id=id, method=TRACE_REPLAY_METHOD, params=[hash_data, list(TRACE_REPLAY_TYPES)])


def trace_replay_transaction_requests(id_map: IdToParams) -> list[dict[str, Any]]:
    return [
        trace_replay_transaction_request(id=request_id, hash_data=params["hash_data"])
        for request_id, params in sorted(id_map.items())
    ]


def pending_transactions_request() -> dict[str, Any]:
    return request(id=1, method=PENDING_TRANSACTIONS_METHOD, params=[])
