from __future__ import annotations

import json

from ._parity_rpc_helpers import (
    TX_HASH_A,
    TX_HASH_B,
    _reward,
    _run_beneficiaries,
    _run_internal_transactions,
    _run_pending,
    _RPCHandler,
    _serve,
    _stop,
    _trace,
)

VALIDATOR = "0x5a0b54d5dc17e0aadc383d2db43b0a0d3e029c4c"

TRANSACTIONS_REQUEST = {
    "transactions": [
        {"hash_data": TX_HASH_A, "block_number": 100, "transaction_index": 0},
        {"hash_data": TX_HASH_B, "block_number": 100, "transaction_index": 1},
    ]
}


def test_requires_rpc_url():
    proc = _run_pending()
    assert proc.returncode == 4
    payload = json.loads(proc.stdout)
    assert payload["ok"] is False
    assert payload["error_code"] == "RPC_URL_REQUIRED"


def test_rpc_url_from_config_file(tmp_path):
    server, url = _serve([{"jsonrpc": "2.0", "id": 1, "result": []}])
    try:
        config_path = tmp_path / "parity.yaml"
        config_path.write_text(f"rpc_url: {url}\nretries: 0\n", encoding="utf-8")
        proc = _run_pending(extra_args=["--config", str(config_path)])
        assert proc.returncode == 0, proc.stdout + proc.stderr
        payload = json.loads(proc.stdout)
        assert payload["ok"] is True
        assert payload["result"] == []
        assert _RPCHandler.calls == [{"jsonrpc": "2.0", "id": 1, "method": "parity_pendingTransactions", "params": []}]
    finally:
        _stop(server)


def test_invalid_config_file(tmp_path):
    config_path = tmp_path / "parity.yaml"
    config_path.write_text("- not\n- a mapping\n", encoding="utf-8")
    proc = _run_pending(extra_env={"ETH_RPC_URL": "http://127.0.0.1:1"}, extra_args=["--config", str(config_path)])
    assert proc.returncode == 2
    assert json.loads(proc.stdout)["error_code"] == "CONFIG_INVALID"


def test_pending_transactions_transport_failure():
    proc = _run_pending(extra_env={"ETH_RPC_URL": "http://127.0.0.1:1"}, extra_args=["--timeout-seconds", "1"])
    assert proc.returncode == 1
    payload = json.loads(proc.stdout)
    assert payload["ok"] is False
    assert payload["error_code"] in {"RPC_TRANSPORT_ERROR", "RPC_TIMEOUT"}


def test_pending_transactions_node_error():
    server, url = _serve([{"jsonrpc": "2.0", "id": 1, "error": {"code": -32601, "message": "Method not found"}}])
    try:
        proc = _run_pending(extra_env={"ETH_RPC_URL": url})
        assert proc.returncode == 1
        payload = json.loads(proc.stdout)
        assert payload["error_code"] == "RPC_REMOTE_ERROR"
        assert payload["rpc_response"]["error"]["code"] == -32601
    finally:
        _stop(server)


def test_beneficiaries_block_range():
    def reply(payload):
        return [{"jsonrpc": "2.0", "id": r["id"], "result": [_reward(VALIDATOR, "block", 0)]} for r in payload]

    server, url = _serve([reply])
    try:
        proc = _run_beneficiaries("100", "0x66", extra_env={"ETH_RPC_URL": url})
        assert proc.returncode == 0, proc.stdout + proc.stderr
        payload = json.loads(proc.stdout)
        assert payload["ok"] is True
        assert [p["block_number"] for p in payload["result"]["params_set"]] == [100, 101, 102]
        assert payload["result"]["errors"] == []
        [batch] = _RPCHandler.calls
        assert [r["params"] for r in batch] == [["0x64"], ["0x65"], ["0x66"]]
    finally:
        _stop(server)


def test_beneficiaries_rejects_reversed_range():
    proc = _run_beneficiaries("10", "9", extra_env={"ETH_RPC_URL": "http://127.0.0.1:1"})
    assert proc.returncode == 2
    assert json.loads(proc.stdout)["error_code"] == "INVALID_REQUEST"


def test_internal_transactions_success_result_only():
    def reply(payload):
        return [
            {"jsonrpc": "2.0", "id": 2, "result": {"trace": [_trace(VALIDATOR)]}},
            {"jsonrpc": "2.0", "id": 1, "result": {"trace": [_trace(VALIDATOR), _trace(VALIDATOR, [0])]}},
        ]

    server, url = _serve([reply])
    try:
        proc = _run_internal_transactions(
            TRANSACTIONS_REQUEST,
            extra_env={"ETH_RPC_URL": url},
            extra_args=["--result-only", "--compact"],
        )
        assert proc.returncode == 0, proc.stdout + proc.stderr
        rows = json.loads(proc.stdout)
        assert [(r["transaction_hash"], r["index"]) for r in rows] == [
            (TX_HASH_B, 0),
            (TX_HASH_A, 0),
            (TX_HASH_A, 1),
        ]
    finally:
        _stop(server)


def test_internal_transactions_batch_failure_lists_every_error():
    def reply(payload):
        return [
            {"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "first"}},
            {"jsonrpc": "2.0", "id": 2, "error": {"code": -32000, "message": "second"}},
        ]

    server, url = _serve([reply])
    try:
        proc = _run_internal_transactions(TRANSACTIONS_REQUEST, extra_env={"ETH_RPC_URL": url})
        assert proc.returncode == 1
        payload = json.loads(proc.stdout)
        assert payload["error_code"] == "RPC_BATCH_FAILURE"
        assert [e["message"] for e in payload["errors"]] == ["first", "second"]
        assert payload["errors"][1]["data"] == {"blockNumber": 100, "transactionIndex": 1, "transactionHash": TX_HASH_B}
        assert "result" not in payload
    finally:
        _stop(server)


def test_internal_transactions_unmatched_id_aborts():
    server, url = _serve([[{"jsonrpc": "2.0", "id": 99, "result": {"trace": []}}]])
    try:
        proc = _run_internal_transactions(
            {"transactions": TRANSACTIONS_REQUEST["transactions"][:1]},
            extra_env={"ETH_RPC_URL": url},
        )
        assert proc.returncode != 0
        assert proc.stdout == ""
        assert "ProtocolIntegrityError" in proc.stderr
    finally:
        _stop(server)


def test_internal_transactions_invalid_request():
    proc = _run_internal_transactions({"transactions": [{"hash_data": "0x1"}]})
    assert proc.returncode == 2
    payload = json.loads(proc.stdout)
    assert payload["error_code"] == "INVALID_REQUEST"
    assert "hash_data" in payload["error_message"]
