from __future__ import annotations

import json
import os
import subprocess
import sys
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer
from pathlib import Path
from typing import Any


ROOT = Path(__file__).resolve().parents[1]
SCRIPTS = ROOT / "scripts"

TX_HASH_A = "0x" + "a" * 64
TX_HASH_B = "0x" + "b" * 64
TX_HASH_C = "0x" + "c" * 64

NAMED_ARGUMENTS = {"rpc_url": "http://127.0.0.1:1", "timeout_seconds": 2.0, "retries": 0}


def _run_cmd(
    command: str,
    args: list[str],
    extra_env: dict[str, str] | None = None,
) -> subprocess.CompletedProcess[str]:
    cmd = [
        sys.executable,
        str(SCRIPTS / "parity_rpc.py"),
        command,
        *args,
    ]
    env = os.environ.copy()
    env.pop("ETH_RPC_URL", None)
    env.pop("PARITY_RPC_TIMEOUT_SECONDS", None)
    env.pop("PARITY_LOG_LEVEL", None)
    if extra_env:
        env.update(extra_env)
    return subprocess.run(cmd, capture_output=True, text=True, check=False, env=env)


def _run_beneficiaries(
    from_block: str,
    to_block: str,
    extra_env: dict[str, str] | None = None,
    extra_args: list[str] | None = None,
) -> subprocess.CompletedProcess[str]:
    args = ["--from-block", from_block, "--to-block", to_block, *(extra_args or [])]
    return _run_cmd("beneficiaries", args, extra_env=extra_env)


def _run_internal_transactions(
    request: dict,
    extra_env: dict[str, str] | None = None,
    extra_args: list[str] | None = None,
) -> subprocess.CompletedProcess[str]:
    args = ["--request-json", json.dumps(request), *(extra_args or [])]
    return _run_cmd("internal-transactions", args, extra_env=extra_env)


def _run_pending(
    extra_env: dict[str, str] | None = None,
    extra_args: list[str] | None = None,
) -> subprocess.CompletedProcess[str]:
    return _run_cmd("pending-transactions", list(extra_args or []), extra_env=extra_env)


class FakeInvoke:
    """In-process stand-in for rpc_transport.invoke_rpc.

    ``reply`` is either a transport dict returned as-is, or a callable that
    receives the posted payload and returns the decoded JSON reply.
    """

    def __init__(self, reply: Any) -> None:
        self.reply = reply
        self.calls: list[dict[str, Any]] = []

    def __call__(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(kwargs)
        if callable(self.reply):
            return {
                "ok": True,
                "error_code": None,
                "error_message": None,
                "rpc_response": self.reply(kwargs["payload"]),
            }
        return self.reply


def _trace(call_to: str, trace_address: list[int] | None = None) -> dict[str, Any]:
    return {
        "action": {
            "callType": "call",
            "from": "0x1111111111111111111111111111111111111111",
            "gas": "0x5208",
            "input": "0x",
            "to": call_to,
            "value": "0x0",
        },
        "result": {"gasUsed": "0x0", "output": "0x"},
        "subtraces": 0,
        "traceAddress": trace_address or [],
        "type": "call",
    }


def _reward(author: str, reward_type: str, block_number: int, value: str = "0x1bc16d674ec80000") -> dict[str, Any]:
    return {
        "action": {"author": author, "rewardType": reward_type, "value": value},
        "blockHash": f"0x{block_number:064x}",
        "blockNumber": block_number,
        "result": None,
        "subtraces": 0,
        "traceAddress": [],
        "type": "reward",
    }


class _RPCHandler(BaseHTTPRequestHandler):
    responses: list[Any] = []
    calls: list[Any] = []

    def do_POST(self) -> None:  # noqa: N802
        length = int(self.headers.get("Content-Length", "0"))
        body = self.rfile.read(length).decode("utf-8")
        try:
            payload = json.loads(body)
        except Exception:  # noqa: BLE001
            payload = {"raw": body}
        _RPCHandler.calls.append(payload)

        status_code = 200
        raw_body: str | None = None
        if _RPCHandler.responses:
            next_response = _RPCHandler.responses.pop(0)
            if isinstance(next_response, tuple) and len(next_response) == 2:
                status_code = int(next_response[0])
                response_payload = next_response[1]
            else:
                response_payload = next_response
            if callable(response_payload):
                response_payload = response_payload(payload)
            if isinstance(response_payload, str):
                raw_body = response_payload
        else:
            response_payload = {"jsonrpc": "2.0", "id": 1, "result": []}

        encoded = (raw_body if raw_body is not None else json.dumps(response_payload)).encode("utf-8")
        self.send_response(status_code)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(encoded)))
        self.end_headers()
        self.wfile.write(encoded)

    def log_message(self, format: str, *args) -> None:  # noqa: A003
        return


def _serve(responses: list[Any]) -> tuple[HTTPServer, str]:
    _RPCHandler.responses = list(responses)
    _RPCHandler.calls = []
    server = HTTPServer(("127.0.0.1", 0), _RPCHandler)
    url = f"http://127.0.0.1:{server.server_address[1]}"
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    return server, url


def _stop(server: HTTPServer) -> None:
    server.shutdown()
    server.server_close()
