#!/usr/bin/env python3
"""Agent-facing JSON wrapper around Parity-only Ethereum JSON-RPC methods."""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import os
import sys
import time
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Callable

# Local imports for script execution (python3 scripts/parity_rpc.py ...)
SCRIPT_DIR = Path(__file__).resolve().parent
if str(SCRIPT_DIR) not in sys.path:
    sys.path.insert(0, str(SCRIPT_DIR))

from error_map import (  # noqa: E402
    ERR_BATCH_FAILURE,
    ERR_CONFIG,
    ERR_INVALID_REQUEST,
    ERR_RPC_REMOTE,
    ERR_RPC_TIMEOUT,
    ERR_RPC_URL_REQUIRED,
    TRANSPORT_ERROR_CODES,
)
from outcome import Err, Outcome  # noqa: E402
from parity_variant import (  # noqa: E402
    fetch_beneficiaries,
    fetch_internal_transactions,
    fetch_pending_transactions,
)
from quantity import parse_nonnegative_quantity_str  # noqa: E402
from rpc_contract import (  # noqa: E402
    build_execution_env,
    load_config_file,
    normalize_transactions_request,
    parse_request_from_args,
    resolve_named_arguments,
    validate_named_arguments,
)

logger = logging.getLogger("parity_rpc")

DEFAULT_LOG_LEVEL = "WARNING"


def _json_dump(payload: Any, pretty: bool = True) -> str:
    return json.dumps(payload, indent=2 if pretty else None, sort_keys=False)


def _timestamp() -> str:
    return datetime.now(UTC).isoformat()


def _base_response(method: str) -> dict[str, Any]:
    return {
        "timestamp_utc": _timestamp(),
        "method": method,
        "status": "error",
        "ok": False,
        "error_code": None,
        "error_message": None,
    }


def _build_error_payload(
    *,
    method: str,
    status: str,
    code: str,
    message: str,
    rpc_response: Any = None,
    errors: list[Any] | None = None,
    duration_ms: int | None = None,
) -> dict[str, Any]:
    payload = _base_response(method)
    payload.update({"status": status, "error_code": code, "error_message": message})
    if rpc_response is not None:
        payload["rpc_response"] = rpc_response
    if errors is not None:
        payload["errors"] = errors
    if duration_ms is not None:
        payload["duration_ms"] = duration_ms
    return payload


def _build_ok_payload(*, method: str, result: Any, duration_ms: int) -> dict[str, Any]:
    payload = _base_response(method)
    payload.update(
        {
            "status": "ok",
            "ok": True,
            "result": result,
            "duration_ms": duration_ms,
        }
    )
    return payload


def _render_output(*, payload: dict[str, Any], args: argparse.Namespace) -> None:
    compact = bool(args.compact)
    if args.result_only and bool(payload.get("ok", False)):
        value = payload.get("result")
        if isinstance(value, str):
            print(value)
        else:
            print(_json_dump(value, pretty=not compact))
        return
    print(_json_dump(payload, pretty=not compact))


def _print_error(*, args: argparse.Namespace, method: str, code: str, message: str) -> None:
    _render_output(
        payload=_build_error_payload(method=method, status="error", code=code, message=message),
        args=args,
    )


def _configure_logging(level: str | None) -> None:
    name = (level or os.environ.get("PARITY_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, name, logging.WARNING),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _resolve_runtime(args: argparse.Namespace, *, method: str) -> tuple[bool, dict[str, Any] | int]:
    try:
        extra_env = json.loads(args.env_json) if args.env_json else {}
        if not isinstance(extra_env, dict):
            raise ValueError("--env-json must be a JSON object")
    except ValueError as err:
        _print_error(args=args, method=method, code=ERR_INVALID_REQUEST, message=str(err))
        return False, 2

    try:
        config = load_config_file(args.config) if args.config else {}
    except (OSError, ValueError) as err:
        _print_error(args=args, method=method, code=ERR_CONFIG, message=str(err))
        return False, 2

    named = resolve_named_arguments(
        env=build_execution_env(extra_env),
        config=config,
        timeout_seconds=args.timeout_seconds,
    )
    if not named["rpc_url"]:
        _print_error(
            args=args,
            method=method,
            code=ERR_RPC_URL_REQUIRED,
            message="set ETH_RPC_URL or rpc_url in --config",
        )
        return False, 4

    valid, message = validate_named_arguments(named)
    if not valid:
        _print_error(args=args, method=method, code=ERR_CONFIG, message=message)
        return False, 2
    return True, named


def _is_transport_failure(reason: Any) -> bool:
    return isinstance(reason, dict) and reason.get("error_code") in TRANSPORT_ERROR_CODES


def _failure_payload(*, method: str, reason: Any, duration_ms: int) -> dict[str, Any]:
    if _is_transport_failure(reason):
        return _build_error_payload(
            method=method,
            status="timeout" if reason["error_code"] == ERR_RPC_TIMEOUT else "error",
            code=reason["error_code"],
            message=str(reason.get("error_message", "")),
            rpc_response=reason.get("rpc_response"),
            duration_ms=duration_ms,
        )
    if isinstance(reason, list):
        return _build_error_payload(
            method=method,
            status="error",
            code=ERR_BATCH_FAILURE,
            message=f"{len(reason)} request(s) in the batch returned an error",
            errors=reason,
            duration_ms=duration_ms,
        )
    return _build_error_payload(
        method=method,
        status="error",
        code=ERR_RPC_REMOTE,
        message="rpc returned an error response",
        rpc_response={"error": reason},
        duration_ms=duration_ms,
    )


def _run_and_render(
    *,
    args: argparse.Namespace,
    method: str,
    operation: Callable[[], Outcome],
) -> int:
    start = time.perf_counter()
    outcome = operation()
    duration_ms = int((time.perf_counter() - start) * 1000)
    logger.info("%s finished in %d ms (%s)", method, duration_ms, type(outcome).__name__)

    if isinstance(outcome, Err):
        _render_output(payload=_failure_payload(method=method, reason=outcome.reason, duration_ms=duration_ms), args=args)
        return 1

    result = outcome.value
    if dataclasses.is_dataclass(result):
        result = dataclasses.asdict(result)
    _render_output(payload=_build_ok_payload(method=method, result=result, duration_ms=duration_ms), args=args)
    return 0


def cmd_beneficiaries(args: argparse.Namespace) -> int:
    method = "beneficiaries"
    try:
        first = parse_nonnegative_quantity_str(args.from_block)
        last = parse_nonnegative_quantity_str(args.to_block)
    except ValueError as err:
        _print_error(args=args, method=method, code=ERR_INVALID_REQUEST, message=str(err))
        return 2
    if first > last:
        _print_error(
            args=args,
            method=method,
            code=ERR_INVALID_REQUEST,
            message="--from-block must not be greater than --to-block",
        )
        return 2

    ok, named_or_rc = _resolve_runtime(args, method=method)
    if not ok:
        return int(named_or_rc)

    return _run_and_render(
        args=args,
        method=method,
        operation=lambda: fetch_beneficiaries(range(first, last + 1), named_or_rc),
    )


def cmd_internal_transactions(args: argparse.Namespace) -> int:
    method = "internal-transactions"
    try:
        request = parse_request_from_args(args)
    except (OSError, ValueError) as err:
        _print_error(args=args, method=method, code=ERR_INVALID_REQUEST, message=str(err))
        return 2

    ok, transactions, err = normalize_transactions_request(request)
    if not ok:
        _print_error(args=args, method=method, code=ERR_INVALID_REQUEST, message=err)
        return 2

    ok, named_or_rc = _resolve_runtime(args, method=method)
    if not ok:
        return int(named_or_rc)

    return _run_and_render(
        args=args,
        method=method,
        operation=lambda: fetch_internal_transactions(transactions, named_or_rc),
    )


def cmd_pending_transactions(args: argparse.Namespace) -> int:
    method = "pending-transactions"
    ok, named_or_rc = _resolve_runtime(args, method=method)
    if not ok:
        return int(named_or_rc)

    return _run_and_render(
        args=args,
        method=method,
        operation=lambda: fetch_pending_transactions(named_or_rc),
    )


def _add_runtime_output_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="YAML config file (rpc_url, timeout_seconds, retries)")
    parser.add_argument("--env-json", help="runtime env object as JSON")
    parser.add_argument("--timeout-seconds", type=float, help="per-request timeout override")
    parser.add_argument("--compact", action="store_true", help="compact JSON output")
    parser.add_argument("--result-only", action="store_true", help="print only result field")
    parser.add_argument("--log-level", help="stderr log level (default from PARITY_LOG_LEVEL or WARNING)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    sub = parser.add_subparsers(dest="command", required=True)

    beneficiaries_parser = sub.add_parser(
        "beneficiaries",
        help="Fetch block/uncle reward beneficiaries for an inclusive block range via trace_block",
    )
    beneficiaries_parser.add_argument("--from-block", required=True, help="first block (decimal or 0x hex)")
    beneficiaries_parser.add_argument("--to-block", required=True, help="last block (decimal or 0x hex)")
    _add_runtime_output_args(beneficiaries_parser)
    beneficiaries_parser.set_defaults(func=cmd_beneficiaries)

    internal_parser = sub.add_parser(
        "internal-transactions",
        help="Replay transactions with trace_replayTransaction and emit internal transaction params",
    )
    internal_parser.add_argument("--request-file", help="request JSON file")
    internal_parser.add_argument("--request-json", help="request JSON string")
    _add_runtime_output_args(internal_parser)
    internal_parser.set_defaults(func=cmd_internal_transactions)

    pending_parser = sub.add_parser(
        "pending-transactions",
        help="List the contacted node's pending transactions",
    )
    _add_runtime_output_args(pending_parser)
    pending_parser.set_defaults(func=cmd_pending_transactions)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
