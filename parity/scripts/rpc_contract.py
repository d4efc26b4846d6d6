"""Request/config contract helpers for the parity_rpc wrapper."""

from __future__ import annotations

import json
import os
import re
from argparse import Namespace
from pathlib import Path
from typing import Any

import yaml

from quantity import parse_nonnegative_quantity

DEFAULT_TIMEOUT_SECONDS = 20.0
DEFAULT_RETRIES = 2

HEX32_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")

CONFIG_KEYS = ("rpc_url", "timeout_seconds", "retries")


def load_config_file(path: str | Path) -> dict[str, Any]:
    raw = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError(f"config file {path} must contain a mapping")
    unknown = sorted(str(k) for k in raw if k not in CONFIG_KEYS)
    if unknown:
        raise ValueError(f"config file {path} has unknown keys: {', '.join(unknown)}")
    return dict(raw)


def build_execution_env(extra: dict[str, Any] | None = None) -> dict[str, str]:
    env = os.environ.copy()
    if isinstance(extra, dict):
        for k, v in extra.items():
            env[str(k)] = str(v)
    return env


def resolve_named_arguments(
    *,
    env: dict[str, str],
    config: dict[str, Any] | None = None,
    timeout_seconds: float | None = None,
) -> dict[str, Any]:
    """Merge defaults, config file values, env and explicit flags (later wins)."""
    named: dict[str, Any] = {
        "rpc_url": "",
        "timeout_seconds": DEFAULT_TIMEOUT_SECONDS,
        "retries": DEFAULT_RETRIES,
    }
    named.update(config or {})

    env_url = str(env.get("ETH_RPC_URL", "")).strip()
    if env_url:
        named["rpc_url"] = env_url
    env_timeout = str(env.get("PARITY_RPC_TIMEOUT_SECONDS", "")).strip()
    if env_timeout:
        try:
            named["timeout_seconds"] = float(env_timeout)
        except ValueError:
            named["timeout_seconds"] = env_timeout

    if timeout_seconds is not None:
        named["timeout_seconds"] = timeout_seconds
    named["rpc_url"] = str(named.get("rpc_url") or "").strip()
    return named


def validate_named_arguments(named: dict[str, Any]) -> tuple[bool, str]:
    rpc_url = named.get("rpc_url")
    if not isinstance(rpc_url, str) or not rpc_url.startswith(("http://", "https://")):
        return False, "rpc_url must be an http(s) URL"

    timeout = named.get("timeout_seconds")
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        return False, "timeout_seconds must be a positive number"

    retries = named.get("retries")
    if isinstance(retries, bool) or not isinstance(retries, int) or retries < 0:
        return False, "retries must be a non-negative integer"

    return True, ""


def parse_request_from_args(args: Namespace) -> dict[str, Any]:
    if args.request_file:
        with open(args.request_file, encoding="utf-8") as f:
            return json.load(f)
    if args.request_json:
        return json.loads(args.request_json)
    raise ValueError("request requires --request-file or --request-json")


def normalize_transactions_request(request: Any) -> tuple[bool, list[dict[str, Any]], str]:
    if not isinstance(request, dict):
        return False, [], "request must be an object"

    transactions = request.get("transactions")
    if not isinstance(transactions, list):
        return False, [], "request.transactions must be an array"

    normalized: list[dict[str, Any]] = []
    for idx, raw in enumerate(transactions):
        if not isinstance(raw, dict):
            return False, [], f"transactions[{idx}] must be an object"

        hash_data = raw.get("hash_data")
        if not isinstance(hash_data, str) or not HEX32_RE.fullmatch(hash_data):
            return False, [], f"transactions[{idx}].hash_data must be 0x-prefixed 32-byte hash"

        ok_block, block_number, block_err = parse_nonnegative_quantity(raw.get("block_number"))
        if not ok_block:
            return False, [], f"transactions[{idx}].block_number: {block_err}"

        ok_index, transaction_index, index_err = parse_nonnegative_quantity(raw.get("transaction_index"))
        if not ok_index:
            return False, [], f"transactions[{idx}].transaction_index: {index_err}"

        normalized.append(
            {
                "block_number": block_number,
                "hash_data": hash_data.lower(),
                "transaction_index": transaction_index,
            }
        )

    return True, normalized, ""
