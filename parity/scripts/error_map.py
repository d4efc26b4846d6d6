"""Stable error codes shared by the parity engines and CLI envelopes."""

from __future__ import annotations

ERR_INVALID_REQUEST = "INVALID_REQUEST"
ERR_CONFIG = "CONFIG_INVALID"
ERR_RPC_URL_REQUIRED = "RPC_URL_REQUIRED"
ERR_RPC_TRANSPORT = "RPC_TRANSPORT_ERROR"
ERR_RPC_TIMEOUT = "RPC_TIMEOUT"
ERR_RPC_REMOTE = "RPC_REMOTE_ERROR"
ERR_BATCH_FAILURE = "RPC_BATCH_FAILURE"

TRANSPORT_ERROR_CODES = frozenset({ERR_RPC_TRANSPORT, ERR_RPC_TIMEOUT})


class ProtocolIntegrityError(RuntimeError):
    """A node response could not be matched to a request this process sent."""
