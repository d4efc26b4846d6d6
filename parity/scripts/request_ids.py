"""Batch-local request id allocation and lookup."""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Iterable, Mapping

from error_map import ProtocolIntegrityError

IdToParams = dict[int, Mapping[str, Any]]


def id_to_params(params_list: Iterable[Mapping[str, Any]]) -> IdToParams:
    """Assign ids 1..N to ``params_list`` in order.

    Each record is copied into a read-only mapping, so the returned map can
    be handed to request builders and correlators without defensive copies.
    """
    return {
        request_id: MappingProxyType(dict(params))
        for request_id, params in enumerate(params_list, start=1)
    }


def params_for_id(id_map: IdToParams, request_id: Any) -> Mapping[str, Any]:
    try:
        return id_map[request_id]
    except (KeyError, TypeError):
        raise ProtocolIntegrityError(
            f"response id {request_id!r} does not match any request in this batch"
        ) from None


def check_response_ids(responses: Iterable[Mapping[str, Any]], id_map: IdToParams) -> None:
    """Require exactly one response per request id in ``id_map``."""
    seen: set[Any] = set()
    for response in responses:
        request_id = response.get("id")
        params_for_id(id_map, request_id)
        if request_id in seen:
            raise ProtocolIntegrityError(f"response id {request_id!r} appears more than once in this batch")
        seen.add(request_id)

    missing = [request_id for request_id in id_map if request_id not in seen]
    if missing:
        raise ProtocolIntegrityError(f"batch reply has no response for request id(s) {missing}")
