"""Tagged batch outcomes and the all-or-nothing fold over them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable


@dataclass(frozen=True)
class Ok:
    value: Any


@dataclass(frozen=True)
class Err:
    reason: Any


Outcome = Ok | Err


def aggregate(outcomes: Iterable[Outcome]) -> Outcome:
    """Fold per-response outcomes into one batch outcome.

    Every ``Ok`` must carry a list; on success the lists are concatenated in
    the order the outcomes were given. A single ``Err`` discards all
    successes and the result carries every reason, again in the order given.
    """
    values: list[Any] = []
    reasons: list[Any] = []
    for outcome in outcomes:
        if isinstance(outcome, Ok):
            values.extend(outcome.value)
        elif isinstance(outcome, Err):
            reasons.append(outcome.reason)
        else:
            raise TypeError(f"expected Ok or Err, got {type(outcome).__name__}")

    if reasons:
        return Err(reasons)
    return Ok(values)
