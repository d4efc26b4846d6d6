"""Shared parsers for Ethereum quantity-like values."""

from __future__ import annotations

from typing import Any


def integer_to_quantity(value: int) -> str:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError("quantity must be an integer")
    if value < 0:
        raise ValueError("quantity must be non-negative")
    return hex(value)


def quantity_to_integer(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError("quantity cannot be boolean")
    if isinstance(value, int):
        return value
    return parse_nonnegative_quantity_str(value)


def parse_nonnegative_quantity_str(raw: str) -> int:
    value = str(raw).strip()
    if not value:
        raise ValueError("quantity cannot be empty")
    if value[:2].lower() == "0x":
        out = int(value, 16)
        if out < 0:
            raise ValueError("quantity must be non-negative")
        return out
    if not value.isdigit():
        raise ValueError("quantity must be a decimal integer or 0x-prefixed hex quantity")
    return int(value, 10)


def parse_nonnegative_quantity(value: Any) -> tuple[bool, int, str]:
    if isinstance(value, bool):
        return False, 0, "value cannot be boolean"
    if isinstance(value, int):
        if value < 0:
            return False, 0, "value must be non-negative"
        return True, value, ""
    if not isinstance(value, str):
        return False, 0, "value must be int or string"

    try:
        return True, parse_nonnegative_quantity_str(value), ""
    except ValueError as err:
        return False, 0, str(err)
