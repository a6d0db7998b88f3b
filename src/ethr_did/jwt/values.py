"""JSON value model for token headers and payloads.

Payloads are arbitrary JSON maps with heterogeneous values. The value type
is the closed union::

    JsonValue = str | int | float | bool | None | dict[str, JsonValue] | list[JsonValue]

:func:`to_json_value` checks a Python object against that union (converting
tuples to lists and pydantic models to their by-alias dump) so that
``decode_json(encode_json(value)) == value`` holds for everything it accepts.

Encoding is compact (no whitespace), UTF-8, preserving key insertion order.
"""
from __future__ import annotations

import json
import math
from typing import Any, Dict, List, Union

from pydantic import BaseModel

JsonValue = Union[str, int, float, bool, None, Dict[str, "JsonValue"], List["JsonValue"]]
JsonObject = Dict[str, JsonValue]


def to_json_value(value: Any, path: str = "$") -> JsonValue:
    """Validate and convert *value* into a :data:`JsonValue`.

    Parameters
    ----------
    value:
        The object to convert.
    path:
        JSON path of *value*, used in error messages.

    Returns
    -------
    JsonValue
        A tree of plain dicts, lists and scalars.

    Raises
    ------
    TypeError
        If *value* (or anything nested in it) is not JSON representable,
        including non-string keys and non-finite floats.
    """
    if value is None or isinstance(value, (str, bool, int)):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise TypeError(f"{path}: non-finite float {value!r} is not valid JSON")
        return value
    if isinstance(value, BaseModel):
        return to_json_value(value.model_dump(mode="json", by_alias=True), path)
    if isinstance(value, dict):
        result: JsonObject = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"{path}: object keys must be strings, got {type(key).__name__}")
            result[key] = to_json_value(item, f"{path}.{key}")
        return result
    if isinstance(value, (list, tuple)):
        return [to_json_value(item, f"{path}[{index}]") for index, item in enumerate(value)]
    raise TypeError(f"{path}: {type(value).__name__} is not JSON serializable")


def encode_json(value: Any) -> bytes:
    """Serialize *value* to compact UTF-8 JSON bytes."""
    return json.dumps(
        to_json_value(value),
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    ).encode("utf-8")


def decode_json(data: bytes) -> JsonValue:
    """Parse UTF-8 JSON bytes into a :data:`JsonValue`.

    Raises
    ------
    ValueError
        If *data* is not valid UTF-8 JSON (``json.JSONDecodeError`` and
        ``UnicodeDecodeError`` are both ``ValueError`` subclasses), or holds
        a number too large for a finite float.
    """
    return json.loads(
        data.decode("utf-8"),
        parse_constant=_reject_constant,
        parse_float=_finite_float,
    )


def _reject_constant(name: str) -> None:
    raise ValueError(f"{name} is not valid JSON")


def _finite_float(literal: str) -> float:
    value = float(literal)
    if not math.isfinite(value):
        raise ValueError(f"number {literal} overflows a float")
    return value


__all__ = ["JsonObject", "JsonValue", "decode_json", "encode_json", "to_json_value"]
