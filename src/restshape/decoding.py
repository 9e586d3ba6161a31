# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Record decoding capability used by the Record and RecordList shapes."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, Protocol, TypeVar

from pydantic import TypeAdapter, ValidationError

from .errors import DecodingError

T = TypeVar("T")

_MAX_REPORTED_ERRORS = 3


class Decoder(Protocol):
    """Turns JSON bytes into an instance of the target type, or raises DecodingError."""

    def decode(self, payload: bytes, target: type[T]) -> T: ...


def _reject_constant(name: str) -> Any:
    raise DecodingError(f"Malformed JSON: invalid literal {name}")


def parse_json(payload: bytes) -> Any:
    """Parse strict JSON; NaN and Infinity literals are rejected."""
    try:
        return json.loads(payload, parse_constant=_reject_constant)
    except ValueError as exc:
        raise DecodingError(f"Malformed JSON: {exc}") from exc


def _type_name(target: Any) -> str:
    return getattr(target, "__name__", None) or repr(target)


def _format_validation_error(target: Any, exc: ValidationError) -> str:
    problems = []
    for item in exc.errors()[:_MAX_REPORTED_ERRORS]:
        location = ".".join(str(part) for part in item.get("loc", ())) or "<root>"
        problems.append(f"{location}: {item.get('msg', 'invalid')}")
    extra = exc.error_count() - len(problems)
    if extra > 0:
        problems.append(f"... {extra} more")
    return f"{_type_name(target)}: " + "; ".join(problems)


class PydanticDecoder(Decoder):
    """
    Default decoder backed by pydantic.

    Types exposing a ``from_mapping(data)`` classmethod are built through it from the
    parsed JSON object. Everything else (dataclasses, pydantic models, TypedDicts,
    builtins) is validated with a cached ``TypeAdapter``; strict mode keeps "1" from
    silently becoming 1.
    """

    def __init__(self, *, strict: bool = True):
        self.strict = strict
        self._adapters: dict[Any, TypeAdapter[Any]] = {}

    def _adapter(self, target: Any) -> TypeAdapter[Any]:
        try:
            adapter = self._adapters.get(target)
        except TypeError:
            return TypeAdapter(target)
        if adapter is None:
            adapter = TypeAdapter(target)
            self._adapters[target] = adapter
        return adapter

    def decode(self, payload: bytes, target: type[T]) -> T:
        from_mapping = getattr(target, "from_mapping", None)
        if callable(from_mapping):
            return self._decode_with_hook(payload, target, from_mapping)

        try:
            adapter = self._adapter(target)
        except Exception as exc:  # noqa: BLE001
            raise DecodingError(f"{_type_name(target)} is not a decodable type: {exc}") from exc
        # pydantic accepts NaN and Infinity when parsing JSON.
        parse_json(payload)
        try:
            return adapter.validate_json(payload, strict=self.strict)
        except ValidationError as exc:
            raise DecodingError(_format_validation_error(target, exc)) from exc

    @staticmethod
    def _decode_with_hook(payload: bytes, target: Any, from_mapping: Any) -> Any:
        data = parse_json(payload)
        if not isinstance(data, Mapping):
            raise DecodingError(f"{_type_name(target)}: expected a JSON object, got {json_type_name(data)}")
        try:
            return from_mapping(data)
        except DecodingError:
            raise
        except (KeyError, TypeError, ValueError) as exc:
            raise DecodingError(f"{_type_name(target)}: {exc!r}") from exc


def json_type_name(value: Any) -> str:
    """Name of the JSON type a parsed value came from."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


__all__ = ["Decoder", "PydanticDecoder", "json_type_name", "parse_json"]
