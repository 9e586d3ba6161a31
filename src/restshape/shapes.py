# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Output shapes and their response resolvers.

A shape is the caller's explicit statement of what a 2xx body should become. Resolution
depends only on the requested shape, never on what the body happens to contain: asking
for ``Record(User)`` against a JSON array is a DecodingError, not a coercion.

    EMPTY                          -> None, body ignored
    RAW_BYTES                      -> the body bytes
    UNTYPED_JSON                   -> json.loads(body)
    Record(User)                   -> User
    RecordList(User)               -> list[User] from a top-level array
    RecordList(User, keypath="k")  -> list[User] from the array at body["k"]
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Any, Generic, TypeVar

from .decoding import Decoder, json_type_name, parse_json
from .errors import DecodingError

T = TypeVar("T")


def _encode_element(value: Any) -> bytes:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


class OutputShape(ABC):
    """Closed set of result shapes a request can be resolved into."""

    name: str = ""

    @abstractmethod
    def resolve(self, body: bytes, decoder: Decoder) -> Any:
        """Turn a 2xx response body into the shape's value or raise DecodingError."""

    def __repr__(self) -> str:
        return self.name


class Empty(OutputShape):
    name = "Empty"

    def resolve(self, body: bytes, decoder: Decoder) -> None:  # noqa: ARG002
        return None


class RawBytes(OutputShape):
    name = "RawBytes"

    def resolve(self, body: bytes, decoder: Decoder) -> bytes:  # noqa: ARG002
        return bytes(body)


class UntypedJSON(OutputShape):
    name = "UntypedJSON"

    def resolve(self, body: bytes, decoder: Decoder) -> Any:  # noqa: ARG002
        return parse_json(body)


@dataclass(frozen=True, repr=False)
class Record(OutputShape, Generic[T]):
    """A single record of type ``model`` decoded from the whole body."""

    model: type[T]
    name = "Record"

    def resolve(self, body: bytes, decoder: Decoder) -> T:
        return decoder.decode(body, self.model)

    def __repr__(self) -> str:
        return f"Record({getattr(self.model, '__name__', self.model)})"


@dataclass(frozen=True, repr=False)
class RecordList(OutputShape, Generic[T]):
    """
    A list of ``model`` records, decoded all-or-nothing in body order.

    Without a keypath the body itself must be a JSON array. With one, the body must be a
    JSON object whose top-level field ``keypath`` holds the array.
    """

    model: type[T]
    keypath: str | None = None
    name = "RecordList"

    def __post_init__(self) -> None:
        if self.keypath is not None and (not isinstance(self.keypath, str) or not self.keypath):
            raise ValueError("keypath must be a non-empty string")

    def at(self, keypath: str) -> RecordList[T]:
        """Return the same shape reading its array from ``keypath``."""
        return replace(self, keypath=keypath)

    def resolve(self, body: bytes, decoder: Decoder) -> list[T]:
        document = parse_json(body)
        if self.keypath is None:
            items = document
            where = "response body"
        else:
            if not isinstance(document, dict):
                raise DecodingError(f"Expected a JSON object holding {self.keypath!r}, got {json_type_name(document)}")
            if self.keypath not in document:
                raise DecodingError(f"Keypath {self.keypath!r} not found in response body")
            items = document[self.keypath]
            where = f"keypath {self.keypath!r}"

        if not isinstance(items, list):
            raise DecodingError(f"Expected a JSON array at {where}, got {json_type_name(items)}")

        records: list[T] = []
        for index, item in enumerate(items):
            try:
                records.append(decoder.decode(_encode_element(item), self.model))
            except DecodingError as exc:
                raise DecodingError(f"Element {index} at {where}: {exc.reason}") from exc
        return records

    def __repr__(self) -> str:
        model_name = getattr(self.model, "__name__", self.model)
        if self.keypath is None:
            return f"RecordList({model_name})"
        return f"RecordList({model_name}, keypath={self.keypath!r})"


EMPTY = Empty()
RAW_BYTES = RawBytes()
UNTYPED_JSON = UntypedJSON()


__all__ = [
    "EMPTY",
    "RAW_BYTES",
    "UNTYPED_JSON",
    "Empty",
    "OutputShape",
    "RawBytes",
    "Record",
    "RecordList",
    "UntypedJSON",
]
