# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Terminal result of a request: exactly one Success or Failure."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

from .errors import RequestError

V = TypeVar("V")


@dataclass(frozen=True)
class Success(Generic[V]):
    value: V

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> V:
        return self.value


@dataclass(frozen=True)
class Failure:
    error: RequestError

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self) -> Any:
        raise self.error


Outcome = Union[Success[V], Failure]


__all__ = ["Failure", "Outcome", "Success"]
