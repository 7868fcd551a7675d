#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Deferred values, computed when the templates are synthesized rather than when the constructs are defined.
"""

from __future__ import annotations

from typing import Any, Callable


class Lazy:
    """
    Holds a zero-argument producer which is called once, the first time the value is needed.

    :ivar Callable producer: function returning the value
    """

    def __init__(self, producer: Callable[[], Any]):
        if not callable(producer):
            raise TypeError("producer must be callable. Got", type(producer))
        self.producer = producer
        self._resolved = False
        self._value = None

    def __repr__(self):
        if self._resolved:
            return f"Lazy({self._value!r})"
        return "Lazy(<unresolved>)"

    @property
    def resolved(self) -> bool:
        return self._resolved

    def resolve(self) -> Any:
        if not self._resolved:
            self._value = self.producer()
            self._resolved = True
        return self._value


def resolve_value(value):
    """
    Returns the value, resolving it first if it is a Lazy

    :param value:
    :return: the resolved value
    """
    if isinstance(value, Lazy):
        return value.resolve()
    return value
