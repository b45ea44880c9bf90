# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Protocol for booking id generators."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class BookingIdGeneratorProtocol(Protocol):
    """Anything that can produce candidate booking ids."""

    def generate(self) -> str:
        """Return a candidate id. Uniqueness is checked by the store."""
        ...
