# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Protocol definitions for booking engine collaborators.

Available protocols:
- SeatDirectoryProtocol: Interface for validating seat existence
- BookingIdGeneratorProtocol: Interface for booking id generators
"""

from .directory import SeatDirectoryProtocol
from .identifiers import BookingIdGeneratorProtocol

__all__ = [
    "BookingIdGeneratorProtocol",
    "SeatDirectoryProtocol",
]
