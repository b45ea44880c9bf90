# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Liveness and deadline policies for seat holds."""

from .expiry import ExpiryPolicy

__all__ = ["ExpiryPolicy"]
