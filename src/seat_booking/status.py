# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
HTTP status mapping for booking operations.

A presentation layer (REST controller, RPC gateway) calls one engine
operation and then asks this module which status to answer with. The mapping
keys on ``BookingError.kind``, never on message text.

Example:
    try:
        ticket = await engine.book(seat, holder, price)
        status = success_status(Operation.BOOK)
    except Exception as e:
        status = failure_status(Operation.BOOK, e)
"""

from enum import Enum
from http import HTTPStatus

from .exceptions import BookingError, FailureKind


class Operation(Enum):
    """Externally addressable booking operations."""

    BOOK = "book"
    PAY_BY_SEAT = "pay_by_seat"
    PAY_BY_ID = "pay_by_id"
    CANCEL_BY_SEAT = "cancel_by_seat"
    CANCEL_BY_ID = "cancel_by_id"
    EXTEND_BY_SEAT = "extend_by_seat"
    EXTEND_BY_ID = "extend_by_id"
    DETAILS_BY_SEAT = "details_by_seat"
    DETAILS_BY_ID = "details_by_id"


_SUCCESS: dict[Operation, HTTPStatus] = {
    Operation.BOOK: HTTPStatus.CREATED,
    Operation.PAY_BY_SEAT: HTTPStatus.OK,
    Operation.PAY_BY_ID: HTTPStatus.OK,
    Operation.CANCEL_BY_SEAT: HTTPStatus.NO_CONTENT,
    Operation.CANCEL_BY_ID: HTTPStatus.NO_CONTENT,
    Operation.EXTEND_BY_SEAT: HTTPStatus.NO_CONTENT,
    Operation.EXTEND_BY_ID: HTTPStatus.NO_CONTENT,
    Operation.DETAILS_BY_SEAT: HTTPStatus.OK,
    Operation.DETAILS_BY_ID: HTTPStatus.OK,
}

_SEAT_LOOKUP_FAILURES: dict[FailureKind, HTTPStatus] = {
    FailureKind.NOT_FOUND: HTTPStatus.NOT_FOUND,
    FailureKind.UNKNOWN_SEAT: HTTPStatus.NOT_FOUND,
}

_FAILURES: dict[Operation, dict[FailureKind, HTTPStatus]] = {
    Operation.BOOK: {
        FailureKind.SEAT_UNAVAILABLE: HTTPStatus.CONFLICT,
        FailureKind.UNKNOWN_SEAT: HTTPStatus.FORBIDDEN,
        FailureKind.INVALID_PRICE: HTTPStatus.BAD_REQUEST,
    },
    Operation.PAY_BY_SEAT: {
        **_SEAT_LOOKUP_FAILURES,
        FailureKind.INVALID_STATE: HTTPStatus.CONFLICT,
        FailureKind.AMOUNT_MISMATCH: HTTPStatus.GONE,
        FailureKind.EXPIRED: HTTPStatus.GONE,
    },
    Operation.PAY_BY_ID: {
        FailureKind.NOT_FOUND: HTTPStatus.NOT_FOUND,
        FailureKind.INVALID_STATE: HTTPStatus.CONFLICT,
        FailureKind.AMOUNT_MISMATCH: HTTPStatus.GONE,
        FailureKind.EXPIRED: HTTPStatus.GONE,
    },
    Operation.CANCEL_BY_SEAT: {
        **_SEAT_LOOKUP_FAILURES,
        FailureKind.INVALID_STATE: HTTPStatus.CONFLICT,
    },
    Operation.CANCEL_BY_ID: {
        FailureKind.NOT_FOUND: HTTPStatus.NOT_FOUND,
        FailureKind.INVALID_STATE: HTTPStatus.CONFLICT,
    },
    Operation.EXTEND_BY_SEAT: {
        **_SEAT_LOOKUP_FAILURES,
        FailureKind.EXPIRED: HTTPStatus.GONE,
        FailureKind.INVALID_STATE: HTTPStatus.CONFLICT,
    },
    Operation.EXTEND_BY_ID: {
        FailureKind.NOT_FOUND: HTTPStatus.NOT_FOUND,
        FailureKind.EXPIRED: HTTPStatus.GONE,
        FailureKind.INVALID_STATE: HTTPStatus.CONFLICT,
    },
    Operation.DETAILS_BY_SEAT: dict(_SEAT_LOOKUP_FAILURES),
    Operation.DETAILS_BY_ID: {
        FailureKind.NOT_FOUND: HTTPStatus.NOT_FOUND,
    },
}


def success_status(operation: Operation) -> HTTPStatus:
    """Status for a successful operation."""
    return _SUCCESS[operation]


def failure_status(operation: Operation, error: BaseException) -> HTTPStatus:
    """
    Status for a failed operation.

    Args:
        operation: The operation that failed
        error: The exception it raised

    Returns:
        The mapped status. Errors that are not BookingError instances, and
        kinds with no entry for the operation (id generation, store and
        configuration failures among them), map to 500.
    """
    if not isinstance(error, BookingError):
        return HTTPStatus.INTERNAL_SERVER_ERROR
    return _FAILURES[operation].get(error.kind, HTTPStatus.INTERNAL_SERVER_ERROR)


__all__ = ["Operation", "failure_status", "success_status"]
