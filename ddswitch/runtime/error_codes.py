from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    """
    Stable error codes carried by exceptions and `operation_failed` events.

    The CLI maps them to exit codes; the event log stores the string value.
    """

    READ_FAILED = "read_failed"
    PARSE_FAILED = "parse_failed"
    WRITE_FAILED = "write_failed"

    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    BAD_REQUEST = "bad_request"
    UNKNOWN = "unknown"

    EVENT_LOG_APPEND_FAILED = "event_log_append_failed"
