from __future__ import annotations

from pathlib import Path

from .error_codes import ErrorCode


class SwitchError(RuntimeError):
    code: ErrorCode = ErrorCode.UNKNOWN

    def __init__(self, message: str, *, path: Path | str | None = None) -> None:
        super().__init__(message)
        self.path = Path(path) if path is not None else None


class ReadError(SwitchError):
    code = ErrorCode.READ_FAILED


class ParseError(SwitchError):
    code = ErrorCode.PARSE_FAILED


class WriteError(SwitchError):
    code = ErrorCode.WRITE_FAILED


class ProfileNotFoundError(ReadError):
    code = ErrorCode.NOT_FOUND


class ProfileExistsError(SwitchError):
    code = ErrorCode.CONFLICT


class InvalidProfileNameError(SwitchError):
    code = ErrorCode.BAD_REQUEST


def error_code_of(exc: BaseException) -> ErrorCode:
    if isinstance(exc, SwitchError):
        return exc.code
    if isinstance(exc, FileNotFoundError):
        return ErrorCode.NOT_FOUND
    if isinstance(exc, FileExistsError):
        return ErrorCode.CONFLICT
    return ErrorCode.UNKNOWN
