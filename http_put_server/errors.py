"""Error taxonomy for the file server.

Every failure during path resolution or transfer is raised as a
``TransferError`` at the failure site and rendered once, at the request
boundary (see ``app.responses.render_error``).
"""
from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    BAD_REQUEST = (400, "Bad request")
    FORBIDDEN = (403, "Forbidden request")
    NOT_FOUND = (404, "Not found")
    DIRECTORY_CREATE_FAILED = (501, "Could not create file")
    TEMP_FILE_FAILED = (503, "Could not create temporary file")
    OPEN_FAILED = (504, "Could not create file")
    WRITE_FAILED = (505, "Could not write to file")
    DELETE_PREVIOUS_FAILED = (506, "Could not remove previous file")
    RENAME_FAILED = (507, "Could not finish writing file")
    INVALID_METHOD = (501, "Invalid HTTP method")
    INITIALIZATION_FAILED = (501, "Could not init server storage")

    def __init__(self, code: int, message: str):
        self.code = code
        self.message = message


class TransferError(Exception):
    """A failed request, tagged with its kind.

    Args:
        kind: What went wrong; determines the status code
        detail: Optional diagnostic text shown below the message
        message: Overrides the kind's default message
    """

    def __init__(self, kind: ErrorKind, detail: Optional[str] = None, message: Optional[str] = None):
        self.kind = kind
        self.code = kind.code
        self.message = message or kind.message
        self.detail = detail
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"TransferError({self.kind.name}, code={self.code}, detail={self.detail!r})"


class InitializationError(TransferError):
    """Raised when the server cannot start on the configured storage."""

    def __init__(self, detail: Optional[str] = None):
        super().__init__(ErrorKind.INITIALIZATION_FAILED, detail=detail)
