"""Error definitions for chunkfs.

Tracking store errors (``InvalidArgument``, ``NotFound``, ``AlreadyExists``)
are raised by every tracker backend and surface unchanged through the
orchestrator. Object-store failures are wrapped once, in
``StorageOperationError``, tagged with the name of the operation that
produced them.
"""


class ChunkFSError(Exception):
    """Base class for all chunkfs errors.

    Attributes:
        code: A short machine-readable error code (e.g. "NotFound").
        message: Human-readable error description.
    """

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


# -- Tracking store errors ----------------------------------------------------


class InvalidArgument(ChunkFSError):
    """A caller supplied an invalid argument. Never worth retrying."""

    def __init__(self, message: str = "invalid argument") -> None:
        super().__init__(code="InvalidArgument", message=message)


class NotFound(ChunkFSError):
    """No active upload record exists for the key."""

    def __init__(self, key: str = "") -> None:
        super().__init__(code="NotFound", message="not found")
        self.key = key


class AlreadyExists(ChunkFSError):
    """An upload record already exists for the key."""

    def __init__(self, key: str = "") -> None:
        super().__init__(code="AlreadyExists", message="already exists")
        self.key = key


class EmptyUploadKey(InvalidArgument):
    def __init__(self) -> None:
        super().__init__("file uploading key cannot be empty")


class InvalidTotalParts(InvalidArgument):
    def __init__(self) -> None:
        super().__init__("total parts must be greater than zero and not more than 10000")


# -- Object store / orchestrator validation ----------------------------------


class MissingUploadID(InvalidArgument):
    def __init__(self) -> None:
        super().__init__("upload id is missing or empty")


class NoCompletedParts(InvalidArgument):
    def __init__(self) -> None:
        super().__init__("no completed parts, nothing to upload")


class InvalidPartNumber(InvalidArgument):
    def __init__(self, part_number: int = 0, total_parts: int = 0) -> None:
        super().__init__(
            f"part number {part_number} must be between 1 and total parts ({total_parts})"
        )
        self.part_number = part_number
        self.total_parts = total_parts


class FileEmpty(InvalidArgument):
    def __init__(self) -> None:
        super().__init__("file is empty")


class IncompleteUpload(ChunkFSError):
    """Completion was requested before every declared part was received."""

    def __init__(self, key: str, completed_parts: int, total_parts: int) -> None:
        super().__init__(
            code="IncompleteUpload",
            message=(
                f"upload {key!r} has {completed_parts} of {total_parts} parts"
            ),
        )
        self.key = key
        self.completed_parts = completed_parts
        self.total_parts = total_parts


# -- Object store failures ----------------------------------------------------


class StorageOperationError(ChunkFSError):
    """An object-store call failed.

    The underlying exception is chained via ``raise ... from``.

    Attributes:
        operation: Name of the failed operation (e.g. "storage.upload_part").
    """

    def __init__(self, operation: str, message: str = "object store request failed") -> None:
        super().__init__(code="StorageError", message=f"{operation}: {message}")
        self.operation = operation
