"""Domain exceptions raised by the chunk assembler and storage layer."""


class ChunkAssemblyError(Exception):
    """Base class for chunked upload errors."""


class InvalidChunkError(ChunkAssemblyError, ValueError):
    """A chunk submission violates the submission preconditions."""


class ChunkIndexError(InvalidChunkError):
    """A chunk index falls outside the session's declared range."""


class ChunkTotalMismatchError(InvalidChunkError):
    """A chunk declares a different total than the session it belongs to."""


class UploadCapacityError(ChunkAssemblyError):
    """Accepting the chunk would exceed the buffered bytes or session cap."""


class ChunkTooLargeError(ChunkAssemblyError):
    """A single chunk is larger than the whole chunk buffer and can never be accepted."""


class StorageTimeoutError(Exception):
    """A storage call did not finish within the configured timeout."""
