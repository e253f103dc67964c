class StreamshareError(Exception):
    """Base error for StreamShare."""


class RecoverableError(StreamshareError):
    """Indicates the operation can be retried safely."""


class PermanentError(StreamshareError):
    """Indicates the operation should not be retried."""


class AuthError(StreamshareError):
    """Caller identity missing or invalid."""


class ValidationError(StreamshareError):
    """Input validation failure."""


class NotFoundError(StreamshareError):
    """Requested record does not exist."""


class InternalError(StreamshareError):
    """Backing service or transcode failure."""
