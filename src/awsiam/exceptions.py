class AwsIamError(Exception):
    """Base exception for this library."""


class CredentialsNotFound(AwsIamError):
    """Raised when AWS credentials cannot be resolved."""


class ServiceUnavailable(AwsIamError):
    """Raised on transport-level failures (connection errors, bad endpoints)."""


class UnknownParameter(AwsIamError):
    """Raised when a parameter key has no matching request member."""

    def __init__(self, key: str, operation: str) -> None:
        super().__init__(f"{operation} has no member for parameter {key!r}")
        self.key = key
        self.operation = operation


class UnsupportedValue(AwsIamError):
    """Raised when a value has no mapping conversion."""
