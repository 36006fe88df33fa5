"""Error hierarchy for docfeed.

Error layers:
- DocFeedError: Base class for all docfeed errors
- DomainError: Invalid values and capabilities an implementation does not offer
- InfrastructureError: Feed endpoint failures and misconfiguration
- TransformError: A content transform stage failed

Only ExternalServiceError is treated as transient by the push client; every other
error propagates to the caller unchanged.
"""


class DocFeedError(Exception):
    """Base class for all docfeed errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(message)


# =============================================================================
# Domain Errors
# =============================================================================


class DomainError(DocFeedError):
    """Base class for domain errors."""


class ValidationError(DomainError):
    """Input validation failed."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field


class UnsupportedOperationError(DomainError, NotImplementedError):
    """The implementation does not offer this capability. Retrying will not help."""


# =============================================================================
# Infrastructure Errors
# =============================================================================


class InfrastructureError(DocFeedError):
    """Base class for infrastructure/system errors."""


class ExternalServiceError(InfrastructureError):
    """The feed endpoint is unavailable or rejected a feed."""


class ConfigurationError(InfrastructureError):
    """System misconfiguration detected."""


# =============================================================================
# Transform Errors
# =============================================================================


class TransformError(DocFeedError):
    """A transform pipeline stage failed."""

    def __init__(self, stage: str, message: str) -> None:
        super().__init__(f"Transform stage '{stage}' failed: {message}", code="TRANSFORM_ERROR")
        self.stage = stage
