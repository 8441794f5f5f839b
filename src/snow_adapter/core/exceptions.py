"""Exception hierarchy for snow-change-adapter."""


class ITSMError(Exception):
    """Base exception for all adapter errors."""

    def __init__(self, message: str, provider: str | None = None, details: dict | None = None):
        """Initialize ITSMError.

        Args:
            message: Error message
            provider: Provider name (e.g., 'servicenow')
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation."""
        if self.provider:
            return f"[{self.provider}] {self.message}"
        return self.message


class ConfigurationError(ITSMError):
    """Required adapter property or credential is missing."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        provider: str | None = None,
        details: dict | None = None,
    ):
        """Initialize ConfigurationError.

        Args:
            message: Error message
            field: Property that failed validation (e.g., 'auth.username')
            provider: Provider name
            details: Additional error details
        """
        super().__init__(message, provider, details)
        self.field = field


class AuthenticationError(ITSMError):
    """Authentication failed."""


class NotFoundError(ITSMError):
    """Resource not found."""

    def __init__(
        self,
        message: str,
        resource_type: str | None = None,
        resource_id: str | None = None,
        provider: str | None = None,
        details: dict | None = None,
    ):
        """Initialize NotFoundError.

        Args:
            message: Error message
            resource_type: Type of resource (e.g., 'table')
            resource_id: Resource identifier
            provider: Provider name
            details: Additional error details
        """
        super().__init__(message, provider, details)
        self.resource_type = resource_type
        self.resource_id = resource_id


class ITSMConnectionError(ITSMError):
    """Connection to provider failed."""


class ProviderError(ITSMError):
    """Provider-specific error."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        provider: str | None = None,
        details: dict | None = None,
    ):
        """Initialize ProviderError.

        Args:
            message: Error message
            status_code: HTTP status code
            provider: Provider name
            details: Additional error details
        """
        super().__init__(message, provider, details)
        self.status_code = status_code


class InstanceHibernatingError(ITSMError):
    """Instance is reachable but hibernating."""


class MalformedResponseError(ITSMError):
    """Response body is not the expected JSON shape."""


class EmptyResponseError(MalformedResponseError):
    """Response carried no body."""
