"""Domain and provider error taxonomy"""
from typing import Any, Dict, List, Optional


class DomainError(Exception):
    """Base class for domain lifecycle errors"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(DomainError):
    """Unknown domain, record or alert"""


class ConflictError(DomainError):
    """Hostname already registered"""


class NotProvisionedError(DomainError):
    """Action requires a completed provider registration"""


class ProviderError(DomainError):
    """
    Error returned by the DNS/CDN provider.

    The client never retries; callers decide based on `retryable`.
    """

    retryable = False

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        errors: Optional[List[Dict[str, Any]]] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.errors = errors or []


class ProviderUnauthenticated(ProviderError):
    """Token missing, invalid or lacking permissions"""


class ProviderRateLimited(ProviderError):
    retryable = True


class ProviderNotFound(ProviderError):
    """Hostname, zone or record unknown to the provider"""


class ProviderUnavailable(ProviderError):
    """Provider down, timed out or unreachable"""

    retryable = True


class ProviderRejected(ProviderError):
    """Permanent rejection, e.g. invalid hostname"""


class ProviderUnknownError(ProviderError):
    pass
