"""Exception taxonomy for order lookups and chat replies."""
from typing import Any, List, Optional


class OrderStatusError(Exception):
    """Base exception for the order status service"""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class BackendError(OrderStatusError):
    """Commerce backend lookup failed"""
    pass


class BackendConfigurationError(BackendError):
    """Shopify domain or access token missing"""
    pass


class BackendTransportError(BackendError):
    """Non-success HTTP status, or the request never completed"""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message, original_error=original_error)
        self.status_code = status_code


class BackendQueryError(BackendError):
    """GraphQL response carried error entries"""

    def __init__(self, message: str, errors: Optional[List[Any]] = None):
        super().__init__(message)
        self.errors = errors or []


class SlackAPIError(OrderStatusError):
    """Slack Web API call failed"""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message, original_error=original_error)
        self.error_code = error_code
        self.status_code = status_code
