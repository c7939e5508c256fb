"""
Custom Exception Classes for the TalentRank API
"""
import functools
import time
from typing import Dict, Any
from fastapi import HTTPException


class TalentRankBaseException(Exception):
    """Base exception for the TalentRank API"""

    def __init__(
        self,
        message: str,
        error_code: str = None,
        details: Dict[str, Any] = None,
        cause: Exception = None
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.cause = cause
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/response"""
        result = {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }
        if self.cause:
            result["cause"] = str(self.cause)
        return result


class ValidationError(TalentRankBaseException):
    """Raised when required fields are missing or malformed"""

    def __init__(self, message: str, field: str = None, value: Any = None, **kwargs):
        details = kwargs.pop('details', {})
        if field:
            details['field'] = field
        if value is not None:
            details['invalid_value'] = str(value)
        super().__init__(message, error_code="VALIDATION_ERROR", details=details, **kwargs)


class NotFoundError(TalentRankBaseException):
    """Raised when a candidate, posting or position does not exist"""

    def __init__(self, message: str, resource: str = None, key: Any = None, **kwargs):
        details = kwargs.pop('details', {})
        if resource:
            details['resource'] = resource
        if key is not None:
            details['key'] = str(key)
        super().__init__(message, error_code="NOT_FOUND", details=details, **kwargs)


class ConflictError(TalentRankBaseException):
    """Raised when a record already exists under the same key"""

    def __init__(self, message: str, resource: str = None, key: Any = None, **kwargs):
        details = kwargs.pop('details', {})
        if resource:
            details['resource'] = resource
        if key is not None:
            details['key'] = str(key)
        super().__init__(message, error_code="CONFLICT", details=details, **kwargs)


class StorageError(TalentRankBaseException):
    """Raised when reading or writing a store fails"""

    def __init__(self, message: str, operation: str = None, store: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if operation:
            details['operation'] = operation
        if store:
            details['store'] = store
        super().__init__(message, error_code="STORAGE_ERROR", details=details, **kwargs)


class ConfigurationError(TalentRankBaseException):
    """Raised when configuration is invalid or missing"""

    def __init__(self, message: str, config_key: str = None, config_value: Any = None, **kwargs):
        details = kwargs.pop('details', {})
        if config_key:
            details['config_key'] = config_key
        if config_value is not None:
            details['config_value'] = str(config_value)
        super().__init__(message, error_code="CONFIGURATION_ERROR", details=details, **kwargs)


class AuthenticationError(TalentRankBaseException):
    """Raised when credentials do not match.

    The message never says whether the identity or the password was wrong.
    """

    def __init__(self, message: str = "Invalid credentials", **kwargs):
        super().__init__(message, error_code="AUTHENTICATION_ERROR", **kwargs)


class RateLimitError(TalentRankBaseException):
    """Raised when an upstream service answers 429"""

    def __init__(self, message: str, service_name: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if service_name:
            details['service_name'] = service_name
        super().__init__(message, error_code="RATE_LIMIT_ERROR", details=details, **kwargs)


class ExternalServiceError(TalentRankBaseException):
    """Raised when external service calls fail"""

    def __init__(self, message: str, service_name: str = None, status_code: int = None, **kwargs):
        details = kwargs.pop('details', {})
        if service_name:
            details['service_name'] = service_name
        if status_code:
            details['status_code'] = status_code
        super().__init__(message, error_code="EXTERNAL_SERVICE_ERROR", details=details, **kwargs)


def map_to_http_exception(exc: TalentRankBaseException) -> HTTPException:
    """Map custom exceptions to HTTP exceptions"""

    status_code_mapping = {
        ValidationError: 400,
        AuthenticationError: 401,
        NotFoundError: 404,
        ConflictError: 409,
        RateLimitError: 429,
        ConfigurationError: 500,
        StorageError: 500,
        ExternalServiceError: 502,
    }

    status_code = status_code_mapping.get(type(exc), 500)

    detail = {
        "error": exc.to_dict(),
        "message": exc.message
    }

    return HTTPException(status_code=status_code, detail=detail)


def retry_on_rate_limit(
    max_retries: int = 2,
    backoff_seconds: float = 2.0,
    logger=None
):
    """Retry a call that raised RateLimitError with a fixed backoff.

    Only RateLimitError is retried; anything else propagates on the first
    attempt. After ``max_retries`` extra attempts the last RateLimitError is
    re-raised.
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            attempts = max_retries + 1
            for attempt in range(attempts):
                try:
                    return func(*args, **kwargs)
                except RateLimitError as e:
                    if attempt == attempts - 1:
                        if logger:
                            logger.error(f"All {attempts} attempts rate limited for {func.__name__}")
                        raise
                    if logger:
                        logger.warning(
                            f"Rate limit exceeded in {func.__name__}: {e.message}. "
                            f"Retrying attempt {attempt + 1}/{max_retries}..."
                        )
                    time.sleep(backoff_seconds)

        return wrapper

    return decorator
