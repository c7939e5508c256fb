"""
Exception handling and request logging middleware for the TalentRank API
"""
import time
import traceback
import uuid
from datetime import datetime, timezone
from typing import Any

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from starlette.middleware.base import BaseHTTPMiddleware

from talentrank.utils.exceptions import TalentRankBaseException, map_to_http_exception
from talentrank.utils.logging_config import get_logger

logger = get_logger(__name__)


class ExceptionHandlerMiddleware(BaseHTTPMiddleware):
    """Turns domain exceptions into JSON error responses tagged with a request id"""

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        context = {"request_id": request_id, "method": request.method, "path": request.url.path}

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response

        except TalentRankBaseException as exc:
            http_exc = map_to_http_exception(exc)
            log = logger.warning if http_exc.status_code < 500 else logger.error
            log(
                f"{exc.__class__.__name__} in {request.method} {request.url.path}: {exc.message}",
                extra={**context, "error_code": exc.error_code, "details": exc.details},
            )
            return self._error_response(request_id, http_exc.status_code, http_exc.detail)

        except PydanticValidationError as exc:
            logger.warning(f"Data validation error in {request.method} {request.url.path}: {exc}", extra=context)
            return self._error_response(request_id, 400, {
                "error": "VALIDATION_ERROR",
                "message": "Invalid data format or values",
                "validation_errors": exc.errors(include_url=False),
            })

        except HTTPException as exc:
            logger.warning(f"HTTP exception in {request.method} {request.url.path}: {exc.detail}", extra=context)
            return self._error_response(request_id, exc.status_code, exc.detail)

        except Exception as exc:
            logger.error(
                f"Unhandled exception in {request.method} {request.url.path}: {exc}",
                extra={**context, "exception_type": exc.__class__.__name__, "traceback": traceback.format_exc()},
                exc_info=True,
            )
            return self._error_response(request_id, 500, {
                "error": "INTERNAL_ERROR",
                "message": "An unexpected error occurred. Please try again later.",
            })

    @staticmethod
    def _error_response(request_id: str, status_code: int, detail: Any) -> JSONResponse:
        if isinstance(detail, str):
            detail = {"message": detail}
        elif not isinstance(detail, dict):
            detail = {"message": str(detail)}

        content = {
            "success": False,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "request_id": request_id,
            "status_code": status_code,
            **detail,
        }
        return JSONResponse(status_code=status_code, content=content, headers={"X-Request-ID": request_id})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One log line per request with its outcome"""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        request_id = getattr(request.state, "request_id", None)

        logger.debug(
            f"Request: {request.method} {request.url.path}",
            extra={
                "request_id": request_id,
                "content_length": request.headers.get("content-length"),
                "client_ip": request.client.host if request.client else "unknown",
            },
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                f"Request failed: {request.method} {request.url.path} after {time.time() - start_time:.3f}s",
                extra={"request_id": request_id, "exception": str(exc)},
            )
            raise

        logger.info(
            f"Response: {request.method} {request.url.path} - {response.status_code} "
            f"in {time.time() - start_time:.3f}s",
            extra={"request_id": request_id, "status_code": response.status_code},
        )
        return response


class PerformanceMiddleware(BaseHTTPMiddleware):
    """Flags slow requests; ranking a large pool can take a while"""

    def __init__(self, app, slow_request_threshold: float = 2.0):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        processing_time = time.time() - start_time

        if processing_time > self.slow_request_threshold:
            logger.warning(
                f"Slow request: {request.method} {request.url.path} took {processing_time:.3f}s",
                extra={
                    "request_id": getattr(request.state, "request_id", None),
                    "threshold": self.slow_request_threshold,
                },
            )

        response.headers["X-Processing-Time"] = f"{processing_time:.3f}"
        return response
