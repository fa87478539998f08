"""
Response middlewares: request correlation and standardized response wrapping.
"""

import json
from typing import Any

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from src.core.logging import clear_request_id, generate_request_id, get_logger, set_request_id

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
_SKIPPED_PATHS = ("/openapi.json", "/docs", "/redoc")


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Tags every log line of a request with one request id.

    A client supplied ``X-Request-ID`` is reused, otherwise a new one is
    generated. The id is echoed back on the response.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or generate_request_id()
        set_request_id(request_id)
        try:
            response = await call_next(request)
        finally:
            clear_request_id()
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class StandardResponseMiddleware(BaseHTTPMiddleware):
    """
    Middleware that wraps all successful JSON responses as ``{"data": ...}``.

    Error bodies already carry a ``status`` field and pass through unchanged.
    """

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        if request.url.path in _SKIPPED_PATHS:
            return response

        # Only process successful JSON responses (200-299 status codes)
        if not (200 <= response.status_code < 300):
            return response

        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type:
            return response

        body = b""
        try:
            async for chunk in response.body_iterator:
                body += chunk

            if not body:
                return self._replay(response, body)

            data = json.loads(body.decode())

            if isinstance(data, dict) and "status" in data:
                headers = {k: v for k, v in response.headers.items()
                           if k.lower() not in ["content-length", "transfer-encoding"]}
                return JSONResponse(
                    content=data,
                    status_code=response.status_code,
                    headers=headers,
                )

            new_response = JSONResponse(
                content=self._wrap_response(data),
                status_code=response.status_code,
            )

            # JSONResponse sets its own Content-Length and Content-Type
            for key, value in response.headers.items():
                if key.lower() in ["content-length", "content-type", "transfer-encoding"]:
                    continue
                new_response.headers.append(key, value)

            return new_response

        except Exception as e:
            logger.error(
                "response_middleware_error",
                error=str(e),
                path=request.url.path,
            )
            return self._replay(response, body)

    def _wrap_response(self, data: Any) -> dict:
        return {"data": data}

    @staticmethod
    def _replay(response: Response, body: bytes) -> Response:
        """Rebuild a response whose body iterator has already been drained."""
        headers = {k: v for k, v in response.headers.items()
                   if k.lower() not in ["content-length", "transfer-encoding"]}
        return Response(content=body, status_code=response.status_code, headers=headers)
