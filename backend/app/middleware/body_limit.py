"""
NoteGist Backend — Request Body Size Middleware
=================================================

What:  Rejects requests whose declared body size exceeds MAX_BODY_BYTES.
Why:   A summarize body never needs more than ~80KB (20,000 chars of 4-byte
       UTF-8 plus JSON framing); anything far beyond that is refused before
       the body is read into memory.
How:   Compares the Content-Length header with the configured ceiling and
       answers 413 with the standard error shape.
When:  First in the middleware chain.
"""

import logging
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.config import settings
from app.exceptions import PayloadTooLargeError
from app.middleware.request_id import request_id_var
from app.services.error_classifier import classify

logger = logging.getLogger(__name__)


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """
    Content-Length based body ceiling.

    Configuration (from settings):
        max_body_bytes: Largest accepted body (default: 1MB)

    A missing or non-numeric Content-Length (chunked upload) is let through;
    the summarize route then counts the streamed bytes against the same
    ceiling (see routes/summarize.read_limited_body).
    """

    def __init__(self, app, max_body_bytes: Optional[int] = None, **kwargs):
        super().__init__(app, **kwargs)
        self.max_body_bytes = max_body_bytes or settings.max_body_bytes

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        declared = request.headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > self.max_body_bytes:
            logger.warning(
                "Rejected %s %s: body of %s bytes exceeds %d",
                request.method,
                request.url.path,
                declared,
                self.max_body_bytes,
            )
            error = classify(PayloadTooLargeError(limit=self.max_body_bytes, received=int(declared)))
            return JSONResponse(
                status_code=error.http_status,
                content=error.to_response(request_id_var.get("")),
            )

        return await call_next(request)
