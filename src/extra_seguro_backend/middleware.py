import logging

from fastapi import HTTPException
from fastapi.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)

BODY_TOO_LARGE_MESSAGE = "Request body too large"


class BodySizeLimitMiddleware:
    """
    Rejects requests whose body is larger than ``max_body_bytes``.

    A declared Content-Length over the limit is refused before anything is
    read. Bodies without one (chunked uploads) are counted as they stream in
    and the read fails with a 413 ``HTTPException`` once the limit is passed.
    Both the JSON and multipart routes share the same limit.
    """

    def __init__(self, app: ASGIApp, max_body_bytes: int):
        self.app = app
        self.max_body_bytes = max_body_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        path = scope.get("path", "")
        headers = dict(scope.get("headers") or [])
        declared = headers.get(b"content-length")
        if declared is not None:
            try:
                length = int(declared)
            except ValueError:
                response = JSONResponse({"error": "Invalid Content-Length header"}, status_code=400)
                await response(scope, receive, send)
                return
            if length > self.max_body_bytes:
                logger.warning(f"Rejected {path}: body of {length} bytes exceeds {self.max_body_bytes}")
                response = JSONResponse({"error": BODY_TOO_LARGE_MESSAGE}, status_code=413)
                await response(scope, receive, send)
                return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    logger.warning(f"Rejected {path}: streamed body exceeds {self.max_body_bytes} bytes")
                    raise HTTPException(status_code=413, detail=BODY_TOO_LARGE_MESSAGE)
            return message

        await self.app(scope, limited_receive, send)
