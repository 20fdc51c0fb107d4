"""X-Request-ID propagation.

Incoming ids up to 64 characters are trusted and echoed; anything else is
replaced by a fresh UUID. The id lands in every log line through
lotevivo.core.logging.add_correlation_id and in error bodies via the handlers.
"""

import uuid

from asgi_correlation_id import CorrelationIdMiddleware
from asgi_correlation_id.context import correlation_id
from fastapi import FastAPI

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 64


def _accept_request_id(value: str) -> bool:
    return 0 < len(value) <= MAX_REQUEST_ID_LENGTH and value.isprintable()


def setup_correlation_middleware(app: FastAPI) -> None:
    app.add_middleware(
        CorrelationIdMiddleware,
        header_name=REQUEST_ID_HEADER,
        update_request_header=True,
        generator=lambda: uuid.uuid4().hex,
        validator=_accept_request_id,
        transformer=str.strip,
    )


def get_correlation_id() -> str | None:
    return correlation_id.get(None)
