from .request_id import RequestIDMiddleware, get_request_id
from .structured_logging import StructuredLoggingMiddleware

__all__ = [
    "RequestIDMiddleware",
    "StructuredLoggingMiddleware",
    "get_request_id",
]
