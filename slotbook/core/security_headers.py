"""
Security and CORS headers middleware.

Adds to every response:
- Cache-Control: responses carry live availability and must not be cached
- Access-Control-Allow-*: the widget is embedded from any origin
- X-Content-Type-Options, X-Frame-Options, X-XSS-Protection
- Strict-Transport-Security
"""
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "Cache-Control": "no-store, max-age=0",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PATCH, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def with_security_headers(response: Response) -> Response:
    """Set the security and CORS headers on a response in place."""
    for name, value in SECURITY_HEADERS.items():
        response.headers[name] = value
    return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        return with_security_headers(response)
