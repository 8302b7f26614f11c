"""Security headers middleware.

Learn: Every response carries a fixed set of hardening headers. Bodies
here hold bearer tokens and people's phone numbers and addresses, so
nothing may be cached by browsers or shared proxies.

HSTS only makes sense over TLS. Behind a TLS-terminating proxy the app
itself sees plain http, so X-Forwarded-Proto is honored as well.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

BASE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Cache-Control": "no-store",
}

HSTS_VALUE = "max-age=31536000; includeSubDomains"


def is_https(request: Request) -> bool:
    forwarded = request.headers.get("X-Forwarded-Proto", "")
    return request.url.scheme == "https" or forwarded.split(",")[0].strip() == "https"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Stamp BASE_HEADERS (plus HSTS over TLS) onto every response."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        response.headers.update(BASE_HEADERS)
        if is_https(request):
            response.headers["Strict-Transport-Security"] = HSTS_VALUE
        return response
