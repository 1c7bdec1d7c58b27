"""CORS headers for the chat API.

The allowed origin is echoed back when the request's ``Origin`` is in the
allow-list; any other (or missing) origin gets the first configured one,
so the browser rejects the response instead of the server.
"""

ALLOW_METHODS = "GET, POST, OPTIONS"
ALLOW_HEADERS = "Content-Type, Authorization, X-User-Id, X-Requested-With, Accept, Origin"
MAX_AGE = "86400"


def resolve_origin(origin: str | None, allowed: list[str]) -> str:
    if origin and origin in allowed:
        return origin
    return allowed[0] if allowed else "*"


def cors_headers(origin: str | None, allowed: list[str]) -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": resolve_origin(origin, allowed),
        "Access-Control-Allow-Methods": ALLOW_METHODS,
        "Access-Control-Allow-Headers": ALLOW_HEADERS,
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Max-Age": MAX_AGE,
        "Vary": "Origin",
    }
