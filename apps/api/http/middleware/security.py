"""Response headers for the JSON auth API."""

_API_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Strict-Transport-Security": "max-age=63072000; includeSubDomains",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Resource-Policy": "same-origin",
}

# Responses from these path prefixes may carry tokens and must not be cached
_NO_STORE_PREFIXES = ("/api/login", "/api/logout", "/api/me")


def add_security_headers(response, path: str = ""):
    """Add security headers for API responses."""

    for header, value in _API_HEADERS.items():
        response.headers.setdefault(header, value)

    if path.startswith(_NO_STORE_PREFIXES):
        response.headers["Cache-Control"] = "no-store"
        response.headers.setdefault("Pragma", "no-cache")

    return response


__all__ = ["add_security_headers"]
