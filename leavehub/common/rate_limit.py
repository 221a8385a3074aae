"""Rate limiting using slowapi.

A module-level Limiter that routers import for per-endpoint limits; wired
into the FastAPI app in main.py.
"""

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address


def client_key(request: Request) -> str:
    """Bucket by bearer token when present, else by client address."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:]
    return get_remote_address(request)


limiter = Limiter(key_func=client_key)
