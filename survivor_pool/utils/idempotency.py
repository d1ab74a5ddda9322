# survivor_pool/utils/idempotency.py
import hashlib
import inspect
from functools import wraps

from fastapi import HTTPException, Request

# Simple in-memory store (per-process). Fine for a single app instance.
_idempotency_store = {}


async def _request_fingerprint(request: Request) -> str:
    """
    Build a stable fingerprint for this request using:
      - HTTP method
      - URL path
      - Query string
      - acting user (X-User-Id)
      - SHA-1 of the raw body (if any)
    Starlette caches request.body(), so reading it here is safe.
    """
    method = request.method.upper()
    path = request.url.path
    query = request.url.query or ""
    actor = request.headers.get("X-User-Id") or ""
    body_bytes = await request.body()
    body_hash = hashlib.sha1(body_bytes or b"").hexdigest()
    return f"{method}|{path}|{query}|{actor}|{body_hash}"


def with_idempotency(key_prefix: str):
    """
    Decorator for FastAPI/Starlette endpoints whose effect must not repeat
    on client retries (e.g. "add a strike").

    When the caller sends an 'Idempotency-Key' header, the first response
    for (key, request fingerprint) is cached and replayed for repeats.
    Without the header the endpoint simply runs.
    """

    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            request: Request | None = None
            for a in args:
                if isinstance(a, Request):
                    request = a
                    break
            if request is None:
                request = kwargs.get("request")
            if request is None:
                raise HTTPException(status_code=500, detail="Request object not found")

            header_key = request.headers.get("Idempotency-Key")
            cache_key = None
            if header_key:
                fp = await _request_fingerprint(request)
                cache_key = f"{key_prefix}::{header_key}::{fp}"
                if cache_key in _idempotency_store:
                    return _idempotency_store[cache_key]

            if inspect.iscoroutinefunction(func):
                result = await func(*args, **kwargs)
            else:
                result = func(*args, **kwargs)

            if cache_key is not None:
                _idempotency_store[cache_key] = result
            return result

        return wrapper

    return decorator


def clear_idempotency_cache() -> None:
    _idempotency_store.clear()
