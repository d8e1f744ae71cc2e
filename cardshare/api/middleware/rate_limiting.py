import time
from typing import Dict, Iterable, List

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

MUTATING_METHODS = {"POST", "PUT", "DELETE"}


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, calls: int, period: int, path_prefixes: Iterable[str] = ("/cards", "/upload")):
        super().__init__(app)
        self.calls = calls
        self.period = period
        self.path_prefixes = tuple(path_prefixes)
        self.requests: Dict[str, List[float]] = {}

    async def dispatch(self, request: Request, call_next):
        # Only writes are limited; share views and listings are not
        if request.method in MUTATING_METHODS and request.url.path.startswith(self.path_prefixes):
            client_ip = request.headers.get("X-Forwarded-For")
            if client_ip is None:
                client_ip = request.client.host if request.client else "127.0.0.1"

            current_time = time.time()
            self.prune(current_time)

            recent = self.requests.setdefault(client_ip, [])
            if len(recent) >= self.calls:
                return JSONResponse(
                    status_code=429,
                    content={"detail": {"message": "Rate limit exceeded", "error_code": "RATE_LIMITED"}},
                )

            recent.append(current_time)

        response = await call_next(request)
        return response

    def prune(self, current_time: float) -> None:
        """Drop timestamps outside the window and forget clients left with none."""
        cutoff = current_time - self.period
        for client_ip in list(self.requests):
            recent = [t for t in self.requests[client_ip] if t > cutoff]
            if recent:
                self.requests[client_ip] = recent
            else:
                del self.requests[client_ip]
