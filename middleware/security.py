"""
Security middleware for rate limiting, CORS, and response headers.
"""
from fastapi import Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
import time
from collections import defaultdict
from typing import Dict, List, Optional

from core.logger import logger


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-IP rate limiting (in-process, sliding window)."""

    def __init__(self, app, requests_per_minute: int = 120, requests_per_hour: int = 3000):
        """
        Initialize rate limiting middleware.

        Args:
            app: FastAPI application
            requests_per_minute: Max requests per minute per IP
            requests_per_hour: Max requests per hour per IP
        """
        super().__init__(app)
        self.requests_per_minute = requests_per_minute
        self.requests_per_hour = requests_per_hour
        self.minute_requests: Dict[str, list] = defaultdict(list)
        self.hour_requests: Dict[str, list] = defaultdict(list)
        self.cleanup_interval = 300  # Clean up old entries every 5 minutes
        self.last_cleanup = time.time()

    async def dispatch(self, request: Request, call_next):
        """Process request with rate limiting."""
        client_ip = request.client.host if request.client else "unknown"

        current_time = time.time()
        if current_time - self.last_cleanup > self.cleanup_interval:
            self._cleanup_old_entries(current_time)
            self.last_cleanup = current_time

        if not self._check_rate_limit(client_ip, current_time):
            logger.warning(f"Rate limit exceeded for IP: {client_ip}")
            return JSONResponse(
                {"error": "Rate limit exceeded. Please try again later."},
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            )

        return await call_next(request)

    def _check_rate_limit(self, client_ip: str, current_time: float) -> bool:
        """Check if request is within rate limits."""
        self.minute_requests[client_ip] = [
            t for t in self.minute_requests[client_ip]
            if current_time - t < 60
        ]
        self.hour_requests[client_ip] = [
            t for t in self.hour_requests[client_ip]
            if current_time - t < 3600
        ]

        if len(self.minute_requests[client_ip]) >= self.requests_per_minute:
            return False
        if len(self.hour_requests[client_ip]) >= self.requests_per_hour:
            return False

        self.minute_requests[client_ip].append(current_time)
        self.hour_requests[client_ip].append(current_time)
        return True

    def _cleanup_old_entries(self, current_time: float):
        """Clean up old rate limit entries."""
        for ip in list(self.minute_requests.keys()):
            self.minute_requests[ip] = [
                t for t in self.minute_requests[ip]
                if current_time - t < 60
            ]
            if not self.minute_requests[ip]:
                del self.minute_requests[ip]

        for ip in list(self.hour_requests.keys()):
            self.hour_requests[ip] = [
                t for t in self.hour_requests[ip]
                if current_time - t < 3600
            ]
            if not self.hour_requests[ip]:
                del self.hour_requests[ip]


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        # SAMEORIGIN: the site embeds /api/download in its own iframes (PDF viewer)
        response.headers["X-Frame-Options"] = "SAMEORIGIN"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        return response


def setup_cors(app, allowed_origins: List[str], allowed_methods: Optional[List[str]] = None):
    """
    Setup CORS middleware.

    Args:
        app: FastAPI application
        allowed_origins: List of allowed origins
        allowed_methods: List of allowed HTTP methods
    """
    if allowed_methods is None:
        allowed_methods = ["GET", "POST", "PUT", "OPTIONS", "HEAD"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=allowed_methods,
        allow_headers=["*"],
    )


def setup_trusted_hosts(app, allowed_hosts: List[str]):
    """
    Setup trusted hosts middleware.

    Args:
        app: FastAPI application
        allowed_hosts: List of allowed hostnames
    """
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=allowed_hosts
    )
