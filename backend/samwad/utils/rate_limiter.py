"""
Simple memory-based rate limiter for the public grievance form.
One instance per application; keyed by client IP.
"""
import time
from fastapi import Request, HTTPException
from typing import Dict, Tuple


class RateLimiter:

    def __init__(self, requests: int, window: int):
        self.requests = requests
        self.window = window
        # In-memory storage: {ip: (window_start, count)}
        self._store: Dict[str, Tuple[float, int]] = {}

    def check(self, request: Request) -> bool:
        ip = request.client.host if request.client else "unknown"
        now = time.time()

        if ip not in self._store:
            self._store[ip] = (now, 1)
            return True

        last_ts, count = self._store[ip]

        # Reset window if expired
        if now - last_ts > self.window:
            self._store[ip] = (now, 1)
            return True

        if count >= self.requests:
            raise HTTPException(
                status_code=429,
                detail=f"Rate limit exceeded. Try again in {int(self.window - (now - last_ts))} seconds."
            )

        self._store[ip] = (last_ts, count + 1)
        return True
