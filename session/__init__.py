"""Session-based rate limiting for visitor actions."""

from .rate_limiter import DEFAULT_COOLDOWN, RateLimiter, RateLimitExceeded

__all__ = ["DEFAULT_COOLDOWN", "RateLimiter", "RateLimitExceeded"]
