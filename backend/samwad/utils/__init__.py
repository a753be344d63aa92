from samwad.utils.validators import validate_rating, safe_filename, sanitize_name
from samwad.utils.rate_limiter import RateLimiter

__all__ = [
    "validate_rating", "safe_filename", "sanitize_name",
    "RateLimiter",
]
