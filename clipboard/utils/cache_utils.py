"""
Cache utilities for Jim's Clipboard
Short-lived caching of third-party API results
"""

import functools

from flask import current_app

from clipboard import cache


def make_cache_key(prefix, *args, **kwargs):
    """Generate a cache key from a prefix and the call arguments"""
    args_str = "_".join(str(arg) for arg in args)
    kwargs_str = "_".join(f"{k}_{v}" for k, v in sorted(kwargs.items()))
    return f"{prefix}_{args_str}_{kwargs_str}".replace("/", "_")


def cached_result(key_prefix, timeout=300):
    """
    Decorator for caching a function's JSON-serialisable result

    Args:
        key_prefix: Prefix for cache key
        timeout: Cache timeout in seconds (default 5 minutes)
    """

    def decorator(f):
        @functools.wraps(f)
        def wrapped(*args, **kwargs):
            cache_key = make_cache_key(key_prefix, *args, **kwargs)

            result = cache.get(cache_key)
            if result is not None:
                current_app.logger.debug(f"Cache hit for key: {cache_key}")
                return result

            # Errors propagate and are not cached
            result = f(*args, **kwargs)
            cache.set(cache_key, result, timeout=timeout)
            current_app.logger.debug(f"Cache set for key: {cache_key}")

            return result

        return wrapped

    return decorator
