"""Sync pipeline primitives: models, errors, retry, rate limiting, cancellation."""
