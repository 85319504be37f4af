"""Error hierarchy for collection failure classification.

Transient failures (network errors, timeouts, 5xx) may be retried by the
HTTP layer when retries are enabled. Permanent failures never are: a
malformed payload or a missing anti-forgery token will not fix itself on a
second attempt.

Example usage with tenacity:
    for attempt in Retrying(retry=retry_if_exception_type(TransientError), ...):
        with attempt:
            ...
"""


class CollectorError(Exception):
    """Base exception for all collection errors."""

    pass


class TransientError(CollectorError):
    """Network-level failure worth another attempt.

    Examples: connection refused, read timeout, 503 Service Unavailable.
    """

    pass


class RateLimitError(TransientError):
    """Rate limit exceeded (HTTP 429)."""

    pass


class PermanentError(CollectorError):
    """Failure that repeats identically on every attempt.

    Examples: 404 on a configured endpoint, unusable response payload.
    """

    pass


class DecodeError(PermanentError):
    """Response body was not valid JSON and cannot be partially trusted."""

    pass


class TokenMissingError(PermanentError):
    """The ``__RequestVerificationToken`` input was absent from the page."""

    pass


class ConfigError(PermanentError):
    """Collection configuration is unreadable or malformed."""

    pass


class OutputError(PermanentError):
    """The dataset could not be written to its output path."""

    pass
