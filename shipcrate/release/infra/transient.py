from __future__ import annotations

from shipcrate.platform.process import ProcessError

_TRANSIENT_MARKERS = (
    "timed out",
    "timeout",
    "connection reset",
    "connection refused",
    "temporarily unavailable",
    "service unavailable",
    "bad gateway",
    "gateway timeout",
    "tls handshake timeout",
    "network is unreachable",
    "could not resolve host",
    "remote end hung up unexpectedly",
    "early eof",
    "http 429",
    "http 500",
    "http 502",
    "http 503",
    "http 504",
    "status 429",
    "status 500",
    "status 502",
    "status 503",
    "status 504",
)

_AUTH_MARKERS = (
    "authentication failed",
    "could not read username",
    "permission denied",
    "invalid username or password",
    "http 401",
    "http 403",
    "status 401",
    "status 403",
    "401 unauthorized",
    "403 forbidden",
    "the api token",
    "no token found",
    "please run `cargo login`",
)


def error_text(error: ProcessError) -> str:
    return f"{error.stderr}\n{error.stdout}".lower()


def looks_transient(text: str) -> bool:
    lowered = text.lower()
    return any(marker in lowered for marker in _TRANSIENT_MARKERS)


def looks_like_auth_failure(text: str) -> bool:
    lowered = text.lower()
    return any(marker in lowered for marker in _AUTH_MARKERS)


def is_transient(error: ProcessError) -> bool:
    """True when retrying the same command could plausibly succeed."""
    return error.timed_out or looks_transient(error_text(error))


def is_auth_failure(error: ProcessError) -> bool:
    return looks_like_auth_failure(error_text(error))
