"""Requester identity resolution.

A requester is identified primarily by the opaque token the client keeps in
its cookie. The network origin is always recorded with a claim but only joins
the rate-limit key when ``RATE_LIMIT_BY_ORIGIN`` is enabled.
"""

from __future__ import annotations

import re
import secrets
from dataclasses import dataclass

from coupon_allocator.services.allocator import InvalidRequesterError

TOKEN_PREFIX = "user_"
_TOKEN_PATTERN = re.compile(r"^[A-Za-z0-9_-]{8,128}$")
UNKNOWN_ORIGIN = "unknown"


@dataclass(frozen=True)
class RequesterIdentity:
    """Canonical rate-limit key for a single request."""

    token: str
    origin: str
    minted: bool = False


def mint_token() -> str:
    """Return a fresh requester token suitable for a cookie value."""
    return f"{TOKEN_PREFIX}{secrets.token_urlsafe(12)}"


def resolve_identity(token: str | None, origin: str | None) -> RequesterIdentity:
    """Build the canonical identity for a request.

    Args:
        token: Cookie value presented by the client, if any
        origin: Network address of the client, if known

    Returns:
        The resolved identity; ``minted`` is True when a new token was issued

    Raises:
        InvalidRequesterError: If the presented token is malformed
    """
    resolved_origin = (origin or "").strip() or UNKNOWN_ORIGIN
    if token is None or not token.strip():
        return RequesterIdentity(token=mint_token(), origin=resolved_origin, minted=True)

    if not _TOKEN_PATTERN.fullmatch(token):
        raise InvalidRequesterError("Invalid requester token")
    return RequesterIdentity(token=token, origin=resolved_origin)
