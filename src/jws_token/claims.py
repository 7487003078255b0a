"""Registered-claim builder for newly issued tokens."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

from jws_token.token import Token


def build_claims(
    subject: str,
    issuer: str | None = None,
    audience: str | None = None,
    ttl_seconds: int = 600,
    extra: Mapping[str, Any] | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Build the registered claims for a token issued to *subject*.

    ``jti``, ``sub``, ``iat`` and ``exp`` are always present; ``iss`` and
    ``aud`` only when given. Entries in *extra* are added last and may not
    override the registered claims.
    """
    now = now or datetime.now(timezone.utc)
    claims: dict[str, Any] = {
        "jti": str(uuid.uuid4()),
        "sub": subject,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=ttl_seconds)).timestamp()),
    }
    if issuer:
        claims["iss"] = issuer
    if audience:
        claims["aud"] = audience
    for name, value in (extra or {}).items():
        claims.setdefault(name, value)
    return claims


def apply_claims(token: Token, claims: Mapping[str, Any]) -> Token:
    """Set every entry of *claims* on *token* and return it."""
    for name, value in claims.items():
        token.set_claim_value(name, value)
    return token
