"""FastMCP app: issue, verify and inspect signed JSON Web Tokens."""

from __future__ import annotations

import logging
import sys
from typing import Annotated, Any

from fastmcp import FastMCP
from pydantic import Field

from jws_token.claims import apply_claims, build_claims
from jws_token.config import TokenSettings
from jws_token.errors import TokenError
from jws_token.token import Token

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# FastMCP app
# ---------------------------------------------------------------------------

mcp = FastMCP(
    "jws-token",
    instructions=(
        "JWS Token Service. Issues and checks compact-serialized JSON Web "
        "Tokens signed with HMAC (HS256/384/512), RSA (RS256/384/512) or "
        "ECDSA (ES256/384/512).\n\n"
        "## Tool Overview\n\n"
        "- `issue_token`: Signs a new token for a subject with the configured key.\n"
        "- `verify_token`: Checks a token's signature against the configured key.\n"
        "- `inspect_token`: Decodes header and claims without checking the signature.\n"
        "- `signing_info`: Configured algorithm and key type. Never returns key material.\n"
        "- `refresh_config`: Admin tool. Reloads env vars without a restart.\n\n"
        "## Keys\n\n"
        "The signing key is a JSON Web Key in JWS_SIGNING_JWK. A separate "
        "public key for verification may be set in JWS_VERIFICATION_JWK. "
        "Generate one with `python scripts/generate_jwk.py`.\n"
    ),
)

# ---------------------------------------------------------------------------
# Settings (deferred, never at import time)
# ---------------------------------------------------------------------------

_settings: TokenSettings | None = None
_settings_loaded = False


def _ensure_settings_loaded() -> None:
    global _settings, _settings_loaded
    if not _settings_loaded:
        try:
            _settings = TokenSettings()
            _settings_loaded = True
        except Exception as e:
            print(f"Error: Failed to load settings: {e}", file=sys.stderr)
            sys.exit(1)


def _get_settings() -> TokenSettings:
    _ensure_settings_loaded()
    assert _settings is not None
    return _settings


def _error(e: Exception) -> dict[str, Any]:
    return {"success": False, "error": str(e) or type(e).__name__}


# ---------------------------------------------------------------------------
# MCP Tools
# ---------------------------------------------------------------------------


async def issue_token(
    subject: Annotated[str, Field(description="Value of the `sub` claim.")],
    claims: Annotated[
        dict[str, Any] | None,
        Field(description="Additional claims. Registered claims cannot be overridden."),
    ] = None,
    ttl_seconds: Annotated[
        int | None, Field(description="Lifetime in seconds; defaults to JWS_TOKEN_TTL_SECONDS.")
    ] = None,
) -> dict[str, Any]:
    """Issue a signed token for *subject* with the configured key and algorithm.

    Returns:
        success: True when the token was signed.
        token: JWS Compact Serialization string.
        algorithm: The `alg` the token was signed with.
        claims: The claims that were signed.

    Errors: Fails when JWS_SIGNING_JWK is missing or does not fit JWS_ALGORITHM.
    """
    if not subject:
        return {"success": False, "error": "subject must not be empty."}
    s = _get_settings()
    ttl = s.jws_token_ttl_seconds if ttl_seconds is None else ttl_seconds
    if ttl <= 0:
        return {"success": False, "error": "ttl_seconds must be positive."}

    try:
        algorithm = s.algorithm
        token = Token(s.jws_token_type)
        apply_claims(
            token,
            build_claims(subject, issuer=s.jws_issuer or None, ttl_seconds=ttl, extra=claims),
        )
        token.sign(algorithm, s.signing_key)
    except TokenError as e:
        logger.warning("Token issue failed: %s", type(e).__name__)
        return _error(e)

    logger.info("Issued %s token for subject %s.", algorithm.value, subject)
    return {
        "success": True,
        "token": token.export(),
        "algorithm": algorithm.value,
        "claims": token.claims,
    }


async def verify_token(
    token: Annotated[str, Field(description="JWS Compact Serialization string.")],
) -> dict[str, Any]:
    """Verify a token's signature against the configured verification key.

    An invalid signature is not an error: the result has `valid: False`.
    Tokens that cannot be decoded at all return `success: False`.
    """
    s = _get_settings()
    try:
        parsed = Token.import_string(token, s.jws_max_segment_bytes)
        key = s.verification_key
    except TokenError as e:
        return _error(e)

    valid = parsed.has_valid_signature(key)
    return {
        "success": True,
        "valid": valid,
        "algorithm": parsed.algorithm.value,
        "claims": parsed.claims if valid else None,
    }


async def inspect_token(
    token: Annotated[str, Field(description="JWS Compact Serialization string.")],
) -> dict[str, Any]:
    """Decode a token's header and claims WITHOUT verifying the signature."""
    s = _get_settings()
    try:
        parsed = Token.import_string(token, s.jws_max_segment_bytes)
    except TokenError as e:
        return _error(e)
    return {
        "success": True,
        "header": parsed.header,
        "claims": parsed.claims,
        "algorithm": parsed.algorithm.value,
        "signature_bytes": len(parsed.signature),
        "verified": False,
    }


async def signing_info() -> dict[str, Any]:
    """Configured algorithm and signing key type. Never returns key material."""
    s = _get_settings()
    try:
        algorithm = s.algorithm
        key = s.signing_key
    except TokenError as e:
        return _error(e)
    return {
        "success": True,
        "algorithm": algorithm.value,
        "kty": key.get("kty"),
        "kid": key.get("kid"),
        "crv": key.get("crv"),
        "token_type": s.jws_token_type,
        "ttl_seconds": s.jws_token_ttl_seconds,
    }


async def refresh_config() -> dict[str, Any]:
    """Admin tool: reload settings from the environment without a restart."""
    global _settings, _settings_loaded
    _settings = None
    _settings_loaded = False
    _get_settings()
    logger.info("Settings reloaded.")
    return {"success": True, "message": "Configuration reloaded."}


# Registered without decorating, so the module names stay plain coroutines
# that callers and tests can await directly.
for _tool in (issue_token, verify_token, inspect_token, signing_info, refresh_config):
    mcp.tool()(_tool)


def main() -> None:
    logging.basicConfig(level=logging.INFO, stream=sys.stderr)
    mcp.run()


if __name__ == "__main__":
    main()
