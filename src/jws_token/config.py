"""Configuration via pydantic-settings. Loaded at runtime, never at import time."""

from __future__ import annotations

import json
from typing import Any

from pydantic_settings import BaseSettings

from jws_token.algorithms import Algorithm
from jws_token.codec import MAX_SEGMENT_BYTES
from jws_token.errors import InvalidArgumentError, KeyMaterialError


class TokenSettings(BaseSettings):
    """All env vars for the token service."""

    # Signing key: JSON text of a JWK (oct, RSA or EC with private fields)
    jws_signing_jwk: str = ""

    # Verification key: JSON text of a JWK; empty = reuse the signing key
    jws_verification_jwk: str = ""

    jws_algorithm: str = "HS256"
    jws_token_type: str = "JWT"
    jws_issuer: str = ""
    jws_token_ttl_seconds: int = 600

    # Ceiling on the decoded size of each compact segment
    jws_max_segment_bytes: int = MAX_SEGMENT_BYTES

    model_config = {"env_file": ".env", "extra": "ignore"}

    @property
    def algorithm(self) -> Algorithm:
        """Configured algorithm; ``none`` is not accepted for issuing."""
        alg = Algorithm.from_name(self.jws_algorithm)
        if alg is None or alg is Algorithm.NONE:
            raise InvalidArgumentError(
                f"JWS_ALGORITHM {self.jws_algorithm!r} is not a signing algorithm."
            )
        return alg

    @property
    def signing_key(self) -> dict[str, Any]:
        if not self.jws_signing_jwk:
            raise KeyMaterialError("JWS_SIGNING_JWK is required.")
        return _parse_jwk(self.jws_signing_jwk, "JWS_SIGNING_JWK")

    @property
    def verification_key(self) -> dict[str, Any]:
        if not self.jws_verification_jwk:
            return self.signing_key
        return _parse_jwk(self.jws_verification_jwk, "JWS_VERIFICATION_JWK")


def _parse_jwk(text: str, name: str) -> dict[str, Any]:
    try:
        jwk = json.loads(text)
    except json.JSONDecodeError as e:
        raise KeyMaterialError(f"{name} is not valid JSON: {e}") from e
    if not isinstance(jwk, dict):
        raise KeyMaterialError(f"{name} must be a JSON object.")
    return jwk
