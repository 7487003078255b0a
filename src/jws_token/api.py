"""Function-style access to ``Token`` that tolerates a missing token.

Getters given ``None`` return the same "absent" value as for a missing
claim; setters given ``None`` do nothing. Signing a ``None`` token is an
``InvalidArgumentError``.
"""

from __future__ import annotations

from typing import Any, Mapping

from jws_token.algorithms import Algorithm
from jws_token.errors import InvalidArgumentError
from jws_token.token import ClaimType, Token


def new_token(type_tag: str | None = None) -> Token:
    return Token(type_tag)


def import_token(text: str) -> Token:
    """Import compact text. Raises ``MalformedTokenError``."""
    return Token.import_string(text)


def export_token(token: Token | None, with_signature: bool = True) -> str | None:
    if token is None:
        return None
    return token.export(with_signature)


def sign_token(
    token: Token | None, algorithm: Algorithm | str, jwk: Mapping[str, Any] | str
) -> None:
    if token is None:
        raise InvalidArgumentError("No token to sign.")
    token.sign(algorithm, jwk)


def has_valid_signature(
    token: Token | None, jwk: Mapping[str, Any] | str | None
) -> bool:
    if token is None:
        return False
    return token.has_valid_signature(jwk)


def get_algorithm(token: Token | None) -> Algorithm:
    return Algorithm.NONE if token is None else token.algorithm


def get_claims(token: Token | None) -> dict[str, Any] | None:
    return None if token is None else token.claims


def get_claim_number(token: Token | None, claim: str) -> float | int | None:
    return None if token is None else token.get_claim_number(claim)


def get_claim_string(token: Token | None, claim: str) -> str | None:
    return None if token is None else token.get_claim_string(claim)


def get_claim_type(token: Token | None, claim: str) -> ClaimType:
    return ClaimType.NULL if token is None else token.get_claim_type(claim)


def get_claim_value(token: Token | None, claim: str) -> Any:
    return None if token is None else token.get_claim_value(claim)


def set_claim_number(token: Token | None, claim: str, value: float | int) -> None:
    if token is not None:
        token.set_claim_number(claim, value)


def set_claim_string(token: Token | None, claim: str, value: str) -> None:
    if token is not None:
        token.set_claim_string(claim, value)


def set_claim_value(token: Token | None, claim: str, value: Any) -> None:
    if token is not None:
        token.set_claim_value(claim, value)
