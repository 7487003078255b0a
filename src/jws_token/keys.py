"""Build algorithm-specific key objects from a JSON Web Key document.

Only the mapping from JWK fields to key coordinates lives here; the key
objects themselves come from ``cryptography``. Handles are built for one
sign or verify call and are not cached.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping

from cryptography.hazmat.primitives.asymmetric import ec, rsa

from jws_token.algorithms import Algorithm, KeyFamily
from jws_token.codec import b64url_decode
from jws_token.errors import (
    KeyDecodeError,
    KeyMaterialError,
    KeyMismatchError,
    MalformedTokenError,
    MissingKeyFieldError,
    UnsupportedCurveError,
    UnsupportedKeyTypeError,
)

logger = logging.getLogger(__name__)

MAX_COORDINATE_BYTES = 1024
"""Largest decoded coordinate accepted (an 8192-bit modulus)."""

_CURVES: dict[str, type[ec.EllipticCurve]] = {
    "P-256": ec.SECP256R1,
    "P-384": ec.SECP384R1,
    "P-521": ec.SECP521R1,
}

_CRT_FIELDS = ("dp", "dq", "qi")


@dataclass
class KeyHandle:
    """A materialized key scoped to a single signature operation.

    ``key`` is the raw secret for symmetric keys, otherwise a
    ``cryptography`` RSA or EC key object. ``private`` is true when the
    handle can produce signatures.
    """

    family: KeyFamily
    key: Any
    private: bool
    curve_name: str | None = None


def load_jwk(jwk: Mapping[str, Any] | str) -> Mapping[str, Any]:
    """Accept a JWK as a mapping or as JSON text of an object."""
    if isinstance(jwk, str):
        try:
            jwk = json.loads(jwk)
        except json.JSONDecodeError as e:
            raise KeyMaterialError(f"JWK is not valid JSON: {e}") from e
    if not isinstance(jwk, Mapping):
        raise KeyMaterialError("JWK must be a JSON object.")
    return jwk


def materialize_signing_key(
    jwk: Mapping[str, Any] | str, algorithm: Algorithm
) -> KeyHandle:
    """Build a key able to sign with *algorithm*.

    Raises a ``KeyMaterialError`` subclass when the document lacks the
    private material the algorithm needs or names an unsupported type.
    """
    jwk = load_jwk(jwk)
    family = _check_family(jwk, algorithm)

    if family is KeyFamily.SYMMETRIC:
        return KeyHandle(family, _secret(jwk), private=True)
    if family is KeyFamily.RSA:
        return KeyHandle(family, _rsa_private_key(jwk), private=True)

    curve_name, curve = _curve(jwk, algorithm)
    d = _coordinate(jwk, "d")
    try:
        # Public point is derived from the scalar; x/y are not trusted.
        key = ec.derive_private_key(d, curve)
    except ValueError as e:
        raise KeyMaterialError(f"EC private scalar rejected: {e}") from e
    return KeyHandle(family, key, private=True, curve_name=curve_name)


def materialize_verification_key(
    jwk: Mapping[str, Any] | str, algorithm: Algorithm
) -> KeyHandle:
    """Build a key able to verify *algorithm* signatures.

    Only public coordinates are read for RSA and EC keys, even when the
    document also carries private ones.
    """
    jwk = load_jwk(jwk)
    family = _check_family(jwk, algorithm)

    if family is KeyFamily.SYMMETRIC:
        return KeyHandle(family, _secret(jwk), private=True)

    if family is KeyFamily.RSA:
        n, e = _coordinate(jwk, "n"), _coordinate(jwk, "e")
        try:
            key = rsa.RSAPublicNumbers(e, n).public_key()
        except ValueError as exc:
            raise KeyMaterialError(f"RSA public key rejected: {exc}") from exc
        return KeyHandle(family, key, private=False)

    curve_name, curve = _curve(jwk, algorithm)
    x, y = _coordinate(jwk, "x"), _coordinate(jwk, "y")
    try:
        key = ec.EllipticCurvePublicNumbers(x, y, curve).public_key()
    except ValueError as e:
        raise KeyMaterialError(f"EC public point rejected: {e}") from e
    return KeyHandle(family, key, private=False, curve_name=curve_name)


def _check_family(jwk: Mapping[str, Any], algorithm: Algorithm) -> KeyFamily:
    if not isinstance(algorithm, Algorithm) or algorithm is Algorithm.NONE:
        raise KeyMismatchError(f"No key family for algorithm {algorithm!r}.")
    kty = jwk.get("kty")
    if not isinstance(kty, str):
        raise MissingKeyFieldError("kty")
    if kty not in {f.kty for f in KeyFamily}:
        raise UnsupportedKeyTypeError(f"Unsupported key type {kty!r}.")
    family = algorithm.family
    if kty != family.kty:
        raise UnsupportedKeyTypeError(
            f"Key type {kty!r} cannot be used with {algorithm.value}."
        )
    return family


def _field_bytes(jwk: Mapping[str, Any], name: str) -> bytes:
    value = jwk.get(name)
    if not isinstance(value, str):
        raise MissingKeyFieldError(name)
    try:
        data = b64url_decode(value, MAX_COORDINATE_BYTES)
    except MalformedTokenError as e:
        raise KeyDecodeError(f"JWK field {name!r} is not valid base64url.") from e
    if not data:
        raise KeyDecodeError(f"JWK field {name!r} is empty.")
    return data


def _coordinate(jwk: Mapping[str, Any], name: str) -> int:
    return int.from_bytes(_field_bytes(jwk, name), "big")


def _secret(jwk: Mapping[str, Any]) -> bytes:
    return _field_bytes(jwk, "k")


def _curve(
    jwk: Mapping[str, Any], algorithm: Algorithm
) -> tuple[str, ec.EllipticCurve]:
    crv = jwk.get("crv")
    if not isinstance(crv, str):
        raise MissingKeyFieldError("crv")
    if crv not in _CURVES:
        raise UnsupportedCurveError(f"Unsupported curve {crv!r}.")
    if crv != algorithm.curve_name:
        raise KeyMismatchError(
            f"{algorithm.value} requires {algorithm.curve_name}, key is {crv}."
        )
    return crv, _CURVES[crv]()


def _rsa_private_key(jwk: Mapping[str, Any]) -> rsa.RSAPrivateKey:
    n = _coordinate(jwk, "n")
    e = _coordinate(jwk, "e")
    d = _coordinate(jwk, "d")

    try:
        if "p" in jwk and "q" in jwk:
            p, q = _coordinate(jwk, "p"), _coordinate(jwk, "q")
        else:
            p, q = rsa.rsa_recover_prime_factors(n, e, d)

        # CRT values are all-or-nothing; a partial set is recomputed.
        if all(name in jwk for name in _CRT_FIELDS):
            dp, dq, qi = (_coordinate(jwk, name) for name in _CRT_FIELDS)
        else:
            if any(name in jwk for name in _CRT_FIELDS):
                logger.debug("Ignoring partial RSA CRT parameters.")
            dp = rsa.rsa_crt_dmp1(d, p)
            dq = rsa.rsa_crt_dmq1(d, q)
            qi = rsa.rsa_crt_iqmp(p, q)

        numbers = rsa.RSAPrivateNumbers(
            p=p,
            q=q,
            d=d,
            dmp1=dp,
            dmq1=dq,
            iqmp=qi,
            public_numbers=rsa.RSAPublicNumbers(e, n),
        )
        return numbers.private_key()
    except ValueError as exc:
        raise KeyMaterialError(f"RSA private key rejected: {exc}") from exc
