"""Shared JWK fixtures. RSA keys are generated once per session."""

from __future__ import annotations

import os

import pytest
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from jws_token.codec import b64url_encode

_CURVES = {"P-256": ec.SECP256R1, "P-384": ec.SECP384R1, "P-521": ec.SECP521R1}


def _uint(value: int, size: int | None = None) -> str:
    size = size or (value.bit_length() + 7) // 8
    return b64url_encode(value.to_bytes(size, "big"))


def make_oct_jwk(secret: bytes | None = None) -> dict:
    return {"kty": "oct", "k": b64url_encode(secret or os.urandom(32))}


def make_rsa_jwk(key: rsa.RSAPrivateKey) -> dict:
    priv = key.private_numbers()
    pub = priv.public_numbers
    return {
        "kty": "RSA",
        "n": _uint(pub.n),
        "e": _uint(pub.e),
        "d": _uint(priv.d),
        "p": _uint(priv.p),
        "q": _uint(priv.q),
        "dp": _uint(priv.dmp1),
        "dq": _uint(priv.dmq1),
        "qi": _uint(priv.iqmp),
    }


def make_ec_jwk(key: ec.EllipticCurvePrivateKey, crv: str) -> dict:
    size = (key.curve.key_size + 7) // 8
    priv = key.private_numbers()
    return {
        "kty": "EC",
        "crv": crv,
        "x": _uint(priv.public_numbers.x, size),
        "y": _uint(priv.public_numbers.y, size),
        "d": _uint(priv.private_value, size),
    }


def public_only(jwk: dict) -> dict:
    return {k: v for k, v in jwk.items() if k in ("kty", "crv", "n", "e", "x", "y")}


@pytest.fixture
def oct_jwk() -> dict:
    return make_oct_jwk()


@pytest.fixture(scope="session")
def rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def rsa_jwk(rsa_key) -> dict:
    return make_rsa_jwk(rsa_key)


@pytest.fixture
def ec_jwk_factory():
    """Return a callable building a fresh (key, jwk) pair for a curve name."""

    def _make(crv: str = "P-256"):
        key = ec.generate_private_key(_CURVES[crv]())
        return key, make_ec_jwk(key, crv)

    return _make
