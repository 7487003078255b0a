#!/usr/bin/env python3
"""Generate a JSON Web Key for JWS token signing.

Usage: generate_jwk.py [ALGORITHM]   (default HS256)

Outputs:
  1. The private JWK as one line of JSON (for the JWS_SIGNING_JWK env var)
  2. The public JWK for RSA/EC keys (for JWS_VERIFICATION_JWK)
  3. Sign/verify round-trip test
"""

import json
import os
import sys

from cryptography.hazmat.primitives.asymmetric import ec, rsa

from jws_token.algorithms import Algorithm, KeyFamily
from jws_token.codec import b64url_encode
from jws_token.token import Token

_CURVES = {"P-256": ec.SECP256R1, "P-384": ec.SECP384R1, "P-521": ec.SECP521R1}


def _uint(value: int, size: int | None = None) -> str:
    size = size or (value.bit_length() + 7) // 8
    return b64url_encode(value.to_bytes(size, "big"))


def make_jwk(algorithm: Algorithm) -> tuple[dict, dict | None]:
    """Return (private_jwk, public_jwk). public_jwk is None for oct keys."""
    if algorithm.family is KeyFamily.SYMMETRIC:
        secret = os.urandom(algorithm.hash_bits // 8)
        return {"kty": "oct", "k": b64url_encode(secret)}, None

    if algorithm.family is KeyFamily.RSA:
        key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        priv = key.private_numbers()
        pub = priv.public_numbers
        public = {"kty": "RSA", "n": _uint(pub.n), "e": _uint(pub.e)}
        private = dict(
            public,
            d=_uint(priv.d),
            p=_uint(priv.p),
            q=_uint(priv.q),
            dp=_uint(priv.dmp1),
            dq=_uint(priv.dmq1),
            qi=_uint(priv.iqmp),
        )
        return private, public

    crv = algorithm.curve_name
    key = ec.generate_private_key(_CURVES[crv]())
    size = (key.curve.key_size + 7) // 8
    priv = key.private_numbers()
    public = {
        "kty": "EC",
        "crv": crv,
        "x": _uint(priv.public_numbers.x, size),
        "y": _uint(priv.public_numbers.y, size),
    }
    return dict(public, d=_uint(priv.private_value, size)), public


def main() -> None:
    name = sys.argv[1] if len(sys.argv) > 1 else "HS256"
    algorithm = Algorithm.from_name(name)
    if algorithm is None or algorithm is Algorithm.NONE:
        sys.exit(f"Unsupported algorithm: {name}")

    private, public = make_jwk(algorithm)

    print("=" * 60)
    print(f"JWS_SIGNING_JWK ({algorithm.value} private key):")
    print("=" * 60)
    print(json.dumps(private, separators=(",", ":")))
    print()
    if public is not None:
        print("=" * 60)
        print("JWS_VERIFICATION_JWK (public key):")
        print("=" * 60)
        print(json.dumps(public, separators=(",", ":")))
        print()

    # Verification round-trip
    token = Token()
    token.set_claim_string("sub", "test")
    token.sign(algorithm, private)
    imported = Token.import_string(token.export())
    assert imported.has_valid_signature(public or private)
    print("Round-trip verification: PASSED")


if __name__ == "__main__":
    main()
