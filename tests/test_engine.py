"""Tests for algorithm-dispatched signing and verification."""

from __future__ import annotations

import hashlib
import hmac

import pytest

from conftest import public_only
from jws_token import engine
from jws_token.algorithms import Algorithm
from jws_token.engine import BoundedBuffer, digest
from jws_token.errors import KeyMismatchError, SignatureOverflowError
from jws_token.keys import materialize_signing_key, materialize_verification_key

MESSAGE = b"eyJ0eXAiOiJKV1QifQ.eyJzdWIiOiJhbGljZSJ9"
SECRET_JWK = {"kty": "oct", "k": "c2VjcmV0"}


def test_bounded_buffer_accepts_up_to_capacity():
    buf = BoundedBuffer(4)
    assert buf.fill(b"abcd") == b"abcd"
    assert len(buf) == 4
    assert bytes(buf) == b"abcd"


def test_bounded_buffer_overflow():
    with pytest.raises(SignatureOverflowError):
        BoundedBuffer(4).fill(b"abcde")


def test_digest_strength():
    assert len(digest(MESSAGE, Algorithm.RS256)) == 32
    assert len(digest(MESSAGE, Algorithm.ES384)) == 48
    assert digest(MESSAGE, Algorithm.HS512) == hashlib.sha512(MESSAGE).digest()


@pytest.mark.parametrize(
    "alg, name", [(Algorithm.HS256, "sha256"), (Algorithm.HS384, "sha384"), (Algorithm.HS512, "sha512")]
)
def test_hmac_matches_stdlib(alg, name):
    key = materialize_signing_key(SECRET_JWK, alg)
    assert engine.sign(MESSAGE, alg, key) == hmac.new(b"secret", MESSAGE, name).digest()


def test_hmac_verify():
    key = materialize_signing_key(SECRET_JWK, Algorithm.HS256)
    signature = engine.sign(MESSAGE, Algorithm.HS256, key)
    assert engine.verify(MESSAGE, signature, Algorithm.HS256, key) is True
    assert engine.verify(MESSAGE + b"x", signature, Algorithm.HS256, key) is False


def test_hmac_length_mismatch_is_false():
    key = materialize_signing_key(SECRET_JWK, Algorithm.HS256)
    signature = engine.sign(MESSAGE, Algorithm.HS256, key)
    assert engine.verify(MESSAGE, signature[:-1], Algorithm.HS256, key) is False
    assert engine.verify(MESSAGE, signature + b"\x00", Algorithm.HS256, key) is False
    assert engine.verify(MESSAGE, b"", Algorithm.HS256, key) is False


@pytest.mark.parametrize("alg", [Algorithm.RS256, Algorithm.RS384, Algorithm.RS512])
def test_rsa_sign_verify(rsa_jwk, alg):
    signing = materialize_signing_key(rsa_jwk, alg)
    verifying = materialize_verification_key(public_only(rsa_jwk), alg)
    signature = engine.sign(MESSAGE, alg, signing)
    assert len(signature) == 256
    assert engine.verify(MESSAGE, signature, alg, verifying) is True
    assert engine.verify(b"other", signature, alg, verifying) is False


def test_rsa_hash_strength_is_bound_to_algorithm(rsa_jwk):
    signing = materialize_signing_key(rsa_jwk, Algorithm.RS256)
    signature = engine.sign(MESSAGE, Algorithm.RS256, signing)
    verifying = materialize_verification_key(rsa_jwk, Algorithm.RS512)
    assert engine.verify(MESSAGE, signature, Algorithm.RS512, verifying) is False


@pytest.mark.parametrize(
    "crv, alg, size",
    [("P-256", Algorithm.ES256, 64), ("P-384", Algorithm.ES384, 96), ("P-521", Algorithm.ES512, 132)],
)
def test_ec_raw_signature_size(ec_jwk_factory, crv, alg, size):
    _, jwk = ec_jwk_factory(crv)
    signature = engine.sign(MESSAGE, alg, materialize_signing_key(jwk, alg))
    assert len(signature) == size
    verifying = materialize_verification_key(public_only(jwk), alg)
    assert engine.verify(MESSAGE, signature, alg, verifying) is True


def test_ec_wrong_length_signature_is_false(ec_jwk_factory):
    _, jwk = ec_jwk_factory("P-256")
    key = materialize_signing_key(jwk, Algorithm.ES256)
    signature = engine.sign(MESSAGE, Algorithm.ES256, key)
    assert engine.verify(MESSAGE, signature[:-2], Algorithm.ES256, key) is False


def test_sign_rejects_wrong_family(rsa_jwk):
    key = materialize_signing_key(SECRET_JWK, Algorithm.HS256)
    with pytest.raises(KeyMismatchError):
        engine.sign(MESSAGE, Algorithm.RS256, key)


def test_sign_rejects_public_key(rsa_jwk):
    key = materialize_verification_key(rsa_jwk, Algorithm.RS256)
    with pytest.raises(KeyMismatchError):
        engine.sign(MESSAGE, Algorithm.RS256, key)


def test_sign_rejects_none():
    key = materialize_signing_key(SECRET_JWK, Algorithm.HS256)
    with pytest.raises(KeyMismatchError):
        engine.sign(MESSAGE, Algorithm.NONE, key)


def test_verify_wrong_family_is_false(rsa_jwk):
    key = materialize_signing_key(SECRET_JWK, Algorithm.HS256)
    signature = engine.sign(MESSAGE, Algorithm.HS256, key)
    assert engine.verify(MESSAGE, signature, Algorithm.RS256, key) is False


def test_verify_cross_curve_is_false(ec_jwk_factory):
    _, jwk = ec_jwk_factory("P-384")
    key = materialize_signing_key(jwk, Algorithm.ES384)
    signature = engine.sign(MESSAGE, Algorithm.ES384, key)
    assert engine.verify(MESSAGE, signature, Algorithm.ES256, key) is False


def test_signature_over_capacity_fails(rsa_jwk, monkeypatch):
    monkeypatch.setattr(engine, "MAX_SIGNATURE_SIZE", 128)
    key = materialize_signing_key(rsa_jwk, Algorithm.RS256)
    with pytest.raises(SignatureOverflowError):
        engine.sign(MESSAGE, Algorithm.RS256, key)
