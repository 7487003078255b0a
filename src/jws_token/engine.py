"""Algorithm-dispatched signing and verification over the signing input."""

from __future__ import annotations

import logging

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, hmac
from cryptography.hazmat.primitives.asymmetric import ec, padding
from cryptography.hazmat.primitives.asymmetric.utils import Prehashed
from jwt.utils import der_to_raw_signature, raw_to_der_signature

from jws_token.algorithms import Algorithm, KeyFamily
from jws_token.errors import KeyMismatchError, ProviderError, SignatureOverflowError
from jws_token.keys import KeyHandle

logger = logging.getLogger(__name__)

MAX_SIGNATURE_SIZE = 2048
"""Fixed capacity for any produced signature (a 16384-bit RSA modulus)."""

MAX_HASH_SIZE = 128


class BoundedBuffer:
    """Byte holder with a fixed capacity.

    ``fill`` raises ``SignatureOverflowError`` instead of accepting more
    than ``capacity`` bytes.
    """

    def __init__(self, capacity: int) -> None:
        self.capacity = capacity
        self._data = b""

    def fill(self, data: bytes) -> bytes:
        if len(data) > self.capacity:
            raise SignatureOverflowError(
                f"Provider produced {len(data)} bytes, capacity is {self.capacity}."
            )
        self._data = bytes(data)
        return self._data

    def __bytes__(self) -> bytes:
        return self._data

    def __len__(self) -> int:
        return len(self._data)


def digest(data: bytes, algorithm: Algorithm) -> bytes:
    """SHA-2 digest of *data* at the algorithm's strength."""
    h = hashes.Hash(algorithm.hash_algorithm())
    h.update(data)
    return BoundedBuffer(MAX_HASH_SIZE).fill(h.finalize())


def sign(signing_input: bytes, algorithm: Algorithm, key: KeyHandle) -> bytes:
    """Produce the raw JWS signature bytes for *signing_input*.

    Raises ``KeyMismatchError`` when the key cannot sign this algorithm
    and ``ProviderError`` when the cryptographic provider fails.
    """
    _check_key(algorithm, key)
    if not key.private:
        raise KeyMismatchError("A public key cannot produce signatures.")

    buffer = BoundedBuffer(MAX_SIGNATURE_SIZE)
    family = algorithm.family
    try:
        if family is KeyFamily.SYMMETRIC:
            return buffer.fill(_hmac(signing_input, algorithm, key.key))

        hash_alg = algorithm.hash_algorithm()
        message_hash = digest(signing_input, algorithm)
        if family is KeyFamily.RSA:
            return buffer.fill(
                key.key.sign(message_hash, padding.PKCS1v15(), Prehashed(hash_alg))
            )

        der = key.key.sign(message_hash, ec.ECDSA(Prehashed(hash_alg)))
        return buffer.fill(der_to_raw_signature(der, key.key.curve))
    except SignatureOverflowError:
        raise
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise ProviderError(f"{algorithm.value} signing failed: {e}") from e


def verify(
    signing_input: bytes, signature: bytes, algorithm: Algorithm, key: KeyHandle
) -> bool:
    """Return ``True`` only when *signature* is valid for *signing_input*.

    Every failure, including a key of the wrong family, yields ``False``.
    """
    try:
        _check_key(algorithm, key)
    except KeyMismatchError as e:
        logger.debug("Verification refused: %s", e)
        return False
    if not signature or len(signature) > MAX_SIGNATURE_SIZE:
        return False

    family = algorithm.family
    try:
        if family is KeyFamily.SYMMETRIC:
            h = hmac.HMAC(key.key, algorithm.hash_algorithm())
            h.update(signing_input)
            h.verify(signature)
            return True

        hash_alg = algorithm.hash_algorithm()
        message_hash = digest(signing_input, algorithm)
        public_key = key.key.public_key() if key.private else key.key
        if family is KeyFamily.RSA:
            public_key.verify(
                signature, message_hash, padding.PKCS1v15(), Prehashed(hash_alg)
            )
            return True

        der = raw_to_der_signature(signature, public_key.curve)
        public_key.verify(der, message_hash, ec.ECDSA(Prehashed(hash_alg)))
        return True
    except InvalidSignature:
        logger.debug("%s signature mismatch.", algorithm.value)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        logger.debug("%s verification rejected by provider: %s", algorithm.value, e)
    return False


def _hmac(data: bytes, algorithm: Algorithm, secret: bytes) -> bytes:
    h = hmac.HMAC(secret, algorithm.hash_algorithm())
    h.update(data)
    return h.finalize()


def _check_key(algorithm: Algorithm, key: KeyHandle) -> None:
    if not isinstance(algorithm, Algorithm) or algorithm is Algorithm.NONE:
        raise KeyMismatchError(f"Algorithm {algorithm!r} does not sign.")
    if key.family is not algorithm.family:
        raise KeyMismatchError(
            f"{key.family.kty} key cannot be used with {algorithm.value}."
        )
    if algorithm.family is KeyFamily.EC and key.curve_name != algorithm.curve_name:
        raise KeyMismatchError(
            f"{algorithm.value} requires {algorithm.curve_name}, key is {key.curve_name}."
        )
