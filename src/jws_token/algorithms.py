"""JWS algorithm table: key family and hash strength per ``alg`` name."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

from cryptography.hazmat.primitives import hashes


class KeyFamily(Enum):
    SYMMETRIC = "oct"
    RSA = "RSA"
    EC = "EC"

    @property
    def kty(self) -> str:
        """JWK ``kty`` value for keys of this family."""
        return self.value


@dataclass(frozen=True)
class AlgorithmInfo:
    family: KeyFamily
    hash_bits: int


class Algorithm(str, Enum):
    """Signature algorithms understood in the JOSE ``alg`` header."""

    NONE = "none"
    HS256 = "HS256"
    HS384 = "HS384"
    HS512 = "HS512"
    RS256 = "RS256"
    RS384 = "RS384"
    RS512 = "RS512"
    ES256 = "ES256"
    ES384 = "ES384"
    ES512 = "ES512"

    @classmethod
    def from_name(cls, name: object) -> Algorithm | None:
        """Return the member whose ``alg`` name is *name*, or ``None``."""
        if not isinstance(name, str):
            return None
        try:
            return cls(name)
        except ValueError:
            return None

    @property
    def info(self) -> AlgorithmInfo:
        """Family and hash strength. Raises ``KeyError`` for ``NONE``."""
        return ALGORITHM_TABLE[self]

    @property
    def family(self) -> KeyFamily:
        return self.info.family

    @property
    def hash_bits(self) -> int:
        return self.info.hash_bits

    @property
    def curve_name(self) -> str | None:
        """Curve implied by an ES algorithm; ``None`` for other families."""
        if self is Algorithm.NONE or self.family is not KeyFamily.EC:
            return None
        return EC_CURVE_BY_BITS[self.hash_bits]

    def hash_algorithm(self) -> hashes.HashAlgorithm:
        """Fresh SHA-2 hash object of this algorithm's strength."""
        return HASH_BY_BITS[self.hash_bits]()


ALGORITHM_TABLE: MappingProxyType[Algorithm, AlgorithmInfo] = MappingProxyType(
    {
        Algorithm.HS256: AlgorithmInfo(KeyFamily.SYMMETRIC, 256),
        Algorithm.HS384: AlgorithmInfo(KeyFamily.SYMMETRIC, 384),
        Algorithm.HS512: AlgorithmInfo(KeyFamily.SYMMETRIC, 512),
        Algorithm.RS256: AlgorithmInfo(KeyFamily.RSA, 256),
        Algorithm.RS384: AlgorithmInfo(KeyFamily.RSA, 384),
        Algorithm.RS512: AlgorithmInfo(KeyFamily.RSA, 512),
        Algorithm.ES256: AlgorithmInfo(KeyFamily.EC, 256),
        Algorithm.ES384: AlgorithmInfo(KeyFamily.EC, 384),
        Algorithm.ES512: AlgorithmInfo(KeyFamily.EC, 512),
    }
)
"""Read-only, process-wide. ``Algorithm.NONE`` has no entry."""

HASH_BY_BITS: MappingProxyType[int, type[hashes.HashAlgorithm]] = MappingProxyType(
    {256: hashes.SHA256, 384: hashes.SHA384, 512: hashes.SHA512}
)

# ES512 pairs SHA-512 with P-521, not a 512-bit curve.
EC_CURVE_BY_BITS: MappingProxyType[int, str] = MappingProxyType(
    {256: "P-256", 384: "P-384", 512: "P-521"}
)
