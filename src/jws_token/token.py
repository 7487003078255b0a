"""The JSON Web Token object: header, claims, algorithm and signature.

A ``Token`` keeps the serialized text of its header and claims alongside
the parsed objects. The cached text is what gets signed and verified, so an
imported token verifies over exactly the bytes it arrived with. Every
mutator drops the cached text it affects; it is regenerated on next use.
"""

from __future__ import annotations

import copy
import json
import logging
from enum import Enum
from typing import Any, Mapping

from jws_token import codec, engine
from jws_token.algorithms import Algorithm
from jws_token.errors import (
    InvalidArgumentError,
    KeyMaterialError,
    MalformedTokenError,
    ProviderError,
)
from jws_token.keys import materialize_signing_key, materialize_verification_key

logger = logging.getLogger(__name__)

DEFAULT_TYPE = "JWT"


class ClaimType(Enum):
    """JSON value type of a claim; ``NULL`` doubles as "absent"."""

    NULL = "null"
    FALSE = "false"
    TRUE = "true"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"

    @classmethod
    def of(cls, value: Any) -> ClaimType:
        if value is True:
            return cls.TRUE
        if value is False:
            return cls.FALSE
        if isinstance(value, (int, float)):
            return cls.NUMBER
        if isinstance(value, str):
            return cls.STRING
        if isinstance(value, list):
            return cls.ARRAY
        if isinstance(value, dict):
            return cls.OBJECT
        return cls.NULL


def _to_json(obj: Any) -> str:
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def _has_non_string_names(value: Any) -> bool:
    if isinstance(value, dict):
        return any(
            not isinstance(k, str) or _has_non_string_names(v) for k, v in value.items()
        )
    if isinstance(value, (list, tuple)):
        return any(_has_non_string_names(v) for v in value)
    return False


class Token:
    """A JWT/JWS that can be built, signed, exported and verified."""

    def __init__(self, type_tag: str | None = None) -> None:
        self._header: dict[str, Any] = {"typ": type_tag or DEFAULT_TYPE}
        self._header_text: str | None = None
        self._claims: dict[str, Any] = {}
        self._claims_text: str | None = None
        self._algorithm = Algorithm.NONE
        self._signature = b""

    # -- import / export ---------------------------------------------------

    @classmethod
    def import_string(
        cls, text: str, max_segment_bytes: int = codec.MAX_SEGMENT_BYTES
    ) -> Token:
        """Import a JWS Compact Serialization string.

        Raises ``MalformedTokenError`` when the text does not decode, the
        header or claims are not JSON objects, or the signature presence
        disagrees with the ``alg`` header.
        """
        header_text, claims_text, signature = codec.decode_compact(
            text, max_segment_bytes
        )
        header = _parse_object(header_text, "header")
        claims = _parse_object(claims_text, "claims")

        algorithm = Algorithm.from_name(header.get("alg")) or Algorithm.NONE
        if (algorithm is Algorithm.NONE) != (len(signature) == 0):
            logger.debug(
                "Rejected token: alg=%r with %d signature bytes.",
                header.get("alg"),
                len(signature),
            )
            raise MalformedTokenError(
                "Signature presence does not match the alg header."
            )

        token = cls.__new__(cls)
        token._header = header
        token._header_text = header_text
        token._claims = claims
        token._claims_text = claims_text
        token._algorithm = algorithm
        token._signature = signature
        return token

    def export(self, with_signature: bool = True) -> str:
        """Return the compact serialization.

        Without *with_signature* this is the two-part signing input.
        """
        header_text, claims_text = self._texts()
        return codec.encode_compact(
            header_text, claims_text, self._signature, with_signature
        )

    def __str__(self) -> str:
        return self.export()

    def __repr__(self) -> str:
        return f"<Token alg={self._algorithm.value} claims={sorted(self._claims)}>"

    def _texts(self) -> tuple[str, str]:
        if self._header_text is None:
            self._header_text = _to_json(self._header)
        if self._claims_text is None:
            self._claims_text = _to_json(self._claims)
        return self._header_text, self._claims_text

    def _signing_input(self) -> bytes:
        return codec.signing_input(*self._texts())

    # -- signatures --------------------------------------------------------

    def sign(self, algorithm: Algorithm | str, jwk: Mapping[str, Any] | str) -> None:
        """Sign the token with *algorithm* using the key document *jwk*.

        Any previous signature is discarded first, so a failed attempt
        leaves the token unsigned. Raises ``InvalidArgumentError`` for
        ``none``, unknown algorithms and a missing key (without touching
        the token), ``KeyMaterialError`` or ``ProviderError`` otherwise.
        """
        alg = Algorithm.from_name(algorithm)
        if alg is None or alg is Algorithm.NONE:
            raise InvalidArgumentError(f"Cannot sign with algorithm {algorithm!r}.")
        if jwk is None:
            raise InvalidArgumentError("A key is required to sign.")

        self._signature = b""
        self._algorithm = Algorithm.NONE
        self._header["alg"] = alg.value
        self._header_text = None

        try:
            key = materialize_signing_key(jwk, alg)
            signature = engine.sign(self._signing_input(), alg, key)
        except BaseException:
            # An unsigned token must not advertise an algorithm.
            self._header.pop("alg", None)
            self._header_text = None
            raise

        self._algorithm = alg
        self._signature = signature
        logger.debug("Signed token with %s (%d bytes).", alg.value, len(signature))

    def has_valid_signature(self, jwk: Mapping[str, Any] | str | None) -> bool:
        """Whether the stored signature verifies against *jwk*.

        Unsigned tokens, a missing key and any key or provider error all
        give ``False``.
        """
        if self._algorithm is Algorithm.NONE or not self._signature or jwk is None:
            return False
        try:
            key = materialize_verification_key(jwk, self._algorithm)
        except KeyMaterialError as e:
            logger.debug(
                "No %s verification key: %s", self._algorithm.value, type(e).__name__
            )
            return False
        try:
            return engine.verify(
                self._signing_input(), self._signature, self._algorithm, key
            )
        except ProviderError as e:
            logger.debug("Verification failed: %s", type(e).__name__)
            return False

    # -- read access -------------------------------------------------------

    @property
    def algorithm(self) -> Algorithm:
        return self._algorithm

    @property
    def signature(self) -> bytes:
        return self._signature

    @property
    def type(self) -> str | None:
        typ = self._header.get("typ")
        return typ if isinstance(typ, str) else None

    @property
    def header(self) -> dict[str, Any]:
        """A copy of the JOSE header."""
        return copy.deepcopy(self._header)

    @property
    def claims(self) -> dict[str, Any]:
        """A copy of the claims object."""
        return copy.deepcopy(self._claims)

    def get_claim_number(self, claim: str) -> float | int | None:
        value = self._lookup(claim)
        if ClaimType.of(value) is ClaimType.NUMBER:
            return value
        return None

    def get_claim_string(self, claim: str) -> str | None:
        value = self._lookup(claim)
        return value if isinstance(value, str) else None

    def get_claim_type(self, claim: str) -> ClaimType:
        return ClaimType.of(self._lookup(claim))

    def get_claim_value(self, claim: str) -> Any:
        return copy.deepcopy(self._lookup(claim))

    def _lookup(self, claim: str) -> Any:
        # Names that are not strings cannot be present.
        if not isinstance(claim, str):
            return None
        return self._claims.get(claim)

    # -- mutation ----------------------------------------------------------

    def set_claim_number(self, claim: str, value: float | int) -> None:
        if ClaimType.of(value) is not ClaimType.NUMBER:
            raise InvalidArgumentError(f"Claim {claim!r} value is not a number.")
        self._set_claim(claim, value)

    def set_claim_string(self, claim: str, value: str) -> None:
        if not isinstance(value, str):
            raise InvalidArgumentError(f"Claim {claim!r} value is not a string.")
        self._set_claim(claim, value)

    def set_claim_value(self, claim: str, value: Any) -> None:
        """Set *claim* to any JSON value (stored as a copy)."""
        self._set_claim(claim, value)

    def remove_claim(self, claim: str) -> None:
        if isinstance(claim, str) and claim in self._claims:
            del self._claims[claim]
            self._claims_text = None

    def _set_claim(self, claim: str, value: Any) -> None:
        if not isinstance(claim, str):
            raise InvalidArgumentError("Claim names must be strings.")
        try:
            text = _to_json({claim: value})
            text.encode("utf-8")
        except (TypeError, ValueError) as e:
            raise InvalidArgumentError(
                f"Claim {claim!r} value is not representable as JSON."
            ) from e
        if _has_non_string_names(value):
            raise InvalidArgumentError(f"Claim {claim!r} has non-string member names.")
        # Stored as parsed back from its text: tuples become lists.
        self._claims[claim] = json.loads(text)[claim]
        self._claims_text = None


def _parse_object(text: str, what: str) -> dict[str, Any]:
    try:
        obj = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedTokenError(f"Token {what} is not valid JSON.") from e
    if not isinstance(obj, dict):
        raise MalformedTokenError(f"Token {what} is not a JSON object.")
    return obj
