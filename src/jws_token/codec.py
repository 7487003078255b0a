"""JWS Compact Serialization: base64url segments joined by ``.``.

Pure text/byte transforms. Nothing here touches keys or signatures beyond
moving their bytes in and out of the wire form.
"""

from __future__ import annotations

import binascii
import re

from jwt.utils import base64url_decode, base64url_encode

from jws_token.errors import MalformedTokenError

MAX_SEGMENT_BYTES = 65535
"""Default ceiling on the decoded size of any one segment."""

_B64URL_RE = re.compile(r"[A-Za-z0-9_-]*")


def b64url_encode(data: bytes) -> str:
    """Encode *data* as unpadded base64url text."""
    return base64url_encode(data).decode("ascii")


def b64url_decode(text: str, max_bytes: int | None = None) -> bytes:
    """Strictly decode unpadded base64url *text*.

    Rejects padding, characters outside the URL-safe alphabet and
    truncated input. When *max_bytes* is given, input that would decode
    to more than that many bytes is rejected before decoding.
    """
    if not isinstance(text, str) or not _B64URL_RE.fullmatch(text):
        raise MalformedTokenError("Segment is not base64url text.")
    if len(text) % 4 == 1:
        raise MalformedTokenError("Segment is truncated.")
    if max_bytes is not None and len(text) * 3 // 4 > max_bytes:
        raise MalformedTokenError(
            f"Segment exceeds the {max_bytes}-byte limit."
        )
    try:
        return base64url_decode(text)
    except (binascii.Error, ValueError) as e:
        raise MalformedTokenError(f"Segment failed to decode: {e}") from e


def decode_compact(
    text: str, max_segment_bytes: int = MAX_SEGMENT_BYTES
) -> tuple[str, str, bytes]:
    """Split and decode a three-part compact serialization string.

    Returns ``(header_text, claims_text, signature_bytes)``. The signature
    is empty when the final segment is empty. Raises
    ``MalformedTokenError`` for anything but exactly two separators, an
    undecodable or oversized segment, or header/claims that are not UTF-8.
    """
    if not isinstance(text, str):
        raise MalformedTokenError("Token must be a string.")

    parts = text.split(".")
    if len(parts) != 3:
        raise MalformedTokenError(
            f"Expected 3 dot-separated segments, found {len(parts)}."
        )
    header_seg, claims_seg, signature_seg = parts
    if not header_seg or not claims_seg:
        raise MalformedTokenError("Header and claims segments must not be empty.")

    header_raw = b64url_decode(header_seg, max_segment_bytes)
    claims_raw = b64url_decode(claims_seg, max_segment_bytes)
    signature = b64url_decode(signature_seg, max_segment_bytes)

    try:
        return header_raw.decode("utf-8"), claims_raw.decode("utf-8"), signature
    except UnicodeDecodeError as e:
        raise MalformedTokenError("Header or claims are not UTF-8 text.") from e


def encode_compact(
    header_text: str,
    claims_text: str,
    signature: bytes | None = None,
    with_signature: bool = True,
) -> str:
    """Assemble the compact form.

    With *with_signature* the result has three segments, the last empty
    when *signature* is empty or ``None``. Without it, only the two-part
    signing input ``header.claims`` is returned.
    """
    out = (
        b64url_encode(header_text.encode("utf-8"))
        + "."
        + b64url_encode(claims_text.encode("utf-8"))
    )
    if with_signature:
        out += "." + (b64url_encode(signature) if signature else "")
    return out


def signing_input(header_text: str, claims_text: str) -> bytes:
    """The exact bytes fed to the signature algorithm."""
    return encode_compact(header_text, claims_text, with_signature=False).encode(
        "ascii"
    )
