"""HMAC-SHA256 codec for webhook signatures and proxy capability tokens."""

import base64
import hashlib
import hmac
from typing import Union

BytesLike = Union[bytes, str]


def _as_bytes(value: BytesLike) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else value


def compute_mac(message: BytesLike, secret: BytesLike) -> bytes:
    """HMAC-SHA256 of ``message``. Strings are UTF-8 encoded."""
    return hmac.new(_as_bytes(secret), _as_bytes(message), hashlib.sha256).digest()


def to_hex(mac: bytes) -> str:
    return mac.hex()


def to_base64(mac: bytes) -> str:
    return base64.b64encode(mac).decode("ascii")


def mac_hex(message: BytesLike, secret: BytesLike) -> str:
    return to_hex(compute_mac(message, secret))


def mac_base64(message: BytesLike, secret: BytesLike) -> str:
    return to_base64(compute_mac(message, secret))


def verify(candidate: str, expected: str) -> bool:
    """Constant-time comparison of two signature/token strings."""
    if candidate is None or expected is None:
        return False
    return hmac.compare_digest(_as_bytes(candidate), _as_bytes(expected))


def capability_token(reference: str, secret: BytesLike) -> str:
    """Unguessable token granting proxy access to one resource reference."""
    return mac_hex(reference, secret)


def verify_capability_token(token: str, reference: str, secret: BytesLike) -> bool:
    return verify(token, capability_token(reference, secret))
