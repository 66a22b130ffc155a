"""HMAC signing for scannable ticket payloads.

A ticket code is an opaque random token stored on the registration. What ends up
inside the QR image is the code plus a short signature, so a door scanner can reject
forged or mistyped payloads before touching the database.

Payload Format:
    <ticket_code>.<signature>

Security:
    - Uses Django's SECRET_KEY with a domain-specific prefix for isolation
    - Signatures are 16 hex chars (64 bits); the code itself carries the entropy,
      the signature only filters garbage
    - Uses hmac.compare_digest() to prevent timing attacks
"""

import hashlib
import hmac
from functools import lru_cache

from django.conf import settings

__all__ = [
    "SIGNATURE_LENGTH",
    "PAYLOAD_SEPARATOR",
    "generate_signature",
    "sign_ticket_code",
    "unsign_ticket_payload",
]

SIGNATURE_LENGTH = 16

PAYLOAD_SEPARATOR = "."

# Domain separator for key derivation.
_KEY_DOMAIN = "ticketing:ticket-code:v1"


@lru_cache(maxsize=1)
def _get_signing_key() -> bytes:
    """Get the signing key, derived from Django's SECRET_KEY.

    Lazily computed on first use and cached for the lifetime of the process.
    """
    return hashlib.sha256(f"{_KEY_DOMAIN}:{settings.SECRET_KEY}".encode()).digest()


def generate_signature(ticket_code: str) -> str:
    """Generate the truncated hex HMAC of a ticket code."""
    return hmac.new(_get_signing_key(), ticket_code.encode(), hashlib.sha256).hexdigest()[:SIGNATURE_LENGTH]


def sign_ticket_code(ticket_code: str) -> str:
    """Build the scannable payload for a ticket code.

    Example:
        >>> sign_ticket_code("q3Hk...")
        "q3Hk....a1b2c3d4e5f60718"
    """
    return f"{ticket_code}{PAYLOAD_SEPARATOR}{generate_signature(ticket_code)}"


def unsign_ticket_payload(payload: str) -> str | None:
    """Extract the ticket code from a signed payload.

    Ticket codes are URL-safe base64 and never contain the separator, so the last
    separator splits code from signature.

    Returns:
        The ticket code if the signature matches, None if it does not.
        Payloads without a separator are not signed and are returned as None too;
        callers decide whether bare codes are acceptable.
    """
    code, sep, sig = payload.rpartition(PAYLOAD_SEPARATOR)
    if not sep or not code or len(sig) != SIGNATURE_LENGTH:
        return None
    if not hmac.compare_digest(sig, generate_signature(code)):
        return None
    return code
