"""Ticket codes: what goes into the QR image and how a scan is turned back into a code."""

from common.signing import PAYLOAD_SEPARATOR, sign_ticket_code, unsign_ticket_payload
from events.exceptions import InvalidTicketCodeError
from events.models import Registration
from events.utils import png_data_url, render_qr_png


def scan_payload(registration: Registration) -> str:
    """The signed string encoded in a registration's QR image."""
    return sign_ticket_code(registration.ticket_code)


def resolve_scanned_code(scanned: str) -> str:
    """Turn whatever a scanner read into a ticket code.

    Signed payloads are verified before anything touches the database. Bare codes
    (typed in by hand at the door) are passed through for the equality lookup.

    Raises:
        InvalidTicketCodeError: on a blank scan or a signature mismatch.
    """
    scanned = scanned.strip()
    if not scanned:
        raise InvalidTicketCodeError()
    if PAYLOAD_SEPARATOR not in scanned:
        return scanned
    code = unsign_ticket_payload(scanned)
    if code is None:
        raise InvalidTicketCodeError()
    return code


def qr_code_png(registration: Registration) -> bytes:
    """The registration's QR image as PNG bytes."""
    return render_qr_png(scan_payload(registration))


def qr_code_data_url(registration: Registration) -> str:
    """The registration's QR image as a data URL."""
    return png_data_url(qr_code_png(registration))
