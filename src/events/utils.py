import base64
from io import BytesIO

import qrcode


def render_qr_png(data: str) -> bytes:
    """Render ``data`` as a black-on-white QR code PNG."""
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=4,
    )
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffered = BytesIO()
    img.save(buffered, "PNG")
    return buffered.getvalue()


def png_data_url(png: bytes) -> str:
    """Embed PNG bytes as a data URL."""
    return f"data:image/png;base64,{base64.b64encode(png).decode('utf-8')}"
