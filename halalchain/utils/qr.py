import hashlib
import re
import qrcode
from halalchain.core.config import settings


QR_CODE_DIR = settings.static_dir / "qrcodes"
STATIC_URL_PREFIX = "/static/qrcodes"


def qr_filename(batch_id: str) -> str:
    """
    Stable file name for a batch's QR image. Batch ids are free text, so the
    readable part is reduced to safe characters and a digest of the full id
    keeps distinct ids apart.
    """
    slug = re.sub(r'[^A-Za-z0-9_-]+', '-', batch_id).strip('-')[:40]
    digest = hashlib.sha256(batch_id.encode("utf-8")).hexdigest()[:12]
    return f"batch-{slug}-{digest}.png" if slug else f"batch-{digest}.png"


def render_trace_qr(batch_id: str, trace_url: str) -> str:
    """
    Renders the consumer-facing QR code for a batch and returns the public
    URL of the image. Re-rendering overwrites the previous image.
    """
    QR_CODE_DIR.mkdir(parents=True, exist_ok=True)

    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=4,
    )
    qr.add_data(trace_url)
    qr.make(fit=True)

    filename = qr_filename(batch_id)
    qr.make_image(fill_color="black", back_color="white").save(QR_CODE_DIR / filename)

    return f"{settings.public_url}{STATIC_URL_PREFIX}/{filename}"
