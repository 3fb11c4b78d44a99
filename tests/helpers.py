"""Bucket names and image builders shared by the tests."""

import io

from PIL import Image

API_BUCKET = "test-api"
IMAGES_BUCKET = "test-images"
THUMBNAILS_BUCKET = "test-thumbnails"
CATALOG_KEY = "photos.json"
LEDGER_KEY = "session-blacklist"


def make_jpeg(size=(320, 240), color="blue", exif=None) -> bytes:
    """Encode a solid-color JPEG, optionally with an EXIF block."""
    img = Image.new("RGB", size, color=color)
    buffer = io.BytesIO()
    if exif is not None:
        img.save(buffer, "JPEG", exif=exif)
    else:
        img.save(buffer, "JPEG")
    return buffer.getvalue()


def make_png(size=(64, 48), color=(255, 0, 0, 0)) -> bytes:
    """Encode an RGBA PNG (fully transparent by default)."""
    img = Image.new("RGBA", size, color=color)
    buffer = io.BytesIO()
    img.save(buffer, "PNG")
    return buffer.getvalue()


def make_mpo(size=(200, 120)) -> bytes:
    """Encode a two-frame MPO (red, then blue), the JPEG variant phone cameras write."""
    first = Image.new("RGB", size, color="red")
    second = Image.new("RGB", size, color="blue")
    buffer = io.BytesIO()
    first.save(buffer, "MPO", save_all=True, append_images=[second])
    return buffer.getvalue()
