"""Image processing utilities for gallery photos."""

import io

from PIL import Image, ImageOps, UnidentifiedImageError

# MPO is a JPEG with extra frames (phone cameras); the first frame is used
SUPPORTED_FORMATS = ("JPEG", "MPO", "PNG")

THUMBNAIL_SIZE = (100, 100)
THUMBNAIL_QUALITY = 95
NORMALIZED_QUALITY = 90


class ImageProcessingError(Exception):
    """Raised when image bytes cannot be decoded or re-encoded."""
    pass


class ImageProcessor:
    """Create thumbnails and baseline JPEG versions of gallery photos."""

    def __init__(
        self,
        thumbnail_size: tuple[int, int] = THUMBNAIL_SIZE,
        thumbnail_quality: int = THUMBNAIL_QUALITY,
        normalized_quality: int = NORMALIZED_QUALITY,
    ):
        """
        Initialize image processor.

        Args:
            thumbnail_size: Target (width, height) box for thumbnails
            thumbnail_quality: JPEG quality for thumbnails (1-100)
            normalized_quality: JPEG quality for normalized photos (1-100)
        """
        self.thumbnail_size = thumbnail_size
        self.thumbnail_quality = thumbnail_quality
        self.normalized_quality = normalized_quality

    def _open(self, image_data: bytes) -> Image.Image:
        try:
            img = Image.open(io.BytesIO(image_data))
            img.load()
        except (UnidentifiedImageError, OSError) as e:
            raise ImageProcessingError(f"Could not decode image: {e}") from e

        if img.format not in SUPPORTED_FORMATS:
            raise ImageProcessingError(f"Unsupported image format: {img.format}")
        return img

    @staticmethod
    def _to_rgb(img: Image.Image) -> Image.Image:
        """Flatten onto a white background and drop any alpha channel."""
        if img.mode == "P" or img.mode == "LA" or (img.mode == "L" and "transparency" in img.info):
            img = img.convert("RGBA")

        if img.mode == "RGBA":
            background = Image.new("RGB", img.size, (255, 255, 255))
            background.paste(img, mask=img.split()[3])
            return background
        if img.mode != "RGB":
            return img.convert("RGB")
        return img

    @staticmethod
    def _encode_jpeg(img: Image.Image, quality: int) -> bytes:
        buffer = io.BytesIO()
        img.save(buffer, format="JPEG", quality=quality, progressive=False)
        return buffer.getvalue()

    def create_thumbnail(self, image_data: bytes) -> bytes:
        """
        Create a fixed-size thumbnail.

        The image is scaled and center-cropped to fill the thumbnail box, then
        encoded as baseline JPEG.

        Args:
            image_data: Raw JPEG or PNG bytes

        Returns:
            Thumbnail JPEG bytes

        Raises:
            ImageProcessingError: If the image cannot be decoded
        """
        img = self._open(image_data)
        img = ImageOps.exif_transpose(img)
        img = self._to_rgb(img)
        thumb = ImageOps.fit(img, self.thumbnail_size, Image.Resampling.LANCZOS)
        return self._encode_jpeg(thumb, self.thumbnail_quality)

    def normalize(self, image_data: bytes) -> bytes:
        """
        Convert a transparent or indexed image to an opaque baseline JPEG.

        Args:
            image_data: Raw JPEG or PNG bytes

        Returns:
            JPEG bytes composited on white

        Raises:
            ImageProcessingError: If the image cannot be decoded
        """
        img = self._to_rgb(self._open(image_data))
        return self._encode_jpeg(img, self.normalized_quality)
