import io
from datetime import datetime

from PIL import ExifTags, Image, UnidentifiedImageError
from PIL.ExifTags import GPSTAGS, TAGS

from photo.models import ExifRecord


class ExifDataError(Exception):
    """Raised when image bytes carry no readable EXIF block."""
    pass


def get_exif_data(data: bytes) -> dict:
    """Decode the EXIF block of an image into a {tag name: value} dict."""
    try:
        with Image.open(io.BytesIO(data)) as image:
            exif_data = image.getexif()
    except (UnidentifiedImageError, OSError) as e:
        raise ExifDataError(f"Could not decode image: {e}") from e

    if not exif_data:
        raise ExifDataError("No EXIF data found in image")

    exif = {}
    for tag_id, value in exif_data.items():
        exif[TAGS.get(tag_id, tag_id)] = value

    # DateTimeOriginal lives in the Exif sub-IFD, GPS in its own
    for tag_id, value in exif_data.get_ifd(ExifTags.IFD.Exif).items():
        exif[TAGS.get(tag_id, tag_id)] = value

    gps_ifd = exif_data.get_ifd(ExifTags.IFD.GPSInfo)
    if gps_ifd:
        exif["GPSInfo"] = dict(gps_ifd)

    return exif


def get_gps_data(exif: dict) -> dict:
    """Extract GPS data from EXIF dictionary."""
    if "GPSInfo" not in exif:
        raise ExifDataError("No GPS data found in EXIF")

    gps_info = {}
    for key, value in exif["GPSInfo"].items():
        gps_info[GPSTAGS.get(key, key)] = value

    return gps_info


def convert_to_degrees(value) -> float:
    """Convert GPS coordinates to degrees in float format."""
    d, m, s = value
    return float(d) + (float(m) / 60.0) + (float(s) / 3600.0)


def get_coordinates(gps_info: dict) -> tuple[float, float]:
    """Extract latitude and longitude from GPS info."""
    if "GPSLatitude" not in gps_info or "GPSLongitude" not in gps_info:
        raise ExifDataError("GPS coordinates not found in EXIF data")

    try:
        lat = convert_to_degrees(gps_info["GPSLatitude"])
        lon = convert_to_degrees(gps_info["GPSLongitude"])
    except (TypeError, ValueError, ZeroDivisionError) as e:
        raise ExifDataError(f"Malformed GPS coordinates: {e}") from e

    if gps_info.get("GPSLatitudeRef") == "S":
        lat = -lat
    if gps_info.get("GPSLongitudeRef") == "W":
        lon = -lon

    return lat, lon


def get_timestamp(exif: dict) -> datetime:
    """Extract capture time from EXIF data."""
    datetime_original = exif.get("DateTimeOriginal") or exif.get("DateTime")

    if not datetime_original:
        raise ExifDataError("No timestamp found in EXIF data")

    try:
        return datetime.strptime(str(datetime_original).strip("\x00 "), "%Y:%m:%d %H:%M:%S")
    except ValueError as e:
        raise ExifDataError(f"Malformed EXIF timestamp: {datetime_original!r}") from e


def extract_exif(data: bytes) -> ExifRecord:
    """
    Extract capture time and GPS coordinates from raw image bytes.

    Missing or malformed fields are left at their zero value with a warning.

    Raises:
        ExifDataError: If the bytes are not an image or carry no EXIF block
    """
    exif = get_exif_data(data)
    record = ExifRecord()

    try:
        record.capture_time = get_timestamp(exif)
    except ExifDataError as e:
        print(f"⚠️ Error getting datetime: {e}")

    try:
        record.gps_latitude, record.gps_longitude = get_coordinates(get_gps_data(exif))
    except ExifDataError as e:
        print(f"⚠️ Error getting latlong: {e}")

    return record
