"""Photo gallery: ingestion pipeline, catalog and EXIF extraction."""

from .catalog import PhotoCatalog
from .exif import ExifDataError, extract_exif
from .models import ExifRecord, Location, PhotoMetadata, PhotoSummary, PhotoUploadRequest
from .pipeline import PhotoIngestionError, PhotoIngestionPipeline, PhotoValidationError

__all__ = [
    "ExifDataError",
    "ExifRecord",
    "Location",
    "PhotoCatalog",
    "PhotoIngestionError",
    "PhotoIngestionPipeline",
    "PhotoMetadata",
    "PhotoSummary",
    "PhotoUploadRequest",
    "PhotoValidationError",
    "extract_exif",
]
