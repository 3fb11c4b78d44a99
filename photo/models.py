"""Photo catalog records and their JSON wire format."""

from dataclasses import asdict, dataclass, field, fields
from datetime import datetime


@dataclass
class Location:
    """One reverse-geocoding result."""

    label: str = ""
    name: str = ""
    type: str = ""
    number: str = ""
    street: str = ""
    postal_code: str = ""
    region: str = ""
    region_code: str = ""
    country: str = ""
    country_code: str = ""
    map_url: str = ""
    confidence: float = 0.0

    @classmethod
    def from_dict(cls, data: dict) -> "Location":
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known and v is not None}
        if "confidence" in values:
            values["confidence"] = float(values["confidence"])
        for key in known - {"confidence"}:
            if key in values and not isinstance(values[key], str):
                values[key] = str(values[key])
        return cls(**values)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ExifRecord:
    """Capture metadata read from an image's EXIF block."""

    capture_time: datetime | None = None
    gps_latitude: float = 0.0
    gps_longitude: float = 0.0

    @property
    def has_coordinates(self) -> bool:
        return bool(self.gps_latitude or self.gps_longitude)


@dataclass
class PhotoMetadata:
    """Catalog entry for one photo, keyed by photo id in the catalog document."""

    filename: str = ""
    capture_time: str | None = None
    gps_latitude: float = 0.0
    gps_longitude: float = 0.0
    location: Location | None = None
    category: str = ""
    tags: str = ""

    # attribute name -> JSON key
    WIRE_KEYS = {
        "filename": "filename",
        "capture_time": "datetimeOriginal",
        "gps_latitude": "gpsLatitude",
        "gps_longitude": "gpsLongitude",
        "location": "location",
        "category": "category",
        "tags": "tags",
    }

    @classmethod
    def from_dict(cls, data: dict | None) -> "PhotoMetadata":
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValueError("photo metadata must be a JSON object")

        metadata = cls()
        for attr, key in cls.WIRE_KEYS.items():
            if key not in data:
                continue
            value = data[key]
            if attr == "location":
                value = Location.from_dict(value) if isinstance(value, dict) else None
            elif attr in ("gps_latitude", "gps_longitude"):
                value = float(value or 0.0)
            elif attr == "capture_time":
                value = value or None
            else:
                value = "" if value is None else str(value)
            setattr(metadata, attr, value)
        return metadata

    def to_dict(self) -> dict:
        return {
            "filename": self.filename,
            "datetimeOriginal": self.capture_time,
            "gpsLatitude": self.gps_latitude,
            "gpsLongitude": self.gps_longitude,
            "location": self.location.to_dict() if self.location else None,
            "category": self.category,
            "tags": self.tags,
        }

    def merged_with(self, changes: dict) -> "PhotoMetadata":
        """Return a copy with the JSON fields present in `changes` replaced."""
        if not isinstance(changes, dict):
            raise ValueError("photo metadata must be a JSON object")
        unknown = set(changes) - set(self.WIRE_KEYS.values())
        if unknown:
            raise ValueError(f"Unknown metadata field(s): {', '.join(sorted(unknown))}")
        location = changes.get("location")
        if location is not None and not isinstance(location, dict):
            raise ValueError("location must be a JSON object or null")
        return PhotoMetadata.from_dict({**self.to_dict(), **changes})


# Only JPEG is stored; PNG is accepted and normalized to JPEG on ingest.
CANONICAL_MIME_TYPE = "image/jpeg"
ACCEPTED_EXTENSIONS = {
    "image/jpeg": (".jpg", ".jpeg"),
    "image/png": (".png",),
}


@dataclass
class PhotoUploadRequest:
    """One item of an upload batch: a remotely hosted photo to ingest."""

    url: str
    filename: str
    mime_type: str
    id: str
    metadata: PhotoMetadata = field(default_factory=PhotoMetadata)

    @classmethod
    def from_dict(cls, data: dict) -> "PhotoUploadRequest":
        if not isinstance(data, dict):
            raise ValueError("upload request must be a JSON object")
        return cls(
            url=str(data.get("url") or ""),
            filename=str(data.get("filename") or ""),
            mime_type=str(data.get("mimeType") or ""),
            id=str(data.get("id") or ""),
            metadata=PhotoMetadata.from_dict(data.get("metadata")),
        )

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "filename": self.filename,
            "mimeType": self.mime_type,
            "id": self.id,
            "metadata": self.metadata.to_dict(),
        }

    @property
    def needs_normalization(self) -> bool:
        return self.mime_type.lower() != CANONICAL_MIME_TYPE


@dataclass
class PhotoSummary:
    """Listing entry: a thumbnail (inline or by URL) plus its catalog metadata."""

    key: str
    metadata: PhotoMetadata
    body: str | None = None
    url: str | None = None

    def to_dict(self) -> dict:
        result = {"id": self.key, "metadata": self.metadata.to_dict()}
        if self.body is not None:
            result["body"] = self.body
        if self.url is not None:
            result["url"] = self.url
        return result
