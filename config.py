"""Runtime settings for the photo API, read from environment variables."""

import os
from dataclasses import dataclass, field

# Buckets and keys used by the site
DEFAULT_API_BUCKET = "chadedwardsapi"
DEFAULT_IMAGES_BUCKET = "chadedwardsbandimages"
DEFAULT_THUMBNAILS_BUCKET = "chadedwardsbandthumbnails"
CATALOG_KEY = "photos.json"
LEDGER_KEY = "session-blacklist"

DEFAULT_ALLOWED_ORIGINS = [
    "https://chadedwardsband.com",
    "https://www.chadedwardsband.com",
    "http://localhost:3000",
    "http://localhost:3001",
]


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """
    Settings for storage, geocoding and the HTTP surface.

    Environment variables:
        PHOTO_API_BUCKET, PHOTO_IMAGES_BUCKET, PHOTO_THUMBNAILS_BUCKET
        AWS_REGION, S3_ENDPOINT_URL, PUBLIC_URL_BASE
        POSITIONSTACK_KEY, POSITIONSTACK_ENDPOINT
        HTTP_TIMEOUT_SECONDS, SESSION_COOLDOWN_MINUTES
        CONDITIONAL_WRITES, DOCUMENT_WRITE_ATTEMPTS
        INLINE_THUMBNAILS, ALLOWED_ORIGINS (comma separated)
    """

    api_bucket: str = DEFAULT_API_BUCKET
    images_bucket: str = DEFAULT_IMAGES_BUCKET
    thumbnails_bucket: str = DEFAULT_THUMBNAILS_BUCKET
    catalog_key: str = CATALOG_KEY
    ledger_key: str = LEDGER_KEY

    region: str = "us-west-1"
    endpoint_url: str | None = None
    public_url_base: str | None = None

    positionstack_key: str | None = None
    positionstack_endpoint: str = "http://api.positionstack.com/v1/"

    http_timeout: float = 30.0
    cooldown_minutes: float = 10.0
    conditional_writes: bool = True
    write_attempts: int = 5
    inline_thumbnails: bool = True
    allowed_origins: list[str] = field(default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS))

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("ALLOWED_ORIGINS")
        return cls(
            api_bucket=os.getenv("PHOTO_API_BUCKET", DEFAULT_API_BUCKET),
            images_bucket=os.getenv("PHOTO_IMAGES_BUCKET", DEFAULT_IMAGES_BUCKET),
            thumbnails_bucket=os.getenv("PHOTO_THUMBNAILS_BUCKET", DEFAULT_THUMBNAILS_BUCKET),
            region=os.getenv("AWS_REGION", "us-west-1"),
            endpoint_url=os.getenv("S3_ENDPOINT_URL") or None,
            public_url_base=(os.getenv("PUBLIC_URL_BASE") or "").rstrip("/") or None,
            positionstack_key=os.getenv("POSITIONSTACK_KEY"),
            positionstack_endpoint=os.getenv(
                "POSITIONSTACK_ENDPOINT", "http://api.positionstack.com/v1/"
            ),
            http_timeout=float(os.getenv("HTTP_TIMEOUT_SECONDS", "30")),
            cooldown_minutes=float(os.getenv("SESSION_COOLDOWN_MINUTES", "10")),
            conditional_writes=_env_bool("CONDITIONAL_WRITES", True),
            write_attempts=int(os.getenv("DOCUMENT_WRITE_ATTEMPTS", "5")),
            inline_thumbnails=_env_bool("INLINE_THUMBNAILS", True),
            allowed_origins=(
                [o.strip() for o in origins.split(",") if o.strip()]
                if origins
                else list(DEFAULT_ALLOWED_ORIGINS)
            ),
        )
