"""
Modal app for the band site photo API.

Serves the photo gallery endpoints and runs the maintenance backfills.
Photos, thumbnails and the catalog live in S3-compatible object storage.
"""

import modal

# Create Modal app
app = modal.App("bandsite-photos")

# Define the container image with all dependencies and source code
image = (
    modal.Image.debian_slim(python_version="3.12")
    .pip_install(
        "pillow>=10.0.0",
        "requests>=2.31.0",
        "python-dotenv>=1.0.0",
        "fastapi>=0.115.0",
        "boto3>=1.42.23",
    )
    .add_local_python_source("config")
    .add_local_python_source("geolocate")
    .add_local_python_source("photo")
    .add_local_python_source("session")
    .add_local_python_source("utils")
    .add_local_python_source("web")
)

# Define secrets
# To set these up, run:
# modal secret create aws-storage AWS_ACCESS_KEY_ID=<key> AWS_SECRET_ACCESS_KEY=<secret> AWS_REGION=us-west-1
# modal secret create positionstack POSITIONSTACK_KEY=<key>
secrets = [
    modal.Secret.from_name("aws-storage"),
    modal.Secret.from_name("positionstack"),
]


@app.function(image=image, secrets=[modal.Secret.from_name("aws-storage")])
@modal.asgi_app()
def photos_api():
    """
    Photo gallery API.

    POST   /photos/upload       - JSON array of {url, filename, mimeType, id, metadata}
    POST   /photos/update       - JSON {id: {field: value}} merged into the catalog
    GET    /photos/list         - thumbnails with metadata
    DELETE /photos/delete?name= - remove a photo
    GET    /health
    """
    from config import Settings
    from photo.pipeline import PhotoIngestionPipeline
    from web.photos_api import create_photos_app

    settings = Settings.from_env()
    pipeline = PhotoIngestionPipeline.from_settings(settings)

    return create_photos_app(pipeline, allowed_origins=settings.allowed_origins)


@app.function(image=image, secrets=secrets, timeout=1800)
def backfill_photo_locations(dry_run: bool = True):
    """Fill capture time, GPS and place names in the catalog from each photo's EXIF."""
    from config import Settings
    from geolocate.geocoding import Geocoder
    from photo.backfill import backfill_locations
    from photo.pipeline import PhotoIngestionPipeline

    settings = Settings.from_env()
    pipeline = PhotoIngestionPipeline.from_settings(settings)

    print(f"🚀 Starting location backfill (dry_run: {dry_run})")
    return backfill_locations(
        pipeline.store,
        pipeline.catalog,
        Geocoder.from_settings(settings),
        settings.images_bucket,
        dry_run=dry_run,
    )


@app.function(image=image, secrets=[modal.Secret.from_name("aws-storage")], timeout=1800)
def backfill_photo_thumbnails(dry_run: bool = True):
    """Create thumbnails for photos that are missing one."""
    from config import Settings
    from photo.backfill import backfill_thumbnails
    from photo.pipeline import PhotoIngestionPipeline

    settings = Settings.from_env()
    pipeline = PhotoIngestionPipeline.from_settings(settings)

    print(f"🚀 Starting thumbnail backfill (dry_run: {dry_run})")
    return backfill_thumbnails(
        pipeline.store,
        pipeline.processor,
        settings.images_bucket,
        settings.thumbnails_bucket,
        dry_run=dry_run,
    )
