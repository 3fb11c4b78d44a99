import json

import click
from dotenv import load_dotenv

from config import Settings
from geolocate.geocoding import Geocoder
from photo.backfill import backfill_locations, backfill_thumbnails
from photo.exif import ExifDataError, extract_exif
from photo.models import PhotoUploadRequest
from photo.pipeline import PhotoIngestionError, PhotoIngestionPipeline, PhotoValidationError

# Load environment variables from .env file
load_dotenv()


def _pipeline() -> tuple[Settings, PhotoIngestionPipeline]:
    settings = Settings.from_env()
    return settings, PhotoIngestionPipeline.from_settings(settings)


@click.group()
def cli():
    """Band site photo gallery tools"""
    pass


@cli.command()
@click.argument('batch_path', type=click.Path(exists=True))
def ingest(batch_path: str):
    """
    Ingest a batch of photos described by a JSON file.

    The file holds a JSON array of {url, filename, mimeType, id, metadata}.
    """
    with open(batch_path) as f:
        payload = json.load(f)

    try:
        if not isinstance(payload, list):
            raise PhotoValidationError("expected a JSON array of photos")
        batch = [PhotoUploadRequest.from_dict(item) for item in payload]
        _, pipeline = _pipeline()
        pipeline.ingest(batch)
    except (PhotoValidationError, ValueError) as e:
        click.echo(f"Invalid batch: {e}", err=True)
        raise click.Abort()
    except PhotoIngestionError as e:
        click.echo(f"Ingestion failed (batch rolled back): {e}", err=True)
        raise click.Abort()

    click.echo(f"✓ Ingested {len(batch)} photo(s)")
    for request in batch:
        click.echo(f"  - {request.id}")


@cli.command()
def list_photos():
    """List photos that have thumbnails, with their catalog metadata."""
    _, pipeline = _pipeline()
    pipeline.inline_thumbnails = False
    summaries = pipeline.list_photos()

    if not summaries:
        click.echo("No photos in the gallery")
        return

    click.echo(f"Found {len(summaries)} photo(s):\n")
    for summary in summaries:
        metadata = summary.metadata
        click.echo(f"ID: {summary.key}")
        click.echo(f"  Captured: {metadata.capture_time or '-'}")
        click.echo(f"  GPS: {metadata.gps_latitude}, {metadata.gps_longitude}")
        if metadata.location:
            click.echo(f"  Location: {metadata.location.label}")
        click.echo(f"  Category: {metadata.category or '-'}  Tags: {metadata.tags or '-'}")
        click.echo(f"  Thumbnail: {summary.url}\n")


@cli.command()
@click.argument('photo_id')
def delete_photo(photo_id: str):
    """Delete a photo, its thumbnail and its catalog entry."""
    _, pipeline = _pipeline()

    if not click.confirm(f"Delete photo {photo_id}?"):
        click.echo("Operation cancelled.")
        return

    pipeline.delete_photo(photo_id)
    click.echo(f"✓ Deleted {photo_id}")


@cli.command()
@click.argument('image_path', type=click.Path(exists=True))
def exif(image_path: str):
    """Show the capture time and GPS position stored in a local image."""
    with open(image_path, 'rb') as f:
        data = f.read()

    try:
        record = extract_exif(data)
    except ExifDataError as e:
        click.echo(f"Error: {e}", err=True)
        raise click.Abort()

    click.echo(f"  - Timestamp: {record.capture_time.isoformat() if record.capture_time else '-'}")
    click.echo(f"  - Location: {record.gps_latitude}, {record.gps_longitude}")


@cli.command()
@click.option('--apply', is_flag=True, help='Write changes (default is a dry run)')
def backfill_photo_locations(apply: bool):
    """Fill capture time, GPS and place names in the catalog from photo EXIF."""
    settings, pipeline = _pipeline()
    if not settings.positionstack_key:
        click.echo("Warning: POSITIONSTACK_KEY is not set, geocoding will fail", err=True)

    backfill_locations(
        pipeline.store,
        pipeline.catalog,
        Geocoder.from_settings(settings),
        settings.images_bucket,
        dry_run=not apply,
    )


@cli.command()
@click.option('--apply', is_flag=True, help='Write changes (default is a dry run)')
def backfill_photo_thumbnails(apply: bool):
    """Create thumbnails for photos that are missing one."""
    settings, pipeline = _pipeline()
    backfill_thumbnails(
        pipeline.store,
        pipeline.processor,
        settings.images_bucket,
        settings.thumbnails_bucket,
        dry_run=not apply,
    )


if __name__ == "__main__":
    cli()
