"""Maintenance jobs that backfill derived data for already ingested photos."""

from datetime import datetime, timezone

from geolocate.geocoding import GeocodingError
from photo.catalog import PhotoCatalog
from photo.exif import ExifDataError, extract_exif
from utils.image_processor import ImageProcessingError


def _rfc3339(value: datetime) -> str:
    """EXIF times carry no zone; they are stored as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def backfill_locations(
    store,
    catalog: PhotoCatalog,
    geocoder,
    images_bucket: str,
    dry_run: bool = True,
) -> dict:
    """
    Fill capture time, GPS coordinates and place names from each photo's EXIF.

    Every key in the image bucket is read; its catalog entry (created if
    missing) gets filename, datetimeOriginal, gpsLatitude, gpsLongitude and
    location. All changes are written back in one catalog update.

    Args:
        store: Object store
        catalog: Photo catalog
        geocoder: Object with reverse(lat, lon) -> Location | None
        images_bucket: Bucket holding full-size photos
        dry_run: If True, only print what would be updated

    Returns:
        dict with counts: updated, no_exif, geocode_failed
    """
    keys = store.list(images_bucket)
    print(f"Found {len(keys)} photo(s) in {images_bucket}")

    changes: dict[str, dict] = {}
    no_exif = 0
    geocode_failed = 0

    for key in keys:
        print(f"Populating EXIF data for {key}")
        try:
            record = extract_exif(store.get(images_bucket, key))
        except ExifDataError as e:
            print(f"⚠️  Skipping {key}: {e}")
            no_exif += 1
            continue

        fields = {
            "filename": key,
            "datetimeOriginal": _rfc3339(record.capture_time) if record.capture_time else None,
            "gpsLatitude": record.gps_latitude,
            "gpsLongitude": record.gps_longitude,
        }

        if record.has_coordinates:
            try:
                location = geocoder.reverse(record.gps_latitude, record.gps_longitude)
                fields["location"] = location.to_dict() if location else None
            except GeocodingError as e:
                # keep whatever location the entry already has
                print(f"⚠️  Could not geocode {key}: {e}")
                geocode_failed += 1
        else:
            fields["location"] = None

        if dry_run:
            place = fields.get("location", {}) or {}
            print(f"[DRY RUN] Would update {key}: {fields['datetimeOriginal']} {place.get('label', '')}")
        changes[key] = fields

    if changes and not dry_run:
        catalog.merge_fields(changes)
        print("\n✅ Backfill complete!")
    elif dry_run:
        print("\n[DRY RUN] No changes made")

    print(f"   {len(changes)} photo(s) would be/were updated")
    print(f"   {no_exif} photo(s) without EXIF data")
    print(f"   {geocode_failed} geocoding failure(s)")

    return {"updated": len(changes), "no_exif": no_exif, "geocode_failed": geocode_failed}


def backfill_thumbnails(
    store,
    processor,
    images_bucket: str,
    thumbnails_bucket: str,
    dry_run: bool = True,
) -> dict:
    """
    Create thumbnails for photos that do not have one yet.

    Args:
        store: Object store
        processor: ImageProcessor used to render thumbnails
        images_bucket: Bucket holding full-size photos
        thumbnails_bucket: Bucket holding thumbnails
        dry_run: If True, only print what would be created

    Returns:
        dict with counts: created, failed, skipped
    """
    existing = set(store.list(thumbnails_bucket))
    keys = store.list(images_bucket)
    missing = [key for key in keys if key not in existing]
    print(f"Found {len(missing)} photo(s) without thumbnails ({len(keys)} total)")

    created = 0
    failed = 0
    for key in missing:
        if dry_run:
            print(f"[DRY RUN] Would create thumbnail for {key}")
            created += 1
            continue

        try:
            thumbnail = processor.create_thumbnail(store.get(images_bucket, key))
        except ImageProcessingError as e:
            print(f"⚠️  Could not create thumbnail for {key}: {e}")
            failed += 1
            continue

        store.put(thumbnails_bucket, key, thumbnail, "image/jpeg")
        print(f"✓ Created thumbnail for {key}")
        created += 1

    return {"created": created, "failed": failed, "skipped": len(keys) - len(missing)}
