"""Tests for the location and thumbnail backfill jobs."""

import json
from datetime import datetime, timedelta, timezone

import pytest

from geolocate.geocoding import GeocodingError
from photo import backfill
from photo.backfill import backfill_locations, backfill_thumbnails
from photo.exif import ExifDataError
from photo.models import ExifRecord, Location
from tests.helpers import API_BUCKET, CATALOG_KEY, IMAGES_BUCKET, THUMBNAILS_BUCKET, make_jpeg
from utils.image_processor import ImageProcessor


class FakeGeocoder:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def reverse(self, lat, lon):
        self.calls.append((lat, lon))
        if self.error:
            raise self.error
        return self.result


BOISE = Location(label="Boise, ID, USA", region_code="ID", confidence=1.0)


@pytest.fixture
def exif_records(monkeypatch):
    """Serve canned EXIF records by image bytes."""
    records = {}

    def fake_extract(data):
        record = records[data]
        if isinstance(record, Exception):
            raise record
        return record

    monkeypatch.setattr(backfill, "extract_exif", fake_extract)
    return records


def add_image(store, records, key, record):
    data = key.encode()
    store.put(IMAGES_BUCKET, key, data, "image/jpeg")
    records[data] = record


def catalog_json(store) -> dict:
    return json.loads(store.buckets[API_BUCKET][CATALOG_KEY])


@pytest.mark.unit
class TestBackfillLocations:
    """Test backfill_locations()."""

    def test_fills_exif_fields_and_location(self, mock_store, catalog, exif_records):
        """Test a photo with time and coordinates."""
        record = ExifRecord(datetime(2023, 6, 15, 20, 30), 43.6, -116.2)
        add_image(mock_store, exif_records, "a1", record)
        geocoder = FakeGeocoder(BOISE)

        stats = backfill_locations(mock_store, catalog, geocoder, IMAGES_BUCKET, dry_run=False)

        assert stats == {"updated": 1, "no_exif": 0, "geocode_failed": 0}
        assert geocoder.calls == [(43.6, -116.2)]
        entry = catalog_json(mock_store)["a1"]
        assert entry["filename"] == "a1"
        assert entry["datetimeOriginal"] == "2023-06-15T20:30:00Z"
        assert entry["gpsLatitude"] == 43.6
        assert entry["location"]["label"] == "Boise, ID, USA"

    def test_capture_time_is_stored_with_utc_offset(self, mock_store, catalog, exif_records):
        """Test that zoned capture times are normalized to UTC."""
        mountain = timezone(timedelta(hours=-6))
        record = ExifRecord(datetime(2023, 6, 15, 14, 30, tzinfo=mountain))
        add_image(mock_store, exif_records, "a1", record)

        backfill_locations(mock_store, catalog, FakeGeocoder(), IMAGES_BUCKET, dry_run=False)

        assert catalog_json(mock_store)["a1"]["datetimeOriginal"] == "2023-06-15T20:30:00Z"

    def test_keeps_existing_category_and_tags(self, mock_store, catalog, exif_records):
        """Test that backfill merges instead of overwriting."""
        mock_store.put(
            API_BUCKET, CATALOG_KEY, json.dumps({"a1": {"category": "live", "tags": "x"}}).encode()
        )
        add_image(mock_store, exif_records, "a1", ExifRecord(datetime(2023, 1, 1), 1.0, 2.0))

        backfill_locations(mock_store, catalog, FakeGeocoder(BOISE), IMAGES_BUCKET, dry_run=False)

        entry = catalog_json(mock_store)["a1"]
        assert entry["category"] == "live"
        assert entry["tags"] == "x"

    def test_no_coordinates_clears_location(self, mock_store, catalog, exif_records):
        """Test that a photo without GPS gets no location and no lookup."""
        add_image(mock_store, exif_records, "a1", ExifRecord(datetime(2023, 1, 1)))
        geocoder = FakeGeocoder(BOISE)

        backfill_locations(mock_store, catalog, geocoder, IMAGES_BUCKET, dry_run=False)

        assert geocoder.calls == []
        assert catalog_json(mock_store)["a1"]["location"] is None

    def test_geocoding_failure_keeps_previous_location(self, mock_store, catalog, exif_records):
        """Test that a failed lookup leaves the stored location as it was."""
        mock_store.put(
            API_BUCKET,
            CATALOG_KEY,
            json.dumps({"a1": {"location": {"label": "Old Place"}}}).encode(),
        )
        add_image(mock_store, exif_records, "a1", ExifRecord(datetime(2023, 1, 1), 1.0, 2.0))
        geocoder = FakeGeocoder(error=GeocodingError("service down"))

        stats = backfill_locations(mock_store, catalog, geocoder, IMAGES_BUCKET, dry_run=False)

        assert stats["geocode_failed"] == 1
        entry = catalog_json(mock_store)["a1"]
        assert entry["location"]["label"] == "Old Place"
        assert entry["gpsLatitude"] == 1.0

    def test_photos_without_exif_are_skipped(self, mock_store, catalog, exif_records):
        """Test that EXIF failures are counted and skipped."""
        add_image(mock_store, exif_records, "a1", ExifDataError("No EXIF data found"))
        add_image(mock_store, exif_records, "a2", ExifRecord(datetime(2023, 1, 1)))

        stats = backfill_locations(
            mock_store, catalog, FakeGeocoder(), IMAGES_BUCKET, dry_run=False
        )

        assert stats == {"updated": 1, "no_exif": 1, "geocode_failed": 0}
        assert set(catalog_json(mock_store)) == {"a2"}

    def test_dry_run_writes_nothing(self, mock_store, catalog, exif_records):
        """Test that dry runs report without touching the catalog."""
        add_image(mock_store, exif_records, "a1", ExifRecord(datetime(2023, 1, 1), 1.0, 2.0))

        stats = backfill_locations(mock_store, catalog, FakeGeocoder(BOISE), IMAGES_BUCKET)

        assert stats["updated"] == 1
        assert not mock_store.file_exists(API_BUCKET, CATALOG_KEY)

    def test_real_image_without_exif(self, mock_store, catalog):
        """Test the unpatched extractor on a JPEG with no EXIF block."""
        mock_store.put(IMAGES_BUCKET, "plain", make_jpeg(), "image/jpeg")

        stats = backfill_locations(
            mock_store, catalog, FakeGeocoder(), IMAGES_BUCKET, dry_run=False
        )

        assert stats == {"updated": 0, "no_exif": 1, "geocode_failed": 0}


@pytest.mark.unit
class TestBackfillThumbnails:
    """Test backfill_thumbnails()."""

    def test_creates_only_missing_thumbnails(self, mock_store):
        """Test that existing thumbnails are left alone."""
        mock_store.put(IMAGES_BUCKET, "a1", make_jpeg(), "image/jpeg")
        mock_store.put(IMAGES_BUCKET, "a2", make_jpeg(), "image/jpeg")
        mock_store.put(THUMBNAILS_BUCKET, "a1", b"existing", "image/jpeg")

        stats = backfill_thumbnails(
            mock_store, ImageProcessor(), IMAGES_BUCKET, THUMBNAILS_BUCKET, dry_run=False
        )

        assert stats == {"created": 1, "failed": 0, "skipped": 1}
        assert mock_store.buckets[THUMBNAILS_BUCKET]["a1"] == b"existing"
        assert mock_store.get_file_metadata(THUMBNAILS_BUCKET, "a2")["content_type"] == "image/jpeg"

    def test_undecodable_image_is_counted(self, mock_store):
        """Test that a broken image does not stop the job."""
        mock_store.put(IMAGES_BUCKET, "broken", b"nope", "image/jpeg")
        mock_store.put(IMAGES_BUCKET, "ok", make_jpeg(), "image/jpeg")

        stats = backfill_thumbnails(
            mock_store, ImageProcessor(), IMAGES_BUCKET, THUMBNAILS_BUCKET, dry_run=False
        )

        assert stats == {"created": 1, "failed": 1, "skipped": 0}
        assert mock_store.list_files(THUMBNAILS_BUCKET) == ["ok"]

    def test_dry_run_writes_nothing(self, mock_store):
        """Test that dry runs only report."""
        mock_store.put(IMAGES_BUCKET, "a1", make_jpeg(), "image/jpeg")

        stats = backfill_thumbnails(mock_store, ImageProcessor(), IMAGES_BUCKET, THUMBNAILS_BUCKET)

        assert stats["created"] == 1
        assert mock_store.list_files(THUMBNAILS_BUCKET) == []
