"""
Photo ingestion pipeline.

A batch of remotely hosted photos is downloaded, normalized to JPEG,
thumbnailed and uploaded to the image and thumbnail buckets, then merged into
the catalog document. Any fatal step failure rolls back the whole batch.
"""

import base64
from enum import Enum
from functools import partial
from pathlib import PurePosixPath
from typing import Callable

import requests

from photo.catalog import PhotoCatalog
from photo.models import (
    ACCEPTED_EXTENSIONS,
    CANONICAL_MIME_TYPE,
    PhotoMetadata,
    PhotoSummary,
    PhotoUploadRequest,
)
from photo.saga import Saga
from utils.documents import JsonDocument
from utils.image_processor import ImageProcessor
from utils.object_store import ObjectNotFoundError, ObjectStore


class StepPolicy(Enum):
    FATAL = "fatal"
    BEST_EFFORT = "best_effort"


# How a failure of each pipeline step is treated
STEP_POLICIES = {
    "download": StepPolicy.FATAL,
    "normalize": StepPolicy.FATAL,
    "thumbnail": StepPolicy.BEST_EFFORT,
    "upload_image": StepPolicy.FATAL,
    "upload_thumbnail": StepPolicy.FATAL,
    "catalog": StepPolicy.FATAL,
}


class PhotoValidationError(Exception):
    """Raised when a request is rejected before any side effect."""
    pass


class PhotoIngestionError(Exception):
    """Raised when a fatal pipeline step fails (after the batch is rolled back)."""

    def __init__(self, message: str, step: str, photo_id: str | None = None):
        super().__init__(message)
        self.step = step
        self.photo_id = photo_id


def validate_request(request: PhotoUploadRequest) -> None:
    """
    Check one upload request.

    Raises:
        PhotoValidationError: If the id is empty, the MIME type is not accepted,
            or the filename extension does not match the MIME type
    """
    if not request.id:
        raise PhotoValidationError("photo id is required")

    mime_type = request.mime_type.lower()
    if mime_type not in ACCEPTED_EXTENSIONS:
        raise PhotoValidationError(f"invalid mime type: {request.mime_type or '(none)'}")

    extension = PurePosixPath(request.filename.lower()).suffix
    if extension not in ACCEPTED_EXTENSIONS[mime_type]:
        raise PhotoValidationError(
            f"invalid file extension for {mime_type}: {request.filename or '(none)'}"
        )


class PhotoIngestionPipeline:
    """Ingest, list, update and delete gallery photos."""

    def __init__(
        self,
        store,
        catalog: PhotoCatalog,
        images_bucket: str,
        thumbnails_bucket: str,
        processor: ImageProcessor | None = None,
        timeout: float = 30.0,
        http: requests.Session | None = None,
        step_policies: dict[str, StepPolicy] | None = None,
        inline_thumbnails: bool = True,
    ):
        """
        Args:
            store: Object store (see utils.object_store.ObjectStore)
            catalog: Catalog document wrapper
            images_bucket: Bucket for full-size photos
            thumbnails_bucket: Bucket for thumbnails
            processor: Image processor for thumbnails and normalization
            timeout: Download timeout in seconds
            http: requests session used for downloads
            step_policies: Overrides for STEP_POLICIES
            inline_thumbnails: List thumbnails as base64 bodies instead of URLs
        """
        self.store = store
        self.catalog = catalog
        self.images_bucket = images_bucket
        self.thumbnails_bucket = thumbnails_bucket
        self.processor = processor or ImageProcessor()
        self.timeout = timeout
        self.http = http or requests.Session()
        self.step_policies = {**STEP_POLICIES, **(step_policies or {})}
        self.inline_thumbnails = inline_thumbnails

    @classmethod
    def from_settings(cls, settings, store=None) -> "PhotoIngestionPipeline":
        store = store or ObjectStore.from_settings(settings)
        document = JsonDocument(
            store,
            settings.api_bucket,
            settings.catalog_key,
            conditional_writes=settings.conditional_writes,
            max_attempts=settings.write_attempts,
        )
        return cls(
            store=store,
            catalog=PhotoCatalog(document),
            images_bucket=settings.images_bucket,
            thumbnails_bucket=settings.thumbnails_bucket,
            timeout=settings.http_timeout,
            inline_thumbnails=settings.inline_thumbnails,
        )

    # ==================== Ingestion ====================

    def _run_step(self, step: str, photo_id: str | None, action: Callable):
        """Run one step, applying its failure policy."""
        try:
            return action()
        except Exception as e:
            if self.step_policies.get(step, StepPolicy.FATAL) is StepPolicy.BEST_EFFORT:
                print(f"⚠️ {step} failed for {photo_id}, continuing: {e}")
                return None
            raise PhotoIngestionError(
                f"{step} failed for {photo_id or 'batch'}: {e}", step=step, photo_id=photo_id
            ) from e

    def download(self, request: PhotoUploadRequest) -> bytes:
        """Fetch the source photo bytes."""
        response = self.http.get(request.url, timeout=self.timeout)
        response.raise_for_status()
        if not response.content:
            raise ValueError(f"empty response from {request.url}")
        return response.content

    def delete_objects(self, photo_id: str) -> None:
        """Delete a photo's image and thumbnail objects, if present."""
        self.store.delete(self.images_bucket, photo_id)
        self.store.delete(self.thumbnails_bucket, photo_id)

    def _process(self, request: PhotoUploadRequest) -> PhotoMetadata:
        photo_id = request.id

        image_data = self._run_step("download", photo_id, partial(self.download, request))

        if request.needs_normalization:
            image_data = self._run_step(
                "normalize", photo_id, partial(self.processor.normalize, image_data)
            )

        thumbnail = self._run_step(
            "thumbnail", photo_id, partial(self.processor.create_thumbnail, image_data)
        )

        self._run_step(
            "upload_image",
            photo_id,
            partial(self.store.put, self.images_bucket, photo_id, image_data, CANONICAL_MIME_TYPE),
        )
        if thumbnail is not None:
            self._run_step(
                "upload_thumbnail",
                photo_id,
                partial(
                    self.store.put, self.thumbnails_bucket, photo_id, thumbnail, CANONICAL_MIME_TYPE
                ),
            )

        request.metadata.filename = photo_id
        print(f"✓ Uploaded {photo_id} ({len(image_data) / 1024:.1f} KB)")
        return request.metadata

    def ingest(self, batch: list[PhotoUploadRequest]) -> list[PhotoUploadRequest]:
        """
        Ingest a batch of photos, all or nothing.

        Every request is validated before anything is downloaded. Items are then
        processed in order; if a fatal step fails, the image and thumbnail
        objects of every id in the batch are deleted and the catalog is left
        untouched.

        Returns:
            The batch, with each request's metadata.filename set to its id

        Raises:
            PhotoValidationError: If any request is invalid (nothing was written)
            PhotoIngestionError: If a fatal step failed (the batch was rolled back)
        """
        for request in batch:
            validate_request(request)

        saga = Saga(f"batch of {len(batch)} photo(s)")
        for request in batch:
            saga.register(f"delete {request.id}", partial(self.delete_objects, request.id))

        staged: dict[str, PhotoMetadata] = {}
        try:
            for request in batch:
                staged[request.id] = self._process(request)

            self._run_step("catalog", None, partial(self.catalog.replace_entries, staged))
        except PhotoIngestionError as e:
            print(f"❌ Batch failed at {e.step}: {e}")
            saga.compensate()
            raise

        print(f"✓ Ingested {len(staged)} photo(s) into the catalog")
        return batch

    # ==================== Catalog operations ====================

    def list_photos(self) -> list[PhotoSummary]:
        """One summary per thumbnail, with catalog metadata (default if missing)."""
        catalog = self.catalog.read()
        summaries = []
        for key in self.store.list(self.thumbnails_bucket):
            summary = PhotoSummary(key=key, metadata=catalog.get(key) or PhotoMetadata())
            if self.inline_thumbnails:
                try:
                    data = self.store.get(self.thumbnails_bucket, key)
                except ObjectNotFoundError:
                    # deleted between list and get
                    continue
                summary.body = base64.b64encode(data).decode("ascii")
            else:
                summary.url = self.store.public_url(self.thumbnails_bucket, key)
            summaries.append(summary)
        return summaries

    def update_metadata(self, updates: dict) -> dict[str, PhotoMetadata]:
        """
        Merge caller-supplied fields into catalog entries, field by field.

        Raises:
            PhotoValidationError: If the updates are not {id: {field: value}}
        """
        if not isinstance(updates, dict):
            raise PhotoValidationError("metadata updates must be a JSON object")
        if any(not key for key in updates):
            raise PhotoValidationError("photo id is required")
        try:
            for changes in updates.values():
                PhotoMetadata().merged_with(changes)
        except ValueError as e:
            raise PhotoValidationError(str(e)) from e

        return self.catalog.merge_fields(updates)

    def delete_photo(self, photo_id: str) -> None:
        """
        Delete a photo's image, thumbnail and catalog entry, in that order.

        Missing objects and entries are ignored. The first failing step raises
        and the remaining steps are not attempted.
        """
        if not photo_id:
            raise PhotoValidationError("photo id is required")

        self.store.delete(self.images_bucket, photo_id)
        self.store.delete(self.thumbnails_bucket, photo_id)
        self.catalog.remove(photo_id)
        print(f"🗑️ Deleted photo {photo_id}")
