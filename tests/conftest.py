"""Pytest configuration and fixtures for all tests."""

import pytest

from tests.helpers import (
    API_BUCKET,
    CATALOG_KEY,
    IMAGES_BUCKET,
    THUMBNAILS_BUCKET,
    make_jpeg,
    make_png,
)


# ==================== Mock Service Fixtures ====================


@pytest.fixture
def mock_store():
    """Provide a clean MockObjectStore instance."""
    from tests.mocks import MockObjectStore

    store = MockObjectStore()
    yield store
    store.clear()


@pytest.fixture
def mock_http():
    """Provide a clean MockHttpSession instance."""
    from tests.mocks import MockHttpSession

    session = MockHttpSession()
    yield session
    session.clear()


@pytest.fixture
def catalog_document(mock_store):
    """Catalog document backed by the mock store."""
    from utils.documents import JsonDocument

    return JsonDocument(mock_store, API_BUCKET, CATALOG_KEY)


@pytest.fixture
def catalog(catalog_document):
    """Photo catalog backed by the mock store."""
    from photo.catalog import PhotoCatalog

    return PhotoCatalog(catalog_document)


@pytest.fixture
def pipeline(mock_store, mock_http, catalog):
    """Ingestion pipeline wired to mock storage and HTTP."""
    from photo.pipeline import PhotoIngestionPipeline

    return PhotoIngestionPipeline(
        store=mock_store,
        catalog=catalog,
        images_bucket=IMAGES_BUCKET,
        thumbnails_bucket=THUMBNAILS_BUCKET,
        http=mock_http,
        timeout=5,
    )


# ==================== Image Fixtures ====================


@pytest.fixture
def jpeg_bytes():
    """A plain JPEG without EXIF data."""
    return make_jpeg()


@pytest.fixture
def png_bytes():
    """A transparent RGBA PNG."""
    return make_png()


# ==================== Pytest Configuration ====================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (require external services)")
    config.addinivalue_line("markers", "e2e: End-to-end tests (full workflow)")
