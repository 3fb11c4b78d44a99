"""FastAPI app serving the photo gallery endpoints."""

import json
import traceback

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from photo.models import PhotoUploadRequest
from photo.pipeline import PhotoIngestionError, PhotoIngestionPipeline, PhotoValidationError


def error_response(message: str, code: int) -> JSONResponse:
    """Error payload used by every endpoint."""
    return JSONResponse(status_code=code, content={"error": message, "code": code})


async def _read_json(request: Request):
    body = await request.body()
    try:
        return json.loads(body)
    except (UnicodeDecodeError, ValueError) as e:
        raise PhotoValidationError(f"invalid JSON body: {e}") from e


def create_photos_app(
    pipeline: PhotoIngestionPipeline, allowed_origins: list[str] | None = None
) -> FastAPI:
    """
    Build the photo API.

    POST   /photos/upload       - ingest a JSON array of upload requests
    POST   /photos/update       - merge {id: {field: value}} into the catalog
    GET    /photos/list         - thumbnails with their metadata
    DELETE /photos/delete?name= - delete a photo
    GET    /health              - liveness check
    """
    web_app = FastAPI()

    web_app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins or [],
        allow_methods=["POST", "GET", "OPTIONS", "PUT", "DELETE"],
        allow_headers=[
            "Accept",
            "Content-Type",
            "Content-Length",
            "Accept-Encoding",
            "X-CSRF-Token",
            "Authorization",
        ],
    )

    @web_app.exception_handler(PhotoValidationError)
    async def handle_validation_error(request: Request, exc: PhotoValidationError):
        return error_response(str(exc), 400)

    @web_app.exception_handler(PhotoIngestionError)
    async def handle_ingestion_error(request: Request, exc: PhotoIngestionError):
        return error_response(str(exc), 500)

    @web_app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        print(f"❌ Error handling {request.method} {request.url.path}: {exc}")
        traceback.print_exception(exc)
        return error_response(str(exc), 500)

    @web_app.post("/photos/upload")
    async def upload_photos(request: Request):
        payload = await _read_json(request)
        if not isinstance(payload, list):
            raise PhotoValidationError("expected a JSON array of photos")
        try:
            batch = [PhotoUploadRequest.from_dict(item) for item in payload]
        except (TypeError, ValueError) as e:
            raise PhotoValidationError(str(e)) from e

        print(f"📥 Upload batch of {len(batch)} photo(s)")
        await run_in_threadpool(pipeline.ingest, batch)
        return [item.to_dict() for item in batch]

    @web_app.post("/photos/update")
    async def update_photos(request: Request):
        payload = await _read_json(request)
        await run_in_threadpool(pipeline.update_metadata, payload)
        return payload

    @web_app.get("/photos/list")
    def list_photos():
        return [summary.to_dict() for summary in pipeline.list_photos()]

    @web_app.delete("/photos/delete")
    def delete_photo(name: str | None = None):
        if not name:
            raise PhotoValidationError("name is required")
        pipeline.delete_photo(name)
        return {"deleted": name}

    @web_app.get("/health")
    async def health_check():
        return {"health": "healthy"}

    return web_app
