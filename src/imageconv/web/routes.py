"""API routes for the image conversion service."""

import asyncio
import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from litestar import Controller, Request, Response, get, post
from litestar.datastructures import UploadFile

from .. import __version__
from ..config import AppConfig
from ..errors import InvalidRequest
from ..models import OutputFormat, PipelineResult
from ..pipeline import ImagePipeline
from .auth import create_api_key_guard

logger = logging.getLogger(__name__)

ENDPOINTS = [
    "POST /api/convert - Convert image to specified format",
    "POST /api/compress - Compress image with quality settings",
    "POST /api/resize - Resize image to specified dimensions",
    "POST /api/process - Process image with multiple operations",
    "POST /api/metadata - Get image metadata",
    "GET /health - Health check",
]


async def read_upload(request: Request) -> tuple[bytes, str | None]:
    """
    Read the first file part of a multipart request.

    Returns:
        (file bytes, client-supplied filename)

    Raises:
        InvalidRequest: If no file part is present
    """
    form = await request.form()
    try:
        for _, value in form.multi_items():
            if isinstance(value, UploadFile):
                return await value.read(), value.filename
    finally:
        await form.close()
    raise InvalidRequest("No file uploaded")


def output_filename(upload_name: str | None, fmt: OutputFormat) -> str:
    stem = Path(upload_name or "image").stem.replace('"', "") or "image"
    return f"{stem}.{fmt.extension}"


def image_response(result: PipelineResult, upload_name: str | None) -> Response:
    """Raw image bytes with the transformation metrics as headers."""
    filename = output_filename(upload_name, result.format)
    return Response(
        content=result.data,
        media_type=result.format.media_type,
        status_code=200,
        headers={
            "Content-Disposition": f'inline; filename="{filename}"',
            "X-Filename": filename,
            "X-Original-Size": str(result.original_size),
            "X-Compression-Ratio": f"{result.compression_ratio:.2f}%",
            "X-Image-Format": result.format.value,
            "X-Image-Width": str(result.width),
            "X-Image-Height": str(result.height),
        },
    )


def create_routes(config: AppConfig, pipeline: ImagePipeline) -> list:
    """
    Create route handlers with injected dependencies.

    Args:
        config: App configuration
        pipeline: Image pipeline shared by all requests

    Returns:
        List of route handler classes
    """
    started_at = time.monotonic()
    api_key_guard = create_api_key_guard(config.security.api_keys)

    async def run_operation(
        request: Request,
        operation: Callable[[bytes, dict[str, Any]], PipelineResult],
    ) -> Response:
        data, filename = await read_upload(request)
        options = dict(request.query_params.items())
        # Pipeline work is CPU-bound; keep it off the event loop
        result = await asyncio.to_thread(operation, data, options)
        return image_response(result, filename)

    class InfoController(Controller):
        """Service information endpoints (no auth required)."""

        path = "/"

        @get()
        async def index(self) -> dict:
            """Describe the API."""
            return {
                "name": "Image Converter API",
                "version": __version__,
                "description": "Image conversion API with AVIF support",
                "endpoints": ENDPOINTS,
                "authentication": "X-API-Key header required for image endpoints",
                "supportedFormats": [f.value for f in OutputFormat],
                "maxFileSize": f"{config.upload.max_file_size / 1024 / 1024:.2f} MB",
            }

        @get("/health")
        async def health(self) -> dict:
            """Health check."""
            return {
                "status": "healthy",
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "uptime": round(time.monotonic() - started_at, 3),
                "environment": config.server.environment,
            }

    class ImageController(Controller):
        """Image processing endpoints."""

        path = "/api"
        guards = [api_key_guard]

        @post("/convert", status_code=200)
        async def convert(self, request: Request) -> Response:
            """Convert image to specified format (avif, webp, jpeg, png)."""
            return await run_operation(request, pipeline.convert)

        @post("/compress", status_code=200)
        async def compress(self, request: Request) -> Response:
            """Compress image with quality settings."""
            return await run_operation(request, pipeline.compress)

        @post("/resize", status_code=200)
        async def resize(self, request: Request) -> Response:
            """Resize image to specified dimensions."""
            return await run_operation(request, pipeline.resize)

        @post("/process", status_code=200)
        async def process(self, request: Request) -> Response:
            """Process image with multiple operations."""
            return await run_operation(request, pipeline.process)

        @post("/metadata", status_code=200)
        async def metadata(self, request: Request) -> dict:
            """Get image metadata without processing."""
            data, _ = await read_upload(request)
            meta = await asyncio.to_thread(pipeline.metadata, data)
            return {"success": True, "metadata": meta.to_dict()}

    return [InfoController, ImageController]
