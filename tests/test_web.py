"""
Tests for the HTTP API using the Litestar test client.
"""

import io

import pytest
from litestar.testing import TestClient
from PIL import Image

from imageconv import __version__
from imageconv.config import AppConfig, SecurityConfig, ServerConfig
from imageconv.web import create_app

from conftest import encode, noise_image

API_KEY = "test-key"
AUTH = {"X-API-Key": API_KEY}


def make_config(**security):
    return AppConfig(
        server=ServerConfig(environment="development"),
        security=SecurityConfig(api_keys=[API_KEY], **security),
    )


@pytest.fixture
def client(pipeline):
    with TestClient(app=create_app(make_config(), pipeline)) as client:
        yield client


def upload(data, name="photo.png", content_type="image/png"):
    return {"file": (name, data, content_type)}


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["environment"] == "development"
    assert "timestamp" in body
    assert response.headers["x-content-type-options"] == "nosniff"


def test_index(client):
    body = client.get("/").json()
    assert body["version"] == __version__
    assert body["supportedFormats"] == ["avif", "webp", "jpeg", "png"]
    assert body["maxFileSize"] == "10.00 MB"


def test_missing_api_key(client, png_bytes):
    response = client.post("/api/convert", files=upload(png_bytes))
    assert response.status_code == 401


def test_invalid_api_key(client, png_bytes):
    response = client.post("/api/convert", files=upload(png_bytes), headers={"X-API-Key": "wrong"})
    assert response.status_code == 401


def test_convert_returns_image_with_headers(client, png_bytes):
    response = client.post(
        "/api/convert",
        params={"format": "webp", "quality": "60"},
        files=upload(png_bytes),
        headers=AUTH,
    )
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("image/webp")
    assert response.headers["content-disposition"] == 'inline; filename="photo.webp"'
    assert response.headers["x-filename"] == "photo.webp"
    assert response.headers["x-original-size"] == str(len(png_bytes))
    assert response.headers["x-compression-ratio"].endswith("%")
    assert response.headers["x-image-format"] == "webp"
    assert response.headers["x-image-width"] == "300"
    assert response.headers["x-image-height"] == "300"
    with Image.open(io.BytesIO(response.content)) as image:
        assert image.format == "WEBP"


def test_jpeg_output_uses_jpg_extension(client, png_bytes):
    response = client.post(
        "/api/compress", params={"format": "jpeg"}, files=upload(png_bytes), headers=AUTH
    )
    assert response.status_code == 200
    assert response.headers["x-filename"] == "photo.jpg"


def test_resize(client, png_bytes):
    response = client.post(
        "/api/resize", params={"width": "150", "fit": "inside"}, files=upload(png_bytes), headers=AUTH
    )
    assert response.status_code == 200
    assert response.headers["x-image-width"] == "150"
    assert response.headers["x-image-format"] == "png"


def test_resize_without_dimensions(client, png_bytes):
    response = client.post("/api/resize", files=upload(png_bytes), headers=AUTH)
    assert response.status_code == 400
    assert response.json()["error"] == "Bad Request"
    assert "Width or height" in response.json()["message"]


def test_non_image_upload(client, text_bytes):
    response = client.post(
        "/api/convert",
        params={"format": "png"},
        files=upload(text_bytes, "notes.txt", "text/plain"),
        headers=AUTH,
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid Image"


def test_no_file(client):
    response = client.post("/api/convert", data={"format": "png"}, headers=AUTH)
    assert response.status_code == 400
    assert response.json()["message"] == "No file uploaded"


def test_metadata(client, jpeg_bytes):
    response = client.post("/api/metadata", files=upload(jpeg_bytes, "a.jpg", "image/jpeg"), headers=AUTH)
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["metadata"]["format"] == "jpeg"
    assert body["metadata"]["width"] == 100
    assert body["metadata"]["size"] == len(jpeg_bytes)


def test_process_rotate_swaps_dimensions(client, jpeg_bytes):
    response = client.post(
        "/api/process",
        params={"rotate": "90", "format": "png", "grayscale": "true"},
        files=upload(jpeg_bytes, "a.jpg", "image/jpeg"),
        headers=AUTH,
    )
    assert response.status_code == 200
    assert response.headers["x-image-width"] == "50"
    assert response.headers["x-image-height"] == "100"


def test_transform_error_is_422(client, png_bytes):
    response = client.post(
        "/api/resize",
        params={"width": "0", "height": "10", "fit": "fill"},
        files=upload(png_bytes),
        headers=AUTH,
    )
    assert response.status_code == 422


class ExplodingPipeline:
    def convert(self, data, options):
        raise RuntimeError("secret internals")


@pytest.mark.parametrize("environment,leaks", [("production", False), ("development", True)])
def test_unexpected_error_is_500(environment, leaks):
    config = make_config()
    config.server = ServerConfig(environment=environment)
    with TestClient(app=create_app(config, ExplodingPipeline())) as client:
        response = client.post(
            "/api/convert", files=upload(encode(noise_image((8, 8)))), headers=AUTH
        )
    assert response.status_code == 500
    assert response.json()["error"] == "Internal Server Error"
    assert ("secret internals" in response.json()["message"]) is leaks


def test_rate_limit(pipeline):
    app = create_app(make_config(rate_limit_max=2), pipeline)
    with TestClient(app=app) as client:
        statuses = [client.get("/").status_code for _ in range(3)]
        # Health checks are never limited
        assert client.get("/health").status_code == 200
    assert statuses == [200, 200, 429]


def test_upload_too_large(pipeline, png_bytes):
    config = make_config()
    config.upload.max_file_size = 1024
    with TestClient(app=create_app(config, pipeline)) as client:
        response = client.post("/api/convert", files=upload(png_bytes), headers=AUTH)
    assert response.status_code == 413
