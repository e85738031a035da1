"""Litestar web server for the image conversion API."""

import logging

from litestar import Litestar, Request, Response
from litestar.config.cors import CORSConfig
from litestar.datastructures import ResponseHeader
from litestar.middleware.rate_limit import RateLimitConfig
from litestar.status_codes import HTTP_500_INTERNAL_SERVER_ERROR

from ..codec import configure_default_codec
from ..config import AppConfig
from ..errors import EncodeError, ImageConvError, InvalidInput, InvalidRequest, TransformError
from ..pipeline import ImagePipeline

logger = logging.getLogger(__name__)

SECURITY_HEADERS = [
    ResponseHeader(name="X-Content-Type-Options", value="nosniff"),
    ResponseHeader(name="X-Frame-Options", value="SAMEORIGIN"),
    ResponseHeader(name="Referrer-Policy", value="no-referrer"),
    ResponseHeader(name="Cross-Origin-Resource-Policy", value="same-origin"),
]

# Error kind -> (status code, error title)
ERROR_RESPONSES: dict[type[ImageConvError], tuple[int, str]] = {
    InvalidInput: (400, "Invalid Image"),
    InvalidRequest: (400, "Bad Request"),
    TransformError: (422, "Unprocessable Entity"),
    EncodeError: (500, "Encode Error"),
}


def create_exception_handlers(config: AppConfig) -> dict:
    """Map pipeline errors and unexpected failures to JSON responses."""

    def pipeline_error_handler(request: Request, exc: ImageConvError) -> Response:
        status_code, title = next(
            (v for cls, v in ERROR_RESPONSES.items() if isinstance(exc, cls)),
            (500, "Internal Server Error"),
        )
        if status_code >= 500:
            logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc)
        else:
            logger.info("%s on %s: %s", type(exc).__name__, request.url.path, exc)
        return Response(content={"error": title, "message": str(exc)}, status_code=status_code)

    def internal_error_handler(request: Request, exc: Exception) -> Response:
        logger.error("Unhandled error on %s: %s", request.url.path, exc, exc_info=exc)
        message = (
            "An error occurred processing your request"
            if config.server.is_production
            else str(exc)
        )
        return Response(
            content={"error": "Internal Server Error", "message": message},
            status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return {
        ImageConvError: pipeline_error_handler,
        HTTP_500_INTERNAL_SERVER_ERROR: internal_error_handler,
    }


def create_app(
    config: AppConfig | None = None,
    pipeline: ImagePipeline | None = None,
) -> Litestar:
    """
    Create the Litestar application.

    Args:
        config: App configuration. If None, loaded from the environment.
        pipeline: Image pipeline. If None, built on the process-wide codec,
            which is configured here exactly once.

    Returns:
        Configured Litestar app
    """
    config = config or AppConfig.load()

    if pipeline is None:
        codec = configure_default_codec(config.codec.cache_size, config.codec.concurrency)
        pipeline = ImagePipeline(codec, config.image_processing)

    # Import routes here to avoid circular imports
    from .routes import create_routes

    route_handlers = create_routes(config, pipeline)

    rate_limit = RateLimitConfig(
        rate_limit=(config.security.rate_limit_window, config.security.rate_limit_max),
        exclude=["/health"],
    )

    app = Litestar(
        route_handlers=route_handlers,
        cors_config=CORSConfig(allow_origins=["*"], allow_credentials=True),
        middleware=[rate_limit.middleware],
        response_headers=SECURITY_HEADERS,
        exception_handlers=create_exception_handlers(config),
        request_max_body_size=config.upload.max_file_size,
        debug=not config.server.is_production,
    )

    logger.info("Created Litestar app with %d route handlers", len(route_handlers))
    return app


def run_server(
    config_path: str | None = None,
    host: str | None = None,
    port: int | None = None,
) -> None:
    """
    Run the web server.

    Args:
        config_path: Optional JSON config file
        host: Host to bind to (overrides config)
        port: Port to listen on (overrides config)
    """
    import uvicorn

    config = AppConfig.load(config_path)
    host = host or config.server.host
    port = port or config.server.port

    logger.info("Starting web server on http://%s:%d", host, port)
    print("\nImage Converter API")
    print(f"Listening on http://{host}:{port}")
    print(f"API keys configured: {len(config.security.api_keys)}")
    print(f"Max file size: {config.upload.max_file_size / 1024 / 1024:.2f} MB")
    print(f"Environment: {config.server.environment}")
    print("Press Ctrl+C to stop\n")

    # Create app
    app = create_app(config=config)

    # Run with uvicorn; it handles SIGINT/SIGTERM with a graceful shutdown
    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=config.log_level.lower(),
    )
