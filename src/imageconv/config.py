"""Configuration management for imageconv."""

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load .env file (no-op if not present)
load_dotenv()

RATE_LIMIT_WINDOWS = ("second", "minute", "hour", "day")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name, "").strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %d", name, value, default)
        return default


def _env_list(name: str) -> list[str]:
    return [item.strip() for item in os.getenv(name, "").split(",") if item.strip()]


def _check_quality(name: str, value) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 100:
        raise ValueError(f"Invalid {name}: {value!r}. Must be an integer from 1 to 100")


@dataclass
class ServerConfig:
    """HTTP server settings."""

    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: _env_int("PORT", 3000))
    environment: str = field(default_factory=lambda: os.getenv("APP_ENV", "development"))

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@dataclass
class SecurityConfig:
    """API key and rate limit settings."""

    api_keys: list[str] = field(default_factory=lambda: _env_list("API_KEYS"))
    rate_limit_max: int = field(default_factory=lambda: _env_int("RATE_LIMIT_MAX", 100))
    rate_limit_window: str = field(default_factory=lambda: os.getenv("RATE_LIMIT_WINDOW", "minute"))

    def __post_init__(self):
        if self.rate_limit_window not in RATE_LIMIT_WINDOWS:
            raise ValueError(
                f"Invalid rate limit window: {self.rate_limit_window}. "
                f"Available: {list(RATE_LIMIT_WINDOWS)}"
            )


@dataclass
class UploadConfig:
    """Upload size limits."""

    max_file_size: int = field(default_factory=lambda: _env_int("MAX_FILE_SIZE", 10 * 1024 * 1024))


@dataclass
class ImageProcessingConfig:
    """Encoder defaults: a global quality plus a parameter table per output format."""

    default_quality: int = field(default_factory=lambda: _env_int("DEFAULT_QUALITY", 80))

    formats: dict[str, dict] = field(default_factory=lambda: {
        "avif": {
            "quality": _env_int("AVIF_QUALITY", 60),
            "effort": 4,
            "chroma_subsampling": "4:2:0",
        },
        "webp": {
            "quality": _env_int("WEBP_QUALITY", 80),
            "effort": 4,
            "smart_subsample": True,
        },
        "jpeg": {
            "quality": _env_int("JPEG_QUALITY", 85),
            "progressive": True,
            "optimize_coding": True,
        },
        "png": {
            "compression_level": 9,
            "progressive": True,
        },
    })

    def __post_init__(self):
        _check_quality("default_quality", self.default_quality)
        for fmt, params in self.formats.items():
            if "quality" in params:
                _check_quality(f"{fmt} quality", params["quality"])


@dataclass
class CodecConfig:
    """Process-wide codec limits, applied once at startup."""

    cache_size: int = field(default_factory=lambda: _env_int("CODEC_CACHE", 100))
    concurrency: int = field(default_factory=lambda: _env_int("CODEC_CONCURRENCY", 2))


@dataclass
class AppConfig:
    """Main application configuration."""

    server: ServerConfig = field(default_factory=ServerConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)
    upload: UploadConfig = field(default_factory=UploadConfig)
    image_processing: ImageProcessingConfig = field(default_factory=ImageProcessingConfig)
    codec: CodecConfig = field(default_factory=CodecConfig)
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())

    @classmethod
    def load(cls, path: Path | str | None = None) -> "AppConfig":
        """
        Load configuration from the environment, then apply a JSON file on top.

        Args:
            path: Optional JSON config file. Missing files are ignored.

        Returns:
            AppConfig instance
        """
        if path is None:
            return cls()

        path = Path(path)
        if not path.exists():
            logger.info("No config file at %s, using environment defaults", path)
            return cls()

        with open(path) as f:
            data = json.load(f)

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict) -> "AppConfig":
        """Create AppConfig from dictionary, keeping defaults for missing keys."""
        config = cls()

        config.server = _merge(config.server, data.get("server", {}))
        config.security = _merge(config.security, data.get("security", {}))
        config.upload = _merge(config.upload, data.get("upload", {}))
        config.codec = _merge(config.codec, data.get("codec", {}))

        processing = data.get("image_processing", {})
        current = config.image_processing
        formats = {fmt: dict(params) for fmt, params in current.formats.items()}
        for fmt, params in processing.get("formats", {}).items():
            formats.setdefault(fmt, {}).update(params)
        # replace() re-runs the quality range checks
        config.image_processing = replace(
            current,
            default_quality=int(processing.get("default_quality", current.default_quality)),
            formats=formats,
        )

        if "log_level" in data:
            config.log_level = str(data["log_level"]).upper()

        return config

    def to_dict(self) -> dict:
        return asdict(self)

    def save(self, path: Path | str = Path("config.json")) -> None:
        """Save configuration to file."""
        path = Path(path)

        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

        logger.info("Saved configuration to %s", path)


def _merge(section, values: dict):
    """Return a copy of a config section with known keys replaced."""
    known = {f.name for f in fields(section)}
    unknown = set(values) - known
    if unknown:
        logger.warning("Ignoring unknown %s keys: %s", type(section).__name__, sorted(unknown))
    return replace(section, **{k: v for k, v in values.items() if k in known})
