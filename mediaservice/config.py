"""
Configuration for the media service.
Static tuning constants live here; deployment settings come from a YAML
document (see cfg/config.yml) and a few environment overrides (.env).
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

from mediaservice.errors import ConfigError

load_dotenv()

DEFAULT_CONFIG_PATH = "cfg/config.yml"

# Network timeout for HTTP downloads (seconds)
REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", 30))

# User-Agent string sent with every download
USER_AGENT = "MediaService/1.0"

# Download chunk size (128KB)
DOWNLOAD_CHUNK_SIZE = 131072

# MD5 read buffer size
MD5_BUFFER_SIZE = 65536


def debug_mode_enabled() -> bool:
    """DEBUG_MODE=true in the environment raises log verbosity."""
    return os.getenv("DEBUG_MODE", "").lower() == "true"


@dataclass(frozen=True)
class ServerConfig:
    port: int
    shutdown_timeout: int


@dataclass(frozen=True)
class ServiceConfig:
    channel_size: int
    workers: int
    attempts: int
    output_dir: str


@dataclass(frozen=True)
class CacheConfig:
    size: int
    expiration: int


@dataclass(frozen=True)
class Config:
    db_filepath: str
    server: ServerConfig
    service: ServiceConfig
    cache_manager: CacheConfig
    log_file: Optional[str] = None


def _section(doc: dict, name: str) -> dict:
    section = doc.get(name)
    if not isinstance(section, dict):
        raise ConfigError(f"missing or invalid section {name!r}")
    return section


def _int(section: dict, key: str, prefix: str, minimum: int = 0) -> int:
    if key not in section:
        raise ConfigError(f"missing key {prefix}.{key}")
    value = section[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{prefix}.{key} must be an integer, got {value!r}")
    if value < minimum:
        raise ConfigError(f"{prefix}.{key} must be >= {minimum}, got {value}")
    return value


def parse_config(doc) -> Config:
    """Build a Config from an already-parsed YAML document."""
    if not isinstance(doc, dict):
        raise ConfigError("configuration root must be a mapping")

    db_filepath = doc.get("db_filepath")
    if not db_filepath or not isinstance(db_filepath, str):
        raise ConfigError("missing key db_filepath")

    server = _section(doc, "server")
    service = _section(doc, "service")
    cache = _section(doc, "cache_manager")

    output_dir = service.get("output_dir")
    if not output_dir or not isinstance(output_dir, str):
        raise ConfigError("missing key service.output_dir")

    return Config(
        db_filepath=db_filepath,
        server=ServerConfig(
            port=_int(server, "port", "server"),
            shutdown_timeout=_int(server, "shutdown_timeout", "server"),
        ),
        service=ServiceConfig(
            channel_size=_int(service, "channel_size", "service", minimum=1),
            workers=_int(service, "workers", "service", minimum=1),
            attempts=_int(service, "attempts", "service", minimum=1),
            output_dir=output_dir,
        ),
        cache_manager=CacheConfig(
            size=_int(cache, "size", "cache_manager", minimum=1),
            expiration=_int(cache, "expiration", "cache_manager"),
        ),
        log_file=doc.get("log_file") or None,
    )


def load_config(path=DEFAULT_CONFIG_PATH) -> Config:
    """
    Read the YAML config file at `path`.
    Raises ConfigError when the file is missing, malformed or incomplete.
    """
    config_path = Path(path)
    try:
        content = config_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"error while reading config file {str(config_path)!r}: {e}") from e

    try:
        doc = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(f"error while parsing configuration: {e}") from e

    return parse_config(doc)
