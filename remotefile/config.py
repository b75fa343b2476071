"""Runtime configuration — env-driven.

Centralized settings using pydantic-settings.  Reads from a .env file and
REMOTEFILE_* environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from remotefile.models.fetch import HashAlgorithm


class FetchSettings(BaseSettings):
    """Settings shared by the CLI, transports and fetch steps.

    Examples
    --------
    Override via environment::

        export REMOTEFILE_OUTPUT_ROOT=/var/build/out
        export REMOTEFILE_HTTP_TIMEOUT_SECONDS=120
        export REMOTEFILE_LOG_LEVEL=DEBUG

    Or via .env file::

        REMOTEFILE_OUTPUT_ROOT=build-out
        REMOTEFILE_DEFAULT_ALGORITHM=sha1
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="REMOTEFILE_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Runtime
    log_level: str = "INFO"
    debug: bool = False

    # Build output layout
    output_root: Path = Path("build-out")
    staging_dir_name: str = ".staging"
    artifact_cache_path: Path = Path(".remotefile-cache/artifacts")

    # Hashing
    default_algorithm: HashAlgorithm = HashAlgorithm.SHA256
    chunk_size: int = 1 << 20

    # HTTP transport
    http_timeout_seconds: float = 60.0
    user_agent: str = "remotefile/0.1.0"
    follow_redirects: bool = True


# Module-level singleton: import as `from remotefile.config import settings`
settings = FetchSettings()
